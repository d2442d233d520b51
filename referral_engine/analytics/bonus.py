"""
Minimum referral bonus for a hiring target — pure functions only.

adoption_probability maps a bonus to a daily referral probability in [0, 1]
and must be monotonically non-decreasing. Since the growth projection is
monotone in p, "final total >= target" is monotone in bonus and a binary
search over the bonus grid finds the smallest sufficient bonus.

Grid: integer multiples of search.increment in [0, search.max_bonus].
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

import networkx as nx
import numpy as np

from referral_engine.analytics.growth import simulate
from referral_engine.config import BonusSearch, GrowthPolicy

logger = logging.getLogger(__name__)

UNACHIEVABLE = None

AdoptionFn = Callable[[int], float]


def min_bonus_for_target(
    graph: nx.DiGraph,
    days: int,
    target_hires: float,
    adoption_probability: AdoptionFn,
    search: Optional[BonusSearch] = None,
    policy: Optional[GrowthPolicy] = None,
) -> Optional[int]:
    """
    Smallest grid bonus whose projected total after `days` reaches target_hires.

    Returns UNACHIEVABLE (None) when even the top of the grid falls short.
    The adoption function is called at most once per distinct bonus,
    O(log(max_bonus / increment)) times overall.
    """
    if days < 0:
        raise ValueError(f"days must be >= 0, got {days}")
    search = search or BonusSearch()
    probabilities: dict[int, float] = {}

    def probability(bonus: int) -> float:
        if bonus not in probabilities:
            p = float(adoption_probability(bonus))
            if not 0.0 <= p <= 1.0:
                raise ValueError(f"adoption probability for bonus {bonus} is {p}, outside [0, 1]")
            probabilities[bonus] = p
        return probabilities[bonus]

    def reaches_target(step: int) -> bool:
        if days == 0:
            return graph.number_of_edges() >= target_hires
        bonus = step * search.increment
        return simulate(graph, probability(bonus), days, policy)[-1] >= target_hires

    if not reaches_target(search.steps):
        logger.info(
            f"Target of {target_hires} in {days} days unachievable with bonus <= "
            f"{search.steps * search.increment}"
        )
        return UNACHIEVABLE

    low, high = 0, search.steps
    while low < high:
        mid = (low + high) // 2
        if reaches_target(mid):
            high = mid
        else:
            low = mid + 1

    bonus = low * search.increment
    logger.info(
        f"Target of {target_hires} in {days} days needs bonus {bonus} "
        f"({len(probabilities)} adoption lookups)"
    )
    return bonus


def bonus_curve(
    adoption_probability: AdoptionFn,
    search: Optional[BonusSearch] = None,
    points: int = 11,
) -> list[dict]:
    """Evenly spaced {bonus, probability} samples over [0, max_bonus] for charting."""
    search = search or BonusSearch()
    if points < 2:
        raise ValueError(f"points must be >= 2, got {points}")
    bonuses = np.linspace(0, search.max_bonus, points)
    return [
        {"bonus": int(round(b)), "probability": float(adoption_probability(int(round(b))))}
        for b in bonuses
    ]
