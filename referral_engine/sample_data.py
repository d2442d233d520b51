"""
Demo data for dashboards and the report CLI.

seed_sample_network builds a small random network the way the dashboards
do: chain most users under one of the first ten, then hang extra outside
candidates under random referrers. Attempts that break a structural rule
are skipped.
"""
from __future__ import annotations

import logging
import random
from typing import Optional

from referral_engine.errors import ReferralError
from referral_engine.network import ReferralNetwork

logger = logging.getLogger(__name__)

CHAIN_PROBABILITY = 0.7
CHAIN_REFERRER_POOL = 10


def sample_user_ids(count: int, prefix: str = "user_") -> list[str]:
    return [f"{prefix}{i + 1}" for i in range(count)]


def seed_sample_network(
    network: ReferralNetwork,
    users: int = 50,
    extra: int = 30,
    rng: Optional[random.Random] = None,
) -> int:
    """Populate network with random referrals; returns the number accepted."""
    rng = rng or random.Random()
    ids = sample_user_ids(users)
    accepted = attempts = 0

    for i in range(len(ids) - 1):
        if rng.random() >= CHAIN_PROBABILITY:
            continue
        referrer = ids[rng.randrange(min(i + 1, CHAIN_REFERRER_POOL))]
        attempts += 1
        try:
            network.add_referral(referrer, ids[i + 1])
        except ReferralError:
            continue
        accepted += 1

    for i in range(extra):
        if not ids:
            break
        referrer = ids[rng.randrange(len(ids))]
        attempts += 1
        try:
            network.add_referral(referrer, f"new_user_{i + 1}")
        except ReferralError:
            continue
        accepted += 1

    logger.info(f"Seeded sample network: {accepted}/{attempts} referrals accepted")
    return accepted


def default_adoption_probability(bonus: int) -> float:
    """Sample bonus -> daily referral probability curve, saturating at 0.9."""
    return min(0.9, 0.1 + (bonus / 1000) * 0.8)


# (days, target hires) pairs shown on the optimisation tab
BONUS_SCENARIOS = [
    (30, 500),
    (45, 1000),
    (60, 2000),
]
