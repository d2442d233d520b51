"""
Deterministic growth projection — pure functions only.

Expected-value recurrence, no random trials:
  - every user may make at most policy.referral_cap successful referrals
  - each day an active referrer succeeds at most once, with probability p
  - a success uses one unit of capacity; at zero capacity the referrer retires
  - each success brings in a new referrer who starts the NEXT day at full capacity

State is a numpy vector: capacity[c] = expected number of referrers with c
referrals left (index 0 = retired). The cohort is seeded from the graph, one
referrer per known user with its remaining capacity; an empty graph starts
from policy.initial_cohort fresh referrers.

The projection is cumulative and starts from the current edge count, so
p = 0 gives a flat line at that seed value.
"""
from __future__ import annotations

import logging
from typing import Optional

import networkx as nx
import numpy as np

from referral_engine.config import SCENARIOS, GrowthPolicy

logger = logging.getLogger(__name__)


def seed_capacity(graph: nx.DiGraph, policy: GrowthPolicy) -> np.ndarray:
    cap = policy.referral_cap
    capacity = np.zeros(cap + 1)
    if graph.number_of_nodes() == 0:
        capacity[cap] = policy.initial_cohort
        return capacity
    for node in graph.nodes:
        capacity[max(cap - graph.out_degree(node), 0)] += 1
    return capacity


def _advance(capacity: np.ndarray, p: float, successes: float) -> np.ndarray:
    nxt = np.zeros_like(capacity)
    nxt[0] = capacity[0]
    nxt[1:] += capacity[1:] * (1.0 - p)   # no referral today
    nxt[:-1] += capacity[1:] * p          # one referral, one unit of capacity used
    nxt[-1] += successes                  # today's candidates become referrers
    return nxt


def simulate(
    graph: nx.DiGraph,
    p: float,
    days: int,
    policy: Optional[GrowthPolicy] = None,
) -> list[float]:
    """
    Cumulative expected referral totals for days 1..days.

    Element i is the current edge count plus expected successes through day i+1.
    The series is non-decreasing for every p in [0, 1].
    """
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"daily probability must be within [0, 1], got {p}")
    if days < 0:
        raise ValueError(f"days must be >= 0, got {days}")

    policy = policy or GrowthPolicy()
    capacity = seed_capacity(graph, policy)
    total = float(graph.number_of_edges())

    series: list[float] = []
    for _ in range(days):
        successes = float(capacity[1:].sum()) * p
        total += successes
        series.append(total)
        capacity = _advance(capacity, p, successes)
    return series


def daily_growth(series: list[float], seed: float) -> list[float]:
    """Per-day increments of a cumulative series that started at seed."""
    out = []
    prev = seed
    for value in series:
        out.append(value - prev)
        prev = value
    return out


def simulate_scenarios(
    graph: nx.DiGraph,
    days: int,
    scenarios: Optional[dict[str, float]] = None,
    policy: Optional[GrowthPolicy] = None,
) -> dict[str, list[float]]:
    """Run simulate() once per named probability (conservative/moderate/aggressive by default)."""
    scenarios = SCENARIOS if scenarios is None else scenarios
    out = {name: simulate(graph, p, days, policy) for name, p in scenarios.items()}
    logger.debug(f"Simulated {len(out)} scenarios over {days} days")
    return out
