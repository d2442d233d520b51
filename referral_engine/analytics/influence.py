"""
Influence ranking — pure functions only.

Three notions of influence over the referral forest:
  reach             — number of descendants
  unique reach      — greedy maximum-coverage selection of users whose
                      downstream sets overlap as little as possible
  flow centrality   — ancestors(v) * descendants(v), the number of
                      (ancestor, descendant) pairs whose only path runs through v
"""
from __future__ import annotations

from typing import Optional

import networkx as nx

from referral_engine.analytics.reach import all_reaches, max_depth, user_depths


def _ranked(scores: dict[str, int], k: int) -> list[tuple[str, int]]:
    # sorted() is stable, so ties keep first-seen order
    if k <= 0:
        return []
    positive = [(u, s) for u, s in scores.items() if s > 0]
    positive.sort(key=lambda item: item[1], reverse=True)
    return positive[:k]


def top_referrers_by_reach(graph: nx.DiGraph, k: int) -> list[dict]:
    """
    Users ranked by total reach, highest first.

    Returns at most min(k, users with reach > 0) entries: {user_id, reach}.
    """
    return [
        {"user_id": u, "reach": r}
        for u, r in _ranked(all_reaches(graph), k)
    ]


def top_referrers_by_direct(graph: nx.DiGraph, k: int) -> list[dict]:
    """Users ranked by number of direct referrals: {user_id, referral_count}."""
    direct = {n: graph.out_degree(n) for n in graph.nodes}
    return [
        {"user_id": u, "referral_count": c}
        for u, c in _ranked(direct, k)
    ]


def unique_reach_influencers(graph: nx.DiGraph, k: Optional[int] = None) -> list[dict]:
    """
    Greedy selection of users covering the most distinct downstream users.

    Each round picks the not-yet-selected user whose descendant set contains
    the most ids not already covered, records that incremental count as
    unique_reach, then marks those ids covered. Stops when the best gain is
    zero, every user has been picked, or k picks have been made.

    This is the standard greedy approximation of maximum coverage (NP-hard);
    the selection is not guaranteed to be optimal.

    Returns list of dicts: {user_id, unique_reach}.
    """
    downstream = {n: nx.descendants(graph, n) for n in graph.nodes}
    remaining = [n for n in graph.nodes if downstream[n]]
    covered: set[str] = set()
    picks: list[dict] = []

    while remaining and (k is None or len(picks) < k):
        best, best_gain = None, 0
        for user_id in remaining:
            gain = len(downstream[user_id] - covered)
            if gain > best_gain:
                best, best_gain = user_id, gain
        if best is None:
            break
        picks.append({"user_id": best, "unique_reach": best_gain})
        covered |= downstream[best]
        remaining.remove(best)

    return picks


def flow_centrality(graph: nx.DiGraph) -> dict[str, int]:
    """
    Flow score per user: ancestor count * descendant count.

    In a forest the unique path from any ancestor of v to any descendant of v
    passes through v, so the product counts exactly the pairs v brokers.
    Roots and leaves always score 0.
    """
    depths = user_depths(graph)
    reaches = all_reaches(graph)
    return {n: depths[n] * reaches[n] for n in graph.nodes}


def flow_influencers(graph: nx.DiGraph, k: int) -> list[dict]:
    """Users with positive flow score, highest first: {user_id, flow}."""
    return [
        {"user_id": u, "flow": f}
        for u, f in _ranked(flow_centrality(graph), k)
    ]


def network_stats(graph: nx.DiGraph, top_n: int = 10) -> dict:
    """
    Aggregate snapshot of the referral network.

    avg_referrals_per_user is total_referrals / max(total_users, 1), so an
    empty network reports 0.0 rather than failing.
    network_density is the same ratio on a 0-10 dashboard scale.
    """
    total_users = graph.number_of_nodes()
    total_referrals = graph.number_of_edges()
    return {
        "total_users":            total_users,
        "total_referrals":        total_referrals,
        "avg_referrals_per_user": total_referrals / max(total_users, 1),
        "network_density":        total_referrals / max(total_users, 1) * 10,
        "max_depth":              max_depth(graph),
        "root_count":             sum(1 for n in graph.nodes if graph.in_degree(n) == 0),
        "top_referrers":          top_referrers_by_direct(graph, top_n),
        "unique_influencers":     unique_reach_influencers(graph, top_n),
        "flow_influencers":       flow_influencers(graph, top_n),
    }
