"""
Reach and depth analysis over the referral forest — pure functions only.

graph — nx.DiGraph with edges referrer -> candidate. Every node has at most
        one predecessor and the graph is acyclic, so each weakly-connected
        component is an out-tree rooted at a user with no referrer.
"""
from __future__ import annotations

from collections import deque

import networkx as nx


def network_reach(graph: nx.DiGraph, user_id: str) -> int:
    """Number of strict descendants of user_id (0 for unknown ids)."""
    if user_id not in graph:
        return 0
    return len(nx.descendants(graph, user_id))


def all_reaches(graph: nx.DiGraph) -> dict[str, int]:
    """
    Reach for every user in one pass.

    Walks the forest in reverse topological order so every child is
    finished before its parent: reach(v) = sum(1 + reach(c) for c in children).
    Keys follow first-seen order.
    """
    reach: dict[str, int] = {}
    for node in reversed(list(nx.topological_sort(graph))):
        reach[node] = sum(1 + reach[c] for c in graph.successors(node))
    return {n: reach[n] for n in graph.nodes}


def user_depths(graph: nx.DiGraph) -> dict[str, int]:
    """
    Edge distance from each user's root, i.e. the user's ancestor count.

    BFS from every root; a root has depth 0.
    """
    depths: dict[str, int] = {}
    queue = deque((n, 0) for n in graph.nodes if graph.in_degree(n) == 0)
    while queue:
        node, depth = queue.popleft()
        depths[node] = depth
        for child in graph.successors(node):
            queue.append((child, depth + 1))
    return {n: depths[n] for n in graph.nodes}


def max_depth(graph: nx.DiGraph) -> int:
    """
    Length in edges of the longest root-to-leaf path.

    A root with no referrals has depth 0, and so does an empty graph.
    """
    if graph.number_of_nodes() == 0:
        return 0
    return nx.dag_longest_path_length(graph)


def reach_breakdown(graph: nx.DiGraph) -> list[dict]:
    """
    Direct vs indirect reach for every user with at least one descendant.

    Returns list of dicts: {user_id, direct_referrals, total_reach, reach_expansion}
    sorted by total_reach descending (ties keep first-seen order).
    """
    reaches = all_reaches(graph)
    rows = []
    for user_id, total in reaches.items():
        if total <= 0:
            continue
        direct = graph.out_degree(user_id)
        rows.append({
            "user_id":          user_id,
            "direct_referrals": direct,
            "total_reach":      total,
            "reach_expansion":  total - direct,
        })
    rows.sort(key=lambda r: r["total_reach"], reverse=True)
    return rows
