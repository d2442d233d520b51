"""
ReferralNetwork — the graph store and validator.

Owns a networkx DiGraph of referrer -> candidate edges and keeps it a forest:
no self-referrals, at most one referrer per candidate (never reassigned), no
cycles. All structural checks happen before any mutation, under one writer
lock, so a rejected referral leaves the graph untouched.

Read queries delegate to the pure functions in analytics/ and never raise
for unknown user ids.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, Iterator, Optional

import networkx as nx

from referral_engine.analytics import bonus, growth, influence, reach
from referral_engine.config import TOP_N, BonusSearch, GrowthPolicy
from referral_engine.errors import (
    CycleError,
    DuplicateReferrerError,
    InvariantError,
    ReferralError,
    SelfReferralError,
)

logger = logging.getLogger(__name__)


class ReferralNetwork:
    """
    Referral forest plus the query surface used by dashboards.

    Writers are serialised by an internal lock. Readers that run alongside
    writers should work on snapshot().
    """

    def __init__(self, growth_policy: Optional[GrowthPolicy] = None,
                 bonus_search: Optional[BonusSearch] = None):
        self._graph = nx.DiGraph()
        self._lock = threading.RLock()
        self.growth_policy = growth_policy or GrowthPolicy()
        self.bonus_search = bonus_search or BonusSearch()

    # ── Store ─────────────────────────────────────────────────────────────────

    def _check_referral(self, referrer_id: str, candidate_id: str) -> None:
        if referrer_id == candidate_id:
            raise SelfReferralError(referrer_id, candidate_id)

        existing = self.get_referrer(candidate_id)
        if existing is not None:
            raise DuplicateReferrerError(referrer_id, candidate_id, existing)

        # referrer already downstream of candidate -> the new edge closes a loop
        if (candidate_id in self._graph and referrer_id in self._graph
                and nx.has_path(self._graph, candidate_id, referrer_id)):
            raise CycleError(referrer_id, candidate_id)

    def add_referral(self, referrer_id: str, candidate_id: str) -> None:
        """Record referrer -> candidate. Raises a ReferralError subclass if invalid."""
        with self._lock:
            try:
                self._check_referral(referrer_id, candidate_id)
            except ReferralError as ex:
                logger.debug(f"Rejected referral {referrer_id} -> {candidate_id}: {ex}")
                raise
            self._graph.add_node(referrer_id)
            self._graph.add_node(candidate_id)
            self._graph.add_edge(referrer_id, candidate_id)

    def add_referrals(self, pairs: Iterable[tuple[str, str]], skip_invalid: bool = False) -> int:
        """
        Insert many referrals in order; returns how many were accepted.

        With skip_invalid, rejected pairs are logged and skipped; otherwise the
        first rejection propagates (earlier pairs stay recorded).
        """
        accepted = skipped = 0
        for referrer_id, candidate_id in pairs:
            try:
                self.add_referral(referrer_id, candidate_id)
            except ReferralError:
                if not skip_invalid:
                    raise
                skipped += 1
                continue
            accepted += 1
        if skipped:
            logger.info(f"Bulk insert: {accepted} referrals added, {skipped} skipped")
        return accepted

    def get_direct_referrals(self, user_id: str) -> list[str]:
        """Immediate candidates of user_id in the order they were referred."""
        with self._lock:
            if user_id not in self._graph:
                return []
            return list(self._graph.successors(user_id))

    def get_referrer(self, user_id: str) -> Optional[str]:
        with self._lock:
            if user_id not in self._graph:
                return None
            return next(iter(self._graph.predecessors(user_id)), None)

    def users(self) -> Iterator[str]:
        """Fresh iterator over all known ids, first-seen order."""
        with self._lock:
            ids = tuple(self._graph.nodes)
        return iter(ids)

    def has_user(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._graph

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._graph

    def __len__(self) -> int:
        with self._lock:
            return self._graph.number_of_nodes()

    @property
    def total_referrals(self) -> int:
        with self._lock:
            return self._graph.number_of_edges()

    @property
    def graph(self) -> nx.DiGraph:
        """Read-only view of the live graph."""
        return self._graph.copy(as_view=True)

    def snapshot(self) -> "ReferralNetwork":
        """Independent copy for readers that must not see concurrent writes."""
        with self._lock:
            copy = ReferralNetwork(self.growth_policy, self.bonus_search)
            copy._graph = self._graph.copy()
        return copy

    def check_invariants(self) -> bool:
        """
        Verify the forest invariant: every user has at most one referrer and
        no user is both upstream and downstream of another.

        Raises InvariantError naming the first broken rule.
        """
        with self._lock:
            g = self._graph
            if nx.number_of_selfloops(g):
                raise InvariantError("self-referral present")
            if any(d > 1 for _, d in g.in_degree()):
                raise InvariantError("user with two referrers")
            if not nx.is_directed_acyclic_graph(g):
                raise InvariantError("referral cycle present")
            if g.number_of_nodes() and not nx.is_branching(g):
                raise InvariantError("graph is not a forest")
        return True

    # ── Reach ─────────────────────────────────────────────────────────────────

    def calculate_network_reach(self, user_id: str) -> int:
        with self._lock:
            return reach.network_reach(self._graph, user_id)

    get_total_referral_count = calculate_network_reach

    def get_max_depth(self) -> int:
        with self._lock:
            return reach.max_depth(self._graph)

    def get_reach_breakdown(self) -> list[dict]:
        with self._lock:
            return reach.reach_breakdown(self._graph)

    # ── Influence ─────────────────────────────────────────────────────────────

    def get_top_referrers_by_reach(self, k: int) -> list[dict]:
        with self._lock:
            return influence.top_referrers_by_reach(self._graph, k)

    def get_unique_influencers(self, k: Optional[int] = None) -> list[dict]:
        with self._lock:
            return influence.unique_reach_influencers(self._graph, k)

    def get_flow_influencers(self, k: int = TOP_N) -> list[dict]:
        with self._lock:
            return influence.flow_influencers(self._graph, k)

    def get_network_stats(self, top_n: int = TOP_N) -> dict:
        with self._lock:
            return influence.network_stats(self._graph, top_n)

    # ── Growth & incentives ───────────────────────────────────────────────────

    def simulate(self, p: float, days: int) -> list[float]:
        with self._lock:
            return growth.simulate(self._graph, p, days, self.growth_policy)

    def simulate_scenarios(self, days: int, scenarios: Optional[dict[str, float]] = None) -> dict[str, list[float]]:
        with self._lock:
            return growth.simulate_scenarios(self._graph, days, scenarios, self.growth_policy)

    def min_bonus_for_target(
        self,
        days: int,
        target_hires: float,
        adoption_probability: Callable[[int], float],
    ) -> Optional[int]:
        """Smallest bonus reaching target_hires within days, or None if unachievable."""
        with self._lock:
            return bonus.min_bonus_for_target(
                self._graph, days, target_hires, adoption_probability,
                self.bonus_search, self.growth_policy,
            )
