"""
Unit tests for network.py — the referral store and its validation.

Tests cover:
  - add_referral: self-referral, duplicate referrer, cycle rejection
  - atomicity: rejected referrals leave the graph unchanged
  - get_direct_referrals / get_referrer / users: ordering and unknown ids
  - add_referrals: bulk insert with and without skipping
  - snapshot, check_invariants, concurrent writers
"""
import threading

import pytest

from conftest import edges_of, make_network
from referral_engine.errors import (
    CycleError,
    DuplicateReferrerError,
    InvariantError,
    ReferralError,
    SelfReferralError,
)
from referral_engine.network import ReferralNetwork


# ── add_referral ───────────────────────────────────────────────────────────────

class TestAddReferral:
    def test_basic_add(self, network):
        network.add_referral("A", "B")
        assert network.get_direct_referrals("A") == ["B"]
        assert network.get_referrer("B") == "A"
        assert network.total_referrals == 1

    def test_registers_both_users(self, network):
        network.add_referral("A", "B")
        assert "A" in network and "B" in network
        assert len(network) == 2

    def test_self_referral_raises(self, network):
        with pytest.raises(SelfReferralError):
            network.add_referral("A", "A")
        assert network.total_referrals == 0
        assert len(network) == 0

    def test_duplicate_referrer_raises(self, network):
        network.add_referral("A", "B")
        with pytest.raises(DuplicateReferrerError) as exc:
            network.add_referral("C", "B")
        assert exc.value.existing_referrer == "A"
        assert network.get_referrer("B") == "A"

    def test_resubmitting_same_edge_is_duplicate(self, network):
        network.add_referral("A", "B")
        with pytest.raises(DuplicateReferrerError):
            network.add_referral("A", "B")
        assert network.get_direct_referrals("A") == ["B"]

    def test_simple_cycle_raises(self, network):
        network.add_referral("A", "B")
        with pytest.raises(CycleError):
            network.add_referral("B", "A")

    def test_chain_cycle_raises(self):
        network = make_network(("a", "b"), ("b", "c"))
        with pytest.raises(CycleError):
            network.add_referral("c", "a")

    def test_long_cycle_raises(self):
        network = make_network(("A", "B"), ("B", "C"), ("C", "D"))
        with pytest.raises(CycleError):
            network.add_referral("D", "A")

    def test_errors_are_value_errors_with_ids(self, network):
        with pytest.raises(ValueError) as exc:
            network.add_referral("A", "A")
        assert isinstance(exc.value, ReferralError)
        assert exc.value.referrer_id == "A"
        assert exc.value.candidate_id == "A"

    def test_can_attach_tree_under_another(self):
        network = make_network(("A", "B"), ("X", "Y"))
        network.add_referral("B", "X")
        assert network.calculate_network_reach("A") == 3
        assert network.check_invariants()

    def test_candidate_with_descendants_accepted_when_no_cycle(self):
        # X already referred Y; X now gets a referrer of its own
        network = make_network(("X", "Y"))
        network.add_referral("R", "X")
        assert network.get_referrer("X") == "R"


# ── atomicity ──────────────────────────────────────────────────────────────────

class TestAtomicity:
    @pytest.mark.parametrize("referrer,candidate", [
        ("A", "A"),   # self
        ("Z", "B"),   # duplicate referrer, Z unknown
        ("C", "A"),   # cycle
    ])
    def test_rejected_referral_leaves_graph_unchanged(self, referrer, candidate):
        network = make_network(("A", "B"), ("B", "C"))
        nodes_before = list(network.users())
        edges_before = edges_of(network)

        with pytest.raises(ReferralError):
            network.add_referral(referrer, candidate)

        assert list(network.users()) == nodes_before
        assert edges_of(network) == edges_before

    def test_unknown_referrer_not_registered_on_failure(self):
        network = make_network(("A", "B"))
        with pytest.raises(DuplicateReferrerError):
            network.add_referral("ghost", "B")
        assert "ghost" not in network


# ── queries ────────────────────────────────────────────────────────────────────

class TestQueries:
    def test_direct_referrals_in_referral_order(self, small_tree):
        assert small_tree.get_direct_referrals("u1") == ["u2", "u3"]

    def test_direct_referrals_only_immediate(self, small_tree):
        assert small_tree.get_direct_referrals("u2") == ["u4"]
        assert small_tree.get_direct_referrals("u4") == []

    def test_unknown_user_is_neutral(self, small_tree):
        assert small_tree.get_direct_referrals("nobody") == []
        assert small_tree.get_referrer("nobody") is None
        assert small_tree.calculate_network_reach("nobody") == 0

    def test_root_has_no_referrer(self, small_tree):
        assert small_tree.get_referrer("u1") is None

    def test_users_first_seen_order(self, small_tree):
        assert list(small_tree.users()) == ["u1", "u2", "u3", "u4"]

    def test_users_is_lazy_and_restartable(self, small_tree):
        it = small_tree.users()
        assert next(it) == "u1"
        assert list(small_tree.users()) == list(small_tree.users())

    def test_users_unaffected_by_later_writes(self, small_tree):
        it = small_tree.users()
        small_tree.add_referral("u4", "u5")
        assert list(it) == ["u1", "u2", "u3", "u4"]

    def test_graph_view_is_read_only(self, small_tree):
        with pytest.raises(Exception):
            small_tree.graph.add_edge("u4", "u1")
        assert small_tree.total_referrals == 3

    def test_alias_matches_reach(self, small_tree):
        assert small_tree.get_total_referral_count("u1") == small_tree.calculate_network_reach("u1") == 3


# ── bulk insert ────────────────────────────────────────────────────────────────

class TestAddReferrals:
    def test_skip_invalid_counts_accepted(self, network):
        pairs = [("A", "B"), ("B", "A"), ("A", "A"), ("C", "B"), ("B", "C")]
        assert network.add_referrals(pairs, skip_invalid=True) == 2
        assert edges_of(network) == [("A", "B"), ("B", "C")]

    def test_first_rejection_propagates(self, network):
        with pytest.raises(CycleError):
            network.add_referrals([("A", "B"), ("B", "A"), ("B", "C")])
        assert edges_of(network) == [("A", "B")]


# ── snapshot / invariants / concurrency ───────────────────────────────────────

class TestSnapshot:
    def test_snapshot_is_independent(self, small_tree):
        snap = small_tree.snapshot()
        small_tree.add_referral("u3", "u5")
        assert snap.total_referrals == 3
        assert "u5" not in snap
        snap.add_referral("u4", "u6")
        assert "u6" not in small_tree

    def test_sample_network_is_a_forest(self, sample_network):
        assert sample_network.total_referrals > 0
        assert sample_network.check_invariants()

    def test_no_user_is_its_own_ancestor(self, sample_network):
        # both cycle directions: nobody reaches their own referrer chain
        for user in sample_network.users():
            ancestors = []
            current = sample_network.get_referrer(user)
            while current is not None:
                ancestors.append(current)
                current = sample_network.get_referrer(current)
            assert user not in ancestors
            assert len(ancestors) == len(set(ancestors))

    def test_empty_network_invariants(self, network):
        assert network.check_invariants()

    @pytest.mark.parametrize("edges,message", [
        ([("a", "b"), ("b", "c"), ("c", "a")], "cycle"),
        ([("a", "a")], "self-referral"),
        ([("a", "c"), ("b", "c")], "two referrers"),
    ])
    def test_corrupted_graph_raises(self, edges, message):
        network = ReferralNetwork()
        network._graph.add_edges_from(edges)
        with pytest.raises(InvariantError, match=message):
            network.check_invariants()

    def test_two_cycle_raises(self):
        network = make_network(("a", "b"))
        network._graph.add_edge("b", "a")
        with pytest.raises(InvariantError, match="cycle"):
            network.check_invariants()


class TestConcurrency:
    def test_concurrent_claims_on_one_candidate(self):
        network = ReferralNetwork()
        results: list[str] = []
        lock = threading.Lock()

        def claim(referrer: str) -> None:
            try:
                network.add_referral(referrer, "target")
                outcome = "ok"
            except DuplicateReferrerError:
                outcome = "dup"
            with lock:
                results.append(outcome)

        threads = [threading.Thread(target=claim, args=(f"r{i}",)) for i in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count("ok") == 1
        assert results.count("dup") == 15
        assert network.total_referrals == 1

    def test_size_reads_wait_for_writer(self, small_tree):
        seen: list[tuple[int, int, bool]] = []

        def read() -> None:
            seen.append((len(small_tree), small_tree.total_referrals, small_tree.has_user("u5")))

        with small_tree._lock:
            reader = threading.Thread(target=read)
            reader.start()
            reader.join(timeout=0.2)
            assert reader.is_alive()
            small_tree._graph.add_edge("u4", "u5")
        reader.join()
        assert seen == [(5, 4, True)]
