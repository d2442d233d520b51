"""
Shared fixtures and helpers for referral engine tests.

Everything runs in memory — networks are built directly through
ReferralNetwork.add_referral, no files or sample seeding unless a test asks
for it.
"""
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from referral_engine.network import ReferralNetwork  # noqa: E402
from referral_engine.sample_data import seed_sample_network  # noqa: E402


def make_network(*pairs: tuple[str, str]) -> ReferralNetwork:
    """Build a network from (referrer, candidate) pairs, in order."""
    network = ReferralNetwork()
    for referrer, candidate in pairs:
        network.add_referral(referrer, candidate)
    return network


def edges_of(network: ReferralNetwork) -> list[tuple[str, str]]:
    return list(network.graph.edges)


@pytest.fixture
def network() -> ReferralNetwork:
    return ReferralNetwork()


@pytest.fixture
def small_tree() -> ReferralNetwork:
    """
        u1
       /  \\
      u2   u3
      |
      u4
    """
    return make_network(("u1", "u2"), ("u1", "u3"), ("u2", "u4"))


@pytest.fixture
def sample_network() -> ReferralNetwork:
    """Randomised but reproducible network from the dashboard seeding loop."""
    network = ReferralNetwork()
    seed_sample_network(network, users=60, extra=40, rng=random.Random(1234))
    return network
