"""
Structural errors raised by ReferralNetwork.add_referral.

Queries never raise these; they are only produced when a proposed
referral would break the forest invariant.
"""
from __future__ import annotations


class ReferralError(ValueError):
    """Base class for rejected referrals."""

    def __init__(self, message: str, referrer_id: str, candidate_id: str):
        super().__init__(message)
        self.referrer_id = referrer_id
        self.candidate_id = candidate_id


class SelfReferralError(ReferralError):
    def __init__(self, referrer_id: str, candidate_id: str):
        super().__init__(
            f"{referrer_id} cannot refer themselves.",
            referrer_id, candidate_id,
        )


class DuplicateReferrerError(ReferralError):
    def __init__(self, referrer_id: str, candidate_id: str, existing_referrer: str):
        super().__init__(
            f"{candidate_id} already has a referrer ({existing_referrer}).",
            referrer_id, candidate_id,
        )
        self.existing_referrer = existing_referrer


class CycleError(ReferralError):
    def __init__(self, referrer_id: str, candidate_id: str):
        super().__init__(
            f"Adding {referrer_id} -> {candidate_id} would create a cycle: "
            f"{referrer_id} is already downstream of {candidate_id}.",
            referrer_id, candidate_id,
        )


class InvariantError(ValueError):
    """The stored graph is no longer a referral forest."""
