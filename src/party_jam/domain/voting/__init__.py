"""
Voting Bounded Context

Vote tallying and the remove/promote threshold policy.
"""

from party_jam.domain.voting.services import VotingDomainService
from party_jam.domain.voting.value_objects import (
    ThresholdOutcome,
    VoteContext,
    VoteCounts,
    VoteType,
)

__all__ = [
    # Value Objects
    "VoteType",
    "VoteContext",
    "VoteCounts",
    "ThresholdOutcome",
    # Services
    "VotingDomainService",
]
