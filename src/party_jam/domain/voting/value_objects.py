"""
Voting Domain Value Objects

Immutable value objects for the voting bounded context.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from party_jam.domain.shared.types import NonNegativeInt


class VoteType(Enum):
    """A user's vote on a track. NONE clears any previous vote."""

    UP = "UP"
    DOWN = "DOWN"
    NONE = "NONE"

    @property
    def clears(self) -> bool:
        return self == VoteType.NONE


class VoteContext(Enum):
    """Where the vote was cast: on the queue or on a suggestion under test."""

    QUEUE = "QUEUE"
    TESTING = "TESTING"


class ThresholdOutcome(Enum):
    """Result of checking a track's tally against the threshold policy."""

    NONE = "none"
    REMOVE = "remove"
    PROMOTE = "promote"


class VoteCounts(BaseModel):
    """Live up/down tally for a single track."""

    model_config = ConfigDict(frozen=True)

    upvotes: NonNegativeInt = 0
    downvotes: NonNegativeInt = 0
