"""
Voting Domain Services

Domain services containing voting business logic.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from party_jam.domain.voting.value_objects import (
    ThresholdOutcome,
    VoteContext,
    VoteCounts,
    VoteType,
)

if TYPE_CHECKING:
    from party_jam.domain.party.entities import Vote


class VotingDomainService:
    """Domain service for vote tallying and the threshold policy.

    Thresholds are fractions of the *currently* active member count, so the
    bar a track must clear moves as the audience grows or shrinks.
    """

    DEFAULT_PROMOTE_THRESHOLD = 0.40
    DEFAULT_REMOVE_THRESHOLD = 0.40

    @staticmethod
    def tally(votes: Iterable[Vote]) -> VoteCounts:
        """Count UP and DOWN votes.

        This is the only place counts are produced; stored counts are always
        a copy of this result, never adjusted incrementally.
        """
        upvotes = 0
        downvotes = 0
        for vote in votes:
            if vote.vote == VoteType.UP:
                upvotes += 1
            elif vote.vote == VoteType.DOWN:
                downvotes += 1
        return VoteCounts(upvotes=upvotes, downvotes=downvotes)

    @staticmethod
    def meets_threshold(count: int, ratio: float, active_members_count: int) -> bool:
        """Compare an integer tally against a real-valued bar.

        The bar ``ratio * active_members_count`` is not rounded, so with
        N=10 and ratio 0.40 exactly 4 votes are needed, and with N=3 the bar
        of 1.2 needs 2 votes.
        """
        return count >= ratio * active_members_count

    @classmethod
    def evaluate(
        cls,
        counts: VoteCounts,
        active_members_count: int,
        context: VoteContext,
        *,
        promote_threshold: float = DEFAULT_PROMOTE_THRESHOLD,
        remove_threshold: float = DEFAULT_REMOVE_THRESHOLD,
    ) -> ThresholdOutcome:
        """Decide whether a track crosses the removal or promotion threshold.

        Removal is checked first and wins when both thresholds are met.
        Promotion only applies to suggestions under test.

        Args:
            counts: Live tally for the track.
            active_members_count: Active members at the moment of the vote.
            context: Where the vote was cast.
            promote_threshold: Fraction of active members needed to promote.
            remove_threshold: Fraction of active members needed to remove.

        Returns:
            The threshold outcome.
        """
        if cls.meets_threshold(counts.downvotes, remove_threshold, active_members_count):
            return ThresholdOutcome.REMOVE

        if context == VoteContext.TESTING and cls.meets_threshold(
            counts.upvotes, promote_threshold, active_members_count
        ):
            return ThresholdOutcome.PROMOTE

        return ThresholdOutcome.NONE
