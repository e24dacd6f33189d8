"""Voting Application Service - records votes and applies the threshold policy."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from party_jam.application.services.party_models import VoteOutcome
from party_jam.domain.party.value_objects import RemovalReason, SongStatus
from party_jam.domain.shared.events import DomainEvent, QueueUpdated, SongRemoved, VoteUpdated
from party_jam.domain.shared.exceptions import (
    InvalidRequestError,
    InvalidVoteError,
    MemberNotFoundError,
    PartyNotLiveError,
    TrackNotFoundError,
)
from party_jam.domain.shared.messages import ErrorMessages, LogTemplates
from party_jam.domain.shared.validators import require_enum, require_text
from party_jam.domain.voting.services import VotingDomainService
from party_jam.domain.voting.value_objects import ThresholdOutcome, VoteContext, VoteType

if TYPE_CHECKING:
    from party_jam.application.services.suggestion_service import SuggestionLifecycleManager
    from party_jam.config.settings import PartySettings
    from party_jam.domain.party.entities import PartySession, Song
    from party_jam.domain.party.repository import SessionStore
    from party_jam.domain.shared.events import EventBus

logger = logging.getLogger(__name__)


class VotingApplicationService:
    """Application service for casting votes on queued songs and suggestions.

    Counts are always recomputed from the vote map after each vote, and the
    threshold bar uses the active member count at that moment.
    """

    def __init__(
        self,
        *,
        session_store: SessionStore,
        event_bus: EventBus,
        suggestion_manager: SuggestionLifecycleManager,
        settings: PartySettings,
    ) -> None:
        self._store = session_store
        self._bus = event_bus
        self._suggestions = suggestion_manager
        self._settings = settings

    async def vote(
        self,
        party_id: str,
        user_id: str,
        track_id: str,
        vote: VoteType | str,
        context: VoteContext | str,
    ) -> VoteOutcome:
        """Record or clear a vote and act on any threshold it crosses.

        Voting the same value twice leaves the tally unchanged. A NONE vote
        clears the caller's previous vote.

        Args:
            party_id: The party being voted in.
            user_id: The voting member.
            track_id: The queued song or suggestion being voted on.
            vote: UP, DOWN or NONE.
            context: QUEUE for queued songs, TESTING for suggestions.

        Returns:
            The recomputed counts and the song's resulting status.

        Raises:
            InvalidVoteError: Unknown vote value.
            InvalidRequestError: Missing ids or unknown context.
            PartyNotFoundError: Unknown party.
            PartyNotLiveError: The party is not live.
            MemberNotFoundError: The caller never joined.
            TrackNotFoundError: The track is not in the addressed context.
        """
        require_text(user_id, "userId")
        require_text(track_id, "trackId")
        vote_type = require_enum(vote, VoteType, "vote", InvalidVoteError())
        vote_context = require_enum(
            context,
            VoteContext,
            "context",
            InvalidRequestError(ErrorMessages.INVALID_CONTEXT, field="context"),
        )

        session = self._store.require_session(party_id)
        if not session.party.status.is_live:
            raise PartyNotLiveError("vote", session.party.status.value)
        if self._store.get_member(party_id, user_id) is None:
            raise MemberNotFoundError(user_id)
        song = self._find_target(session, track_id, vote_context)
        # A decided suggestion still takes votes but can no longer cross a threshold.
        live = vote_context == VoteContext.QUEUE or not song.status.is_terminal

        self._store.touch_activity(party_id, user_id)
        self._store.record_vote(party_id, user_id, track_id, vote_type, vote_context)
        counts = self._store.sync_song_vote_counts(party_id, track_id)
        active_count = self._store.active_members_count(party_id)

        outcome = ThresholdOutcome.NONE
        if live:
            outcome = VotingDomainService.evaluate(
                counts,
                active_count,
                vote_context,
                promote_threshold=self._settings.promote_threshold,
                remove_threshold=self._settings.remove_threshold,
            )

        events: list[DomainEvent] = []
        if outcome == ThresholdOutcome.REMOVE:
            events.extend(self._remove(session, track_id, vote_context))
            logger.info(
                LogTemplates.VOTE_THRESHOLD_REMOVED,
                track_id,
                party_id,
                counts.downvotes,
                active_count,
            )
        elif outcome == ThresholdOutcome.PROMOTE:
            events.extend(self._suggestions.promote(party_id, track_id))
            logger.info(
                LogTemplates.VOTE_THRESHOLD_PROMOTED,
                track_id,
                party_id,
                counts.upvotes,
                active_count,
            )

        logger.debug(
            LogTemplates.VOTE_RECORDED,
            vote_type.value,
            track_id,
            vote_context.value,
            user_id,
            party_id,
            counts.upvotes,
            counts.downvotes,
            active_count,
        )

        result = VoteOutcome(
            track_id=track_id,
            upvotes=counts.upvotes,
            downvotes=counts.downvotes,
            status=song.status,
            context=vote_context,
        )
        events.append(
            VoteUpdated(
                party_id=party_id,
                track_id=track_id,
                upvotes=counts.upvotes,
                downvotes=counts.downvotes,
                status=song.status,
                context=vote_context,
            )
        )
        await self._bus.publish_all(events)
        return result

    @staticmethod
    def _find_target(session: PartySession, track_id: str, context: VoteContext) -> Song:
        if context == VoteContext.QUEUE:
            song = session.find_in_queue(track_id)
            if song is None:
                raise TrackNotFoundError(track_id, "queue")
            return song

        suggestion = session.suggestions.get(track_id)
        if suggestion is None:
            raise TrackNotFoundError(track_id, "suggestions")
        return suggestion.song

    def _remove(
        self, session: PartySession, track_id: str, context: VoteContext
    ) -> list[DomainEvent]:
        party_id = session.party_id
        self._store.set_song_status(party_id, track_id, SongStatus.REMOVED)

        events: list[DomainEvent] = [
            SongRemoved(
                party_id=party_id, track_id=track_id, reason=RemovalReason.DOWNVOTE_THRESHOLD
            )
        ]
        if context == VoteContext.QUEUE:
            self._store.remove_from_queue(party_id, track_id)
            events.append(QueueUpdated.from_session(session))
        else:
            self._suggestions.discard(party_id, track_id)
        return events
