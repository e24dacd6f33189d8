"""Suggestion Lifecycle Manager - sampled testing of guest suggestions.

A suggestion moves through TESTING and ends up PROMOTED (enough upvotes),
REMOVED (enough downvotes) or EXPIRED (timer ran out). Two one-shot timers
drive the automatic transitions:

- expand: redraw a larger sample so more members can vote
- expire: close the test if nothing decided it

Timer callbacks can run after the suggestion was already decided, because
cancelling a handle may race with the firing. Every callback therefore
re-checks the suggestion's state and quietly does nothing when stale.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from party_jam.application.services.party_models import SuggestResult
from party_jam.domain.party.entities import Song, Suggestion, TrackMetadata
from party_jam.domain.party.value_objects import SongSource, SongStatus
from party_jam.domain.shared.events import (
    DomainEvent,
    QueueUpdated,
    SuggestionExpired,
    SuggestionPromoted,
    SuggestionTesting,
)
from party_jam.domain.shared.exceptions import (
    InvalidRequestError,
    MemberNotFoundError,
    PartyNotLiveError,
    TrackAlreadyPresentError,
)
from party_jam.domain.shared.messages import ErrorMessages, LogTemplates
from party_jam.domain.shared.validators import invalid_request_from, require_text

if TYPE_CHECKING:
    from party_jam.application.interfaces.clock import Clock, Scheduler, TimerHandle
    from party_jam.config.settings import PartySettings
    from party_jam.domain.party.entities import PartySession
    from party_jam.domain.party.repository import SessionStore
    from party_jam.domain.shared.events import EventBus
    from party_jam.domain.suggestions.services import SuggestionDomainService

logger = logging.getLogger(__name__)

TimerKey = tuple[str, str]


class SuggestionLifecycleManager:
    """Creates suggestions, samples their audience and runs their timers."""

    def __init__(
        self,
        *,
        session_store: SessionStore,
        event_bus: EventBus,
        clock: Clock,
        scheduler: Scheduler,
        sampler: SuggestionDomainService,
        settings: PartySettings,
    ) -> None:
        self._store = session_store
        self._bus = event_bus
        self._clock = clock
        self._scheduler = scheduler
        self._sampler = sampler
        self._settings = settings
        self._timers: dict[TimerKey, list[TimerHandle]] = {}

    @property
    def pending_timer_count(self) -> int:
        return sum(
            1 for handles in self._timers.values() for handle in handles if not handle.cancelled
        )

    # === Suggest ===

    async def suggest(
        self, party_id: str, user_id: str, track: TrackMetadata | dict[str, Any]
    ) -> SuggestResult:
        """Put a guest's track under test with a random sample of active members.

        Raises:
            PartyNotFoundError: Unknown party.
            PartyNotLiveError: The party has not started or has ended.
            MemberNotFoundError: The caller never joined.
            ExplicitContentBlockedError: Explicit track at a kid-friendly party.
            SuggestionsDisabledError: The host has turned suggestions off.
            TrackAlreadyPresentError: The track is queued, playing, under test or
                was already suggested.
        """
        require_text(user_id, "userId")
        if track is None:
            raise InvalidRequestError.missing("track")
        try:
            metadata = (
                track if isinstance(track, TrackMetadata) else TrackMetadata.model_validate(track)
            )
        except PydanticValidationError as exc:
            raise invalid_request_from(exc) from exc

        session = self._store.require_session(party_id)
        if not session.party.status.is_live:
            raise PartyNotLiveError("suggest songs", session.party.status.value)
        if self._store.get_member(party_id, user_id) is None:
            raise MemberNotFoundError(user_id)
        self._sampler.check_can_suggest(session.party, metadata)
        self._check_disjoint(session, metadata.track_id)

        self._store.touch_activity(party_id, user_id)
        now = self._clock.now_ms()
        active_ids = [m.user_id for m in self._store.active_members(party_id, now)]
        size = self._sampler.sample_size(len(active_ids))
        sample = self._sampler.draw_sample(active_ids, size)

        song = Song.from_metadata(
            metadata, source=SongSource.GUEST_SUGGESTION, status=SongStatus.TESTING
        )
        suggestion = Suggestion(
            track_id=metadata.track_id,
            song=song,
            sample_user_ids=sample,
            sample_size=size,
            created_at=now,
        )
        self._store.save_suggestion(party_id, suggestion)
        self._store.sync_song_vote_counts(party_id, metadata.track_id)
        self._schedule_timers(party_id, metadata.track_id)

        logger.info(
            LogTemplates.SUGGESTION_CREATED,
            metadata.track_id,
            party_id,
            len(sample),
            len(active_ids),
        )

        result = SuggestResult(
            suggestion=song.model_copy(deep=True), sample_user_ids=list(sample)
        )
        await self._bus.publish(self._testing_event(party_id, suggestion))
        return result

    @staticmethod
    def _check_disjoint(session: PartySession, track_id: str) -> None:
        if session.find_in_queue(track_id) is not None:
            raise TrackAlreadyPresentError(track_id, SongStatus.QUEUED.value)
        if session.now_playing is not None and session.now_playing.track_id == track_id:
            raise TrackAlreadyPresentError(track_id, "PLAYING")
        existing = session.suggestions.get(track_id)
        if existing is None:
            return
        if existing.is_testing:
            raise TrackAlreadyPresentError(track_id, SongStatus.TESTING.value)
        # Decided suggestions are kept, so the track cannot be tested again.
        status = existing.song.status.value
        raise TrackAlreadyPresentError(
            track_id,
            status,
            ErrorMessages.TRACK_ALREADY_DECIDED.format(track_id=track_id, status=status),
        )

    # === Timers ===

    def _schedule_timers(self, party_id: str, track_id: str) -> None:
        async def on_expand() -> None:
            await self.expand(party_id, track_id)

        async def on_expire() -> None:
            await self.expire(party_id, track_id)

        self._timers[(party_id, track_id)] = [
            self._scheduler.schedule(
                self._settings.suggest_expand_at_ms,
                on_expand,
                name=f"expand:{party_id}:{track_id}",
            ),
            self._scheduler.schedule(
                self._settings.suggest_expire_at_ms,
                on_expire,
                name=f"expire:{party_id}:{track_id}",
            ),
        ]

    def _cancel_timers(self, party_id: str, track_id: str) -> int:
        handles = self._timers.pop((party_id, track_id), [])
        return sum(1 for handle in handles if handle.cancel())

    async def expand(self, party_id: str, track_id: str) -> bool:
        """Redraw a larger sample. No-op unless the suggestion is TESTING and not yet expanded."""
        suggestion = self._store.get_suggestion(party_id, track_id)
        if suggestion is None or not suggestion.is_testing or suggestion.is_expanded:
            logger.debug(LogTemplates.SUGGESTION_TIMER_STALE, "expand", track_id, party_id)
            return False

        now = self._clock.now_ms()
        active_ids = [m.user_id for m in self._store.active_members(party_id, now)]
        size = self._sampler.expanded_sample_size(suggestion.sample_size)
        suggestion.sample_user_ids = self._sampler.draw_sample(active_ids, size)
        suggestion.expanded_at = now

        logger.info(
            LogTemplates.SUGGESTION_EXPANDED, track_id, party_id, len(suggestion.sample_user_ids)
        )
        await self._bus.publish(self._testing_event(party_id, suggestion))
        return True

    async def expire(self, party_id: str, track_id: str) -> bool:
        """Close a test nobody decided. No-op unless the suggestion is still TESTING."""
        suggestion = self._store.get_suggestion(party_id, track_id)
        if suggestion is None or not suggestion.is_testing:
            logger.debug(LogTemplates.SUGGESTION_TIMER_STALE, "expire", track_id, party_id)
            return False

        self._store.set_song_status(party_id, track_id, SongStatus.EXPIRED)
        self._timers.pop((party_id, track_id), None)

        logger.info(LogTemplates.SUGGESTION_EXPIRED, track_id, party_id)
        await self._bus.publish(SuggestionExpired(party_id=party_id, track_id=track_id))
        return True

    # === Decisions ===

    def promote(self, party_id: str, track_id: str) -> list[DomainEvent]:
        """Move a suggestion under test into the queue.

        Mutates synchronously and returns the events for the caller to
        publish, so a vote that triggers promotion can order them before its
        own vote update.
        """
        session = self._store.require_session(party_id)
        suggestion = session.suggestions.get(track_id)
        if suggestion is None or not suggestion.is_testing:
            return []

        self._store.set_song_status(party_id, track_id, SongStatus.PROMOTED)
        self._store.add_to_queue(party_id, suggestion.song)
        self._cancel_timers(party_id, track_id)

        return [
            SuggestionPromoted(party_id=party_id, track_id=track_id),
            QueueUpdated.from_session(session),
        ]

    def discard(self, party_id: str, track_id: str) -> None:
        """Drop pending timers for a suggestion removed by downvotes."""
        self._cancel_timers(party_id, track_id)

    def shutdown(self) -> int:
        """Cancel every pending suggestion timer."""
        cancelled = sum(
            1 for handles in self._timers.values() for handle in handles if handle.cancel()
        )
        self._timers.clear()
        logger.info(LogTemplates.SUGGESTION_TIMERS_CANCELLED, cancelled)
        return cancelled

    def _testing_event(self, party_id: str, suggestion: Suggestion) -> SuggestionTesting:
        recipients = tuple(suggestion.sample_user_ids)
        return SuggestionTesting(
            party_id=party_id,
            recipients=recipients,
            track_id=suggestion.track_id,
            expires_at=suggestion.expires_at(self._settings.suggest_expire_at_ms),
            song=suggestion.song.model_copy(deep=True),
            sample_user_ids=list(recipients),
        )
