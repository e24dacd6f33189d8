"""Domain events and the in-process event bus that carries them."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any, ClassVar, TypeVar
from uuid import uuid4

from pydantic import Field

from party_jam.domain.party.entities import PartySession, Song
from party_jam.domain.party.value_objects import PartyStatus, RemovalReason, SongStatus
from party_jam.domain.shared.messages import LogTemplates
from party_jam.domain.shared.models import FrozenCamelModel
from party_jam.domain.shared.types import (
    EpochMillis,
    NonEmptyStr,
    NonNegativeInt,
    PartyIdStr,
    TrackIdStr,
    UserIdStr,
)
from party_jam.domain.voting.value_objects import VoteContext

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="DomainEvent")
EventHandler = Callable[[T], Awaitable[None]]

# Fields that describe routing rather than the client payload.
ENVELOPE_FIELDS = frozenset({"event_id", "party_id", "recipients"})


class DomainEvent(FrozenCamelModel):
    """Base class for all party events.

    ``event_name`` is the wire name clients subscribe to. ``recipients`` is
    None for party-wide broadcasts and a tuple of user ids for events that
    only a subset of members may see.
    """

    event_name: ClassVar[str] = "party:event"

    event_id: NonEmptyStr = Field(default_factory=lambda: str(uuid4()))
    party_id: PartyIdStr
    recipients: tuple[UserIdStr, ...] | None = None

    def payload(self) -> dict[str, Any]:
        """Client-facing payload: camelCase keys, enums as plain strings."""
        return self.model_dump(mode="json", by_alias=True, exclude=set(ENVELOPE_FIELDS))


# === Membership Events ===


class MemberJoined(DomainEvent):
    event_name = "party:memberJoined"

    user_id: UserIdStr
    active_members_count: NonNegativeInt


class PresenceChanged(DomainEvent):
    event_name = "party:presence"

    active_members_count: NonNegativeInt


# === Party Lifecycle Events ===


class PartyStatusChanged(DomainEvent):
    event_name = "party:statusChanged"

    status: PartyStatus


class SettingsUpdated(DomainEvent):
    event_name = "party:settingsUpdated"

    mood: str
    kid_friendly: bool
    allow_suggestions: bool


class JoinCodeRegenerated(DomainEvent):
    event_name = "party:codeRegenerated"

    join_code: NonEmptyStr


# === Queue Events ===


class QueueUpdated(DomainEvent):
    event_name = "party:queueUpdated"

    queue: list[Song]

    @classmethod
    def from_session(cls, session: PartySession) -> QueueUpdated:
        """Snapshot the full queue so later mutations do not leak into the event."""
        return cls(
            party_id=session.party_id,
            queue=[song.model_copy(deep=True) for song in session.queue],
        )


class SongRemoved(DomainEvent):
    event_name = "party:songRemoved"

    track_id: TrackIdStr
    reason: RemovalReason


class NowPlayingChanged(DomainEvent):
    event_name = "party:nowPlaying"

    track_id: TrackIdStr
    started_at: EpochMillis


# === Vote Events ===


class VoteUpdated(DomainEvent):
    event_name = "party:voteUpdate"

    track_id: TrackIdStr
    upvotes: NonNegativeInt
    downvotes: NonNegativeInt
    status: SongStatus
    context: VoteContext


# === Suggestion Events ===


class SuggestionTesting(DomainEvent):
    """Sent only to the suggestion's current visibility set."""

    event_name = "party:suggestionTesting"

    track_id: TrackIdStr
    status: SongStatus = SongStatus.TESTING
    expires_at: EpochMillis
    song: Song
    sample_user_ids: list[UserIdStr]


class SuggestionPromoted(DomainEvent):
    event_name = "party:suggestionPromoted"

    track_id: TrackIdStr
    status: SongStatus = SongStatus.PROMOTED


class SuggestionExpired(DomainEvent):
    event_name = "party:suggestionExpired"

    track_id: TrackIdStr
    status: SongStatus = SongStatus.EXPIRED


# === Error Events ===


class PartyErrorRaised(DomainEvent):
    event_name = "party:error"

    code: NonEmptyStr
    message: str


# === Event Bus ===


class EventBus:
    """In-memory pub/sub event bus for domain events.

    Handlers for one event run concurrently. Exceptions in handlers are
    logged but do not prevent other handlers from running. Events published
    one after another are delivered in publication order.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[EventHandler[Any]]] = defaultdict(list)

    def subscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        self._handlers[event_type].append(handler)
        logger.debug("Subscribed handler to: %s", event_type.__name__)

    def unsubscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        handlers = self._handlers[event_type]
        if handler in handlers:
            handlers.remove(handler)
            logger.debug("Unsubscribed handler from %s", event_type.__name__)

    def handler_count(self, event_type: type[DomainEvent]) -> int:
        return len(self._handlers.get(event_type, []))

    async def publish(self, event: DomainEvent) -> None:
        event_type = type(event)
        handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            logger.debug("No handlers for %s", event_type.__name__)
            return

        logger.debug("Publishing %s to %d handlers", event_type.__name__, len(handlers))

        async def safe_call(handler: EventHandler[Any]) -> None:
            try:
                await handler(event)
            except Exception as e:
                logger.exception(LogTemplates.EVENT_HANDLER_ERROR, event_type.__name__, e)

        async with asyncio.TaskGroup() as tg:
            for handler in handlers:
                tg.create_task(safe_call(handler))

    async def publish_all(self, events: list[DomainEvent]) -> None:
        for event in events:
            await self.publish(event)

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
        logger.debug("Cleared all event handlers")
