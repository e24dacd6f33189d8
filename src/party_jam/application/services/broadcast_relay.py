"""Forward domain events from the event bus to the broadcast gateway."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from party_jam.domain.shared.events import (
    DomainEvent,
    JoinCodeRegenerated,
    MemberJoined,
    NowPlayingChanged,
    PartyErrorRaised,
    PartyStatusChanged,
    PresenceChanged,
    QueueUpdated,
    SettingsUpdated,
    SongRemoved,
    SuggestionExpired,
    SuggestionPromoted,
    SuggestionTesting,
    VoteUpdated,
)
from party_jam.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from party_jam.application.interfaces.broadcast_gateway import BroadcastGateway
    from party_jam.domain.shared.events import EventBus
    from party_jam.domain.shared.exceptions import DomainError

logger = logging.getLogger(__name__)

RELAYED_EVENTS: tuple[type[DomainEvent], ...] = (
    MemberJoined,
    PresenceChanged,
    PartyStatusChanged,
    SettingsUpdated,
    JoinCodeRegenerated,
    QueueUpdated,
    SongRemoved,
    NowPlayingChanged,
    VoteUpdated,
    SuggestionTesting,
    SuggestionPromoted,
    SuggestionExpired,
    PartyErrorRaised,
)


class BroadcastRelay:
    """Subscribes to every outbound party event and hands it to the gateway.

    Events carrying ``recipients`` go only to those users; everything else
    is broadcast to the whole party.
    """

    def __init__(self, *, event_bus: EventBus, gateway: BroadcastGateway) -> None:
        self._bus = event_bus
        self._gateway = gateway
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        if self._started:
            return
        for event_type in RELAYED_EVENTS:
            self._bus.subscribe(event_type, self._relay)
        self._started = True

    def stop(self) -> None:
        if not self._started:
            return
        for event_type in RELAYED_EVENTS:
            self._bus.unsubscribe(event_type, self._relay)
        self._started = False

    async def report_error(
        self, party_id: str, error: DomainError, user_id: str | None = None
    ) -> None:
        """Publish ``party:error`` for a rejected request.

        Goes to the offending user when known, otherwise to the whole party.
        """
        logger.info(LogTemplates.ERROR_REPORTED, error.code, party_id, error.message)
        await self._bus.publish(
            PartyErrorRaised(
                party_id=party_id,
                code=error.code,
                message=error.message,
                recipients=(user_id,) if user_id else None,
            )
        )

    async def _relay(self, event: DomainEvent) -> None:
        payload = event.payload()
        if event.recipients is not None:
            await self._gateway.send_to_users(
                event.party_id, list(event.recipients), event.event_name, payload
            )
            logger.debug(
                LogTemplates.EVENT_RELAYED_SAMPLED,
                event.event_name,
                len(event.recipients),
                event.party_id,
            )
            return

        await self._gateway.broadcast(event.party_id, event.event_name, payload)
        logger.debug(LogTemplates.EVENT_RELAYED, event.event_name, event.party_id)
