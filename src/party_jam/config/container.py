"""Dependency Injection Container

Manages the party core's dependency graph with lazy initialization.
Components are created on first access and cached for the lifetime of the
container, so every service shares one store, one event bus and one
scheduler.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ..application.interfaces.broadcast_gateway import BroadcastGateway
    from ..application.interfaces.clock import Clock, Scheduler
    from ..application.services.broadcast_relay import BroadcastRelay
    from ..application.services.party_service import PartyApplicationService
    from ..application.services.suggestion_service import SuggestionLifecycleManager
    from ..application.services.voting_service import VotingApplicationService
    from ..domain.party.repository import SessionStore
    from ..domain.shared.events import EventBus
    from ..domain.suggestions.services import SuggestionDomainService
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    The broadcast gateway is supplied by whatever transport hosts the core.
    Without one the services still work, but nothing reaches clients.
    """

    settings: Settings
    _gateway: BroadcastGateway | None = None
    _rng: random.Random | None = None

    # Time
    _clock: Clock | None = None
    _scheduler: Scheduler | None = None

    # State
    _event_bus: EventBus | None = None
    _session_store: SessionStore | None = None

    # Domain services
    _suggestion_domain_service: SuggestionDomainService | None = None

    # Application services
    _party_service: PartyApplicationService | None = None
    _suggestion_manager: SuggestionLifecycleManager | None = None
    _voting_service: VotingApplicationService | None = None
    _broadcast_relay: BroadcastRelay | None = None

    def set_gateway(self, gateway: BroadcastGateway) -> None:
        """Attach the transport's broadcast gateway."""
        self._gateway = gateway

    @property
    def gateway(self) -> BroadcastGateway:
        if self._gateway is None:
            raise RuntimeError(ErrorMessages.GATEWAY_NOT_CONFIGURED)
        return self._gateway

    # === Time ===

    @property
    def clock(self) -> Clock:
        if self._clock is None:
            from ..infrastructure.timing import SystemClock

            self._clock = SystemClock()
        return self._clock

    @property
    def scheduler(self) -> Scheduler:
        if self._scheduler is None:
            from ..infrastructure.timing import AsyncioScheduler

            self._scheduler = AsyncioScheduler()
        return self._scheduler

    # === State ===

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            from ..domain.shared.events import EventBus

            self._event_bus = EventBus()
        return self._event_bus

    @property
    def session_store(self) -> SessionStore:
        """Get the in-memory session store."""
        if self._session_store is None:
            from ..infrastructure.memory.session_store import InMemorySessionStore

            self._session_store = InMemorySessionStore(
                self.clock, active_window_ms=self.settings.party.active_window_ms
            )
        return self._session_store

    # === Domain Services ===

    @property
    def suggestion_domain_service(self) -> SuggestionDomainService:
        if self._suggestion_domain_service is None:
            from ..domain.suggestions.services import SuggestionDomainService

            party = self.settings.party
            self._suggestion_domain_service = SuggestionDomainService(
                sample_percent=party.sample_percent,
                sample_min=party.sample_min,
                sample_cap=party.sample_cap,
                rng=self._rng,
            )
        return self._suggestion_domain_service

    # === Application Services ===

    @property
    def party_service(self) -> PartyApplicationService:
        """Get the party lifecycle service."""
        if self._party_service is None:
            from ..application.services.party_service import PartyApplicationService

            self._party_service = PartyApplicationService(
                session_store=self.session_store,
                event_bus=self.event_bus,
                clock=self.clock,
                settings=self.settings.party,
                rng=self._rng,
            )
        return self._party_service

    @property
    def suggestion_manager(self) -> SuggestionLifecycleManager:
        """Get the suggestion lifecycle manager."""
        if self._suggestion_manager is None:
            from ..application.services.suggestion_service import SuggestionLifecycleManager

            self._suggestion_manager = SuggestionLifecycleManager(
                session_store=self.session_store,
                event_bus=self.event_bus,
                clock=self.clock,
                scheduler=self.scheduler,
                sampler=self.suggestion_domain_service,
                settings=self.settings.party,
            )
        return self._suggestion_manager

    @property
    def voting_service(self) -> VotingApplicationService:
        """Get the voting service."""
        if self._voting_service is None:
            from ..application.services.voting_service import VotingApplicationService

            self._voting_service = VotingApplicationService(
                session_store=self.session_store,
                event_bus=self.event_bus,
                suggestion_manager=self.suggestion_manager,
                settings=self.settings.party,
            )
        return self._voting_service

    @property
    def broadcast_relay(self) -> BroadcastRelay:
        """Get the relay that forwards bus events to the gateway."""
        if self._broadcast_relay is None:
            from ..application.services.broadcast_relay import BroadcastRelay

            self._broadcast_relay = BroadcastRelay(event_bus=self.event_bus, gateway=self.gateway)
        return self._broadcast_relay

    # === Lifecycle ===

    def initialize(self) -> None:
        """Start cross-cutting subscribers."""
        if self._gateway is not None:
            self.broadcast_relay.start()

    def shutdown(self) -> None:
        """Cancel pending timers and detach subscribers."""
        if self._suggestion_manager is not None:
            self._suggestion_manager.shutdown()

        try:
            if self._broadcast_relay is not None:
                self._broadcast_relay.stop()
        except Exception as exc:
            logger.warning("Failed stopping broadcast relay: %r", exc)

        if self._scheduler is not None:
            self._scheduler.cancel_all()


def create_container(
    settings: Settings,
    gateway: BroadcastGateway | None = None,
    *,
    clock: Clock | None = None,
    scheduler: Scheduler | None = None,
    rng: random.Random | None = None,
) -> Container:
    """Create a new dependency injection container.

    ``clock``, ``scheduler`` and ``rng`` override the real implementations,
    which tests use to control time and sampling.
    """
    return Container(
        settings,
        _gateway=gateway,
        _rng=rng,
        _clock=clock,
        _scheduler=scheduler,
    )
