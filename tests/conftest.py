import random
from typing import Any

import pytest

from party_jam.application.interfaces.broadcast_gateway import BroadcastGateway
from party_jam.application.interfaces.clock import Clock, Scheduler, TimerCallback, TimerHandle
from party_jam.config.settings import PartySettings
from party_jam.domain.party.entities import TrackMetadata
from party_jam.domain.shared.events import EventBus

START_MS = 1_700_000_000_000


# ============================================================================
# Time Fakes
# ============================================================================


class FakeClock(Clock):
    """Clock that only moves when a test moves it."""

    def __init__(self, now_ms: int = START_MS) -> None:
        self._now = now_ms

    def now_ms(self) -> int:
        return self._now

    def advance(self, ms: int) -> None:
        self._now += ms

    def set(self, now_ms: int) -> None:
        self._now = now_ms


class ManualTimerHandle(TimerHandle):
    def __init__(self, due_at: int, callback: TimerCallback, name: str, seq: int) -> None:
        self.due_at = due_at
        self.callback = callback
        self.name = name
        self.seq = seq
        self.fired = False
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> bool:
        if self._cancelled or self.fired:
            return False
        self._cancelled = True
        return True


class ManualScheduler(Scheduler):
    """Scheduler driven by ``advance``, firing due callbacks in due-time order.

    The fake clock is moved to each timer's due time before it fires.
    """

    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self._handles: list[ManualTimerHandle] = []

    @property
    def pending(self) -> list[ManualTimerHandle]:
        return [h for h in self._handles if not h.fired and not h.cancelled]

    def schedule(self, delay_ms: int, callback: TimerCallback, *, name: str = "") -> TimerHandle:
        handle = ManualTimerHandle(
            self._clock.now_ms() + delay_ms, callback, name, seq=len(self._handles)
        )
        self._handles.append(handle)
        return handle

    def cancel_all(self) -> int:
        return sum(1 for handle in self.pending if handle.cancel())

    async def advance(self, ms: int) -> None:
        target = self._clock.now_ms() + ms
        while True:
            due = [h for h in self.pending if h.due_at <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.due_at, h.seq))
            self._clock.set(handle.due_at)
            handle.fired = True
            await handle.callback()
        self._clock.set(target)

    async def fire(self, handle: ManualTimerHandle) -> None:
        """Run a callback regardless of its state, simulating a cancel race."""
        handle.fired = True
        await handle.callback()


# ============================================================================
# Broadcast Fakes
# ============================================================================


class RecordingGateway(BroadcastGateway):
    """Gateway that records every delivery in order."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []

    async def broadcast(self, party_id: str, event_name: str, payload: dict[str, Any]) -> None:
        self.sent.append(
            {"party_id": party_id, "event": event_name, "payload": payload, "recipients": None}
        )

    async def send_to_users(
        self, party_id: str, user_ids: list[str], event_name: str, payload: dict[str, Any]
    ) -> None:
        self.sent.append(
            {
                "party_id": party_id,
                "event": event_name,
                "payload": payload,
                "recipients": list(user_ids),
            }
        )

    def names(self) -> list[str]:
        return [entry["event"] for entry in self.sent]

    def of(self, event_name: str) -> list[dict[str, Any]]:
        return [entry for entry in self.sent if entry["event"] == event_name]

    def clear(self) -> None:
        self.sent.clear()


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def party_settings():
    """Default party tunables."""
    return PartySettings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return ManualScheduler(clock)


@pytest.fixture
def rng():
    """Seeded RNG so samples and join codes are reproducible."""
    return random.Random(1234)


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def store(clock, party_settings):
    """Create an isolated in-memory session store."""
    from party_jam.infrastructure.memory.session_store import InMemorySessionStore

    return InMemorySessionStore(clock, active_window_ms=party_settings.active_window_ms)


@pytest.fixture
def sampler(party_settings, rng):
    from party_jam.domain.suggestions.services import SuggestionDomainService

    return SuggestionDomainService(
        sample_percent=party_settings.sample_percent,
        sample_min=party_settings.sample_min,
        sample_cap=party_settings.sample_cap,
        rng=rng,
    )


@pytest.fixture
def party_service(store, event_bus, clock, party_settings, rng):
    from party_jam.application.services.party_service import PartyApplicationService

    return PartyApplicationService(
        session_store=store,
        event_bus=event_bus,
        clock=clock,
        settings=party_settings,
        rng=rng,
    )


@pytest.fixture
def suggestion_manager(store, event_bus, clock, scheduler, sampler, party_settings):
    from party_jam.application.services.suggestion_service import SuggestionLifecycleManager

    return SuggestionLifecycleManager(
        session_store=store,
        event_bus=event_bus,
        clock=clock,
        scheduler=scheduler,
        sampler=sampler,
        settings=party_settings,
    )


@pytest.fixture
def voting_service(store, event_bus, suggestion_manager, party_settings):
    from party_jam.application.services.voting_service import VotingApplicationService

    return VotingApplicationService(
        session_store=store,
        event_bus=event_bus,
        suggestion_manager=suggestion_manager,
        settings=party_settings,
    )


@pytest.fixture
def relay(event_bus, gateway):
    """Started relay so every published event lands in ``gateway.sent``."""
    from party_jam.application.services.broadcast_relay import BroadcastRelay

    relay = BroadcastRelay(event_bus=event_bus, gateway=gateway)
    relay.start()
    yield relay
    relay.stop()


# ============================================================================
# Party Builders
# ============================================================================


def track(track_id: str, **overrides: Any) -> TrackMetadata:
    """Build track metadata with sensible defaults."""
    values: dict[str, Any] = {
        "track_id": track_id,
        "title": f"Title {track_id}",
        "artist": "Test Artist",
        "album_art_url": f"https://img.example/{track_id}.jpg",
        "explicit": False,
    }
    values.update(overrides)
    return TrackMetadata(**values)


@pytest.fixture
def make_party(party_service):
    """Factory: create a party, join ``guests`` guests and optionally start it.

    Returns ``(party_id, host_id, guest_ids)``. The host counts as an
    active member, so ``guests=9`` gives ten active members.
    """

    async def _make(guests: int = 0, *, live: bool = True, host_id: str = "h1", **options):
        result = await party_service.create_party(host_id, **options)
        guest_ids = [f"g{i}" for i in range(1, guests + 1)]
        for guest_id in guest_ids:
            await party_service.join_party(result.party_id, guest_id)
        if live:
            await party_service.start_party(result.party_id, host_id)
        return result.party_id, host_id, guest_ids

    return _make


@pytest.fixture
def make_track():
    """Factory fixture for ``TrackMetadata``."""
    return track
