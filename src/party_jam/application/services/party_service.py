"""Party Application Service - party lifecycle, membership, settings and queue curation."""

from __future__ import annotations

import logging
import random
import string
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from party_jam.application.services.party_models import CreatePartyResult
from party_jam.domain.party.entities import (
    Member,
    Party,
    PartySession,
    PartySnapshot,
    Song,
    TrackMetadata,
)
from party_jam.domain.party.value_objects import (
    MemberRole,
    PartyStatus,
    RemovalReason,
    SettingKey,
    SongSource,
    SongStatus,
)
from party_jam.domain.shared.events import (
    DomainEvent,
    JoinCodeRegenerated,
    MemberJoined,
    NowPlayingChanged,
    PartyStatusChanged,
    PresenceChanged,
    QueueUpdated,
    SettingsUpdated,
    SongRemoved,
)
from party_jam.domain.shared.exceptions import (
    InvalidRequestError,
    InvalidSettingError,
    InvalidStateError,
    JoinCodeExhaustedError,
    JoinCodeNotFoundError,
    MemberNotFoundError,
    NotHostError,
    PartyNotLiveError,
    TrackNotFoundError,
)
from party_jam.domain.shared.messages import ErrorMessages, LogTemplates
from party_jam.domain.shared.types import MoodStr
from party_jam.domain.shared.validators import invalid_request_from, require_bool, require_text

if TYPE_CHECKING:
    from party_jam.application.interfaces.clock import Clock
    from party_jam.config.settings import PartySettings
    from party_jam.domain.party.repository import SessionStore
    from party_jam.domain.shared.events import EventBus

logger = logging.getLogger(__name__)

JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits

_MOOD = TypeAdapter(MoodStr)


class PartyApplicationService:
    """Runs the party state machine (CREATED -> LIVE -> ENDED) and host operations.

    Every method validates inputs and state before mutating anything and
    performs all store writes without awaiting, then publishes the
    resulting events.
    """

    def __init__(
        self,
        *,
        session_store: SessionStore,
        event_bus: EventBus,
        clock: Clock,
        settings: PartySettings,
        rng: random.Random | None = None,
    ) -> None:
        self._store = session_store
        self._bus = event_bus
        self._clock = clock
        self._settings = settings
        self._rng = rng or random.SystemRandom()

    # === Lifecycle ===

    async def create_party(
        self,
        host_id: str,
        mood: str | None = None,
        kid_friendly: bool | None = None,
        allow_suggestions: bool | None = None,
    ) -> CreatePartyResult:
        require_text(host_id, "hostId")
        options: dict[str, Any] = {}
        if mood is not None:
            options["mood"] = require_text(mood, "mood")
        if kid_friendly is not None:
            options["kid_friendly"] = require_bool(kid_friendly, "kidFriendly")
        if allow_suggestions is not None:
            options["allow_suggestions"] = require_bool(allow_suggestions, "allowSuggestions")

        now = self._clock.now_ms()
        try:
            party = Party(
                party_id=f"party_{uuid4().hex}",
                host_id=host_id,
                created_at=now,
                **options,
            )
        except PydanticValidationError as exc:
            raise invalid_request_from(exc) from exc

        join_code = self._allocate_join_code()

        self._store.create_party(party)
        self._store.add_member(
            party.party_id,
            Member(user_id=host_id, role=MemberRole.HOST, joined_at=now, last_active_at=now),
        )
        self._store.register_join_code(join_code, party.party_id)

        logger.info(LogTemplates.PARTY_CREATED, party.party_id, host_id, join_code)
        return CreatePartyResult(
            party_id=party.party_id, join_code=join_code, party=party.model_copy(deep=True)
        )

    async def start_party(self, party_id: str, host_id: str) -> PartyStatus:
        return await self._transition(party_id, host_id, PartyStatus.LIVE, action="start the party")

    async def end_party(self, party_id: str, host_id: str) -> PartyStatus:
        return await self._transition(party_id, host_id, PartyStatus.ENDED, action="end the party")

    async def _transition(
        self, party_id: str, host_id: str, target: PartyStatus, *, action: str
    ) -> PartyStatus:
        require_text(host_id, "hostId")
        session = self._store.require_session(party_id)
        self._require_host(session, host_id, action)

        session.party.transition_to(target)

        if target == PartyStatus.LIVE:
            logger.info(LogTemplates.PARTY_STARTED, party_id)
        else:
            logger.info(LogTemplates.PARTY_ENDED, party_id)

        await self._bus.publish(PartyStatusChanged(party_id=party_id, status=target))
        return target

    # === Join codes ===

    def resolve_join_code(self, code: str) -> str:
        require_text(code, "joinCode")
        party_id = self._store.resolve_join_code(code)
        if party_id is None:
            raise JoinCodeNotFoundError(code.strip().upper())
        return party_id

    async def regenerate_join_code(self, party_id: str, host_id: str) -> str:
        require_text(host_id, "hostId")
        session = self._store.require_session(party_id)
        self._require_host(session, host_id, "regenerate the join code")

        new_code = self._allocate_join_code()
        if session.join_code is not None:
            self._store.release_join_code(session.join_code)
        self._store.register_join_code(new_code, party_id)

        logger.info(LogTemplates.JOIN_CODE_REGENERATED, party_id)
        await self._bus.publish(JoinCodeRegenerated(party_id=party_id, join_code=new_code))
        return new_code

    def _allocate_join_code(self) -> str:
        """Draw random codes until one is free in the index."""
        attempts = self._settings.join_code_max_attempts
        for _ in range(attempts):
            code = "".join(
                self._rng.choice(JOIN_CODE_ALPHABET) for _ in range(self._settings.join_code_length)
            )
            if not self._store.join_code_taken(code):
                return code
            logger.warning(LogTemplates.JOIN_CODE_COLLISION, code)
        raise JoinCodeExhaustedError(attempts)

    # === Membership ===

    async def join_party(self, party_id: str, user_id: str) -> Member:
        """Add a guest, or refresh activity for someone who is already a member."""
        require_text(user_id, "userId")
        session = self._store.require_session(party_id)

        before = self._store.active_members_count(party_id)
        events: list[DomainEvent] = []

        member = session.members.get(user_id)
        if member is None:
            now = self._clock.now_ms()
            member = self._store.add_member(
                party_id,
                Member(user_id=user_id, role=MemberRole.GUEST, joined_at=now, last_active_at=now),
            )
            after = self._store.active_members_count(party_id)
            logger.info(LogTemplates.MEMBER_JOINED, user_id, party_id)
            events.append(
                MemberJoined(party_id=party_id, user_id=user_id, active_members_count=after)
            )
        else:
            self._store.touch_activity(party_id, user_id)
            after = self._store.active_members_count(party_id)
            logger.debug(LogTemplates.MEMBER_REJOINED, user_id, party_id)

        if after != before:
            events.append(PresenceChanged(party_id=party_id, active_members_count=after))

        result = member.model_copy(deep=True)
        await self._bus.publish_all(events)
        return result

    async def heartbeat(self, party_id: str, user_id: str) -> bool:
        """Refresh a member's activity. Returns True once the member is marked active."""
        require_text(user_id, "userId")
        self._store.require_session(party_id)
        if self._store.get_member(party_id, user_id) is None:
            raise MemberNotFoundError(user_id)

        before = self._store.active_members_count(party_id)
        active = self._store.touch_activity(party_id, user_id)
        after = self._store.active_members_count(party_id)

        if after != before:
            logger.debug(LogTemplates.PRESENCE_CHANGED, party_id, after)
            await self._bus.publish(PresenceChanged(party_id=party_id, active_members_count=after))
        return active

    def get_state(self, party_id: str, user_id: str | None = None) -> PartySnapshot:
        """Snapshot for a state poll; a poll by a member counts as activity."""
        self._store.require_session(party_id)
        if user_id:
            self._store.touch_activity(party_id, user_id)
        return self._store.get_snapshot(party_id)

    # === Settings ===

    async def update_setting(self, party_id: str, host_id: str, key: str, value: Any) -> Party:
        """Change one host setting. Existing suggestions keep the sample they were given."""
        require_text(host_id, "hostId")
        setting = SettingKey.parse(key) if isinstance(key, str) else None
        if setting is None:
            raise InvalidSettingError(
                str(key),
                ErrorMessages.INVALID_SETTING_KEY.format(
                    key=key, valid_keys=[k.value for k in SettingKey]
                ),
            )
        value = self._validate_setting_value(setting, value)

        session = self._store.require_session(party_id)
        self._require_host(session, host_id, "change settings")

        party = self._store.update_party(party_id, **{setting.field_name: value})
        logger.info(LogTemplates.SETTING_UPDATED, party_id, setting.value, value)

        await self._bus.publish(
            SettingsUpdated(
                party_id=party_id,
                mood=party.mood,
                kid_friendly=party.kid_friendly,
                allow_suggestions=party.allow_suggestions,
            )
        )
        return party.model_copy(deep=True)

    @staticmethod
    def _validate_setting_value(setting: SettingKey, value: Any) -> Any:
        if setting == SettingKey.MOOD:
            try:
                return _MOOD.validate_python(require_text(value, setting.value))
            except (InvalidRequestError, PydanticValidationError):
                raise InvalidSettingError(
                    setting.value,
                    ErrorMessages.INVALID_SETTING_VALUE.format(
                        key=setting.value, expected="non-empty string (max 50 chars)"
                    ),
                ) from None
        if not isinstance(value, bool):
            raise InvalidSettingError(
                setting.value,
                ErrorMessages.INVALID_SETTING_VALUE.format(key=setting.value, expected="boolean"),
            )
        return value

    # === Queue curation ===

    async def seed_queue(
        self, party_id: str, host_id: str, tracks: list[TrackMetadata | dict[str, Any]]
    ) -> list[Song]:
        """Append catalog tracks to the queue.

        Explicit tracks are silently skipped at kid-friendly parties, as are
        tracks already queued, playing or under test.
        """
        require_text(host_id, "hostId")
        if not isinstance(tracks, list):
            raise InvalidRequestError.missing("tracks")
        try:
            metadata = [
                t if isinstance(t, TrackMetadata) else TrackMetadata.model_validate(t)
                for t in tracks
            ]
        except PydanticValidationError as exc:
            raise invalid_request_from(exc) from exc

        session = self._store.require_session(party_id)
        self._require_host(session, host_id, "seed the queue")
        if session.party.status.is_ended:
            raise InvalidStateError(
                "seed the queue", session.party.status.value, ErrorMessages.PARTY_ENDED
            )

        added: list[Song] = []
        for item in metadata:
            if session.party.kid_friendly and item.explicit:
                continue
            if session.holds_track(item.track_id):
                continue
            song = Song.from_metadata(item, source=SongSource.CATALOG_REC, status=SongStatus.QUEUED)
            self._store.add_to_queue(party_id, song)
            self._store.sync_song_vote_counts(party_id, song.track_id)
            added.append(song)

        logger.info(LogTemplates.QUEUE_SEEDED, len(added), party_id, len(metadata) - len(added))

        result = [song.model_copy(deep=True) for song in added]
        if added:
            await self._bus.publish(QueueUpdated.from_session(session))
        return result

    async def remove_from_queue(self, party_id: str, host_id: str, track_id: str) -> bool:
        """Host-forced removal. Removing a track that is not queued is a no-op."""
        require_text(host_id, "hostId")
        require_text(track_id, "trackId")
        session = self._store.require_session(party_id)
        self._require_host(session, host_id, "remove songs")

        if self._store.find_in_queue(party_id, track_id) is None:
            logger.debug(LogTemplates.QUEUE_REMOVE_NOOP, track_id, party_id)
            return False

        self._store.set_song_status(party_id, track_id, SongStatus.REMOVED)
        self._store.remove_from_queue(party_id, track_id)
        logger.info(LogTemplates.QUEUE_REMOVED_BY_HOST, track_id, party_id)

        await self._bus.publish_all(
            [
                SongRemoved(
                    party_id=party_id, track_id=track_id, reason=RemovalReason.HOST_REMOVE
                ),
                QueueUpdated.from_session(session),
            ]
        )
        return True

    async def update_now_playing(
        self, party_id: str, host_id: str, track_id: str, started_at: int | None = None
    ) -> Song:
        """Move a queued track into now-playing."""
        require_text(host_id, "hostId")
        require_text(track_id, "trackId")
        if started_at is not None and (not isinstance(started_at, int) or started_at < 0):
            raise InvalidRequestError(
                ErrorMessages.INVALID_FIELD_VALUE.format(field_name="startedAt", value=started_at),
                field="startedAt",
            )

        session = self._store.require_session(party_id)
        self._require_host(session, host_id, "change what is playing")
        if not session.party.status.is_live:
            raise PartyNotLiveError("change what is playing", session.party.status.value)

        song = self._store.find_in_queue(party_id, track_id)
        if song is None:
            raise TrackNotFoundError(track_id, "queue")

        self._store.remove_from_queue(party_id, track_id)
        self._store.set_now_playing(party_id, song)
        logger.info(LogTemplates.NOW_PLAYING_SET, track_id, party_id)

        await self._bus.publish_all(
            [
                NowPlayingChanged(
                    party_id=party_id,
                    track_id=track_id,
                    started_at=started_at if started_at is not None else self._clock.now_ms(),
                ),
                QueueUpdated.from_session(session),
            ]
        )
        return song.model_copy(deep=True)

    # === Helpers ===

    @staticmethod
    def _require_host(session: PartySession, user_id: str, action: str) -> None:
        if not session.party.is_host(user_id):
            raise NotHostError(action)
