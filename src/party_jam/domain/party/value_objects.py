"""Immutable value objects for the party bounded context."""

from __future__ import annotations

from enum import Enum


class PartyStatus(Enum):
    """Party lifecycle status with enforced transitions.

    State transitions:
    - CREATED -> LIVE (host starts the party)
    - CREATED -> ENDED (host ends before starting)
    - LIVE -> ENDED (host ends the party)

    ENDED is terminal.
    """

    CREATED = "CREATED"
    LIVE = "LIVE"
    ENDED = "ENDED"

    def can_transition_to(self, target: PartyStatus) -> bool:
        """Check if transition to target state is valid."""
        valid_transitions = {
            PartyStatus.CREATED: {PartyStatus.LIVE, PartyStatus.ENDED},
            PartyStatus.LIVE: {PartyStatus.ENDED},
            PartyStatus.ENDED: set(),
        }
        return target in valid_transitions[self]

    @property
    def is_live(self) -> bool:
        return self == PartyStatus.LIVE

    @property
    def is_ended(self) -> bool:
        return self == PartyStatus.ENDED


class MemberRole(Enum):
    """Role of a party member. Assigned on first join and never changed."""

    HOST = "HOST"
    GUEST = "GUEST"


class SongSource(Enum):
    """Where a song entered the party from."""

    CATALOG_REC = "CATALOG_REC"  # Seeded by the host from catalog recommendations
    GUEST_SUGGESTION = "GUEST_SUGGESTION"


class SongStatus(Enum):
    """Lifecycle status of a song.

    QUEUED and TESTING are transient; PROMOTED, REMOVED and EXPIRED are
    terminal for the table the song entered through. A promoted song lives
    on in the queue and can still be removed from it.
    """

    QUEUED = "QUEUED"
    TESTING = "TESTING"
    PROMOTED = "PROMOTED"
    REMOVED = "REMOVED"
    EXPIRED = "EXPIRED"

    @property
    def is_terminal(self) -> bool:
        return self in {SongStatus.PROMOTED, SongStatus.REMOVED, SongStatus.EXPIRED}

    def can_transition_to(self, target: SongStatus) -> bool:
        valid_transitions = {
            SongStatus.QUEUED: {SongStatus.REMOVED},
            SongStatus.TESTING: {SongStatus.PROMOTED, SongStatus.REMOVED, SongStatus.EXPIRED},
            SongStatus.PROMOTED: {SongStatus.REMOVED},
            SongStatus.REMOVED: set(),
            SongStatus.EXPIRED: set(),
        }
        return target in valid_transitions[self]


class RemovalReason(Enum):
    """Why a song left the queue or the suggestion table."""

    DOWNVOTE_THRESHOLD = "DOWNVOTE_THRESHOLD"
    HOST_REMOVE = "HOST_REMOVE"


class SettingKey(Enum):
    """Host-editable party settings, named as clients send them."""

    MOOD = "mood"
    KID_FRIENDLY = "kidFriendly"
    ALLOW_SUGGESTIONS = "allowSuggestions"

    @property
    def field_name(self) -> str:
        """Attribute name on the Party model."""
        return {
            SettingKey.MOOD: "mood",
            SettingKey.KID_FRIENDLY: "kid_friendly",
            SettingKey.ALLOW_SUGGESTIONS: "allow_suggestions",
        }[self]

    @classmethod
    def parse(cls, raw: str) -> SettingKey | None:
        """Resolve a camelCase or snake_case key, returning None if unknown."""
        for key in cls:
            if raw in (key.value, key.field_name):
                return key
        return None
