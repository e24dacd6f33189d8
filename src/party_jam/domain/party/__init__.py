"""
Party Bounded Context

Party lifecycle, membership, the queue and the session store contract.
"""

from party_jam.domain.party.entities import (
    Member,
    Party,
    PartySession,
    PartySnapshot,
    Song,
    Suggestion,
    TrackMetadata,
    Vote,
)
from party_jam.domain.party.repository import SessionStore
from party_jam.domain.party.value_objects import (
    MemberRole,
    PartyStatus,
    RemovalReason,
    SettingKey,
    SongSource,
    SongStatus,
)

__all__ = [
    # Entities
    "Party",
    "Member",
    "Song",
    "TrackMetadata",
    "Vote",
    "Suggestion",
    "PartySession",
    "PartySnapshot",
    # Value Objects
    "PartyStatus",
    "MemberRole",
    "SongSource",
    "SongStatus",
    "RemovalReason",
    "SettingKey",
    # Repository
    "SessionStore",
]
