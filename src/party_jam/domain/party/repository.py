"""
Party Domain Repository Interfaces

Abstract base class defining the contract for the session store: the single
owner and single writer of all party-scoped state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from party_jam.domain.party.entities import (
    Member,
    Party,
    PartySession,
    PartySnapshot,
    Song,
    Suggestion,
)
from party_jam.domain.party.value_objects import SongStatus
from party_jam.domain.voting.value_objects import VoteContext, VoteCounts, VoteType


class SessionStore(ABC):
    """Abstract store for party sessions.

    Operations are synchronous: every mutation completes before control
    returns to the event loop, which is what keeps a handler's
    read-check-write sequence atomic with respect to other events.
    """

    # === Parties ===

    @abstractmethod
    def create_party(self, party: Party) -> PartySession:
        """Insert a new session.

        Raises:
            DuplicatePartyError: If the party id already exists.
        """
        ...

    @abstractmethod
    def get_session(self, party_id: str) -> PartySession | None:
        ...

    @abstractmethod
    def require_session(self, party_id: str) -> PartySession:
        """Get a session or raise ``PartyNotFoundError``."""
        ...

    @abstractmethod
    def get_party(self, party_id: str) -> Party | None:
        ...

    @abstractmethod
    def update_party(self, party_id: str, **changes: Any) -> Party:
        """Apply field changes to the party metadata and return it."""
        ...

    # === Members ===

    @abstractmethod
    def add_member(self, party_id: str, member: Member) -> Member:
        ...

    @abstractmethod
    def get_member(self, party_id: str, user_id: str) -> Member | None:
        ...

    @abstractmethod
    def all_members(self, party_id: str) -> list[Member]:
        ...

    @abstractmethod
    def touch_activity(self, party_id: str, user_id: str) -> bool:
        """Set ``last_active_at`` to now.

        Returns:
            False if the user is not a member (no member is created), True
            if the timestamp was updated.
        """
        ...

    @abstractmethod
    def active_members(self, party_id: str, now: int | None = None) -> list[Member]:
        """Members whose last activity is within the active window, computed fresh."""
        ...

    @abstractmethod
    def active_members_count(self, party_id: str, now: int | None = None) -> int:
        ...

    # === Snapshot ===

    @abstractmethod
    def get_snapshot(self, party_id: str) -> PartySnapshot:
        ...

    # === Queue ===

    @abstractmethod
    def add_to_queue(self, party_id: str, song: Song) -> int:
        ...

    @abstractmethod
    def remove_from_queue(self, party_id: str, track_id: str) -> bool:
        """Remove a track from the queue; False (no change) if absent."""
        ...

    @abstractmethod
    def find_in_queue(self, party_id: str, track_id: str) -> Song | None:
        ...

    @abstractmethod
    def set_now_playing(self, party_id: str, song: Song | None) -> None:
        ...

    # === Votes ===

    @abstractmethod
    def record_vote(
        self,
        party_id: str,
        user_id: str,
        track_id: str,
        vote_type: VoteType,
        context: VoteContext,
    ) -> None:
        """Upsert a vote, or delete it when ``vote_type`` is NONE."""
        ...

    @abstractmethod
    def vote_counts(self, party_id: str, track_id: str) -> VoteCounts:
        ...

    @abstractmethod
    def sync_song_vote_counts(self, party_id: str, track_id: str) -> VoteCounts:
        """Recount votes and write them onto the song wherever it lives."""
        ...

    @abstractmethod
    def set_song_status(self, party_id: str, track_id: str, status: SongStatus) -> None:
        ...

    # === Suggestions ===

    @abstractmethod
    def save_suggestion(self, party_id: str, suggestion: Suggestion) -> None:
        ...

    @abstractmethod
    def get_suggestion(self, party_id: str, track_id: str) -> Suggestion | None:
        ...

    @abstractmethod
    def testing_suggestions(self, party_id: str) -> list[Suggestion]:
        ...

    # === Join codes ===

    @abstractmethod
    def register_join_code(self, code: str, party_id: str) -> None:
        ...

    @abstractmethod
    def release_join_code(self, code: str) -> bool:
        ...

    @abstractmethod
    def resolve_join_code(self, code: str) -> str | None:
        """Resolve a join code case-insensitively to a party id."""
        ...

    @abstractmethod
    def join_code_taken(self, code: str) -> bool:
        ...
