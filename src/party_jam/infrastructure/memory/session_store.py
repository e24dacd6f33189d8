"""In-memory session store: the single source of truth for party state."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from party_jam.domain.party.entities import (
    Member,
    Party,
    PartySession,
    PartySnapshot,
    Song,
    Suggestion,
    Vote,
)
from party_jam.domain.party.repository import SessionStore
from party_jam.domain.party.value_objects import SongStatus
from party_jam.domain.shared.exceptions import DuplicatePartyError, PartyNotFoundError
from party_jam.domain.voting.services import VotingDomainService
from party_jam.domain.voting.value_objects import VoteContext, VoteCounts, VoteType

if TYPE_CHECKING:
    from party_jam.application.interfaces.clock import Clock

logger = logging.getLogger(__name__)


class InMemorySessionStore(SessionStore):
    """Process-local store keyed by party id.

    Instantiated explicitly (normally by the container) so each test or
    process owns an isolated store. Nothing survives a restart.
    """

    def __init__(self, clock: Clock, *, active_window_ms: int) -> None:
        self._clock = clock
        self._active_window_ms = active_window_ms
        self._sessions: dict[str, PartySession] = {}
        self._join_codes: dict[str, str] = {}

    # === Parties ===

    def create_party(self, party: Party) -> PartySession:
        if party.party_id in self._sessions:
            raise DuplicatePartyError(party.party_id)
        session = PartySession(party=party)
        self._sessions[party.party_id] = session
        return session

    def get_session(self, party_id: str) -> PartySession | None:
        return self._sessions.get(party_id)

    def require_session(self, party_id: str) -> PartySession:
        session = self._sessions.get(party_id)
        if session is None:
            raise PartyNotFoundError(party_id)
        return session

    def get_party(self, party_id: str) -> Party | None:
        session = self._sessions.get(party_id)
        return session.party if session is not None else None

    def update_party(self, party_id: str, **changes: Any) -> Party:
        session = self.require_session(party_id)
        for field_name, value in changes.items():
            setattr(session.party, field_name, value)
        return session.party

    # === Members ===

    def add_member(self, party_id: str, member: Member) -> Member:
        session = self.require_session(party_id)
        session.members[member.user_id] = member
        return member

    def get_member(self, party_id: str, user_id: str) -> Member | None:
        session = self._sessions.get(party_id)
        if session is None:
            return None
        return session.members.get(user_id)

    def all_members(self, party_id: str) -> list[Member]:
        session = self._sessions.get(party_id)
        if session is None:
            return []
        return list(session.members.values())

    def touch_activity(self, party_id: str, user_id: str) -> bool:
        member = self.get_member(party_id, user_id)
        if member is None:
            return False
        member.touch(self._clock.now_ms())
        return True

    def active_members(self, party_id: str, now: int | None = None) -> list[Member]:
        if now is None:
            now = self._clock.now_ms()
        return [
            member
            for member in self.all_members(party_id)
            if member.is_active(now, self._active_window_ms)
        ]

    def active_members_count(self, party_id: str, now: int | None = None) -> int:
        return len(self.active_members(party_id, now))

    # === Snapshot ===

    def get_snapshot(self, party_id: str) -> PartySnapshot:
        session = self.require_session(party_id)
        return PartySnapshot(
            party=session.party.model_copy(deep=True),
            active_members_count=self.active_members_count(party_id),
            members=[m.model_copy(deep=True) for m in session.members.values()],
            now_playing=(
                session.now_playing.model_copy(deep=True) if session.now_playing else None
            ),
            queue=[song.model_copy(deep=True) for song in session.queue],
            testing_suggestions=[
                s.song.model_copy(deep=True) for s in session.testing_suggestions()
            ],
        )

    # === Queue ===

    def add_to_queue(self, party_id: str, song: Song) -> int:
        return self.require_session(party_id).enqueue(song)

    def remove_from_queue(self, party_id: str, track_id: str) -> bool:
        return self.require_session(party_id).remove_from_queue(track_id)

    def find_in_queue(self, party_id: str, track_id: str) -> Song | None:
        session = self._sessions.get(party_id)
        if session is None:
            return None
        return session.find_in_queue(track_id)

    def set_now_playing(self, party_id: str, song: Song | None) -> None:
        self.require_session(party_id).now_playing = song

    # === Votes ===

    def record_vote(
        self,
        party_id: str,
        user_id: str,
        track_id: str,
        vote_type: VoteType,
        context: VoteContext,
    ) -> None:
        session = self.require_session(party_id)
        key = (user_id, track_id)
        if vote_type.clears:
            session.votes.pop(key, None)
            return
        session.votes[key] = Vote(
            user_id=user_id,
            track_id=track_id,
            vote=vote_type,
            context=context,
            timestamp=self._clock.now_ms(),
        )

    def vote_counts(self, party_id: str, track_id: str) -> VoteCounts:
        session = self.require_session(party_id)
        return VotingDomainService.tally(
            vote for vote in session.votes.values() if vote.track_id == track_id
        )

    def sync_song_vote_counts(self, party_id: str, track_id: str) -> VoteCounts:
        counts = self.vote_counts(party_id, track_id)
        for song in self._songs_for(party_id, track_id):
            song.upvotes = counts.upvotes
            song.downvotes = counts.downvotes
        return counts

    def set_song_status(self, party_id: str, track_id: str, status: SongStatus) -> None:
        """Move every copy of the track to ``status``.

        Copies already in a state that cannot reach ``status`` are left alone,
        so a retained EXPIRED or REMOVED suggestion keeps its final status.
        """
        for song in self._songs_for(party_id, track_id):
            if song.status.can_transition_to(status):
                song.status = status

    def _songs_for(self, party_id: str, track_id: str) -> list[Song]:
        """Every distinct Song object currently representing ``track_id``."""
        session = self.require_session(party_id)
        candidates: list[Song] = [song for song in session.queue if song.track_id == track_id]
        if session.now_playing is not None and session.now_playing.track_id == track_id:
            candidates.append(session.now_playing)
        suggestion = session.suggestions.get(track_id)
        if suggestion is not None:
            candidates.append(suggestion.song)

        unique: dict[int, Song] = {}
        for song in candidates:
            unique.setdefault(id(song), song)
        return list(unique.values())

    # === Suggestions ===

    def save_suggestion(self, party_id: str, suggestion: Suggestion) -> None:
        self.require_session(party_id).suggestions[suggestion.track_id] = suggestion

    def get_suggestion(self, party_id: str, track_id: str) -> Suggestion | None:
        session = self._sessions.get(party_id)
        if session is None:
            return None
        return session.suggestions.get(track_id)

    def testing_suggestions(self, party_id: str) -> list[Suggestion]:
        session = self._sessions.get(party_id)
        if session is None:
            return []
        return session.testing_suggestions()

    # === Join codes ===

    def register_join_code(self, code: str, party_id: str) -> None:
        session = self.require_session(party_id)
        normalized = code.upper()
        self._join_codes[normalized] = party_id
        session.join_code = normalized

    def release_join_code(self, code: str) -> bool:
        return self._join_codes.pop(code.upper(), None) is not None

    def resolve_join_code(self, code: str) -> str | None:
        return self._join_codes.get(code.strip().upper())

    def join_code_taken(self, code: str) -> bool:
        return code.upper() in self._join_codes
