"""Core domain entities for the party bounded context."""

from __future__ import annotations

from pydantic import BaseModel, Field

from party_jam.domain.party.value_objects import MemberRole, PartyStatus, SongSource, SongStatus
from party_jam.domain.shared.exceptions import InvalidStateError
from party_jam.domain.shared.messages import ErrorMessages
from party_jam.domain.shared.models import CamelModel, FrozenCamelModel
from party_jam.domain.shared.types import (
    EpochMillis,
    MoodStr,
    NonNegativeInt,
    PartyIdStr,
    PositiveInt,
    TrackIdStr,
    UserIdStr,
)
from party_jam.domain.voting.value_objects import VoteContext, VoteType

DEFAULT_MOOD = "chill"


class Party(CamelModel):
    """Party metadata. Mutated only by the host through settings or lifecycle calls."""

    party_id: PartyIdStr
    host_id: UserIdStr
    status: PartyStatus = PartyStatus.CREATED
    mood: MoodStr = DEFAULT_MOOD
    kid_friendly: bool = False
    allow_suggestions: bool = True
    created_at: EpochMillis

    def is_host(self, user_id: str) -> bool:
        return self.host_id == user_id

    def transition_to(self, new_status: PartyStatus) -> None:
        """Move to a new lifecycle status, rejecting invalid transitions."""
        if not self.status.can_transition_to(new_status):
            raise InvalidStateError(
                operation=f"transition to {new_status.value}",
                current_state=self.status.value,
                message=ErrorMessages.INVALID_TRANSITION.format(
                    current=self.status.value, target=new_status.value
                ),
            )
        self.status = new_status


class Member(CamelModel):
    """A party participant. Activity is refreshed by any heartbeat-equivalent action."""

    user_id: UserIdStr
    role: MemberRole = MemberRole.GUEST
    joined_at: EpochMillis
    last_active_at: EpochMillis

    def is_active(self, now: int, window_ms: int) -> bool:
        """Active iff the last activity is within the window (inclusive)."""
        return now - self.last_active_at <= window_ms

    def touch(self, now: int) -> None:
        self.last_active_at = now


class TrackMetadata(CamelModel):
    """Inbound track description supplied by the host or a suggesting guest."""

    track_id: TrackIdStr
    title: str = ""
    artist: str = ""
    album_art_url: str = ""
    explicit: bool = False


class Song(CamelModel):
    """A track in the queue, in now-playing, or under test as a suggestion.

    ``upvotes`` and ``downvotes`` are derived from the vote map and are only
    written by the session store's recount path.
    """

    track_id: TrackIdStr
    title: str = ""
    artist: str = ""
    album_art_url: str = ""
    explicit: bool = False
    source: SongSource = SongSource.CATALOG_REC
    status: SongStatus = SongStatus.QUEUED
    upvotes: NonNegativeInt = 0
    downvotes: NonNegativeInt = 0

    @classmethod
    def from_metadata(
        cls, metadata: TrackMetadata, *, source: SongSource, status: SongStatus
    ) -> Song:
        return cls(
            track_id=metadata.track_id,
            title=metadata.title,
            artist=metadata.artist,
            album_art_url=metadata.album_art_url,
            explicit=metadata.explicit,
            source=source,
            status=status,
        )


class Vote(FrozenCamelModel):
    """A single user's live vote on a track.

    Keyed by ``(user_id, track_id)``; the context is recorded but is not part
    of the key, so a QUEUE vote and a TESTING vote on the same track by the
    same user overwrite each other.
    """

    user_id: UserIdStr
    track_id: TrackIdStr
    vote: VoteType
    context: VoteContext
    timestamp: EpochMillis


class Suggestion(CamelModel):
    """A guest-suggested track under sampled testing."""

    track_id: TrackIdStr
    song: Song
    sample_user_ids: list[UserIdStr] = Field(default_factory=list)
    sample_size: PositiveInt
    created_at: EpochMillis
    expanded_at: EpochMillis | None = None

    @property
    def is_testing(self) -> bool:
        return self.song.status == SongStatus.TESTING

    @property
    def is_expanded(self) -> bool:
        return self.expanded_at is not None

    def expires_at(self, expire_after_ms: int) -> int:
        """Expiry timestamp, always anchored to the original creation time."""
        return self.created_at + expire_after_ms


class PartySession(BaseModel):
    """Aggregate root holding all state for a single party.

    Owned exclusively by the session store; other components read it through
    the store and never mutate it directly.
    """

    party: Party
    join_code: str | None = None
    members: dict[str, Member] = Field(default_factory=dict)
    queue: list[Song] = Field(default_factory=list)
    now_playing: Song | None = None
    votes: dict[tuple[str, str], Vote] = Field(default_factory=dict)
    suggestions: dict[str, Suggestion] = Field(default_factory=dict)

    @property
    def party_id(self) -> str:
        return self.party.party_id

    def find_in_queue(self, track_id: str) -> Song | None:
        return next((song for song in self.queue if song.track_id == track_id), None)

    def enqueue(self, song: Song) -> int:
        """Append to the end of the queue and return the zero-based position."""
        self.queue.append(song)
        return len(self.queue) - 1

    def remove_from_queue(self, track_id: str) -> bool:
        """Drop every queue entry for ``track_id``; False when nothing matched."""
        original_length = len(self.queue)
        self.queue = [song for song in self.queue if song.track_id != track_id]
        return len(self.queue) < original_length

    def testing_suggestions(self) -> list[Suggestion]:
        return [s for s in self.suggestions.values() if s.is_testing]

    def holds_track(self, track_id: str) -> bool:
        """True when the track is queued, playing, or a live suggestion."""
        if self.find_in_queue(track_id) is not None:
            return True
        if self.now_playing is not None and self.now_playing.track_id == track_id:
            return True
        suggestion = self.suggestions.get(track_id)
        return suggestion is not None and suggestion.is_testing


class PartySnapshot(FrozenCamelModel):
    """Immutable point-in-time view of a party returned to clients."""

    party: Party
    active_members_count: NonNegativeInt
    members: list[Member]
    now_playing: Song | None
    queue: list[Song]
    testing_suggestions: list[Song]
