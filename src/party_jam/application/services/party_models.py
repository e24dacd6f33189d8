"""DTOs returned by the party application services."""

from __future__ import annotations

from party_jam.domain.party.entities import Party, Song
from party_jam.domain.party.value_objects import SongStatus
from party_jam.domain.shared.models import FrozenCamelModel
from party_jam.domain.shared.types import (
    JoinCodeStr,
    NonNegativeInt,
    PartyIdStr,
    TrackIdStr,
    UserIdStr,
)
from party_jam.domain.voting.value_objects import VoteContext


class CreatePartyResult(FrozenCamelModel):
    party_id: PartyIdStr
    join_code: JoinCodeStr
    party: Party


class VoteOutcome(FrozenCamelModel):
    """Counts and resulting status after a vote, as returned to the voter."""

    track_id: TrackIdStr
    upvotes: NonNegativeInt
    downvotes: NonNegativeInt
    status: SongStatus
    context: VoteContext


class SuggestResult(FrozenCamelModel):

    suggestion: Song
    sample_user_ids: list[UserIdStr]
