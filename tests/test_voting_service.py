"""
Unit Tests for VotingApplicationService

Tests for:
- Input and state validation
- Vote idempotence and clearing
- Queue removal by downvotes
- Suggestion promotion and removal
- Event ordering
"""

import pytest

from party_jam.domain.party.value_objects import SongStatus
from party_jam.domain.shared.exceptions import (
    InvalidRequestError,
    InvalidVoteError,
    MemberNotFoundError,
    PartyNotFoundError,
    PartyNotLiveError,
    TrackAlreadyPresentError,
    TrackNotFoundError,
)
from party_jam.domain.voting.value_objects import VoteContext, VoteType


@pytest.fixture
def seeded_party(make_party, party_service, make_track):
    """Live party with ten active members (host + g1..g9) and one queued track."""

    async def _make(queue=("t1",), **options):
        party_id, host_id, guests = await make_party(9, **options)
        if queue:
            await party_service.seed_queue(party_id, host_id, [make_track(t) for t in queue])
        return party_id, host_id, guests

    return _make


# =============================================================================
# Validation Tests
# =============================================================================


class TestVoteValidation:
    """Rejections happen before anything is recorded."""

    @pytest.mark.asyncio
    async def test_invalid_vote_value(self, voting_service, seeded_party, store):
        party_id, _, guests = await seeded_party()

        with pytest.raises(InvalidVoteError) as exc_info:
            await voting_service.vote(party_id, guests[0], "t1", "MAYBE", "QUEUE")

        assert exc_info.value.code == "INVALID_VOTE"
        assert store.require_session(party_id).votes == {}

    @pytest.mark.asyncio
    async def test_invalid_context(self, voting_service, seeded_party):
        party_id, _, guests = await seeded_party()
        with pytest.raises(InvalidRequestError) as exc_info:
            await voting_service.vote(party_id, guests[0], "t1", "UP", "LOBBY")
        assert exc_info.value.field == "context"

    @pytest.mark.asyncio
    async def test_missing_track_id(self, voting_service, seeded_party):
        party_id, _, guests = await seeded_party()
        with pytest.raises(InvalidRequestError):
            await voting_service.vote(party_id, guests[0], "", "UP", "QUEUE")

    @pytest.mark.asyncio
    async def test_unknown_party(self, voting_service):
        with pytest.raises(PartyNotFoundError):
            await voting_service.vote("party_missing", "g1", "t1", "UP", "QUEUE")

    @pytest.mark.asyncio
    async def test_party_not_live(self, voting_service, seeded_party):
        party_id, _, guests = await seeded_party(live=False)

        with pytest.raises(PartyNotLiveError) as exc_info:
            await voting_service.vote(party_id, guests[0], "t1", "UP", "QUEUE")

        assert exc_info.value.category == "INVALID_STATE"

    @pytest.mark.asyncio
    async def test_party_ended(self, voting_service, party_service, seeded_party):
        party_id, host_id, guests = await seeded_party()
        await party_service.end_party(party_id, host_id)

        with pytest.raises(PartyNotLiveError):
            await voting_service.vote(party_id, guests[0], "t1", "UP", "QUEUE")

    @pytest.mark.asyncio
    async def test_non_member(self, voting_service, seeded_party):
        party_id, _, _ = await seeded_party()
        with pytest.raises(MemberNotFoundError):
            await voting_service.vote(party_id, "stranger", "t1", "UP", "QUEUE")

    @pytest.mark.asyncio
    async def test_track_not_in_queue(self, voting_service, seeded_party):
        party_id, _, guests = await seeded_party()
        with pytest.raises(TrackNotFoundError):
            await voting_service.vote(party_id, guests[0], "t9", "UP", "QUEUE")

    @pytest.mark.asyncio
    async def test_queue_track_is_not_a_suggestion(self, voting_service, seeded_party):
        """A queued track cannot be voted on in TESTING context."""
        party_id, _, guests = await seeded_party()
        with pytest.raises(TrackNotFoundError):
            await voting_service.vote(party_id, guests[0], "t1", "UP", "TESTING")


# =============================================================================
# Tally Tests
# =============================================================================


class TestVoteTally:
    """Counts always equal a recount of live votes."""

    @pytest.mark.asyncio
    async def test_same_vote_twice(self, voting_service, seeded_party):
        party_id, _, guests = await seeded_party()

        first = await voting_service.vote(party_id, guests[0], "t1", "UP", "QUEUE")
        second = await voting_service.vote(party_id, guests[0], "t1", "UP", "QUEUE")

        assert first == second
        assert (second.upvotes, second.downvotes) == (1, 0)

    @pytest.mark.asyncio
    async def test_none_clears_once(self, voting_service, seeded_party):
        party_id, _, guests = await seeded_party()
        await voting_service.vote(party_id, guests[0], "t1", "DOWN", "QUEUE")
        await voting_service.vote(party_id, guests[1], "t1", "DOWN", "QUEUE")

        await voting_service.vote(party_id, guests[0], "t1", "NONE", "QUEUE")
        outcome = await voting_service.vote(party_id, guests[0], "t1", "NONE", "QUEUE")

        assert outcome.downvotes == 1

    @pytest.mark.asyncio
    async def test_enum_arguments_accepted(self, voting_service, seeded_party):
        party_id, _, guests = await seeded_party()
        outcome = await voting_service.vote(
            party_id, guests[0], "t1", VoteType.UP, VoteContext.QUEUE
        )
        assert outcome.context == VoteContext.QUEUE

    @pytest.mark.asyncio
    async def test_counts_written_to_queue_song(self, voting_service, seeded_party, store):
        party_id, _, guests = await seeded_party()
        await voting_service.vote(party_id, guests[0], "t1", "UP", "QUEUE")
        await voting_service.vote(party_id, guests[1], "t1", "DOWN", "QUEUE")

        song = store.find_in_queue(party_id, "t1")
        assert (song.upvotes, song.downvotes) == (1, 1)

    @pytest.mark.asyncio
    async def test_vote_touches_activity(self, voting_service, seeded_party, store, clock):
        party_id, _, guests = await seeded_party()
        clock.advance(600_001)

        await voting_service.vote(party_id, guests[0], "t1", "UP", "QUEUE")

        assert store.get_member(party_id, guests[0]).last_active_at == clock.now_ms()


# =============================================================================
# Queue Removal Tests
# =============================================================================


class TestQueueRemoval:
    """Downvote threshold on queued songs."""

    @pytest.mark.asyncio
    async def test_three_of_ten_is_not_enough(self, voting_service, seeded_party, store):
        party_id, _, guests = await seeded_party()
        for guest in guests[:3]:
            outcome = await voting_service.vote(party_id, guest, "t1", "DOWN", "QUEUE")

        assert outcome.status == SongStatus.QUEUED
        assert store.find_in_queue(party_id, "t1") is not None

    @pytest.mark.asyncio
    async def test_fourth_downvote_removes(
        self, voting_service, seeded_party, store, relay, gateway
    ):
        party_id, _, guests = await seeded_party(queue=("t1", "t2"))
        for guest in guests[:3]:
            await voting_service.vote(party_id, guest, "t1", "DOWN", "QUEUE")
        gateway.clear()

        outcome = await voting_service.vote(party_id, guests[3], "t1", "DOWN", "QUEUE")

        assert outcome.status == SongStatus.REMOVED
        assert outcome.downvotes == 4
        assert [s.track_id for s in store.require_session(party_id).queue] == ["t2"]
        assert gateway.names() == ["party:songRemoved", "party:queueUpdated", "party:voteUpdate"]
        assert gateway.sent[0]["payload"] == {"trackId": "t1", "reason": "DOWNVOTE_THRESHOLD"}
        assert [s["trackId"] for s in gateway.sent[1]["payload"]["queue"]] == ["t2"]
        assert gateway.sent[2]["payload"]["status"] == "REMOVED"

    @pytest.mark.asyncio
    async def test_removed_track_no_longer_votable(self, voting_service, seeded_party):
        party_id, _, guests = await seeded_party()
        for guest in guests[:4]:
            await voting_service.vote(party_id, guest, "t1", "DOWN", "QUEUE")

        with pytest.raises(TrackNotFoundError):
            await voting_service.vote(party_id, guests[5], "t1", "DOWN", "QUEUE")

    @pytest.mark.asyncio
    async def test_bar_shrinks_with_audience(self, voting_service, seeded_party, store, clock):
        """Once everyone else goes quiet, a lone voter clears the bar."""
        party_id, _, guests = await seeded_party()
        clock.advance(600_001)

        outcome = await voting_service.vote(party_id, guests[0], "t1", "DOWN", "QUEUE")

        assert store.active_members_count(party_id) == 1
        assert outcome.status == SongStatus.REMOVED

    @pytest.mark.asyncio
    async def test_vote_update_always_emitted(self, voting_service, seeded_party, relay, gateway):
        party_id, _, guests = await seeded_party()
        gateway.clear()

        await voting_service.vote(party_id, guests[0], "t1", "UP", "QUEUE")

        assert gateway.names() == ["party:voteUpdate"]
        assert gateway.sent[0]["payload"] == {
            "trackId": "t1",
            "upvotes": 1,
            "downvotes": 0,
            "status": "QUEUED",
            "context": "QUEUE",
        }


# =============================================================================
# Suggestion Voting Tests
# =============================================================================


class TestSuggestionVoting:
    """Promotion and removal of suggestions under test."""

    @pytest.fixture
    def suggested(self, seeded_party, suggestion_manager, make_track):
        async def _make():
            party_id, host_id, guests = await seeded_party(queue=())
            await suggestion_manager.suggest(party_id, guests[0], make_track("s1"))
            return party_id, host_id, guests

        return _make

    @pytest.mark.asyncio
    async def test_fourth_upvote_promotes(
        self, voting_service, suggested, store, scheduler, relay, gateway
    ):
        party_id, _, guests = await suggested()
        for guest in guests[:3]:
            await voting_service.vote(party_id, guest, "s1", "UP", "TESTING")
        gateway.clear()

        outcome = await voting_service.vote(party_id, guests[3], "s1", "UP", "TESTING")

        session = store.require_session(party_id)
        assert outcome.status == SongStatus.PROMOTED
        assert [s.track_id for s in session.queue] == ["s1"]
        assert session.testing_suggestions() == []
        assert scheduler.pending == []
        assert gateway.names() == [
            "party:suggestionPromoted",
            "party:queueUpdated",
            "party:voteUpdate",
        ]

    @pytest.mark.asyncio
    async def test_promoted_suggestion_not_promoted_twice(self, voting_service, suggested, store):
        """More TESTING votes after promotion leave a single queue entry."""
        party_id, _, guests = await suggested()
        for guest in guests[:6]:
            outcome = await voting_service.vote(party_id, guest, "s1", "UP", "TESTING")

        assert outcome.status == SongStatus.PROMOTED
        assert [s.track_id for s in store.require_session(party_id).queue] == ["s1"]

    @pytest.mark.asyncio
    async def test_promoted_song_can_be_voted_out_of_queue(self, voting_service, suggested, store):
        party_id, _, guests = await suggested()
        for guest in guests[:4]:
            await voting_service.vote(party_id, guest, "s1", "UP", "TESTING")

        # Shared vote key: switching to DOWN in QUEUE context overwrites the TESTING UP.
        for guest in guests[:4]:
            outcome = await voting_service.vote(party_id, guest, "s1", "DOWN", "QUEUE")

        assert outcome.status == SongStatus.REMOVED
        assert store.require_session(party_id).queue == []

    @pytest.mark.asyncio
    async def test_downvoted_suggestion_removed(
        self, voting_service, suggested, store, scheduler, relay, gateway
    ):
        party_id, _, guests = await suggested()
        for guest in guests[:3]:
            await voting_service.vote(party_id, guest, "s1", "DOWN", "TESTING")
        gateway.clear()

        outcome = await voting_service.vote(party_id, guests[3], "s1", "DOWN", "TESTING")

        assert outcome.status == SongStatus.REMOVED
        assert store.get_suggestion(party_id, "s1").song.status == SongStatus.REMOVED
        assert scheduler.pending == []
        assert gateway.names() == ["party:songRemoved", "party:voteUpdate"]

    @pytest.mark.asyncio
    async def test_downvoted_suggestion_cannot_be_resuggested(
        self, voting_service, suggestion_manager, suggested, store, make_track
    ):
        """Its votes stay with the removed record instead of carrying over."""
        party_id, _, guests = await suggested()
        for guest in guests[:4]:
            await voting_service.vote(party_id, guest, "s1", "DOWN", "TESTING")

        with pytest.raises(TrackAlreadyPresentError) as exc_info:
            await suggestion_manager.suggest(party_id, guests[5], make_track("s1"))

        assert exc_info.value.current_state == "REMOVED"
        song = store.get_suggestion(party_id, "s1").song
        assert (song.status, song.upvotes, song.downvotes) == (SongStatus.REMOVED, 0, 4)

    @pytest.mark.asyncio
    async def test_removal_precedence(
        self, voting_service, suggestion_manager, make_party, make_track, store, clock
    ):
        """4 up and 4 down evaluated together resolves to REMOVED, not PROMOTED."""
        party_id, _, guests = await make_party(11)
        clock.advance(300_000)
        await suggestion_manager.suggest(party_id, guests[0], make_track("s1"))

        # Twelve active members put both bars at 4.8, so nothing is decided yet.
        for guest in guests[:4]:
            await voting_service.vote(party_id, guest, "s1", "UP", "TESTING")
        for guest in guests[4:8]:
            await voting_service.vote(party_id, guest, "s1", "DOWN", "TESTING")
        assert store.get_suggestion(party_id, "s1").song.status == SongStatus.TESTING

        # The host and g9..g11 lapse, leaving eight active voters (bar 3.2).
        clock.advance(300_001)
        outcome = await voting_service.vote(party_id, guests[0], "s1", "UP", "TESTING")

        assert (outcome.upvotes, outcome.downvotes) == (4, 4)
        assert outcome.status == SongStatus.REMOVED
        assert store.require_session(party_id).queue == []

    @pytest.mark.asyncio
    async def test_decided_suggestion_still_takes_votes(self, voting_service, suggested):
        party_id, _, guests = await suggested()
        for guest in guests[:4]:
            await voting_service.vote(party_id, guest, "s1", "DOWN", "TESTING")

        outcome = await voting_service.vote(party_id, guests[5], "s1", "UP", "TESTING")

        assert outcome.status == SongStatus.REMOVED
        assert outcome.upvotes == 1
