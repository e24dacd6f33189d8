"""
End-to-end party scenarios through the application services and the relay.

Member counts include the host: ``make_party(9)`` is ten active members.
"""

import pytest

from party_jam.domain.party.value_objects import SongStatus
from party_jam.domain.shared.exceptions import ExplicitContentBlockedError


@pytest.mark.asyncio
async def test_queue_downvotes_remove_track(
    party_service, voting_service, make_track, store, relay, gateway
):
    """Four of ten members downvote a queued track out of the queue."""
    created = await party_service.create_party("h1", mood="chill")
    party_id = created.party_id
    for i in range(1, 10):
        await party_service.join_party(party_id, f"g{i}")
    await party_service.start_party(party_id, "h1")
    await party_service.seed_queue(party_id, "h1", [make_track("T1")])

    for voter in ["g1", "g2", "g3"]:
        outcome = await voting_service.vote(party_id, voter, "T1", "DOWN", "QUEUE")
        assert outcome.status == SongStatus.QUEUED

    outcome = await voting_service.vote(party_id, "g4", "T1", "DOWN", "QUEUE")

    assert outcome.status == SongStatus.REMOVED
    assert store.find_in_queue(party_id, "T1") is None
    removed = gateway.of("party:songRemoved")
    assert [r["payload"] for r in removed] == [
        {"trackId": "T1", "reason": "DOWNVOTE_THRESHOLD"}
    ]


@pytest.mark.asyncio
async def test_suggestion_sampled_from_ten(suggestion_manager, make_party, make_track, store):
    party_id, host_id, guests = await make_party(9)

    result = await suggestion_manager.suggest(party_id, guests[0], make_track("S1"))

    suggestion = store.get_suggestion(party_id, "S1")
    assert suggestion.sample_size == 3
    assert len(set(result.sample_user_ids)) == 3
    assert set(result.sample_user_ids) <= {host_id, *guests}
    assert suggestion.song.status == SongStatus.TESTING


@pytest.mark.asyncio
async def test_fourth_upvote_promotes_suggestion(
    suggestion_manager, voting_service, make_party, make_track, store, relay, gateway
):
    party_id, host_id, guests = await make_party(9)
    result = await suggestion_manager.suggest(party_id, guests[0], make_track("S1"))
    sampled = result.sample_user_ids
    others = [u for u in [host_id, *guests] if u not in sampled]

    for voter in sampled:
        outcome = await voting_service.vote(party_id, voter, "S1", "UP", "TESTING")
        assert outcome.status == SongStatus.TESTING

    outcome = await voting_service.vote(party_id, others[0], "S1", "UP", "TESTING")

    assert outcome.status == SongStatus.PROMOTED
    queue_ids = [s.track_id for s in store.require_session(party_id).queue]
    assert queue_ids.count("S1") == 1
    assert gateway.names()[-3:] == [
        "party:suggestionPromoted",
        "party:queueUpdated",
        "party:voteUpdate",
    ]


@pytest.mark.asyncio
async def test_untouched_suggestion_expands_then_expires(
    suggestion_manager, make_party, make_track, store, scheduler, clock
):
    party_id, _, guests = await make_party(9)
    result = await suggestion_manager.suggest(party_id, guests[0], make_track("S1"))
    t0 = clock.now_ms()

    await scheduler.advance(120_000)

    suggestion = store.get_suggestion(party_id, "S1")
    assert len(suggestion.sample_user_ids) != len(result.sample_user_ids)
    assert suggestion.expanded_at == t0 + 120_000

    await scheduler.advance(180_000)

    assert clock.now_ms() == t0 + 300_000
    assert store.get_suggestion(party_id, "S1").song.status == SongStatus.EXPIRED


@pytest.mark.asyncio
async def test_explicit_suggestion_blocked_at_kid_party(
    suggestion_manager, make_party, make_track, store
):
    party_id, _, guests = await make_party(3, kid_friendly=True)

    with pytest.raises(ExplicitContentBlockedError) as exc_info:
        await suggestion_manager.suggest(party_id, guests[0], make_track("S1", explicit=True))

    assert exc_info.value.category == "FORBIDDEN"
    assert store.get_suggestion(party_id, "S1") is None
