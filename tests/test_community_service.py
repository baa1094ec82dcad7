import pytest

from conftest import FakeStore
from app.services.community_service import CommunityError, CommunityService, InvalidVoteError
from app.services.providers.data_store import DataStoreError
from app.services.providers.types import VoteTally


def make_store():
    store = FakeStore()
    store.seed("community_posts", {"id": "p1", "title": "Mocha", "upvotes": 0, "downvotes": 0})
    store.seed("post_comments", {"id": "c1", "post_id": "p1", "content": "hi", "parent_comment_id": None, "created_at": "2025-01-01T00:00:00"})
    return store


@pytest.mark.asyncio
async def test_vote_on_post_recounts_and_writes_back():
    store = make_store()
    store.seed("post_votes", {"user_id": "u2", "post_id": "p1", "vote_type": 1})

    result = await CommunityService(store, "u1").vote_on_post("p1", 1)

    assert result.tally == VoteTally(upvotes=2, downvotes=0)
    assert result.tally.score == 2
    assert result.previous_vote == 0
    assert result.speculative == VoteTally(upvotes=1, downvotes=0)
    assert result.corrected is True
    post = store.rows("community_posts")[0]
    assert (post["upvotes"], post["downvotes"]) == (2, 0)


@pytest.mark.asyncio
async def test_changing_vote_replaces_previous_vote():
    store = make_store()
    service = CommunityService(store, "u1")

    await service.vote_on_post("p1", 1)
    result = await service.vote_on_post("p1", -1)

    assert result.previous_vote == 1
    assert result.previous == VoteTally(upvotes=1, downvotes=0)
    assert result.speculative == VoteTally(upvotes=0, downvotes=1)
    assert result.tally == VoteTally(upvotes=0, downvotes=1)
    assert result.corrected is False
    assert len(store.rows("post_votes")) == 1
    assert await service.get_user_post_vote("p1") == -1


@pytest.mark.asyncio
async def test_user_vote_defaults_to_zero():
    service = CommunityService(make_store(), "u1")
    assert await service.get_user_post_vote("p1") == 0
    assert await service.get_user_comment_vote("c1") == 0


@pytest.mark.asyncio
async def test_vote_on_comment_updates_comment_counts():
    store = make_store()
    result = await CommunityService(store, "u1").vote_on_comment("c1", -1)
    assert result.tally.score == -1
    assert store.rows("post_comments")[0]["downvotes"] == 1


@pytest.mark.asyncio
async def test_invalid_vote_is_rejected():
    with pytest.raises(InvalidVoteError):
        await CommunityService(make_store(), "u1").vote_on_post("p1", 2)


@pytest.mark.asyncio
async def test_failed_vote_propagates():
    store = make_store()
    store.fail_writes = True
    with pytest.raises(DataStoreError):
        await CommunityService(store, "u1").vote_on_post("p1", 1, current=VoteTally(upvotes=4))


def test_tally_with_vote():
    tally = VoteTally(upvotes=4, downvotes=1)
    assert tally.with_vote(0, 1) == VoteTally(5, 1)
    assert tally.with_vote(1, -1) == VoteTally(3, 2)
    assert tally.with_vote(-1, 0) == VoteTally(4, 0)
    assert VoteTally().with_vote(1, 0) == VoteTally(0, 0)


@pytest.mark.asyncio
async def test_comments_are_threaded():
    store = make_store()
    service = CommunityService(store, "u1")
    reply_a = await service.create_comment("p1", "first reply", parent_comment_id="c1")
    reply_b = await service.create_comment("p1", " second reply ", parent_comment_id="c1")
    top = await service.create_comment("p1", "newer top level")

    threads = await service.get_post_comments("p1")

    assert [thread.comment.id for thread in threads] == [top.id, "c1"]
    assert [reply.id for reply in threads[1].replies] == [reply_a.id, reply_b.id]
    assert threads[1].replies[1].content == "second reply"


@pytest.mark.asyncio
async def test_empty_comment_rejected():
    with pytest.raises(CommunityError):
        await CommunityService(make_store(), "u1").create_comment("p1", "   ")


@pytest.mark.asyncio
async def test_membership_lifecycle():
    store = make_store()
    service = CommunityService(store, "u1")

    assert await service.is_member("k1") is False
    membership = await service.join_community("k1")
    assert membership.is_active is True
    assert await service.is_member("k1") is True

    await service.join_community("k1")
    assert len(store.rows("community_members")) == 1

    await service.leave_community("k1")
    assert await service.is_member("k1") is False


@pytest.mark.asyncio
async def test_create_post_touches_membership_activity():
    store = make_store()
    service = CommunityService(store, "u1")
    await service.join_community("k1")
    store.rows("community_members")[0]["last_activity"] = "stale"

    post = await service.create_post("k1", "Puzzle feeder", "Mocha loved it", topic="Enrichment")

    assert post.title == "Puzzle feeder"
    assert post.images == []
    assert store.rows("community_members")[0]["last_activity"] != "stale"


@pytest.mark.asyncio
async def test_vote_starts_from_caller_tally():
    store = make_store()

    result = await CommunityService(store, "u1").vote_on_post("p1", 1, current=VoteTally(upvotes=500, downvotes=7))

    assert result.previous == VoteTally(upvotes=500, downvotes=7)
    assert result.speculative == VoteTally(upvotes=501, downvotes=7)
    assert result.tally == VoteTally(upvotes=1, downvotes=0)
    assert result.corrected is True
    assert ("select", "community_posts", {"id": "p1"}) not in store.calls


@pytest.mark.asyncio
async def test_vote_without_caller_tally_reads_stored_counts():
    store = make_store()
    store.rows("community_posts")[0].update(upvotes=3, downvotes=1)
    store.seed("post_votes", *({"user_id": f"v{i}", "post_id": "p1", "vote_type": 1} for i in range(3)))
    store.seed("post_votes", {"user_id": "v9", "post_id": "p1", "vote_type": -1})

    result = await CommunityService(store, "u1").vote_on_post("p1", -1)

    assert result.previous == VoteTally(upvotes=3, downvotes=1)
    assert result.speculative == VoteTally(upvotes=3, downvotes=2)
    assert result.tally == result.speculative
    assert result.corrected is False


@pytest.mark.asyncio
async def test_communities_merge_member_stats():
    store = FakeStore()
    store.seed(
        "communities",
        {"id": "k2", "name": "Rabbits", "icon_name": "rabbit"},
        {"id": "k1", "name": "Dogs", "description": "Woof"},
    )
    store.rpcs["get_community_stats"] = lambda params: [
        {"community_id": "k1", "total_members": 12, "active_members": 4}
    ]

    communities = await CommunityService(store, "u1").get_communities()

    assert [c.name for c in communities] == ["Dogs", "Rabbits"]
    assert (communities[0].members, communities[0].active) == (12, 4)
    assert (communities[1].members, communities[1].active) == (0, 0)


@pytest.mark.asyncio
async def test_user_communities_only_active_memberships():
    store = FakeStore()
    store.seed(
        "community_members",
        {"user_id": "u1", "community_id": "k1", "is_active": True, "joined_at": "2025-01-02",
         "communities": {"id": "k1", "name": "Dogs"}},
        {"user_id": "u1", "community_id": "k2", "is_active": False, "communities": {"id": "k2", "name": "Cats"}},
        {"user_id": "u2", "community_id": "k3", "is_active": True, "communities": {"id": "k3", "name": "Birds"}},
    )

    memberships = await CommunityService(store, "u1").get_user_communities()

    assert len(memberships) == 1
    assert memberships[0].community_id == "k1"
    assert memberships[0].joined_at == "2025-01-02"
    assert memberships[0].community.name == "Dogs"


@pytest.mark.asyncio
async def test_post_listings_are_newest_first():
    store = FakeStore()
    store.seed(
        "community_posts",
        {"id": "a", "community_id": "k1", "title": "Old", "created_at": "2025-01-01", "communities": {"name": "Dogs"}},
        {"id": "b", "community_id": "k2", "title": "Mid", "created_at": "2025-01-02", "communities": {"name": "Cats"}},
        {"id": "c", "community_id": "k1", "title": "New", "created_at": "2025-01-03", "communities": {"name": "Dogs"}},
    )
    service = CommunityService(store, "u1")

    assert [p.id for p in await service.get_community_posts("k1")] == ["c", "a"]
    assert [p.id for p in await service.get_community_posts("k1", limit=1)] == ["c"]

    everything = await service.get_all_posts()
    assert [p.id for p in everything] == ["c", "b", "a"]
    assert everything[1].community_name == "Cats"
