import pytest

from conftest import FakeStore
from app.services.follow_service import FollowService, SelfFollowError
from app.services.providers.data_store import DataStoreError


def make_store(user_id="u1"):
    store = FakeStore(defaults={"follows": {"follower_id": user_id}})

    def is_following(params):
        return any(
            row["follower_id"] == user_id and row["following_id"] == params["following_uuid"]
            for row in store.rows("follows")
        )

    def follower_count(params):
        return sum(1 for row in store.rows("follows") if row["following_id"] == params["user_uuid"])

    def following_count(params):
        return sum(1 for row in store.rows("follows") if row["follower_id"] == params["user_uuid"]) or None

    store.rpcs.update(
        is_following=is_following,
        get_follower_count=follower_count,
        get_following_count=following_count,
    )
    return store


@pytest.mark.asyncio
async def test_follow_then_unfollow():
    store = make_store()
    service = FollowService(store, "u1")

    follow = await service.follow_user("u2")
    assert follow.following_id == "u2"
    assert follow.follower_id == "u1"
    assert await service.is_following("u2") is True
    assert await service.get_follower_count("u2") == 1

    assert await service.unfollow_user("u2") is True
    assert await service.is_following("u2") is False


@pytest.mark.asyncio
async def test_cannot_follow_self():
    service = FollowService(make_store(), "u1")
    with pytest.raises(SelfFollowError):
        await service.follow_user("u1")


@pytest.mark.asyncio
async def test_missing_count_reads_as_zero():
    service = FollowService(make_store(), "u1")
    counts = await service.get_counts("u9")
    assert counts.followers == 0
    assert counts.following == 0


@pytest.mark.asyncio
async def test_followers_are_newest_first_and_paginated():
    store = make_store()
    for index, name in enumerate(["Ana", "Ben", "Cy"]):
        store.seed(
            "follows",
            {
                "follower_id": f"f{index}",
                "following_id": "u2",
                "created_at": f"2025-01-0{index + 1}",
                "follower": {"id": f"f{index}", "user_profiles": {"full_name": name, "avatar_url": None}},
            },
        )
    service = FollowService(store, "u1")

    first_page = await service.get_followers("u2", limit=2)
    assert [entry.full_name for entry in first_page] == ["Cy", "Ben"]
    second_page = await service.get_followers("u2", limit=2, offset=2)
    assert [entry.user_id for entry in second_page] == ["f0"]


@pytest.mark.asyncio
async def test_following_list_reads_profile_from_relation():
    store = make_store()
    store.seed(
        "follows",
        {
            "follower_id": "u1",
            "following_id": "u7",
            "created_at": "2025-02-01",
            "following": {"id": "u7", "user_profiles": [{"full_name": "Sanctuary", "avatar_url": "a.png"}]},
        },
    )
    entries = await FollowService(store, "u1").get_following("u1")
    assert len(entries) == 1
    assert entries[0].full_name == "Sanctuary"
    assert entries[0].avatar_url == "a.png"
    assert entries[0].followed_at == "2025-02-01"


@pytest.mark.asyncio
async def test_toggle_follow_flips_state():
    store = make_store()
    service = FollowService(store, "u1")

    result = await service.toggle_follow("u2", currently_following=False)
    assert result.following is True
    assert result.follower_count == 1

    result = await service.toggle_follow("u2", currently_following=True)
    assert result.following is False
    assert result.follower_count == 0


@pytest.mark.asyncio
async def test_toggle_follow_failure_propagates():
    store = make_store()
    store.fail_writes = True
    service = FollowService(store, "u1")
    with pytest.raises(DataStoreError):
        await service.toggle_follow("u2", currently_following=False)
    assert store.rows("follows") == []


@pytest.mark.asyncio
async def test_unfollow_only_removes_callers_row():
    store = make_store()
    store.seed("follows", {"follower_id": "u3", "following_id": "u2"})
    service = FollowService(store, "u1")
    await service.follow_user("u2")

    await service.unfollow_user("u2")

    assert store.rows("follows") == [{"follower_id": "u3", "following_id": "u2"}]


@pytest.mark.asyncio
async def test_toggle_with_stale_state_does_not_duplicate_follow():
    store = make_store()
    service = FollowService(store, "u1")
    await service.follow_user("u2")

    result = await service.toggle_follow("u2", currently_following=False)

    assert result.following is True
    assert result.stale is True
    assert result.follower_count == 1
    assert len(store.rows("follows")) == 1


@pytest.mark.asyncio
async def test_toggle_with_stale_unfollow_is_a_no_op():
    store = make_store()
    service = FollowService(store, "u1")

    result = await service.toggle_follow("u2", currently_following=True)

    assert result.following is False
    assert result.stale is True
    assert ("delete", "follows") not in store.calls
