from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.core.logging import get_logger
from app.services.optimistic import OptimisticState
from app.services.providers.data_store import DataStoreClient
from app.services.providers.types import Follow, FollowCounts, FollowListEntry

logger = get_logger()

FOLLOWER_COLUMNS = "follower_id,created_at,follower:follows_follower_id_fkey(id,user_profiles!inner(full_name,avatar_url))"
FOLLOWING_COLUMNS = "following_id,created_at,following:follows_following_id_fkey(id,user_profiles!inner(full_name,avatar_url))"


class SelfFollowError(ValueError):
    pass


@dataclass
class FollowToggleResult:
    following: bool
    follower_count: int
    stale: bool = False


class FollowService:
    def __init__(self, store: DataStoreClient, user_id: str) -> None:
        self.store = store
        self.user_id = user_id

    async def follow_user(self, following_id: str) -> Follow:
        if following_id == self.user_id:
            raise SelfFollowError("Users cannot follow themselves")
        rows = await self.store.insert("follows", {"following_id": following_id})
        logger.info("follow_created", follower_id=self.user_id, following_id=following_id)
        if rows:
            return Follow.from_row(rows[0])
        return Follow(id=None, follower_id=self.user_id, following_id=following_id, created_at=None)

    async def unfollow_user(self, following_id: str) -> bool:
        await self.store.delete("follows", {"follower_id": self.user_id, "following_id": following_id})
        logger.info("follow_removed", follower_id=self.user_id, following_id=following_id)
        return True

    async def is_following(self, following_id: str) -> bool:
        result = await self.store.rpc("is_following", {"following_uuid": following_id})
        return bool(result)

    async def get_follower_count(self, user_id: str) -> int:
        return int(await self.store.rpc("get_follower_count", {"user_uuid": user_id}) or 0)

    async def get_following_count(self, user_id: str) -> int:
        return int(await self.store.rpc("get_following_count", {"user_uuid": user_id}) or 0)

    async def get_counts(self, user_id: str) -> FollowCounts:
        return FollowCounts(
            followers=await self.get_follower_count(user_id),
            following=await self.get_following_count(user_id),
        )

    async def get_followers(self, user_id: str, limit: int = 20, offset: int = 0) -> list[FollowListEntry]:
        rows = await self.store.select(
            "follows",
            columns=FOLLOWER_COLUMNS,
            filters={"following_id": user_id},
            order="created_at",
            descending=True,
            limit=limit,
            offset=offset,
        )
        return [_entry(row, "follower_id", "follower") for row in rows or []]

    async def get_following(self, user_id: str, limit: int = 20, offset: int = 0) -> list[FollowListEntry]:
        rows = await self.store.select(
            "follows",
            columns=FOLLOWING_COLUMNS,
            filters={"follower_id": user_id},
            order="created_at",
            descending=True,
            limit=limit,
            offset=offset,
        )
        return [_entry(row, "following_id", "following") for row in rows or []]

    async def toggle_follow(self, following_id: str, currently_following: bool) -> FollowToggleResult:
        """Move the follow to the opposite of what the caller last saw.

        The store is checked first, so a stale ``currently_following`` does not
        produce a duplicate insert or a no-op delete.
        """
        actual = await self.is_following(following_id)
        wanted = not currently_following
        state = OptimisticState(currently_following, label="follow")

        async def commit() -> bool:
            if wanted and not actual:
                await self.follow_user(following_id)
            elif actual and not wanted:
                await self.unfollow_user(following_id)
            return wanted

        outcome = await state.apply(wanted, commit)
        stale = actual != outcome.previous
        if stale:
            logger.info("follow_toggle_stale", follower_id=self.user_id, following_id=following_id, actual=actual)
        return FollowToggleResult(
            following=outcome.value,
            follower_count=await self.get_follower_count(following_id),
            stale=stale,
        )


def _entry(row: dict[str, Any], id_key: str, relation: str) -> FollowListEntry:
    related = row.get(relation) or {}
    profiles = related.get("user_profiles") or {}
    if isinstance(profiles, list):
        profiles = profiles[0] if profiles else {}
    return FollowListEntry(
        user_id=row[id_key],
        full_name=profiles.get("full_name"),
        avatar_url=profiles.get("avatar_url"),
        followed_at=row.get("created_at"),
    )
