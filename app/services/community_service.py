from __future__ import annotations

from datetime import datetime, timezone

from app.core.logging import get_logger
from app.services.optimistic import OptimisticState
from app.services.providers.data_store import DataStoreClient, RecordNotFound
from app.services.providers.types import (
    Comment,
    CommentThread,
    Community,
    Membership,
    Post,
    UserCommunity,
    VoteResult,
    VoteTally,
)

logger = get_logger()

VALID_VOTES = {-1, 0, 1}


class CommunityError(ValueError):
    pass


class InvalidVoteError(CommunityError):
    pass


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CommunityService:
    def __init__(self, store: DataStoreClient, user_id: str) -> None:
        self.store = store
        self.user_id = user_id

    async def vote_on_post(self, post_id: str, vote_type: int, current: VoteTally | None = None) -> VoteResult:
        return await self._vote(
            vote_table="post_votes",
            target_table="community_posts",
            target_key="post_id",
            target_id=post_id,
            vote_type=vote_type,
            current=current,
        )

    async def vote_on_comment(self, comment_id: str, vote_type: int, current: VoteTally | None = None) -> VoteResult:
        return await self._vote(
            vote_table="comment_votes",
            target_table="post_comments",
            target_key="comment_id",
            target_id=comment_id,
            vote_type=vote_type,
            current=current,
        )

    async def get_user_post_vote(self, post_id: str) -> int:
        return await self._user_vote("post_votes", "post_id", post_id)

    async def get_user_comment_vote(self, comment_id: str) -> int:
        return await self._user_vote("comment_votes", "comment_id", comment_id)

    async def recount_votes(self, vote_table: str, target_table: str, target_key: str, target_id: str) -> VoteTally:
        upvotes = await self.store.select(vote_table, columns="vote_type", filters={target_key: target_id, "vote_type": 1})
        downvotes = await self.store.select(
            vote_table, columns="vote_type", filters={target_key: target_id, "vote_type": -1}
        )
        tally = VoteTally(upvotes=len(upvotes or []), downvotes=len(downvotes or []))
        await self.store.update(
            target_table,
            {"upvotes": tally.upvotes, "downvotes": tally.downvotes},
            {"id": target_id},
        )
        return tally

    async def create_post(
        self,
        community_id: str | None,
        title: str,
        content: str,
        topic: str | None = None,
        images: list[str] | None = None,
    ) -> Post:
        rows = await self.store.insert(
            "community_posts",
            {
                "user_id": self.user_id,
                "community_id": community_id,
                "title": title,
                "content": content,
                "topic": topic,
                "images": images or [],
            },
        )
        if community_id:
            await self.touch_activity(community_id)
        return Post.from_row(rows[0])

    async def get_communities(self) -> list[Community]:
        rows = await self.store.select("communities", order="name")
        stats = await self.store.rpc("get_community_stats") or []
        by_community = {stat["community_id"]: stat for stat in stats}
        return [Community.from_row(row, by_community.get(row["id"])) for row in rows or []]

    async def get_user_communities(self, user_id: str | None = None) -> list[UserCommunity]:
        rows = await self.store.select(
            "community_members",
            columns="community_id,joined_at,last_activity,communities(id,name,description,icon_name)",
            filters={"user_id": user_id or self.user_id, "is_active": True},
        )
        return [UserCommunity.from_row(row) for row in rows or []]

    async def get_community_posts(self, community_id: str, limit: int = 50) -> list[Post]:
        rows = await self.store.select(
            "community_posts",
            filters={"community_id": community_id},
            order="created_at",
            descending=True,
            limit=limit,
        )
        return [Post.from_row(row) for row in rows or []]

    async def get_all_posts(self, limit: int = 50) -> list[Post]:
        rows = await self.store.select(
            "community_posts",
            columns="*,communities(name)",
            order="created_at",
            descending=True,
            limit=limit,
        )
        return [Post.from_row(row) for row in rows or []]

    async def create_comment(self, post_id: str, content: str, parent_comment_id: str | None = None) -> Comment:
        content = content.strip()
        if not content:
            raise CommunityError("Comment cannot be empty")
        rows = await self.store.insert(
            "post_comments",
            {
                "user_id": self.user_id,
                "post_id": post_id,
                "content": content,
                "parent_comment_id": parent_comment_id,
            },
        )
        return Comment.from_row(rows[0])

    async def get_post_comments(self, post_id: str) -> list[CommentThread]:
        rows = await self.store.select(
            "post_comments",
            filters={"post_id": post_id, "parent_comment_id": None},
            order="created_at",
            descending=True,
        )
        threads = []
        for row in rows or []:
            comment = Comment.from_row(row)
            replies = await self.store.select(
                "post_comments",
                filters={"parent_comment_id": comment.id},
                order="created_at",
            )
            threads.append(CommentThread(comment=comment, replies=[Comment.from_row(r) for r in replies or []]))
        return threads

    async def join_community(self, community_id: str) -> Membership:
        rows = await self.store.upsert(
            "community_members",
            {
                "user_id": self.user_id,
                "community_id": community_id,
                "is_active": True,
                "last_activity": _now(),
            },
            on_conflict="user_id,community_id",
        )
        logger.info("community_joined", user_id=self.user_id, community_id=community_id)
        return Membership.from_row(rows[0])

    async def leave_community(self, community_id: str) -> None:
        await self.store.delete("community_members", {"user_id": self.user_id, "community_id": community_id})
        logger.info("community_left", user_id=self.user_id, community_id=community_id)

    async def touch_activity(self, community_id: str) -> None:
        await self.store.update(
            "community_members",
            {"last_activity": _now()},
            {"user_id": self.user_id, "community_id": community_id},
        )

    async def is_member(self, community_id: str) -> bool:
        try:
            await self.store.select(
                "community_members",
                columns="id",
                filters={"user_id": self.user_id, "community_id": community_id, "is_active": True},
                single=True,
            )
        except RecordNotFound:
            return False
        return True

    async def _vote(
        self,
        vote_table: str,
        target_table: str,
        target_key: str,
        target_id: str,
        vote_type: int,
        current: VoteTally | None,
    ) -> VoteResult:
        if vote_type not in VALID_VOTES:
            raise InvalidVoteError(f"vote_type must be one of -1, 0, 1 (got {vote_type})")

        previous_vote = await self._user_vote(vote_table, target_key, target_id)
        if current is None:
            current = await self._stored_tally(target_table, target_id)
        state = OptimisticState(current, label=target_table)

        async def commit() -> VoteTally:
            await self.store.upsert(
                vote_table,
                {"user_id": self.user_id, target_key: target_id, "vote_type": vote_type},
                on_conflict=f"user_id,{target_key}",
            )
            return await self.recount_votes(vote_table, target_table, target_key, target_id)

        outcome = await state.apply(current.with_vote(previous_vote, vote_type), commit)
        if outcome.corrected:
            logger.info(
                "vote_tally_corrected",
                table=target_table,
                target_id=target_id,
                shown=outcome.speculative.score,
                confirmed=outcome.value.score,
            )
        logger.info("vote_recorded", table=vote_table, target_id=target_id, vote_type=vote_type, score=outcome.value.score)
        return VoteResult(
            vote_type=vote_type,
            previous_vote=previous_vote,
            tally=outcome.value,
            speculative=outcome.speculative,
            previous=outcome.previous,
        )

    async def _stored_tally(self, target_table: str, target_id: str) -> VoteTally:
        try:
            row = await self.store.select(
                target_table, columns="upvotes,downvotes", filters={"id": target_id}, single=True
            )
        except RecordNotFound:
            return VoteTally()
        return VoteTally.from_row(row)

    async def _user_vote(self, vote_table: str, target_key: str, target_id: str) -> int:
        try:
            row = await self.store.select(
                vote_table,
                columns="vote_type",
                filters={"user_id": self.user_id, target_key: target_id},
                single=True,
            )
        except RecordNotFound:
            return 0
        return int((row or {}).get("vote_type") or 0)
