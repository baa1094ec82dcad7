from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Follow:
    id: str | None
    follower_id: str | None
    following_id: str
    created_at: str | None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Follow":
        return cls(
            id=row.get("id"),
            follower_id=row.get("follower_id"),
            following_id=row["following_id"],
            created_at=row.get("created_at"),
        )


@dataclass
class FollowListEntry:
    user_id: str
    full_name: str | None
    avatar_url: str | None
    followed_at: str | None


@dataclass
class FollowCounts:
    followers: int
    following: int


@dataclass
class VoteTally:
    upvotes: int = 0
    downvotes: int = 0

    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes

    def with_vote(self, previous: int, current: int) -> "VoteTally":
        """Tally after one voter moves from ``previous`` to ``current``."""
        up = self.upvotes - (previous == 1) + (current == 1)
        down = self.downvotes - (previous == -1) + (current == -1)
        return VoteTally(upvotes=max(0, up), downvotes=max(0, down))

    @classmethod
    def from_row(cls, row: dict[str, Any] | None) -> "VoteTally":
        row = row or {}
        return cls(upvotes=row.get("upvotes") or 0, downvotes=row.get("downvotes") or 0)


@dataclass
class VoteResult:
    """A recorded vote: the tally shown before the write and the recount after it."""

    vote_type: int
    previous_vote: int
    tally: VoteTally
    speculative: VoteTally
    previous: VoteTally

    @property
    def corrected(self) -> bool:
        return self.tally != self.speculative


@dataclass
class Comment:
    id: str
    post_id: str
    user_id: str | None
    content: str
    parent_comment_id: str | None
    created_at: str | None
    upvotes: int = 0
    downvotes: int = 0

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Comment":
        return cls(
            id=row["id"],
            post_id=row["post_id"],
            user_id=row.get("user_id"),
            content=row.get("content") or "",
            parent_comment_id=row.get("parent_comment_id"),
            created_at=row.get("created_at"),
            upvotes=row.get("upvotes") or 0,
            downvotes=row.get("downvotes") or 0,
        )


@dataclass
class CommentThread:
    comment: Comment
    replies: list[Comment] = field(default_factory=list)


@dataclass
class Membership:
    user_id: str
    community_id: str
    is_active: bool
    last_activity: str | None
    joined_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Membership":
        return cls(
            user_id=row["user_id"],
            community_id=row["community_id"],
            is_active=bool(row.get("is_active", True)),
            last_activity=row.get("last_activity"),
            joined_at=row.get("joined_at"),
        )


@dataclass
class Post:
    id: str
    user_id: str | None
    community_id: str | None
    title: str
    content: str
    topic: str | None
    images: list[str] = field(default_factory=list)
    created_at: str | None = None
    upvotes: int = 0
    downvotes: int = 0
    community_name: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Post":
        community = row.get("communities") or {}
        return cls(
            id=row["id"],
            user_id=row.get("user_id"),
            community_id=row.get("community_id"),
            title=row.get("title") or "",
            content=row.get("content") or "",
            topic=row.get("topic"),
            images=list(row.get("images") or []),
            created_at=row.get("created_at"),
            upvotes=row.get("upvotes") or 0,
            downvotes=row.get("downvotes") or 0,
            community_name=community.get("name"),
        )


@dataclass
class Community:
    id: str
    name: str
    description: str | None = None
    icon_name: str | None = None
    members: int = 0
    active: int = 0

    @classmethod
    def from_row(cls, row: dict[str, Any], stats: dict[str, Any] | None = None) -> "Community":
        stats = stats or {}
        return cls(
            id=row["id"],
            name=row.get("name") or "",
            description=row.get("description"),
            icon_name=row.get("icon_name"),
            members=stats.get("total_members") or 0,
            active=stats.get("active_members") or 0,
        )


@dataclass
class UserCommunity:
    community_id: str
    joined_at: str | None
    last_activity: str | None
    community: Community | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "UserCommunity":
        community = row.get("communities")
        return cls(
            community_id=row["community_id"],
            joined_at=row.get("joined_at"),
            last_activity=row.get("last_activity"),
            community=Community.from_row(community) if community else None,
        )
