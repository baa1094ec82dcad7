from __future__ import annotations

from pydantic import BaseModel, Field

from app.schemas.common import BaseSchema


class FollowRead(BaseSchema):
    id: str | None
    follower_id: str | None
    following_id: str
    created_at: str | None


class FollowStatus(BaseModel):
    user_id: str
    following: bool


class FollowToggleRequest(BaseModel):
    currently_following: bool


class FollowToggleResponse(BaseSchema):
    following: bool
    follower_count: int
    stale: bool = False


class FollowCountsRead(BaseSchema):
    followers: int
    following: int


class FollowListEntryRead(BaseSchema):
    user_id: str
    full_name: str | None
    avatar_url: str | None
    followed_at: str | None


class FollowList(BaseModel):
    users: list[FollowListEntryRead] = Field(default_factory=list)
    limit: int
    offset: int
