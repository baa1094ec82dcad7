from __future__ import annotations

from pydantic import BaseModel, Field

from app.schemas.common import BaseSchema


class VoteRequest(BaseModel):
    vote_type: int = Field(ge=-1, le=1)
    upvotes: int | None = Field(default=None, ge=0)
    downvotes: int | None = Field(default=None, ge=0)


class VoteTallyRead(BaseSchema):
    upvotes: int
    downvotes: int
    score: int


class VoteResultRead(BaseModel):
    vote_type: int
    previous_vote: int
    upvotes: int
    downvotes: int
    score: int
    speculative: VoteTallyRead
    corrected: bool


class UserVoteRead(BaseModel):
    vote_type: int


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)
    parent_comment_id: str | None = None


class CommentRead(BaseSchema):
    id: str
    post_id: str
    user_id: str | None
    content: str
    parent_comment_id: str | None
    created_at: str | None
    upvotes: int
    downvotes: int


class CommentThreadRead(BaseSchema):
    comment: CommentRead
    replies: list[CommentRead] = Field(default_factory=list)


class CommentList(BaseModel):
    comments: list[CommentThreadRead]


class MembershipRead(BaseSchema):
    user_id: str
    community_id: str
    is_active: bool
    last_activity: str | None
    joined_at: str | None


class MembershipStatus(BaseModel):
    community_id: str
    member: bool


class PostCreate(BaseModel):
    community_id: str | None = None
    title: str = Field(min_length=1, max_length=300)
    content: str = Field(min_length=1)
    topic: str | None = None
    images: list[str] = Field(default_factory=list)


class PostRead(BaseSchema):
    id: str
    user_id: str | None
    community_id: str | None
    title: str
    content: str
    topic: str | None
    images: list[str]
    created_at: str | None
    upvotes: int
    downvotes: int
    community_name: str | None = None


class PostList(BaseModel):
    posts: list[PostRead]


class CommunityRead(BaseSchema):
    id: str
    name: str
    description: str | None
    icon_name: str | None
    members: int
    active: int


class CommunityList(BaseModel):
    communities: list[CommunityRead]


class UserCommunityRead(BaseSchema):
    community_id: str
    joined_at: str | None
    last_activity: str | None
    community: CommunityRead | None


class UserCommunityList(BaseModel):
    communities: list[UserCommunityRead]
