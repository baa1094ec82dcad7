from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.core.deps import get_current_user, get_data_store
from app.core.rate_limit import limit_writes
from app.schemas.common import StatusResponse
from app.schemas.community import (
    CommentCreate,
    CommentList,
    CommentRead,
    CommentThreadRead,
    CommunityList,
    CommunityRead,
    MembershipRead,
    MembershipStatus,
    PostCreate,
    PostList,
    PostRead,
    UserCommunityList,
    UserCommunityRead,
    UserVoteRead,
    VoteRequest,
    VoteResultRead,
    VoteTallyRead,
)
from app.services.community_service import CommunityService
from app.services.providers.types import VoteResult, VoteTally

router = APIRouter(prefix="/community", tags=["community"])


@router.get("/communities", response_model=CommunityList)
async def list_communities(user=Depends(get_current_user), store=Depends(get_data_store)):
    service = CommunityService(store, user.id)
    communities = await service.get_communities()
    return CommunityList(communities=[CommunityRead.model_validate(c) for c in communities])


@router.get("/communities/mine", response_model=UserCommunityList)
async def my_communities(user=Depends(get_current_user), store=Depends(get_data_store)):
    service = CommunityService(store, user.id)
    memberships = await service.get_user_communities()
    return UserCommunityList(communities=[UserCommunityRead.model_validate(m) for m in memberships])


@router.get("/communities/{community_id}/posts", response_model=PostList)
async def community_posts(
    community_id: str,
    limit: int = Query(default=50, ge=1, le=100),
    user=Depends(get_current_user),
    store=Depends(get_data_store),
):
    service = CommunityService(store, user.id)
    posts = await service.get_community_posts(community_id, limit=limit)
    return PostList(posts=[PostRead.model_validate(p) for p in posts])


@router.get("/posts", response_model=PostList)
async def all_posts(
    limit: int = Query(default=50, ge=1, le=100),
    user=Depends(get_current_user),
    store=Depends(get_data_store),
):
    service = CommunityService(store, user.id)
    posts = await service.get_all_posts(limit=limit)
    return PostList(posts=[PostRead.model_validate(p) for p in posts])


@router.post("/posts", response_model=PostRead, dependencies=[Depends(limit_writes)])
async def create_post(payload: PostCreate, user=Depends(get_current_user), store=Depends(get_data_store)):
    service = CommunityService(store, user.id)
    return await service.create_post(
        payload.community_id, payload.title, payload.content, topic=payload.topic, images=payload.images
    )


@router.post("/posts/{post_id}/vote", response_model=VoteResultRead, dependencies=[Depends(limit_writes)])
async def vote_post(post_id: str, payload: VoteRequest, user=Depends(get_current_user), store=Depends(get_data_store)):
    service = CommunityService(store, user.id)
    result = await service.vote_on_post(post_id, payload.vote_type, current=_current_tally(payload))
    return _vote_read(result)


@router.get("/posts/{post_id}/vote", response_model=UserVoteRead)
async def my_post_vote(post_id: str, user=Depends(get_current_user), store=Depends(get_data_store)):
    service = CommunityService(store, user.id)
    return UserVoteRead(vote_type=await service.get_user_post_vote(post_id))


@router.post("/comments/{comment_id}/vote", response_model=VoteResultRead, dependencies=[Depends(limit_writes)])
async def vote_comment(
    comment_id: str, payload: VoteRequest, user=Depends(get_current_user), store=Depends(get_data_store)
):
    service = CommunityService(store, user.id)
    result = await service.vote_on_comment(comment_id, payload.vote_type, current=_current_tally(payload))
    return _vote_read(result)


@router.get("/comments/{comment_id}/vote", response_model=UserVoteRead)
async def my_comment_vote(comment_id: str, user=Depends(get_current_user), store=Depends(get_data_store)):
    service = CommunityService(store, user.id)
    return UserVoteRead(vote_type=await service.get_user_comment_vote(comment_id))


@router.get("/posts/{post_id}/comments", response_model=CommentList)
async def list_comments(post_id: str, user=Depends(get_current_user), store=Depends(get_data_store)):
    service = CommunityService(store, user.id)
    threads = await service.get_post_comments(post_id)
    return CommentList(comments=[CommentThreadRead.model_validate(thread) for thread in threads])


@router.post("/posts/{post_id}/comments", response_model=CommentRead, dependencies=[Depends(limit_writes)])
async def add_comment(
    post_id: str, payload: CommentCreate, user=Depends(get_current_user), store=Depends(get_data_store)
):
    service = CommunityService(store, user.id)
    return await service.create_comment(post_id, payload.content, payload.parent_comment_id)


@router.post("/communities/{community_id}/members", response_model=MembershipRead, dependencies=[Depends(limit_writes)])
async def join(community_id: str, user=Depends(get_current_user), store=Depends(get_data_store)):
    service = CommunityService(store, user.id)
    return await service.join_community(community_id)


@router.delete("/communities/{community_id}/members", response_model=StatusResponse, dependencies=[Depends(limit_writes)])
async def leave(community_id: str, user=Depends(get_current_user), store=Depends(get_data_store)):
    service = CommunityService(store, user.id)
    await service.leave_community(community_id)
    return StatusResponse()


@router.get("/communities/{community_id}/membership", response_model=MembershipStatus)
async def membership(community_id: str, user=Depends(get_current_user), store=Depends(get_data_store)):
    service = CommunityService(store, user.id)
    return MembershipStatus(community_id=community_id, member=await service.is_member(community_id))


def _current_tally(payload: VoteRequest) -> VoteTally | None:
    if payload.upvotes is None and payload.downvotes is None:
        return None
    return VoteTally(upvotes=payload.upvotes or 0, downvotes=payload.downvotes or 0)


def _vote_read(result: VoteResult) -> VoteResultRead:
    return VoteResultRead(
        vote_type=result.vote_type,
        previous_vote=result.previous_vote,
        upvotes=result.tally.upvotes,
        downvotes=result.tally.downvotes,
        score=result.tally.score,
        speculative=VoteTallyRead.model_validate(result.speculative),
        corrected=result.corrected,
    )
