from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.core.deps import get_current_user, get_data_store
from app.core.rate_limit import limit_writes
from app.schemas.common import StatusResponse
from app.schemas.follow import (
    FollowCountsRead,
    FollowList,
    FollowListEntryRead,
    FollowRead,
    FollowStatus,
    FollowToggleRequest,
    FollowToggleResponse,
)
from app.services.follow_service import FollowService

router = APIRouter(tags=["follows"])


@router.post("/follows/{user_id}", response_model=FollowRead, dependencies=[Depends(limit_writes)])
async def follow(user_id: str, user=Depends(get_current_user), store=Depends(get_data_store)):
    service = FollowService(store, user.id)
    return await service.follow_user(user_id)


@router.delete("/follows/{user_id}", response_model=StatusResponse, dependencies=[Depends(limit_writes)])
async def unfollow(user_id: str, user=Depends(get_current_user), store=Depends(get_data_store)):
    service = FollowService(store, user.id)
    await service.unfollow_user(user_id)
    return StatusResponse()


@router.post("/follows/{user_id}/toggle", response_model=FollowToggleResponse, dependencies=[Depends(limit_writes)])
async def toggle(
    user_id: str,
    payload: FollowToggleRequest,
    user=Depends(get_current_user),
    store=Depends(get_data_store),
):
    service = FollowService(store, user.id)
    return await service.toggle_follow(user_id, payload.currently_following)


@router.get("/follows/{user_id}/status", response_model=FollowStatus)
async def follow_status(user_id: str, user=Depends(get_current_user), store=Depends(get_data_store)):
    if user_id == user.id:
        return FollowStatus(user_id=user_id, following=False)
    service = FollowService(store, user.id)
    return FollowStatus(user_id=user_id, following=await service.is_following(user_id))


@router.get("/users/{user_id}/follow-counts", response_model=FollowCountsRead)
async def follow_counts(user_id: str, user=Depends(get_current_user), store=Depends(get_data_store)):
    service = FollowService(store, user.id)
    return await service.get_counts(user_id)


@router.get("/users/{user_id}/followers", response_model=FollowList)
async def followers(
    user_id: str,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user=Depends(get_current_user),
    store=Depends(get_data_store),
):
    service = FollowService(store, user.id)
    entries = await service.get_followers(user_id, limit=limit, offset=offset)
    return FollowList(users=[FollowListEntryRead.model_validate(e) for e in entries], limit=limit, offset=offset)


@router.get("/users/{user_id}/following", response_model=FollowList)
async def following(
    user_id: str,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user=Depends(get_current_user),
    store=Depends(get_data_store),
):
    service = FollowService(store, user.id)
    entries = await service.get_following(user_id, limit=limit, offset=offset)
    return FollowList(users=[FollowListEntryRead.model_validate(e) for e in entries], limit=limit, offset=offset)
