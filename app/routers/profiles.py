from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.deps import get_current_user, get_data_store, get_public_data_store
from app.schemas.profile import (
    UsernameAvailability,
    UsernameSuggestion,
    UsernameSuggestRequest,
    UsernameValidationRead,
)
from app.services.username_service import UsernameService, validate_username

router = APIRouter(prefix="/usernames", tags=["profiles"])


@router.get("/validate", response_model=UsernameValidationRead)
async def validate(username: str = Query(default="")):
    result = validate_username(username)
    return UsernameValidationRead(username=username, valid=result.valid, error=result.error)


@router.get("/available", response_model=UsernameAvailability)
async def available(username: str, store=Depends(get_public_data_store)):
    result = validate_username(username)
    if not result.valid:
        return UsernameAvailability(username=username, valid=False, available=False, error=result.error)
    service = UsernameService(store)
    return UsernameAvailability(username=username, valid=True, available=await service.is_username_available(username))


@router.post("/suggest", response_model=UsernameSuggestion)
async def suggest(payload: UsernameSuggestRequest, user=Depends(get_current_user), store=Depends(get_data_store)):
    service = UsernameService(store)
    username = await service.generate_unique_username(payload.full_name, payload.user_id or user.id)
    if not username:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot derive a username")
    return UsernameSuggestion(username=username)
