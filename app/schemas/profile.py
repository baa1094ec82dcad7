from __future__ import annotations

from pydantic import BaseModel


class UsernameValidationRead(BaseModel):
    username: str | None = None
    valid: bool
    error: str | None = None


class UsernameAvailability(BaseModel):
    username: str
    valid: bool
    available: bool
    error: str | None = None


class UsernameSuggestRequest(BaseModel):
    full_name: str | None = None
    user_id: str | None = None


class UsernameSuggestion(BaseModel):
    username: str
