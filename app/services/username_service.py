from __future__ import annotations

import re
import time
from dataclasses import dataclass

from app.core.logging import get_logger
from app.services.providers.data_store import DataStoreClient, RecordNotFound

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
MIN_LENGTH = 3
MAX_LENGTH = 30
BASE_LENGTH = 20
MAX_ATTEMPTS = 100

logger = get_logger()


@dataclass
class UsernameValidation:
    valid: bool
    error: str | None = None


def validate_username(username: str | None) -> UsernameValidation:
    if not username:
        return UsernameValidation(False, "Username is required")
    if len(username) < MIN_LENGTH:
        return UsernameValidation(False, f"Username must be at least {MIN_LENGTH} characters")
    if len(username) > MAX_LENGTH:
        return UsernameValidation(False, f"Username must be less than {MAX_LENGTH} characters")
    if not USERNAME_PATTERN.match(username):
        return UsernameValidation(False, "Username can only contain letters, numbers, and underscores")
    return UsernameValidation(True)


def base_username(full_name: str | None, user_id: str | None) -> str | None:
    cleaned = re.sub(r"[^a-z0-9]", "", (full_name or "").lower())[:BASE_LENGTH]
    if cleaned:
        return cleaned
    if user_id:
        return f"user_{user_id[:8]}"
    return None


class UsernameService:
    def __init__(self, store: DataStoreClient) -> None:
        self.store = store

    async def is_username_available(self, username: str) -> bool:
        try:
            await self.store.select(
                "user_profiles", columns="username", filters={"username": username}, single=True
            )
        except RecordNotFound:
            return True
        return False

    async def generate_unique_username(self, full_name: str | None, user_id: str | None) -> str | None:
        base = base_username(full_name, user_id)
        if base is None:
            return None

        candidate = base
        for counter in range(1, MAX_ATTEMPTS):
            if await self.is_username_available(candidate):
                return candidate
            candidate = f"{base}{counter}"

        logger.info("username_fallback", base=base)
        return f"{base}_{int(time.time() * 1000)}"
