from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt

from app.core.config import get_settings


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify a token issued by the hosted auth provider and return its claims.

    Raises ``jose.JWTError`` on a bad signature, expiry or audience mismatch.
    """
    settings = get_settings()
    return jwt.decode(
        token,
        settings.auth_jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
    )


def create_access_token(subject: str, email: str | None = None, expires_minutes: int = 60) -> str:
    """Mint a token shaped like the auth provider's; used by local tooling and tests."""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    payload: dict[str, Any] = {
        "sub": subject,
        "exp": expire,
        "aud": settings.jwt_audience,
        "role": "authenticated",
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.jwt_algorithm)
