from __future__ import annotations

import time
from collections import defaultdict, deque
from fastapi import HTTPException, Request, status

from app.core.config import get_settings


class RateLimiter:
    """Sliding-window limiter keyed by client address.

    Guards the endpoints that write to the data store; reads and the
    donation calculator are not limited.
    """

    def __init__(self, limit: int = 30, window_seconds: int = 60) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self.requests: defaultdict[str, deque] = defaultdict(deque)

    def check(self, request: Request, scope: str = "write") -> None:
        host = request.client.host if request.client else "unknown"
        key = f"{scope}:{host}"
        now = time.time()
        window = self.requests[key]
        while window and now - window[0] > self.window_seconds:
            window.popleft()
        if len(window) >= self.limit:
            raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Rate limit exceeded")
        window.append(now)

    def reset(self) -> None:
        self.requests.clear()


_settings = get_settings()
rate_limiter = RateLimiter(limit=_settings.write_rate_limit, window_seconds=_settings.write_rate_window_seconds)


def limit_writes(request: Request) -> None:
    rate_limiter.check(request)
