"""
Short-lived OAuth access token cache.

One instance per client (the client is created once per process). The
token is reused until ``leeway`` seconds before expiry, then refreshed
through the supplied fetch coroutine. Concurrent callers share a single
refresh.
"""
from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional

TokenFetcher = Callable[[], Awaitable[tuple[str, float]]]


class TokenCache:
    def __init__(
        self,
        fetch: TokenFetcher,
        *,
        leeway: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetch = fetch
        self._leeway = leeway
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at: float = 0.0
        self._lock = asyncio.Lock()

    def _is_fresh(self) -> bool:
        return self._token is not None and self._clock() < self._expires_at - self._leeway

    async def get_valid_token(self) -> str:
        if self._is_fresh():
            return self._token  # type: ignore[return-value]
        async with self._lock:
            # Another caller may have refreshed while we waited
            if self._is_fresh():
                return self._token  # type: ignore[return-value]
            token, expires_in = await self._fetch()
            self._token = token
            self._expires_at = self._clock() + float(expires_in)
            return token

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0
