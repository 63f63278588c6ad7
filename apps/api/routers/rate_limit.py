"""Per-client rate limiting for the graph and AI endpoints."""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from fastapi import HTTPException, Request
import redis.asyncio as redis

from routers.client_ip import client_ip

RATE_LIMIT_DETAIL = "Too many requests, please try again later."
_MAX_TRACKED_KEYS = 10_000


class RateLimiter:
    """Sliding-window request counter, one instance per application.

    With the redis backend a fixed-window Redis counter is used and the
    in-memory window only takes over while Redis is unreachable.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: int,
        backend: str = "memory",
        redis_url: Optional[str] = None,
    ):
        self.limit = max(int(limit), 1)
        self.window_seconds = max(int(window_seconds), 1)
        self.backend = backend
        self.redis_url = redis_url
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = asyncio.Lock()

    async def hit(self, key: str) -> bool:
        """Count one request for `key`; False once the quota is exceeded."""
        if self.backend == "redis" and self.redis_url:
            try:
                return await self._hit_redis(key)
            except Exception:
                return await self._hit_local(key)
        return await self._hit_local(key)

    async def _hit_redis(self, key: str) -> bool:
        redis_client = redis.from_url(self.redis_url, decode_responses=True)
        try:
            current = await redis_client.incr(key)
            if current == 1:
                await redis_client.expire(key, self.window_seconds)
        finally:
            await redis_client.aclose()
        return current <= self.limit

    async def _hit_local(self, key: str) -> bool:
        now = time.monotonic()
        cutoff = now - self.window_seconds
        async with self._lock:
            if len(self._hits) > _MAX_TRACKED_KEYS:
                self._drop_idle(cutoff)
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= cutoff:
                hits.popleft()
            hits.append(now)
            return len(hits) <= self.limit

    def _drop_idle(self, cutoff: float) -> None:
        for key in [k for k, hits in self._hits.items() if not hits or hits[-1] <= cutoff]:
            del self._hits[key]

    def reset(self) -> None:
        self._hits.clear()


def rate_limit(prefix: str) -> Callable[[Request], None]:
    """Return a FastAPI dependency that enforces the app's per-client quota."""

    async def _dependency(request: Request):
        if getattr(request.app.state, "disable_rate_limits", False):
            return
        limiter: Optional[RateLimiter] = getattr(request.app.state, "rate_limiter", None)
        if limiter is None:
            return

        key = f"kg:rate:{prefix}:{client_ip(request)}"
        if not await limiter.hit(key):
            raise HTTPException(status_code=429, detail=RATE_LIMIT_DETAIL)

    return _dependency
