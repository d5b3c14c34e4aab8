"""Fixed-window rate limiting keyed by signing key."""

from __future__ import annotations

import time

from unison_stage.core.settings import settings
from unison_stage.services.cache import CacheService, get_cache_service


class RateLimiter:
    """Allow at most `limit` actions per key in each `window_seconds` window."""

    def __init__(
        self,
        cache: CacheService,
        *,
        action: str,
        limit: int,
        window_seconds: int,
    ) -> None:
        self._cache = cache
        self.action = action
        self.limit = limit
        self.window_seconds = window_seconds

    def hit(self, key: str, now: float | None = None) -> bool:
        """Count one action for `key`; return False once the window is exhausted."""
        if self.limit <= 0:
            return True
        current = time.time() if now is None else now
        window = int(current // self.window_seconds)
        count = self._cache.incr(f"rl:{self.action}:{key}:{window}", self.window_seconds)
        return count <= self.limit


def get_submit_rate_limiter() -> RateLimiter:
    """Return the limiter guarding lyric submissions."""
    return RateLimiter(
        get_cache_service(),
        action="submit",
        limit=settings.submit_rate_limit,
        window_seconds=settings.submit_rate_window_seconds,
    )
