"""Key-value cache with TTL for lookups, nonces and rate limiting.

Backed by Redis when `CACHE_BACKEND=redis`; otherwise, and whenever Redis stops
answering, entries live in an in-process store guarded by a lock.
"""

from __future__ import annotations

import logging
import time
from threading import Lock
from typing import Any

import redis
from redis.exceptions import RedisError

from unison_stage.core.settings import settings

logger = logging.getLogger(__name__)

# Writes between sweeps of expired in-process entries.
_SWEEP_EVERY = 256


class CacheService:
    """Small TTL cache facade shared by the lyrics, replay and rate-limit services."""

    def __init__(self, redis_client: Any | None = None) -> None:
        self._redis = redis_client
        self._store: dict[str, tuple[str, float | None]] = {}
        self._lock = Lock()
        self._writes = 0

    @property
    def uses_redis(self) -> bool:
        """Return True while a Redis client is serving requests."""
        return self._redis is not None

    def _drop_redis(self, exc: Exception) -> None:
        logger.warning("Redis cache unavailable, using in-process store: %s", exc)
        self._redis = None

    def _live_entry(self, key: str, now: float) -> str | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expiry = entry
        if expiry is not None and expiry <= now:
            self._store.pop(key, None)
            return None
        return value

    def _record_write(self, now: float) -> None:
        """Count an in-process write and sweep expired entries every `_SWEEP_EVERY`.

        Must be called with `_lock` held.
        """
        self._writes += 1
        if self._writes >= _SWEEP_EVERY:
            self._writes = 0
            self._purge_locked(now)

    def _purge_locked(self, now: float) -> int:
        expired = [
            key
            for key, (_, expiry) in self._store.items()
            if expiry is not None and expiry <= now
        ]
        for key in expired:
            del self._store[key]
        return len(expired)

    def purge_expired(self, now: float | None = None) -> int:
        """Drop expired in-process entries, including keys never read again."""
        with self._lock:
            return self._purge_locked(time.time() if now is None else now)

    def get(self, key: str) -> str | None:
        """Return the cached value for `key`, or None when absent or expired."""
        if self._redis is not None:
            try:
                raw = self._redis.get(key)
                if raw is None:
                    return None
                return raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)
            except RedisError as exc:
                self._drop_redis(exc)

        with self._lock:
            return self._live_entry(key, time.time())

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        """Store `value` under `key`, expiring after `ttl_seconds` when given."""
        if self._redis is not None:
            try:
                self._redis.set(key, value, ex=ttl_seconds if ttl_seconds else None)
                return
            except RedisError as exc:
                self._drop_redis(exc)

        now = time.time()
        expiry = now + ttl_seconds if ttl_seconds else None
        with self._lock:
            self._store[key] = (value, expiry)
            self._record_write(now)

    def add(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Store `value` only if `key` is absent; return True if it was stored."""
        if self._redis is not None:
            try:
                return bool(self._redis.set(key, value, ex=ttl_seconds, nx=True))
            except RedisError as exc:
                self._drop_redis(exc)

        now = time.time()
        with self._lock:
            if self._live_entry(key, now) is not None:
                return False
            self._store[key] = (value, now + ttl_seconds)
            self._record_write(now)
            return True

    def delete(self, key: str) -> None:
        """Remove `key` if present."""
        if self._redis is not None:
            try:
                self._redis.delete(key)
                return
            except RedisError as exc:
                self._drop_redis(exc)

        with self._lock:
            self._store.pop(key, None)

    def incr(self, key: str, ttl_seconds: int) -> int:
        """Increment a counter, starting its TTL window on first increment."""
        if self._redis is not None:
            try:
                count = int(self._redis.incr(key))
                if count == 1:
                    self._redis.expire(key, ttl_seconds)
                return count
            except RedisError as exc:
                self._drop_redis(exc)

        now = time.time()
        with self._lock:
            current = self._live_entry(key, now)
            count = int(current) + 1 if current is not None else 1
            expiry = self._store[key][1] if current is not None else now + ttl_seconds
            self._store[key] = (str(count), expiry)
            self._record_write(now)
            return count

    def clear(self) -> None:
        """Drop every in-process entry."""
        with self._lock:
            self._store.clear()


def build_cache_service() -> CacheService:
    """Create a cache service for the configured backend."""
    if settings.cache_backend == "redis":
        try:
            client = redis.from_url(settings.redis_url)
            client.ping()
        except RedisError as exc:
            logger.warning("Could not connect to Redis at startup: %s", exc)
            return CacheService()
        return CacheService(client)
    return CacheService()


_cache_service: CacheService | None = None
_cache_lock = Lock()


def get_cache_service() -> CacheService:
    """Return the process-wide cache service, creating it on first use."""
    global _cache_service
    with _cache_lock:
        if _cache_service is None:
            _cache_service = build_cache_service()
        return _cache_service
