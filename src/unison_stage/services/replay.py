"""Replay protection for signed requests."""

from __future__ import annotations

from unison_stage.core.settings import settings
from unison_stage.services.cache import CacheService, get_cache_service


class ReplayProtectionService:
    """Service preventing replay attacks using client nonces."""

    def __init__(self, cache: CacheService, ttl_seconds: int | None = None) -> None:
        self._cache = cache
        self._ttl_seconds = ttl_seconds or settings.nonce_ttl_seconds

    @staticmethod
    def _key(key_id: str, nonce: str) -> str:
        return f"nonce:{key_id}:{nonce}"

    def is_replay(self, key_id: str, nonce: str) -> bool:
        """Return True if the nonce has already been used by the caller."""
        return self._cache.get(self._key(key_id, nonce)) is not None

    def register_nonce(self, key_id: str, nonce: str) -> bool:
        """Record a nonce as used; return False if it was already recorded.

        The nonce is stored before the signature is checked so two requests
        racing with the same nonce cannot both pass.
        """
        return self._cache.add(self._key(key_id, nonce), "1", self._ttl_seconds)


def get_replay_service() -> ReplayProtectionService:
    """Return a replay protection service bound to the shared cache."""
    return ReplayProtectionService(get_cache_service())
