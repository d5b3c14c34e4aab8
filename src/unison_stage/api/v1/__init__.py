# src/unison_stage/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    compat_router,
    lyrics_router,
    system_router,
    votes_router,
)

__all__ = [
    "compat_router",
    "lyrics_router",
    "system_router",
    "votes_router",
]
