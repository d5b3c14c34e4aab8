# src/unison_stage/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .compat import router as compat_router
from .lyrics import router as lyrics_router
from .system import router as system_router
from .votes import router as votes_router

__all__ = [
    "compat_router",
    "lyrics_router",
    "system_router",
    "votes_router",
]
