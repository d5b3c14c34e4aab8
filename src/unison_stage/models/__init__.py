# src/unison_stage/models/__init__.py
"""SQLAlchemy models for the Unison application."""

from .lyrics import Lyrics
from .public_key import PublicKey
from .report import LyricsReport
from .vote import LyricsVote
from .voter import Voter

__all__ = [
    "Lyrics",
    "LyricsReport",
    "LyricsVote",
    "PublicKey",
    "Voter",
]
