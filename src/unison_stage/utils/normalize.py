# src/unison_stage/utils/normalize.py
"""String normalization used to match songs and artists across sources."""

from __future__ import annotations

import re
import unicodedata

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")
_BRACKETED = re.compile(r"\s*[(\[].*?[)\]]\s*")
_VIDEO_SUFFIX = re.compile(
    r"\s*[-–—]\s*(official|lyric|audio|video|visualizer|hd|hq|4k|music video).*$",
    re.IGNORECASE,
)
_FEATURING = re.compile(r"\s*\b(feat\.?|ft\.?|featuring)\s+.*", re.IGNORECASE)
_AMPERSAND = re.compile(r"\s*&\s*")


def normalize(value: str) -> str:
    """Lowercase, strip diacritics and punctuation, and collapse whitespace."""
    decomposed = unicodedata.normalize("NFD", value.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    stripped = _NON_WORD.sub("", stripped)
    return _WHITESPACE.sub(" ", stripped).strip()


def normalize_song(song: str) -> str:
    """Normalize a song title, dropping bracketed notes and video suffixes.

    Example:
        >>> normalize_song("Hello (Remastered) - Official Video")
        'hello'
    """
    cleaned = _BRACKETED.sub("", song)
    cleaned = _VIDEO_SUFFIX.sub("", cleaned)
    return normalize(cleaned)


def normalize_artist(artist: str) -> str:
    """Normalize an artist name, dropping featured artists and spelling out '&'."""
    cleaned = _FEATURING.sub("", artist)
    cleaned = _AMPERSAND.sub(" and ", cleaned)
    return normalize(cleaned)
