# src/unison_stage/utils/ttml.py
"""Light structural checks for TTML lyric documents."""

from __future__ import annotations

import re
from typing import Literal

SyncType = Literal["richsync", "linesync", "plain"]

_TT_OPEN = re.compile(r"<tt[\s>]", re.IGNORECASE)
_TT_CLOSE = re.compile(r"</tt>", re.IGNORECASE)
_BODY = re.compile(r"<body[\s>/]", re.IGNORECASE)
_DIV = re.compile(r"<div[\s>]", re.IGNORECASE)
_P = re.compile(r"<p[\s>]", re.IGNORECASE)
_SPAN_BEGIN = re.compile(r"<span[^>]*begin=", re.IGNORECASE)
_SPAN_END = re.compile(r"<span[^>]*end=", re.IGNORECASE)
_LINE_BEGIN = re.compile(r"<(?:p|div)[^>]*begin=", re.IGNORECASE)


def validate_ttml_structure(ttml: str) -> bool:
    """Return True if `ttml` has a root element and at least some body content."""
    if not _TT_OPEN.search(ttml) or not _TT_CLOSE.search(ttml):
        return False
    if not _DIV.search(ttml) and not _P.search(ttml) and not _BODY.search(ttml):
        return False
    return True


def detect_sync_type(ttml: str) -> SyncType:
    """Classify TTML as word-synced, line-synced or unsynced."""
    if _SPAN_BEGIN.search(ttml) and _SPAN_END.search(ttml):
        return "richsync"
    if _LINE_BEGIN.search(ttml):
        return "linesync"
    return "plain"
