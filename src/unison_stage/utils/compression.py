# src/unison_stage/utils/compression.py
"""Compression helpers for lyric text stored in the database and cache."""

from __future__ import annotations

import base64
import binascii
import gzip

_GZIP_MAGIC = b"\x1f\x8b"
_MIN_ENCODED_LENGTH = 10


def compress(text: str) -> str:
    """Gzip `text` and return it base64-encoded."""
    return base64.b64encode(gzip.compress(text.encode("utf-8"))).decode("ascii")


def decompress(encoded: str) -> str:
    """Reverse `compress`."""
    return gzip.decompress(base64.b64decode(encoded)).decode("utf-8")


def is_compressed(value: str) -> bool:
    """Return True if `value` looks like the output of `compress`."""
    if len(value) < _MIN_ENCODED_LENGTH:
        return False
    try:
        head = base64.b64decode(value[:8], validate=True)
    except (binascii.Error, ValueError):
        return False
    return head[:2] == _GZIP_MAGIC


def ensure_decompressed(value: str) -> str:
    """Return plain text whether or not `value` is compressed."""
    return decompress(value) if is_compressed(value) else value
