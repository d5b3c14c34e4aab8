# src/unison_stage/utils/hash.py
"""Hashing helpers built on BLAKE3."""

from __future__ import annotations

from blake3 import blake3


def blake3_hexdigest(data: bytes) -> str:
    """Return the hexadecimal digest of the supplied data."""
    return blake3(data).hexdigest()


def key_id_for(public_key: bytes) -> str:
    """Return the key id (hex BLAKE3 digest) identifying a raw public key."""
    return blake3_hexdigest(public_key)
