# tests/test_utils.py
"""Tests for normalization, compression, TTML checks and key ids."""

from __future__ import annotations

import pytest

from unison_stage.services.crypto import CryptoService
from unison_stage.utils.compression import (
    compress,
    decompress,
    ensure_decompressed,
    is_compressed,
)
from unison_stage.utils.hash import key_id_for
from unison_stage.utils.normalize import normalize, normalize_artist, normalize_song
from unison_stage.utils.ttml import detect_sync_type, validate_ttml_structure


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Hello (Remastered) - Official Video", "hello"),
        ("Rolling in the Deep [Live]", "rolling in the deep"),
        ("Déjà   Vu!", "deja vu"),
        ("Someone Like You - Lyric Video HD", "someone like you"),
    ],
)
def test_normalize_song(raw: str, expected: str) -> None:
    assert normalize_song(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Adele feat. Someone", "adele"),
        ("Simon & Garfunkel", "simon and garfunkel"),
        ("Daft Punk ft Pharrell", "daft punk"),
        ("  BEYONCÉ ", "beyonce"),
    ],
)
def test_normalize_artist(raw: str, expected: str) -> None:
    assert normalize_artist(raw) == expected


def test_normalize_collapses_whitespace_and_punctuation() -> None:
    assert normalize("  Don't\tStop   Me, Now ") == "dont stop me now"


def test_compression_round_trip_and_detection() -> None:
    text = "[00:01.00]Hello from the other side\n" * 20
    encoded = compress(text)

    assert is_compressed(encoded)
    assert len(encoded) < len(text)
    assert decompress(encoded) == text
    assert ensure_decompressed(encoded) == text


@pytest.mark.parametrize("value", ["plain lyric line", "short", "<tt><body/></tt>", ""])
def test_plain_text_is_not_compressed(value: str) -> None:
    assert not is_compressed(value)
    assert ensure_decompressed(value) == value


def test_validate_ttml_structure() -> None:
    assert validate_ttml_structure("<tt><body><p>Hi</p></body></tt>")
    assert not validate_ttml_structure("<tt></tt>")
    assert not validate_ttml_structure("<body><p>Hi</p></body>")


@pytest.mark.parametrize(
    ("ttml", "expected"),
    [
        (
            '<tt><body><p begin="1s" end="2s"><span begin="1s" end="1.5s">Hi</span></p>'
            "</body></tt>",
            "richsync",
        ),
        ('<tt><body><p begin="1s" end="2s">Hi</p></body></tt>', "linesync"),
        ("<tt><body><p>Hi</p></body></tt>", "plain"),
    ],
)
def test_detect_sync_type(ttml: str, expected: str) -> None:
    assert detect_sync_type(ttml) == expected


def test_key_id_is_stable_blake3_hex() -> None:
    _, public_key = CryptoService.generate_key_pair()

    key_id = key_id_for(public_key)

    assert len(key_id) == 64
    assert key_id == key_id_for(public_key)
    assert CryptoService.verify_key_id(key_id.upper(), public_key)


def test_canonical_json_ignores_key_order() -> None:
    assert CryptoService.canonical_json({"b": 1, "a": "é"}) == CryptoService.canonical_json(
        {"a": "é", "b": 1}
    )
    assert CryptoService.canonical_json({"a": 1, "b": [1, 2]}) == b'{"a":1,"b":[1,2]}'


def test_sign_and_verify_payload() -> None:
    private_key, public_key = CryptoService.generate_key_pair()
    payload = {"nonce": CryptoService.generate_nonce(), "direction": 1}

    signature = CryptoService.sign_payload(private_key, payload)

    assert CryptoService.verify_payload(public_key, payload, signature)
    assert not CryptoService.verify_payload(public_key, {**payload, "direction": -1}, signature)


def test_timestamp_freshness() -> None:
    now = 1_700_000_000.0
    assert CryptoService.is_timestamp_fresh(now * 1000, 300, now)
    assert CryptoService.is_timestamp_fresh((now + 299) * 1000, 300, now)
    assert not CryptoService.is_timestamp_fresh((now - 301) * 1000, 300, now)
