"""Cryptographic services for Unison signed requests."""

from __future__ import annotations

import base64
import json
import secrets
import time
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from unison_stage.utils.hash import key_id_for

PUBKEY_LENGTH_BYTES = 32
KEY_ID_HEX_LENGTH = 64


class CryptoService:
    """Service handling cryptographic operations."""

    @staticmethod
    def _decode_base64(data: str) -> bytes:
        """Decode a URL-safe base64 string, accepting omitted padding."""
        padding = "=" * (-len(data) % 4)
        try:
            return base64.urlsafe_b64decode(data + padding)
        except Exception as err:
            raise ValueError(f"Invalid base64 encoding: {err}") from err

    @staticmethod
    def _decode_hex(data: str) -> bytes:
        try:
            return bytes.fromhex(data)
        except ValueError as err:
            raise ValueError(f"Invalid hex encoding: {err}") from err

    @staticmethod
    def encode_base64(data: bytes) -> str:
        """Return URL-safe base64 without padding."""
        return base64.urlsafe_b64encode(data).decode().rstrip("=")

    @staticmethod
    def decode_signature(signature_encoded: str) -> bytes:
        """Decode a base64url signature."""
        return CryptoService._decode_base64(signature_encoded.strip())

    @staticmethod
    def validate_and_decode_pubkey(pubkey_encoded: str) -> bytes:
        """Validate and decode an Ed25519 public key given as base64url or hex."""
        cleaned = pubkey_encoded.strip()
        errors: list[str] = []
        for decoder in (
            CryptoService._decode_hex,
            CryptoService._decode_base64,
        ):
            try:
                result = decoder(cleaned)
            except ValueError as err:
                errors.append(str(err))
                continue
            if len(result) != PUBKEY_LENGTH_BYTES:
                errors.append("Ed25519 public keys must be 32 bytes")
                continue
            return result
        joined = "; ".join(errors) if errors else "unknown decoding error"
        raise ValueError(f"Invalid public key format: {joined}")

    @staticmethod
    def canonical_json(payload: Any) -> bytes:
        """Serialize a payload deterministically: sorted keys, compact separators."""
        return json.dumps(
            payload,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        ).encode("utf-8")

    @staticmethod
    def verify_signature_bytes(pubkey_bytes: bytes, message: bytes, signature: bytes) -> bool:
        """Verify an Ed25519 signature over raw bytes."""
        try:
            pubkey = Ed25519PublicKey.from_public_bytes(pubkey_bytes)
            pubkey.verify(signature, message)
            return True
        except (InvalidSignature, ValueError):
            return False

    @staticmethod
    def verify_payload(pubkey_bytes: bytes, payload: Any, signature: bytes) -> bool:
        """Verify a signature over the canonical JSON form of `payload`."""
        return CryptoService.verify_signature_bytes(
            pubkey_bytes, CryptoService.canonical_json(payload), signature
        )

    @staticmethod
    def verify_key_id(key_id: str, pubkey_bytes: bytes) -> bool:
        """Return True if `key_id` is the key id of `pubkey_bytes`."""
        return secrets.compare_digest(key_id.lower(), key_id_for(pubkey_bytes))

    @staticmethod
    def is_timestamp_fresh(
        timestamp_ms: int | float, tolerance_seconds: int, now: float | None = None
    ) -> bool:
        """Return True if a millisecond timestamp lies within the tolerance window."""
        current_ms = (time.time() if now is None else now) * 1000
        return abs(current_ms - timestamp_ms) <= tolerance_seconds * 1000

    @staticmethod
    def generate_key_pair() -> tuple[bytes, bytes]:
        """Generate a new Ed25519 key pair.

        Returns:
            Tuple of (private_key_raw, public_key_raw)
        """
        private_key = Ed25519PrivateKey.generate()
        private_raw = private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        public_raw = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        return private_raw, public_raw

    @staticmethod
    def generate_nonce() -> str:
        """Generate a cryptographically secure nonce.

        Returns:
            Hex-encoded nonce
        """
        return secrets.token_hex(16)

    @staticmethod
    def sign_payload(private_key_bytes: bytes, payload: Any) -> bytes:
        """Sign the canonical JSON form of `payload` with an Ed25519 private key.

        Args:
            private_key_bytes: Raw Ed25519 private key bytes
            payload: JSON-serializable payload

        Returns:
            Raw signature bytes
        """
        try:
            private_key = Ed25519PrivateKey.from_private_bytes(private_key_bytes)
        except ValueError as err:
            raise ValueError(f"Invalid private key: {err}") from err
        return private_key.sign(CryptoService.canonical_json(payload))
