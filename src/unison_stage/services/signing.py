"""High-level signed-request workflow used by the API layer."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from unison_stage.core.config import ReputationConfig
from unison_stage.core.errors import SignedRequestError
from unison_stage.models import PublicKey, Voter
from unison_stage.services.crypto import KEY_ID_HEX_LENGTH, CryptoService
from unison_stage.services.replay import ReplayProtectionService
from unison_stage.services.voter_service import get_or_create_voter

logger = logging.getLogger(__name__)

_MIN_NONCE_LENGTH = 16
PUBLIC_KEY_REQUIRED = "PUBLIC_KEY_REQUIRED"


@dataclass(frozen=True)
class SignedRequest:
    """A verified request: the signing key, its voter and the signed payload."""

    key_id: str
    voter: Voter
    payload: dict[str, Any]


def get_public_key(db: Session, key_id: str) -> PublicKey | None:
    """Return the registered key for `key_id`, if any."""
    return db.get(PublicKey, key_id)


def register_public_key(db: Session, key_id: str, public_key: bytes) -> PublicKey:
    """Register a key, resolving concurrent registrations to the stored row."""
    record = PublicKey(key_id=key_id, public_key=public_key)
    db.add(record)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = get_public_key(db, key_id)
        if existing is None:
            raise
        return existing
    return record


def _check_shape(body: Any) -> tuple[dict[str, Any], str, str | None]:
    if not isinstance(body, Mapping):
        raise SignedRequestError("Invalid signed request format")
    payload = body.get("payload")
    signature = body.get("signature")
    public_key = body.get("publicKey")
    if not isinstance(payload, Mapping):
        raise SignedRequestError("Invalid signed request format")
    if not isinstance(signature, str) or not signature:
        raise SignedRequestError("Invalid signed request format")
    timestamp = payload.get("timestamp")
    if isinstance(timestamp, bool) or not isinstance(timestamp, int | float):
        raise SignedRequestError("Invalid signed request format")
    nonce = payload.get("nonce")
    if not isinstance(nonce, str) or len(nonce) < _MIN_NONCE_LENGTH:
        raise SignedRequestError("Invalid signed request format")
    key_id = payload.get("keyId")
    if not isinstance(key_id, str) or len(key_id) != KEY_ID_HEX_LENGTH:
        raise SignedRequestError("Invalid signed request format")
    if public_key is not None and not isinstance(public_key, str):
        raise SignedRequestError("Invalid signed request format")
    return dict(payload), signature, public_key


class SignedRequestVerifier:
    """Verifies signed request bodies and resolves the caller's voter identity.

    A body looks like::

        {"payload": {"timestamp": <ms>, "nonce": "...", "keyId": "<64 hex>", ...},
         "signature": "<base64url>",
         "publicKey": "<base64url, first request only>"}
    """

    def __init__(
        self,
        db: Session,
        replay_service: ReplayProtectionService,
        config: ReputationConfig,
        *,
        tolerance_seconds: int,
        crypto: CryptoService | None = None,
    ) -> None:
        self.db = db
        self.replay_service = replay_service
        self.config = config
        self.tolerance_seconds = tolerance_seconds
        self.crypto = crypto or CryptoService()

    def verify(self, body: Any, now: float | None = None) -> SignedRequest:
        """Verify `body` and return the authenticated request.

        Raises:
            SignedRequestError: If the request is malformed, stale, replayed,
                signed by an unknown key, or carries a bad signature.
        """
        payload, signature_encoded, public_key_encoded = _check_shape(body)
        key_id = str(payload["keyId"]).lower()

        if not self.crypto.is_timestamp_fresh(payload["timestamp"], self.tolerance_seconds, now):
            raise SignedRequestError("Request timestamp expired")

        if not self.replay_service.register_nonce(key_id, payload["nonce"]):
            raise SignedRequestError("Nonce already used")

        record = get_public_key(self.db, key_id)
        if record is None:
            if public_key_encoded is None:
                raise SignedRequestError(PUBLIC_KEY_REQUIRED)
            try:
                public_key = self.crypto.validate_and_decode_pubkey(public_key_encoded)
            except ValueError as err:
                raise SignedRequestError(str(err)) from err
            if not self.crypto.verify_key_id(key_id, public_key):
                raise SignedRequestError("Key ID does not match public key")
            record = register_public_key(self.db, key_id, public_key)
            logger.info("Registered signing key %s", key_id[:12])

        try:
            signature = self.crypto.decode_signature(signature_encoded)
        except ValueError as err:
            raise SignedRequestError("Invalid signature", status_code=403) from err
        if not self.crypto.verify_payload(record.public_key, payload, signature):
            raise SignedRequestError("Invalid signature", status_code=403)

        voter = get_or_create_voter(self.db, key_id, self.config)
        return SignedRequest(key_id=key_id, voter=voter, payload=payload)
