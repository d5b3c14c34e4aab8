# src/unison_stage/models/public_key.py
"""Registered client signing keys."""

from datetime import datetime

from sqlalchemy import DateTime, LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column

from unison_stage.db.session import Base
from unison_stage.db.time import utcnow


class PublicKey(Base):
    """Ed25519 public key registered on its first signed request."""

    __tablename__ = "public_key"

    # BLAKE3 hex digest of the raw key; also used as the voter's device hash.
    key_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    public_key: Mapped[bytes] = mapped_column(LargeBinary(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
