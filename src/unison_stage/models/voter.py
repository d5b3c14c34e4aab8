# src/unison_stage/models/voter.py
"""SQLAlchemy model for anonymous voter identities."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from unison_stage.db.session import Base
from unison_stage.db.time import utcnow


class Voter(Base):
    """Anonymous identity keyed by the key id of the client's signing key.

    Reputation is written only by the consensus-feedback pass; `avg_vote` and
    `vote_count` are derived from the vote ledger by the statistics refresh.
    """

    __tablename__ = "voter"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    device_hash: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    reputation: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    # Rolling average direction of this voter's votes; negative means a harsh rater.
    avg_vote: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    vote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    @property
    def is_harsh(self) -> bool:
        """Return True when the voter downvotes more than they upvote."""
        return self.avg_vote < 0
