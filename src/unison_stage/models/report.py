# src/unison_stage/models/report.py
"""Models tracking user reports against lyric documents."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from unison_stage.db.session import Base
from unison_stage.db.time import utcnow

REPORT_REASONS = ("wrong_song", "bad_sync", "offensive", "spam", "other")


class LyricsReport(Base):
    """Audit record showing that a voter flagged a lyric document."""

    __tablename__ = "lyrics_report"
    __table_args__ = (
        UniqueConstraint("lyrics_id", "voter_id", name="uq_lyrics_report_lyrics_voter"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    lyrics_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("lyrics.id", ondelete="CASCADE"),
        nullable=False,
    )
    voter_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("voter.id"),
        nullable=False,
    )
    reason: Mapped[str] = mapped_column(String(16), nullable=False)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
