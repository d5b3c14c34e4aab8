# src/unison_stage/models/lyrics.py
"""SQLAlchemy model for submitted lyric documents."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from unison_stage.db.session import Base
from unison_stage.db.time import utcnow

CONFIDENCE_LOW = "low"
CONFIDENCE_MEDIUM = "medium"
CONFIDENCE_HIGH = "high"

LYRICS_FORMATS = ("ttml", "lrc", "plain")
SYNC_TYPES = ("richsync", "linesync", "plain")


class Lyrics(Base):
    """One lyric document per video.

    Raw counters (`score`, `upvotes`, `downvotes`) move synchronously with
    votes and moderation. The consensus fields (`effective_score`,
    `vote_count`, `diversity_bonus`, `confidence`, `score_updated_at`) are
    written only by the periodic score updater.
    """

    __tablename__ = "lyrics"
    __table_args__ = (
        CheckConstraint("confidence IN ('low', 'medium', 'high')", name="ck_lyrics_confidence"),
        Index("ix_lyrics_song_artist", "song_norm", "artist_norm"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    video_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    song: Mapped[str] = mapped_column(Text, nullable=False)
    artist: Mapped[str] = mapped_column(Text, nullable=False)
    album: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Track length in seconds.
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    song_norm: Mapped[str] = mapped_column(Text, nullable=False)
    artist_norm: Mapped[str] = mapped_column(Text, nullable=False)

    # Gzip-compressed, base64-encoded lyric text.
    lyrics: Mapped[str] = mapped_column(Text, nullable=False)
    format: Mapped[str] = mapped_column(String(8), nullable=False)
    language: Mapped[str | None] = mapped_column(String(32), nullable=True)
    sync_type: Mapped[str] = mapped_column(String(16), nullable=False, default="linesync")

    # Raw score: sum of vote directions minus moderation penalties.
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    upvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    effective_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    vote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    diversity_bonus: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    confidence: Mapped[str] = mapped_column(
        String(8), nullable=False, default=CONFIDENCE_LOW
    )
    score_updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Set once the report threshold has cost this document its penalty.
    penalty_applied: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    submitter_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("voter.id"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
