# src/unison_stage/models/vote.py
"""Models capturing voting interactions on lyric documents."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
)
from sqlalchemy.orm import Mapped, mapped_column

from unison_stage.db.session import Base
from unison_stage.db.time import utcnow


class LyricsVote(Base):
    """Per-voter vote on a lyric document.

    Votes are weighted by the voter's reputation when the periodic score
    updater computes the document's effective score.
    """

    __tablename__ = "lyrics_vote"
    __table_args__ = (
        CheckConstraint("direction IN (1, -1)", name="ck_lyrics_vote_direction"),
        Index("ix_lyrics_vote_voter_id", "voter_id"),
        Index("ix_lyrics_vote_created_at", "created_at"),
    )

    lyrics_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("lyrics.id", ondelete="CASCADE"),
        primary_key=True,
    )

    voter_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("voter.id"),
        primary_key=True,
    )

    # Composite primary key prevents duplicate votes from the same voter.

    # 1 = upvote, -1 = downvote.
    direction: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    # Fixed when the vote is first cast, even if the submitter changes later.
    is_self_vote: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
