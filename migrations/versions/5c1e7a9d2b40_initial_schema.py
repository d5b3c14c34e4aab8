"""initial schema

Revision ID: 5c1e7a9d2b40
Revises:
Create Date: 2026-10-16 09:12:41.502113

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e7a9d2b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create voters, keys, lyrics, votes and reports."""
    op.create_table(
        "voter",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("device_hash", sa.Text(), nullable=False),
        sa.Column("reputation", sa.Float(), nullable=False),
        sa.Column("avg_vote", sa.Float(), nullable=False),
        sa.Column("vote_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("device_hash"),
    )
    op.create_table(
        "public_key",
        sa.Column("key_id", sa.String(length=64), nullable=False),
        sa.Column("public_key", sa.LargeBinary(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("key_id"),
    )
    op.create_table(
        "lyrics",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("video_id", sa.String(length=64), nullable=False),
        sa.Column("song", sa.Text(), nullable=False),
        sa.Column("artist", sa.Text(), nullable=False),
        sa.Column("album", sa.Text(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("song_norm", sa.Text(), nullable=False),
        sa.Column("artist_norm", sa.Text(), nullable=False),
        sa.Column("lyrics", sa.Text(), nullable=False),
        sa.Column("format", sa.String(length=8), nullable=False),
        sa.Column("language", sa.String(length=32), nullable=True),
        sa.Column("sync_type", sa.String(length=16), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("upvotes", sa.Integer(), nullable=False),
        sa.Column("downvotes", sa.Integer(), nullable=False),
        sa.Column("effective_score", sa.Float(), nullable=False),
        sa.Column("vote_count", sa.Integer(), nullable=False),
        sa.Column("diversity_bonus", sa.Boolean(), nullable=False),
        sa.Column("confidence", sa.String(length=8), nullable=False),
        sa.Column("score_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("penalty_applied", sa.Boolean(), nullable=False),
        sa.Column("submitter_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "confidence IN ('low', 'medium', 'high')", name="ck_lyrics_confidence"
        ),
        sa.ForeignKeyConstraint(["submitter_id"], ["voter.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("video_id"),
    )
    op.create_index("ix_lyrics_song_artist", "lyrics", ["song_norm", "artist_norm"])
    op.create_table(
        "lyrics_vote",
        sa.Column("lyrics_id", sa.Integer(), nullable=False),
        sa.Column("voter_id", sa.Integer(), nullable=False),
        sa.Column("direction", sa.SmallInteger(), nullable=False),
        sa.Column("is_self_vote", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("direction IN (1, -1)", name="ck_lyrics_vote_direction"),
        sa.ForeignKeyConstraint(["lyrics_id"], ["lyrics.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["voter_id"], ["voter.id"]),
        sa.PrimaryKeyConstraint("lyrics_id", "voter_id"),
    )
    op.create_index("ix_lyrics_vote_voter_id", "lyrics_vote", ["voter_id"])
    op.create_index("ix_lyrics_vote_created_at", "lyrics_vote", ["created_at"])
    op.create_table(
        "lyrics_report",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("lyrics_id", sa.Integer(), nullable=False),
        sa.Column("voter_id", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=16), nullable=False),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["lyrics_id"], ["lyrics.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["voter_id"], ["voter.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("lyrics_id", "voter_id", name="uq_lyrics_report_lyrics_voter"),
    )


def downgrade() -> None:
    """Drop every Unison table."""
    op.drop_table("lyrics_report")
    op.drop_index("ix_lyrics_vote_created_at", table_name="lyrics_vote")
    op.drop_index("ix_lyrics_vote_voter_id", table_name="lyrics_vote")
    op.drop_table("lyrics_vote")
    op.drop_index("ix_lyrics_song_artist", table_name="lyrics")
    op.drop_table("lyrics")
    op.drop_table("public_key")
    op.drop_table("voter")
