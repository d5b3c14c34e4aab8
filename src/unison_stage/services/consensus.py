"""Consensus feedback: nudging voter reputation toward strong document consensus.

After scores are refreshed, every document whose effective score is strongly
positive or negative, with enough votes behind it, rewards the voters who
agreed with the consensus and penalizes the ones who did not. Self-votes are
never adjusted.

The pass is not idempotent. Running it twice over unchanged data applies the
deltas twice; reputation only stops moving at the clamp bounds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from unison_stage.core.config import ReputationConfig
from unison_stage.core.errors import VoterNotFoundError
from unison_stage.models import Lyrics, LyricsVote
from unison_stage.services.voter_service import adjust_reputation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedbackResult:
    """Counts from one feedback pass."""

    adjustments: int = 0
    failures: int = 0


class ConsensusFeedbackEngine:
    """Applies per-vote reputation adjustments for strong-consensus documents."""

    def __init__(self, config: ReputationConfig) -> None:
        self.config = config

    def consensus_documents(self, db: Session) -> list[tuple[int, float]]:
        """Return `(lyrics_id, effective_score)` for every strong-consensus document."""
        rows = db.execute(
            select(Lyrics.id, Lyrics.effective_score)
            .where(
                func.abs(Lyrics.effective_score) > self.config.consensus_threshold,
                Lyrics.vote_count >= self.config.min_votes_for_confidence,
            )
            .order_by(Lyrics.id)
        ).all()
        return [(row.id, row.effective_score) for row in rows]

    def delta_for(self, direction: int, consensus: int) -> float:
        """Return the reputation change for a vote given the document consensus."""
        if direction == consensus:
            return self.config.consensus_delta
        return -self.config.consensus_delta

    def apply(self, db: Session) -> FeedbackResult:
        """Run one feedback pass, committing each adjustment on its own.

        A storage failure on one adjustment is rolled back and counted. It does
        not undo adjustments already committed and does not stop the pass.
        """
        adjustments = 0
        failures = 0

        for lyrics_id, effective_score in self.consensus_documents(db):
            consensus = 1 if effective_score > 0 else -1
            votes = db.execute(
                select(LyricsVote.voter_id, LyricsVote.direction)
                .where(
                    LyricsVote.lyrics_id == lyrics_id,
                    LyricsVote.is_self_vote.is_(False),
                )
                .order_by(LyricsVote.voter_id)
            ).all()

            for voter_id, direction in votes:
                delta = self.delta_for(direction, consensus)
                try:
                    adjust_reputation(db, voter_id, delta, self.config)
                    db.commit()
                except (SQLAlchemyError, VoterNotFoundError) as exc:
                    db.rollback()
                    failures += 1
                    logger.warning(
                        "Reputation adjustment failed for voter %s on lyrics %s: %s",
                        voter_id,
                        lyrics_id,
                        exc,
                    )
                    continue
                adjustments += 1

        if adjustments or failures:
            logger.info(
                "Consensus feedback applied %s adjustments (%s failed)", adjustments, failures
            )
        return FeedbackResult(adjustments=adjustments, failures=failures)
