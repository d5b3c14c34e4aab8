"""Periodic score cycle: refresh voter stats, rescore documents, apply feedback.

A cycle runs in two phases. The scoring phase commits every document's new
consensus fields one at a time; only once it has finished does the feedback
phase read effective scores and adjust reputations. The reputation changes
therefore affect vote weights from the next cycle on.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import exists, select, union, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from unison_stage.core.config import ReputationConfig
from unison_stage.db.time import utcnow
from unison_stage.models import Lyrics, LyricsVote, Voter
from unison_stage.services.cache import CacheService
from unison_stage.services.consensus import ConsensusFeedbackEngine
from unison_stage.services.lyrics_service import video_cache_key
from unison_stage.services.scoring import ScoreUpdate, ScoringEngine, VoteSnapshot
from unison_stage.services.voter_service import refresh_all_voter_stats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreCycleResult:
    """Counts from one score cycle."""

    updated: int = 0
    failed: int = 0
    adjustments: int = 0
    adjustment_failures: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ScoreUpdater:
    """Drives one scoring cycle against a database session."""

    def __init__(self, config: ReputationConfig, cache: CacheService | None = None) -> None:
        self.config = config
        self.cache = cache
        self.scoring = ScoringEngine(config)
        self.feedback = ConsensusFeedbackEngine(config)

    def select_documents(self, db: Session, now: datetime | None = None) -> list[int]:
        """Return ids of documents due for rescoring.

        A document is due when one of its votes was cast (or flipped) inside
        the trailing window, or when it has votes but was never scored.
        """
        cutoff = (now or utcnow()) - timedelta(seconds=self.config.rescore_window_seconds)
        recently_voted = select(LyricsVote.lyrics_id).where(LyricsVote.created_at > cutoff)
        never_scored = select(Lyrics.id).where(
            Lyrics.score_updated_at.is_(None),
            exists().where(LyricsVote.lyrics_id == Lyrics.id),
        )
        return sorted(db.scalars(union(recently_voted, never_scored)).all())

    def load_votes(self, db: Session, lyrics_id: int) -> list[VoteSnapshot]:
        """Return every live vote on a document joined with its voter's stats."""
        rows = db.execute(
            select(
                LyricsVote.direction,
                Voter.reputation,
                Voter.avg_vote,
                LyricsVote.is_self_vote,
            )
            .join(Voter, Voter.id == LyricsVote.voter_id)
            .where(LyricsVote.lyrics_id == lyrics_id)
        ).all()
        return [
            VoteSnapshot(
                direction=row.direction,
                reputation=row.reputation,
                avg_vote=row.avg_vote,
                is_self_vote=bool(row.is_self_vote),
            )
            for row in rows
        ]

    def persist(self, db: Session, update_: ScoreUpdate, now: datetime) -> None:
        """Write a document's consensus fields and stamp `score_updated_at`."""
        db.execute(
            update(Lyrics)
            .where(Lyrics.id == update_.lyrics_id)
            .values(
                effective_score=update_.effective_score,
                vote_count=update_.vote_count,
                diversity_bonus=update_.diversity_bonus,
                confidence=update_.confidence.value,
                score_updated_at=now,
            )
            .execution_options(synchronize_session="fetch")
        )

    def _invalidate(self, db: Session, lyrics_id: int) -> None:
        if self.cache is None:
            return
        video_id = db.scalar(select(Lyrics.video_id).where(Lyrics.id == lyrics_id))
        if video_id is not None:
            self.cache.delete(video_cache_key(video_id))

    def refresh_voter_stats(self, db: Session) -> bool:
        """Recompute every voter's rolling stats; return False if the write failed."""
        try:
            refresh_all_voter_stats(db)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("Voter stats refresh failed, scoring with stale stats: %s", exc)
            return False
        return True

    def run(self, db: Session, now: datetime | None = None) -> ScoreCycleResult:
        """Run one full cycle and return its counts."""
        now = now or utcnow()
        self.refresh_voter_stats(db)

        try:
            lyrics_ids = self.select_documents(db, now)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Could not select documents for rescoring: %s", exc, exc_info=True)
            return ScoreCycleResult(failed=1)

        updated = 0
        failed = 0
        for lyrics_id in lyrics_ids:
            try:
                votes = self.load_votes(db, lyrics_id)
                if not votes:
                    # Every vote was retracted since selection; keep the stale score.
                    continue
                self.persist(db, self.scoring.calculate(lyrics_id, votes), now)
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                failed += 1
                logger.warning("Score update failed for lyrics %s: %s", lyrics_id, exc)
                continue
            updated += 1
            self._invalidate(db, lyrics_id)

        feedback = self.feedback.apply(db)

        result = ScoreCycleResult(
            updated=updated,
            failed=failed,
            adjustments=feedback.adjustments,
            adjustment_failures=feedback.failures,
        )
        logger.info(
            "Score cycle finished: %s updated, %s failed, %s reputation adjustments",
            result.updated,
            result.failed,
            result.adjustments,
        )
        return result


def run_score_cycle(
    db: Session,
    config: ReputationConfig,
    now: datetime | None = None,
    cache: CacheService | None = None,
) -> ScoreCycleResult:
    """Run one score cycle with a fresh `ScoreUpdater`."""
    return ScoreUpdater(config, cache).run(db, now)
