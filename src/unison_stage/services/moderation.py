# src/unison_stage/services/moderation.py
"""Report intake and the raw-score penalty for heavily reported documents."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from unison_stage.core.config import ReputationConfig
from unison_stage.core.errors import LyricsNotFoundError
from unison_stage.db.time import utcnow
from unison_stage.models import Lyrics, LyricsReport
from unison_stage.models.report import REPORT_REASONS

logger = logging.getLogger(__name__)

REPORT_SUBMITTED = "Report submitted"
ALREADY_REPORTED = "Already reported"


@dataclass(frozen=True)
class ReportResult:
    """Outcome of a report; `penalty_applied` is True when this report cost points."""

    success: bool
    message: str
    penalty_applied: bool = False


def count_reports(db: Session, lyrics_id: int) -> int:
    """Return how many voters have reported a document."""
    return db.scalar(
        select(func.count()).select_from(LyricsReport).where(LyricsReport.lyrics_id == lyrics_id)
    ) or 0


def _apply_penalty(db: Session, lyrics_id: int, config: ReputationConfig) -> bool:
    stmt = update(Lyrics).where(Lyrics.id == lyrics_id)
    if not config.report_penalty_repeat:
        # Conditional on the marker so two concurrent reports cannot both deduct.
        stmt = stmt.where(Lyrics.penalty_applied.is_(False))
    result = db.execute(
        stmt.values(
            score=Lyrics.score - config.penalty_score_deduction,
            penalty_applied=True,
            updated_at=utcnow(),
        ).execution_options(synchronize_session="fetch")
    )
    return bool(result.rowcount)


def submit_report(
    db: Session,
    lyrics_id: int,
    voter_id: int,
    reason: str,
    details: str | None,
    config: ReputationConfig,
) -> ReportResult:
    """Record a voter's report and apply the penalty once the threshold is reached.

    Args:
        db: Database session; committed on success.
        lyrics_id: Document being reported.
        voter_id: Reporting voter.
        reason: One of `REPORT_REASONS`.
        details: Optional free-text explanation.
        config: Engine configuration with the threshold and deduction.

    Returns:
        `ReportResult`; a duplicate report yields a failed "Already reported".

    Raises:
        LyricsNotFoundError: If the document does not exist.
        ValueError: If `reason` is not a known report reason.
    """
    if reason not in REPORT_REASONS:
        raise ValueError(f"Unknown report reason: {reason!r}")
    if db.get(Lyrics, lyrics_id) is None:
        raise LyricsNotFoundError(lyrics_id)

    existing = db.scalars(
        select(LyricsReport).where(
            LyricsReport.lyrics_id == lyrics_id,
            LyricsReport.voter_id == voter_id,
        )
    ).first()
    if existing is not None:
        return ReportResult(success=False, message=ALREADY_REPORTED)

    db.add(LyricsReport(lyrics_id=lyrics_id, voter_id=voter_id, reason=reason, details=details))
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        return ReportResult(success=False, message=ALREADY_REPORTED)

    penalized = False
    report_count = count_reports(db, lyrics_id)
    if report_count >= config.reports_before_penalty:
        penalized = _apply_penalty(db, lyrics_id, config)
        if penalized:
            logger.info(
                "Lyrics %s reached %s reports, deducted %s from raw score",
                lyrics_id,
                report_count,
                config.penalty_score_deduction,
            )

    db.commit()
    return ReportResult(success=True, message=REPORT_SUBMITTED, penalty_applied=penalized)
