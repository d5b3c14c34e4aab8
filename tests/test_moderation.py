# tests/test_moderation.py
"""Tests for report intake and the report penalty."""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy.orm import Session

from unison_stage.core.config import ReputationConfig
from unison_stage.core.errors import LyricsNotFoundError
from unison_stage.models import Lyrics
from unison_stage.services import moderation

STARTING_SCORE = 12


def _score(db: Session, lyrics: Lyrics) -> int:
    lyrics_id = lyrics.id
    db.expire_all()
    return db.get(Lyrics, lyrics_id).score


def _report_times(
    db: Session, lyrics: Lyrics, voter_factory: Any, config: ReputationConfig, times: int
) -> list[moderation.ReportResult]:
    return [
        moderation.submit_report(db, lyrics.id, voter_factory().id, "spam", None, config)
        for _ in range(times)
    ]


def test_report_is_recorded(
    db_session: Session, lyrics_factory: Any, voter_factory: Any, config: ReputationConfig
) -> None:
    """A first report succeeds without touching the score."""
    lyrics = lyrics_factory(score=STARTING_SCORE)

    result = moderation.submit_report(
        db_session, lyrics.id, voter_factory().id, "bad_sync", "Off by two seconds", config
    )

    assert result.success is True
    assert result.message == moderation.REPORT_SUBMITTED
    assert result.penalty_applied is False
    assert moderation.count_reports(db_session, lyrics.id) == 1
    assert _score(db_session, lyrics) == STARTING_SCORE


def test_duplicate_report_is_rejected(
    db_session: Session, lyrics_factory: Any, voter_factory: Any, config: ReputationConfig
) -> None:
    """A voter can report a document only once."""
    lyrics = lyrics_factory()
    voter = voter_factory()
    moderation.submit_report(db_session, lyrics.id, voter.id, "spam", None, config)

    result = moderation.submit_report(db_session, lyrics.id, voter.id, "offensive", None, config)

    assert result.success is False
    assert result.message == moderation.ALREADY_REPORTED
    assert moderation.count_reports(db_session, lyrics.id) == 1


def test_penalty_applied_once_at_threshold(
    db_session: Session, lyrics_factory: Any, voter_factory: Any, config: ReputationConfig
) -> None:
    """Reaching the report threshold deducts the penalty exactly once."""
    lyrics = lyrics_factory(score=STARTING_SCORE)

    results = _report_times(
        db_session, lyrics, voter_factory, config, config.reports_before_penalty + 2
    )

    penalized = [result.penalty_applied for result in results]
    assert penalized.index(True) == config.reports_before_penalty - 1
    assert penalized.count(True) == 1
    assert _score(db_session, lyrics) == STARTING_SCORE - config.penalty_score_deduction


def test_repeat_mode_deducts_on_every_report(
    db_session: Session, lyrics_factory: Any, voter_factory: Any
) -> None:
    """With repeat mode on, every report at or past the threshold deducts."""
    config = ReputationConfig(report_penalty_repeat=True, reports_before_penalty=2)
    lyrics = lyrics_factory(score=STARTING_SCORE)

    _report_times(db_session, lyrics, voter_factory, config, 4)

    assert _score(db_session, lyrics) == STARTING_SCORE - 3 * config.penalty_score_deduction


def test_unknown_document_raises(
    db_session: Session, voter_factory: Any, config: ReputationConfig
) -> None:
    """Reports against missing documents raise LyricsNotFoundError."""
    with pytest.raises(LyricsNotFoundError):
        moderation.submit_report(db_session, 424242, voter_factory().id, "spam", None, config)


def test_unknown_reason_rejected(
    db_session: Session, lyrics_factory: Any, voter_factory: Any, config: ReputationConfig
) -> None:
    """Only the known report reasons are accepted."""
    with pytest.raises(ValueError):
        moderation.submit_report(
            db_session, lyrics_factory().id, voter_factory().id, "boring", None, config
        )
