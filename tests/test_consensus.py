# tests/test_consensus.py
"""Tests for consensus feedback on voter reputation."""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from unison_stage.core.config import ReputationConfig
from unison_stage.models import Lyrics, LyricsVote, Voter
from unison_stage.services import consensus
from unison_stage.services.consensus import ConsensusFeedbackEngine

MANY_CYCLES = 40


def _strong_document(
    db: Session,
    lyrics_factory: Any,
    voter_factory: Any,
    *,
    effective_score: float = 0.8,
    directions: tuple[int, ...] = (1, 1, 1, 1, -1),
) -> tuple[Lyrics, list[Voter], Voter]:
    submitter = voter_factory()
    lyrics = lyrics_factory(submitter=submitter)
    voters = [voter_factory() for _ in directions]
    for voter, direction in zip(voters, directions, strict=True):
        db.add(LyricsVote(lyrics_id=lyrics.id, voter_id=voter.id, direction=direction))
    db.add(LyricsVote(lyrics_id=lyrics.id, voter_id=submitter.id, direction=1, is_self_vote=True))
    lyrics.effective_score = effective_score
    lyrics.vote_count = len(directions) + 1
    db.commit()
    return lyrics, voters, submitter


def _reputations(db: Session, voters: list[Voter]) -> list[float]:
    db.expire_all()
    return [db.get(Voter, voter.id).reputation for voter in voters]


def test_agreeing_voters_gain_and_dissenters_lose(
    db_session: Session, lyrics_factory: Any, voter_factory: Any, config: ReputationConfig
) -> None:
    """Voters matching a positive consensus gain the delta; the dissenter loses it."""
    _, voters, _ = _strong_document(db_session, lyrics_factory, voter_factory)

    result = ConsensusFeedbackEngine(config).apply(db_session)

    assert result.adjustments == len(voters)
    assert result.failures == 0
    assert _reputations(db_session, voters) == pytest.approx([1.1, 1.1, 1.1, 1.1, 0.9])


def test_self_votes_are_never_adjusted(
    db_session: Session, lyrics_factory: Any, voter_factory: Any, config: ReputationConfig
) -> None:
    """The submitter's own vote is excluded from feedback."""
    _, _, submitter = _strong_document(db_session, lyrics_factory, voter_factory)

    ConsensusFeedbackEngine(config).apply(db_session)

    assert _reputations(db_session, [submitter]) == pytest.approx([1.0])


def test_negative_consensus_rewards_downvoters(
    db_session: Session, lyrics_factory: Any, voter_factory: Any, config: ReputationConfig
) -> None:
    """For a strongly negative document the downvoters are the consensus."""
    _, voters, _ = _strong_document(
        db_session,
        lyrics_factory,
        voter_factory,
        effective_score=-0.7,
        directions=(-1, -1, -1, -1, 1),
    )

    ConsensusFeedbackEngine(config).apply(db_session)

    assert _reputations(db_session, voters) == pytest.approx([1.1, 1.1, 1.1, 1.1, 0.9])


@pytest.mark.parametrize("effective_score", [0.5, -0.5, 0.2])
def test_weak_consensus_is_ignored(
    db_session: Session,
    lyrics_factory: Any,
    voter_factory: Any,
    config: ReputationConfig,
    effective_score: float,
) -> None:
    """The consensus threshold is exclusive."""
    _strong_document(
        db_session, lyrics_factory, voter_factory, effective_score=effective_score
    )

    result = ConsensusFeedbackEngine(config).apply(db_session)

    assert result.adjustments == 0


def test_too_few_votes_is_ignored(
    db_session: Session, lyrics_factory: Any, voter_factory: Any, config: ReputationConfig
) -> None:
    """Documents below the confidence vote count take no part in feedback."""
    lyrics, _, _ = _strong_document(db_session, lyrics_factory, voter_factory)
    lyrics.vote_count = config.min_votes_for_confidence - 1
    db_session.commit()

    result = ConsensusFeedbackEngine(config).apply(db_session)

    assert result.adjustments == 0


def test_feedback_is_not_idempotent(
    db_session: Session, lyrics_factory: Any, voter_factory: Any, config: ReputationConfig
) -> None:
    """Re-running over unchanged votes applies the deltas again."""
    _, voters, _ = _strong_document(db_session, lyrics_factory, voter_factory)
    engine = ConsensusFeedbackEngine(config)

    engine.apply(db_session)
    first = _reputations(db_session, voters)
    engine.apply(db_session)
    second = _reputations(db_session, voters)

    assert second != first
    assert second == pytest.approx([1.2, 1.2, 1.2, 1.2, 0.8])


def test_reputation_stays_clamped_over_many_cycles(
    db_session: Session, lyrics_factory: Any, voter_factory: Any, config: ReputationConfig
) -> None:
    """Repeated feedback saturates at the bounds and never leaves them."""
    _, voters, _ = _strong_document(db_session, lyrics_factory, voter_factory)
    engine = ConsensusFeedbackEngine(config)

    for _ in range(MANY_CYCLES):
        engine.apply(db_session)
        for reputation in _reputations(db_session, voters):
            assert config.reputation_min <= reputation <= config.reputation_max

    assert _reputations(db_session, voters) == pytest.approx(
        [config.reputation_max] * 4 + [config.reputation_min]
    )


def test_storage_failure_is_counted_and_skipped(
    db_session: Session,
    lyrics_factory: Any,
    voter_factory: Any,
    config: ReputationConfig,
    mocker: Any,
) -> None:
    """One failed adjustment is rolled back without stopping the pass."""
    _, voters, _ = _strong_document(db_session, lyrics_factory, voter_factory)
    real_adjust = consensus.adjust_reputation
    calls = {"count": 0}

    def flaky_adjust(db: Session, voter_id: int, delta: float, cfg: ReputationConfig) -> float:
        calls["count"] += 1
        if calls["count"] == 1:
            raise SQLAlchemyError("database is locked")
        return real_adjust(db, voter_id, delta, cfg)

    mocker.patch.object(consensus, "adjust_reputation", side_effect=flaky_adjust)

    result = ConsensusFeedbackEngine(config).apply(db_session)

    assert result.failures == 1
    assert result.adjustments == len(voters) - 1
    reputations = _reputations(db_session, voters)
    assert reputations[0] == pytest.approx(1.0)
    assert reputations[1:] == pytest.approx([1.1, 1.1, 1.1, 0.9])
