"""Identity store: voter lookup, creation and reputation bookkeeping."""
from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.selectable import ScalarSelect

from unison_stage.core.config import ReputationConfig
from unison_stage.core.errors import VoterNotFoundError
from unison_stage.models import LyricsVote, Voter

__all__ = [
    "get_voter",
    "get_or_create_voter",
    "adjust_reputation",
    "refresh_voter_stats",
    "refresh_all_voter_stats",
]


def get_voter(db: Session, voter_id: int) -> Voter | None:
    """Return a single voter by primary key."""
    return db.get(Voter, voter_id)


def get_or_create_voter(db: Session, device_hash: str, config: ReputationConfig) -> Voter:
    """Return the voter for `device_hash`, creating it on first interaction.

    A concurrent request creating the same voter loses the insert race on the
    unique constraint and falls back to the row the winner committed.
    """
    existing = db.scalars(select(Voter).where(Voter.device_hash == device_hash)).first()
    if existing is not None:
        return existing

    voter = Voter(device_hash=device_hash, reputation=config.reputation_default)
    db.add(voter)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = db.scalars(select(Voter).where(Voter.device_hash == device_hash)).first()
        if existing is None:
            raise
        return existing
    db.refresh(voter)
    return voter


def adjust_reputation(
    db: Session, voter_id: int, delta: float, config: ReputationConfig
) -> float:
    """Add `delta` to a voter's reputation, clamped into the configured range.

    Args:
        db: Database session (caller manages commit).
        voter_id: Voter to adjust.
        delta: Signed reputation change.
        config: Engine configuration providing the clamp bounds.

    Returns:
        The voter's reputation after the write.

    Raises:
        VoterNotFoundError: If the voter does not exist.
    """
    voter = get_voter(db, voter_id)
    if voter is None:
        raise VoterNotFoundError(voter_id)
    voter.reputation = config.clamp_reputation(voter.reputation + delta)
    db.flush()
    return voter.reputation


def _avg_vote_subquery(voter_id_column: ColumnElement[int] | int) -> ScalarSelect[float]:
    return (
        select(func.coalesce(func.avg(LyricsVote.direction), 0.0))
        .where(LyricsVote.voter_id == voter_id_column)
        .scalar_subquery()
    )


def _vote_count_subquery(voter_id_column: ColumnElement[int] | int) -> ScalarSelect[int]:
    return (
        select(func.count())
        .select_from(LyricsVote)
        .where(LyricsVote.voter_id == voter_id_column)
        .scalar_subquery()
    )


def refresh_voter_stats(db: Session, voter_id: int) -> None:
    """Recompute one voter's average vote and vote count from the ledger."""
    db.execute(
        update(Voter)
        .where(Voter.id == voter_id)
        .values(
            avg_vote=_avg_vote_subquery(voter_id),
            vote_count=_vote_count_subquery(voter_id),
        )
        .execution_options(synchronize_session="fetch")
    )


def refresh_all_voter_stats(db: Session) -> None:
    """Recompute every voter's average vote and vote count from the ledger."""
    db.execute(
        update(Voter).values(
            avg_vote=_avg_vote_subquery(Voter.id),
            vote_count=_vote_count_subquery(Voter.id),
        )
        .execution_options(synchronize_session="fetch")
    )
