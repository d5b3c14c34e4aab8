"""Vote ledger: casting, changing and retracting votes on lyric documents.

Raw counters move synchronously with each vote using single UPDATE statements
built from column expressions (`Lyrics.upvotes + 1`), so concurrent votes on
the same document never lose updates. The effective score is left alone; the
periodic score updater picks the change up on its next cycle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from unison_stage.core.errors import LyricsNotFoundError
from unison_stage.db.time import utcnow
from unison_stage.models import Lyrics, LyricsVote
from unison_stage.services.voter_service import refresh_voter_stats

logger = logging.getLogger(__name__)

VOTE_RECORDED = "Vote recorded"
VOTE_UPDATED = "Vote updated"
VOTE_REMOVED = "Vote removed"
ALREADY_VOTED = "Already voted"
NO_VOTE_TO_REMOVE = "No vote to remove"


@dataclass(frozen=True)
class VoteResult:
    """Outcome of a vote operation; `success=False` marks a non-fatal conflict."""

    success: bool
    message: str


def _validate_direction(direction: int) -> None:
    if direction not in (1, -1):
        raise ValueError(f"Vote direction must be 1 or -1, got {direction!r}")


def _apply_counter_delta(
    db: Session, lyrics_id: int, *, upvotes: int, downvotes: int, score: int
) -> None:
    db.execute(
        update(Lyrics)
        .where(Lyrics.id == lyrics_id)
        .values(
            upvotes=Lyrics.upvotes + upvotes,
            downvotes=Lyrics.downvotes + downvotes,
            score=Lyrics.score + score,
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session="fetch")
    )


def _get_submitter_id(db: Session, lyrics_id: int) -> int | None:
    row = db.execute(select(Lyrics.id, Lyrics.submitter_id).where(Lyrics.id == lyrics_id)).first()
    if row is None:
        raise LyricsNotFoundError(lyrics_id)
    return row.submitter_id


def get_vote(db: Session, lyrics_id: int, voter_id: int) -> LyricsVote | None:
    """Return the live vote for a (document, voter) pair, if any."""
    return db.get(LyricsVote, (lyrics_id, voter_id))


def cast_vote(db: Session, lyrics_id: int, voter_id: int, direction: int) -> VoteResult:
    """Record or change a voter's vote on a document.

    Args:
        db: Database session; committed on success.
        lyrics_id: Document being voted on.
        voter_id: Voter casting the vote.
        direction: 1 for an upvote, -1 for a downvote.

    Returns:
        `VoteResult` with "Vote recorded" for a new vote, "Vote updated" for a
        direction change, or a failed "Already voted" when nothing changed.

    Raises:
        LyricsNotFoundError: If the document does not exist.
        ValueError: If `direction` is not 1 or -1.
    """
    _validate_direction(direction)
    submitter_id = _get_submitter_id(db, lyrics_id)

    existing = get_vote(db, lyrics_id, voter_id)
    if existing is not None:
        if existing.direction == direction:
            return VoteResult(success=False, message=ALREADY_VOTED)

        existing.direction = direction
        # A flip re-enters the rescoring window; the self-vote flag stays as cast.
        existing.created_at = utcnow()
        db.flush()
        _apply_counter_delta(
            db,
            lyrics_id,
            upvotes=direction,
            downvotes=-direction,
            score=2 * direction,
        )
        refresh_voter_stats(db, voter_id)
        db.commit()
        return VoteResult(success=True, message=VOTE_UPDATED)

    db.add(
        LyricsVote(
            lyrics_id=lyrics_id,
            voter_id=voter_id,
            direction=direction,
            is_self_vote=submitter_id is not None and submitter_id == voter_id,
        )
    )
    try:
        db.flush()
    except IntegrityError:
        # Lost the race against a concurrent first vote from the same voter.
        db.rollback()
        logger.info("Concurrent vote on lyrics %s by voter %s rejected", lyrics_id, voter_id)
        return VoteResult(success=False, message=ALREADY_VOTED)

    _apply_counter_delta(
        db,
        lyrics_id,
        upvotes=1 if direction == 1 else 0,
        downvotes=1 if direction == -1 else 0,
        score=direction,
    )
    refresh_voter_stats(db, voter_id)
    db.commit()
    return VoteResult(success=True, message=VOTE_RECORDED)


def remove_vote(db: Session, lyrics_id: int, voter_id: int) -> VoteResult:
    """Retract a voter's vote, reversing its contribution to the raw counters.

    Raises:
        LyricsNotFoundError: If the document does not exist.
    """
    _get_submitter_id(db, lyrics_id)

    existing = get_vote(db, lyrics_id, voter_id)
    if existing is None:
        return VoteResult(success=False, message=NO_VOTE_TO_REMOVE)

    direction = existing.direction
    db.delete(existing)
    db.flush()
    _apply_counter_delta(
        db,
        lyrics_id,
        upvotes=-1 if direction == 1 else 0,
        downvotes=-1 if direction == -1 else 0,
        score=-direction,
    )
    refresh_voter_stats(db, voter_id)
    db.commit()
    return VoteResult(success=True, message=VOTE_REMOVED)


def count_votes(db: Session, lyrics_id: int) -> dict[str, int]:
    """Return live upvote and downvote counts for a document from the ledger."""
    upvotes, downvotes = db.execute(
        select(
            func.coalesce(func.sum(case((LyricsVote.direction == 1, 1), else_=0)), 0),
            func.coalesce(func.sum(case((LyricsVote.direction == -1, 1), else_=0)), 0),
        ).where(LyricsVote.lyrics_id == lyrics_id)
    ).one()
    return {"upvotes": int(upvotes), "downvotes": int(downvotes)}
