"""Reputation-weighted scoring of lyric documents.

The engine is a pure function over vote snapshots. It never touches the
database; the score updater loads the snapshots and persists the result.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from unison_stage.core.config import ReputationConfig


class Confidence(str, Enum):
    """Coarse reliability label for a document's effective score."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class VoteSnapshot:
    """A vote joined with its voter's current reputation and rolling average."""

    direction: int
    reputation: float
    avg_vote: float
    is_self_vote: bool = False


@dataclass(frozen=True)
class ScoreUpdate:
    """Result of scoring one document."""

    lyrics_id: int
    effective_score: float
    vote_count: int
    diversity_bonus: bool
    confidence: Confidence


class ScoringEngine:
    """Turns raw votes into a consensus quality signal."""

    def __init__(self, config: ReputationConfig) -> None:
        self.config = config

    def vote_weight(self, vote: VoteSnapshot) -> float:
        """Return the weight a vote carries: reputation, discounted for self-votes."""
        if vote.is_self_vote:
            return vote.reputation * self.config.self_vote_weight
        return vote.reputation

    def calculate(self, lyrics_id: int, votes: Iterable[VoteSnapshot]) -> ScoreUpdate:
        """Score a document from its current votes.

        Args:
            lyrics_id: Identifier of the document being scored.
            votes: Every live vote on the document.

        Returns:
            The effective score (weighted mean of directions, 0 when the total
            weight is 0), the number of votes considered, whether both harsh and
            generous voters upvoted, and the resulting confidence tier.
        """
        weighted_sum = 0.0
        total_weight = 0.0
        harsh_upvotes = 0
        generous_upvotes = 0
        vote_count = 0

        for vote in votes:
            vote_count += 1
            weight = self.vote_weight(vote)
            weighted_sum += vote.direction * weight
            total_weight += weight

            if vote.direction > 0:
                if vote.avg_vote < 0:
                    harsh_upvotes += 1
                else:
                    generous_upvotes += 1

        effective_score = weighted_sum / total_weight if total_weight > 0 else 0.0
        diversity_bonus = harsh_upvotes > 0 and generous_upvotes > 0

        return ScoreUpdate(
            lyrics_id=lyrics_id,
            effective_score=effective_score,
            vote_count=vote_count,
            diversity_bonus=diversity_bonus,
            confidence=self.confidence_for(vote_count, diversity_bonus),
        )

    def confidence_for(self, vote_count: int, diversity_bonus: bool) -> Confidence:
        """Return the confidence tier for a vote count and diversity outcome."""
        if vote_count < self.config.min_votes_for_confidence:
            return Confidence.LOW
        return Confidence.HIGH if diversity_bonus else Confidence.MEDIUM
