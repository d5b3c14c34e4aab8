# tests/test_scoring.py
"""Tests for the reputation-weighted scoring engine."""

from __future__ import annotations

import itertools

import pytest

from unison_stage.core.config import ReputationConfig
from unison_stage.services.scoring import Confidence, ScoringEngine, VoteSnapshot

LYRICS_ID = 7


@pytest.fixture()
def scoring(config: ReputationConfig) -> ScoringEngine:
    return ScoringEngine(config)


def up(reputation: float = 1.0, avg_vote: float = 0.0, *, self_vote: bool = False) -> VoteSnapshot:
    return VoteSnapshot(direction=1, reputation=reputation, avg_vote=avg_vote, is_self_vote=self_vote)


def down(reputation: float = 1.0, avg_vote: float = 0.0) -> VoteSnapshot:
    return VoteSnapshot(direction=-1, reputation=reputation, avg_vote=avg_vote)


def test_empty_vote_list(scoring: ScoringEngine) -> None:
    """No votes yields a neutral, low-confidence score."""
    result = scoring.calculate(LYRICS_ID, [])
    assert result.lyrics_id == LYRICS_ID
    assert result.effective_score == 0.0
    assert result.vote_count == 0
    assert result.diversity_bonus is False
    assert result.confidence is Confidence.LOW


def test_self_vote_counts_half(scoring: ScoringEngine) -> None:
    """A submitter's own upvote carries half its reputation as weight."""
    assert scoring.vote_weight(up(1.0, self_vote=True)) == pytest.approx(0.5)
    assert scoring.vote_weight(up(1.0)) == pytest.approx(1.0)


def test_self_vote_plus_regular_upvote(scoring: ScoringEngine) -> None:
    """[+1 self rep 1, +1 rep 1] averages to 1.0 over weight 1.5."""
    result = scoring.calculate(LYRICS_ID, [up(1.0, self_vote=True), up(1.0)])
    assert result.effective_score == pytest.approx(1.0)
    assert result.vote_count == 2
    assert result.confidence is Confidence.LOW


def test_reputation_weighting(scoring: ScoringEngine) -> None:
    """[+1 rep 2, -1 rep 0.5] gives (2 - 0.5) / 2.5 = 0.6."""
    result = scoring.calculate(LYRICS_ID, [up(2.0), down(0.5)])
    assert result.effective_score == pytest.approx(0.6)


def test_zero_total_weight_scores_zero(scoring: ScoringEngine) -> None:
    """Votes from zero-reputation voters cannot move the score."""
    result = scoring.calculate(LYRICS_ID, [up(0.0), down(0.0), up(0.0)])
    assert result.effective_score == 0.0
    assert result.vote_count == 3


def test_diversity_bonus_needs_harsh_and_generous_upvoters(scoring: ScoringEngine) -> None:
    """Five upvotes from one harsh and four generous voters earn high confidence."""
    votes = [up(avg_vote=-0.2)] + [up(avg_vote=0.4) for _ in range(4)]
    result = scoring.calculate(LYRICS_ID, votes)
    assert result.diversity_bonus is True
    assert result.confidence is Confidence.HIGH


def test_diversity_examples(scoring: ScoringEngine) -> None:
    """One harsh and one generous upvote qualify; a harsh downvote does not."""
    assert scoring.calculate(LYRICS_ID, [up(avg_vote=-0.5), up(avg_vote=0.5)]).diversity_bonus
    mixed = [up(avg_vote=0.5), up(avg_vote=0.3), down(avg_vote=-0.2)]
    assert scoring.calculate(LYRICS_ID, mixed).diversity_bonus is False


def test_only_generous_upvoters_is_medium(scoring: ScoringEngine) -> None:
    """Five generous upvoters reach medium confidence without diversity."""
    result = scoring.calculate(LYRICS_ID, [up(avg_vote=0.5) for _ in range(5)])
    assert result.diversity_bonus is False
    assert result.confidence is Confidence.MEDIUM


def test_harsh_downvote_does_not_count_toward_diversity(scoring: ScoringEngine) -> None:
    """Downvotes never classify their voter for the diversity bonus."""
    votes = [up(avg_vote=0.5) for _ in range(4)] + [down(avg_vote=-0.9)]
    result = scoring.calculate(LYRICS_ID, votes)
    assert result.diversity_bonus is False
    assert result.confidence is Confidence.MEDIUM


def test_zero_average_counts_as_generous(scoring: ScoringEngine) -> None:
    """An average of exactly zero is not harsh."""
    result = scoring.calculate(LYRICS_ID, [up(avg_vote=0.0), up(avg_vote=0.0)])
    assert result.diversity_bonus is False


def test_diversity_below_vote_threshold_stays_low(scoring: ScoringEngine) -> None:
    """Diversity alone cannot lift a document out of low confidence."""
    result = scoring.calculate(LYRICS_ID, [up(avg_vote=-0.5), up(avg_vote=0.5)])
    assert result.diversity_bonus is True
    assert result.confidence is Confidence.LOW


def test_confidence_gating_at_four_and_five_votes(scoring: ScoringEngine) -> None:
    """The confidence threshold is inclusive at the configured minimum."""
    assert scoring.calculate(LYRICS_ID, [up() for _ in range(4)]).confidence is Confidence.LOW
    assert scoring.calculate(LYRICS_ID, [up() for _ in range(5)]).confidence is Confidence.MEDIUM


def test_custom_configuration_is_respected() -> None:
    """Engine parameters come from the configuration it was built with."""
    custom = ScoringEngine(ReputationConfig(self_vote_weight=0.0, min_votes_for_confidence=2))
    result = custom.calculate(LYRICS_ID, [up(1.0, self_vote=True), down(1.0)])
    assert result.effective_score == pytest.approx(-1.0)
    assert result.confidence is Confidence.MEDIUM


def test_effective_score_stays_in_unit_interval(scoring: ScoringEngine) -> None:
    """Every mix of directions and reputations lands in [-1, 1]."""
    reputations = [0.0, 0.3, 1.0, 2.0]
    for combo in itertools.product([1, -1], reputations, [False, True], repeat=2):
        votes = [
            VoteSnapshot(direction=combo[0], reputation=combo[1], avg_vote=0.0, is_self_vote=combo[2]),
            VoteSnapshot(direction=combo[3], reputation=combo[4], avg_vote=0.0, is_self_vote=combo[5]),
        ]
        result = scoring.calculate(LYRICS_ID, votes)
        assert -1.0 <= result.effective_score <= 1.0
