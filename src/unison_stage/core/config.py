"""Immutable engine configuration.

The scoring, consensus and moderation components never read the global
`settings` object directly. They receive a `ReputationConfig` at construction,
which keeps them testable with varied parameters per test.

Example:
    from unison_stage.core.config import ReputationConfig
    config = ReputationConfig(min_votes_for_confidence=3)
    engine = ScoringEngine(config)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from unison_stage.core.settings import Settings, settings


class ReputationConfig(BaseModel):
    """Parameters of the vote -> score -> reputation feedback cycle.

    Attributes:
        reputation_default (float): Reputation assigned to a new voter.
        reputation_min (float): Lower clamp for reputation writes.
        reputation_max (float): Upper clamp for reputation writes.
        self_vote_weight (float): Multiplier applied to a submitter's vote on
            their own document.
        min_votes_for_confidence (int): Votes needed before a document can
            leave the "low" confidence tier or take part in feedback.
        consensus_delta (float): Reputation step applied per qualifying vote.
        consensus_threshold (float): |effective score| a document must exceed
            to count as strong consensus.
        protection_min_score (int): Raw score at which content is locked.
        reports_before_penalty (int): Report count that triggers the penalty.
        penalty_score_deduction (int): Raw score removed by the penalty.
        report_penalty_repeat (bool): Deduct on every report at or above the
            threshold instead of once per document.
        rescore_window_seconds (int): Trailing window for recently voted
            documents.
    """

    model_config = ConfigDict(frozen=True)

    reputation_default: float = 1.0
    reputation_min: float = 0.0
    reputation_max: float = 2.0
    self_vote_weight: float = Field(default=0.5, ge=0.0)
    min_votes_for_confidence: int = Field(default=5, ge=0)
    consensus_delta: float = Field(default=0.1, ge=0.0)
    consensus_threshold: float = Field(default=0.5, ge=0.0)
    protection_min_score: int = 5
    reports_before_penalty: int = Field(default=5, ge=1)
    penalty_score_deduction: int = Field(default=10, ge=0)
    report_penalty_repeat: bool = False
    rescore_window_seconds: int = Field(default=3600, ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> ReputationConfig:
        if self.reputation_min > self.reputation_max:
            raise ValueError("reputation_min must not exceed reputation_max")
        if self.reputation_min < 0:
            raise ValueError("reputation_min must be non-negative")
        if not self.reputation_min <= self.reputation_default <= self.reputation_max:
            raise ValueError("reputation_default must lie within [reputation_min, reputation_max]")
        return self

    def clamp_reputation(self, value: float) -> float:
        """Return `value` clamped into the configured reputation range."""
        return max(self.reputation_min, min(self.reputation_max, value))

    @classmethod
    def from_settings(cls, source: Settings) -> ReputationConfig:
        """Build the engine configuration from application settings."""
        return cls(
            reputation_default=source.reputation_default,
            reputation_min=source.reputation_min,
            reputation_max=source.reputation_max,
            self_vote_weight=source.self_vote_weight,
            min_votes_for_confidence=source.min_votes_for_confidence,
            consensus_delta=source.consensus_delta,
            consensus_threshold=source.consensus_threshold,
            protection_min_score=source.protection_min_score,
            reports_before_penalty=source.reports_before_penalty,
            penalty_score_deduction=source.penalty_score_deduction,
            report_penalty_repeat=source.report_penalty_repeat,
            rescore_window_seconds=source.rescore_window_seconds,
        )


def get_reputation_config() -> ReputationConfig:
    """Return the engine configuration derived from the process settings."""
    return ReputationConfig.from_settings(settings)
