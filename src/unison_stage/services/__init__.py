# src/unison_stage/services/__init__.py
"""Business logic services for the Unison application."""

from .cache import CacheService
from .consensus import ConsensusFeedbackEngine
from .crypto import CryptoService
from .lyrics_service import LyricsService
from .replay import ReplayProtectionService
from .score_updater import ScoreCycleResult, ScoreUpdater, run_score_cycle
from .scoring import ScoringEngine
from .signing import SignedRequestVerifier

__all__ = [
    "CacheService",
    "ConsensusFeedbackEngine",
    "CryptoService",
    "LyricsService",
    "ReplayProtectionService",
    "ScoreCycleResult",
    "ScoreUpdater",
    "ScoringEngine",
    "SignedRequestVerifier",
    "run_score_cycle",
]
