"""System and transparency endpoints for Unison API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from unison_stage.api.v1.dependencies import ConfigDep, ScoreWorkerDep, SignedRequestDep
from unison_stage.core.settings import settings
from unison_stage.schemas import ApiResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/system", tags=["system", "transparency"])


@router.get("/config")
async def get_public_config(config: ConfigDep) -> dict[str, object]:
    """Return a sanitized snapshot of the scoring configuration.

    Excludes connection strings; suitable for transparency UIs.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "debug": settings.debug,
        },
        "reputation": {
            "default": config.reputation_default,
            "min": config.reputation_min,
            "max": config.reputation_max,
            "self_vote_weight": config.self_vote_weight,
            "consensus_delta": config.consensus_delta,
            "consensus_threshold": config.consensus_threshold,
            "min_votes_for_confidence": config.min_votes_for_confidence,
        },
        "moderation": {
            "protection_min_score": config.protection_min_score,
            "reports_before_penalty": config.reports_before_penalty,
            "penalty_score_deduction": config.penalty_score_deduction,
            "report_penalty_repeat": config.report_penalty_repeat,
        },
        "scoring": {
            "enabled": settings.score_update_enabled,
            "interval_seconds": settings.score_update_interval_seconds,
            "rescore_window_seconds": config.rescore_window_seconds,
        },
        "limits": {
            "submit_rate_limit": settings.submit_rate_limit,
            "submit_rate_window_seconds": settings.submit_rate_window_seconds,
            "lyrics_max_bytes": settings.lyrics_max_bytes,
            "duration_tolerance_seconds": settings.duration_tolerance_seconds,
            "signed_request_tolerance_seconds": settings.signed_request_tolerance_seconds,
        },
    }


@router.post("/score-update", response_model=ApiResponse[dict[str, int]])
async def trigger_score_update(
    signed: SignedRequestDep,
    worker: ScoreWorkerDep,
) -> ApiResponse[dict[str, int]]:
    """Run a score cycle now and return its counts.

    Only keys listed in `SCORE_UPDATE_OPERATOR_KEYS` may call this. The cycle
    goes through the score worker, so an on-demand run waits for a scheduled
    one instead of overlapping it.
    """
    if signed.key_id not in settings.score_update_operator_keys:
        logger.warning("Score update refused for key %s", signed.key_id[:12])
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Operator key required",
        )
    logger.info("Score update requested by key %s", signed.key_id[:12])
    result = await worker.run_once()
    return ApiResponse(success=True, data=result.to_dict())
