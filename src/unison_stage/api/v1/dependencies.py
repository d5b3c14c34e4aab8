"""Shared API dependencies: sessions, services and signed-request verification."""

from json import JSONDecodeError
from typing import Annotated, Any, TypeVar

from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from unison_stage.core.config import ReputationConfig, get_reputation_config
from unison_stage.core.errors import SignedRequestError
from unison_stage.core.settings import settings
from unison_stage.db.session import get_db
from unison_stage.services.cache import CacheService, get_cache_service
from unison_stage.services.lyrics_service import LyricsService
from unison_stage.services.rate_limit import RateLimiter, get_submit_rate_limiter
from unison_stage.services.replay import ReplayProtectionService, get_replay_service
from unison_stage.services.score_worker import ScoreUpdateWorker
from unison_stage.services.signing import SignedRequest, SignedRequestVerifier

ModelT = TypeVar("ModelT", bound=BaseModel)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_cache_service_dep() -> CacheService:
    """Return the shared cache service."""
    return get_cache_service()


def get_replay_service_dep() -> ReplayProtectionService:
    """Return the shared replay protection service."""
    return get_replay_service()


def get_config_dep() -> ReputationConfig:
    """Return the engine configuration built from settings."""
    return get_reputation_config()


def get_submit_rate_limiter_dep() -> RateLimiter:
    """Return the limiter guarding lyric submissions."""
    return get_submit_rate_limiter()


CacheDep = Annotated[CacheService, Depends(get_cache_service_dep)]
ReplayServiceDep = Annotated[ReplayProtectionService, Depends(get_replay_service_dep)]
ConfigDep = Annotated[ReputationConfig, Depends(get_config_dep)]
SubmitRateLimiterDep = Annotated[RateLimiter, Depends(get_submit_rate_limiter_dep)]


def get_lyrics_service(db: SessionDep, cache: CacheDep, config: ConfigDep) -> LyricsService:
    """Return a document registry bound to the request's session."""
    return LyricsService(
        db,
        cache,
        config,
        cache_ttl_seconds=settings.cache_ttl_seconds,
        duration_tolerance=settings.duration_tolerance_seconds,
    )


LyricsServiceDep = Annotated[LyricsService, Depends(get_lyrics_service)]


async def get_score_worker(
    request: Request, config: ConfigDep, cache: CacheDep
) -> ScoreUpdateWorker:
    """Return the application's score worker, creating an idle one if none runs.

    The idle worker is kept on `app.state` so every on-demand cycle shares its lock.
    """
    worker: ScoreUpdateWorker | None = getattr(request.app.state, "score_worker", None)
    if worker is None:
        worker = ScoreUpdateWorker(
            config,
            interval_seconds=settings.score_update_interval_seconds,
            cache=cache,
        )
        request.app.state.score_worker = worker
    return worker


ScoreWorkerDep = Annotated[ScoreUpdateWorker, Depends(get_score_worker)]


async def get_signed_request(
    request: Request,
    db: SessionDep,
    replay_service: ReplayServiceDep,
    config: ConfigDep,
) -> SignedRequest:
    """Verify the request body as a signed request and resolve its voter.

    Raises:
        HTTPException: 400 for malformed, stale or replayed requests and
            unknown keys; 403 for bad signatures.
    """
    try:
        body: Any = await request.json()
    except (JSONDecodeError, UnicodeDecodeError) as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON body",
        ) from err

    verifier = SignedRequestVerifier(
        db,
        replay_service,
        config,
        tolerance_seconds=settings.signed_request_tolerance_seconds,
    )
    try:
        return verifier.verify(body)
    except SignedRequestError as err:
        raise HTTPException(status_code=err.status_code, detail=err.detail) from err


SignedRequestDep = Annotated[SignedRequest, Depends(get_signed_request)]


def parse_payload(model: type[ModelT], payload: dict[str, Any]) -> ModelT:
    """Validate the signed payload against `model`, mapping errors to 400."""
    try:
        return model.model_validate(payload)
    except ValidationError as err:
        summary = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'payload'}: {error['msg']}"
            for error in err.errors()
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=summary,
        ) from err
