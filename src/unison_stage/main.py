# src/unison_stage/main.py
"""Main entry point for the Unison application."""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from unison_stage.api.v1 import (
    compat_router,
    lyrics_router,
    system_router,
    votes_router,
)
from unison_stage.core.config import get_reputation_config
from unison_stage.core.settings import settings
from unison_stage.db.session import create_tables
from unison_stage.services.cache import get_cache_service
from unison_stage.services.score_worker import ScoreUpdateWorker

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

DESCRIPTION = "Crowdsourced lyrics API with reputation-weighted consensus scoring"

# Initialize FastAPI app
app = FastAPI(
    title="Unison API",
    description=DESCRIPTION,
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
    max_age=86400,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(compat_router)
app.include_router(lyrics_router)
app.include_router(votes_router)
app.include_router(system_router)


def _envelope(status_code: int, error: str) -> JSONResponse:
    return JSONResponse({"success": False, "data": None, "error": error}, status_code=status_code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "Invalid request")
    return _envelope(400, f"{location}: {message}" if location else message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _envelope(500, "Internal Server Error")


@app.on_event("startup")
async def on_startup() -> None:
    create_tables()
    if settings.score_update_enabled:
        worker = ScoreUpdateWorker(
            get_reputation_config(),
            interval_seconds=settings.score_update_interval_seconds,
            cache=get_cache_service(),
        )
        await worker.start()
        app.state.score_worker = worker
        logger.info(
            "Score worker started, interval %ss", settings.score_update_interval_seconds
        )
    else:
        app.state.score_worker = None


@app.on_event("shutdown")
async def on_shutdown() -> None:
    worker: ScoreUpdateWorker | None = getattr(app.state, "score_worker", None)
    if worker:
        await worker.stop()


@app.get("/health")
async def health_check() -> dict[str, object]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok", "timestamp": int(time.time() * 1000)}


@app.get("/")
async def root() -> dict[str, object]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": DESCRIPTION,
        "docs": "/docs",
        "endpoints": {
            "getLyrics": "GET /lyrics?v=videoId OR ?song=...&artist=...&duration=...",
            "searchLyrics": "GET /lyrics/search?song=...&artist=...",
            "getLyricsById": "GET /lyrics/{id}",
            "submitLyrics": "POST /lyrics/submit",
            "vote": "POST /lyrics/{id}/vote",
            "removeVote": "DELETE /lyrics/{id}/vote",
            "report": "POST /lyrics/{id}/report",
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("unison_stage.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
