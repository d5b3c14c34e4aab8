# src/unison_stage/api/v1/endpoints/lyrics.py
"""Lyrics lookup, search and submission endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Query, Response, status

from unison_stage.api.v1.dependencies import (
    LyricsServiceDep,
    SignedRequestDep,
    SubmitRateLimiterDep,
    parse_payload,
)
from unison_stage.schemas import ApiResponse, LyricsResponse, LyricsSubmission, SubmitResult
from unison_stage.services.lyrics_service import DEFAULT_SEARCH_LIMIT

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lyrics", tags=["lyrics"])

LYRICS_NOT_FOUND = "Lyrics not found"


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=LYRICS_NOT_FOUND)


@router.get("", response_model=ApiResponse[LyricsResponse])
async def get_lyrics(
    lyrics_service: LyricsServiceDep,
    v: str | None = Query(None, min_length=1, max_length=64, description="Video id"),
    song: str | None = Query(None, min_length=1),
    artist: str | None = Query(None, min_length=1),
    album: str | None = None,
    duration: float | None = Query(None, ge=0),
) -> ApiResponse[LyricsResponse]:
    """Return the best document for a video id, or for song metadata."""
    if v:
        result = lyrics_service.find_by_video_id(v)
    elif song and artist:
        result = lyrics_service.find_by_song_artist(song, artist, duration, album)
    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide 'v' (video ID) or 'song' and 'artist'",
        )

    if result is None:
        raise _not_found()
    return ApiResponse(success=True, data=result)


@router.get("/search", response_model=ApiResponse[list[LyricsResponse]])
async def search_lyrics(
    lyrics_service: LyricsServiceDep,
    song: str | None = Query(None, min_length=1),
    artist: str | None = Query(None, min_length=1),
    album: str | None = None,
    duration: float | None = Query(None, ge=0),
) -> ApiResponse[list[LyricsResponse]]:
    """Return up to 20 candidate documents ordered by raw score."""
    if not song or not artist:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide 'song' and 'artist'",
        )
    results = lyrics_service.search(song, artist, duration, album, limit=DEFAULT_SEARCH_LIMIT)
    return ApiResponse(success=True, data=results)


@router.get("/{lyrics_id}", response_model=ApiResponse[LyricsResponse])
async def get_lyrics_by_id(
    lyrics_id: int,
    lyrics_service: LyricsServiceDep,
) -> ApiResponse[LyricsResponse]:
    """Return a document by id."""
    result = lyrics_service.get_by_id(lyrics_id)
    if result is None:
        raise _not_found()
    return ApiResponse(success=True, data=result)


@router.post("/submit", response_model=ApiResponse[SubmitResult])
async def submit_lyrics(
    response: Response,
    signed: SignedRequestDep,
    lyrics_service: LyricsServiceDep,
    rate_limiter: SubmitRateLimiterDep,
) -> ApiResponse[SubmitResult]:
    """Submit lyrics for a video.

    Answers 201 for a new document, 200 when an existing one was replaced or
    is protected from replacement (`updated` tells the two apart).
    """
    if not rate_limiter.hit(signed.key_id):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limited. Try again later.",
        )

    submission = parse_payload(LyricsSubmission, signed.payload)
    result = lyrics_service.submit(submission, signed.voter.id)
    if result.created:
        logger.info("Created lyrics %s for video %s", result.id, submission.video_id)
        response.status_code = status.HTTP_201_CREATED
    return ApiResponse(success=True, data=result)
