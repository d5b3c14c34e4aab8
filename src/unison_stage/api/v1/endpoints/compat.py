# src/unison_stage/api/v1/endpoints/compat.py
"""Legacy `/getLyrics` route kept for older clients."""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from unison_stage.api.v1.dependencies import LyricsServiceDep
from unison_stage.schemas import LegacyLyrics

router = APIRouter(tags=["compat"])


@router.get("/getLyrics", response_model=LegacyLyrics)
async def get_lyrics_legacy(
    lyrics_service: LyricsServiceDep,
    v: str | None = Query(None, max_length=64),
    s: str | None = None,
    a: str | None = None,
    d: float | None = Query(None, ge=0),
    song: str | None = None,
    artist: str | None = None,
    duration: float | None = Query(None, ge=0),
) -> LegacyLyrics | JSONResponse:
    """Return `{lyrics, format}` by video id, or by song and artist."""
    if v:
        result = lyrics_service.find_by_video_id(v)
    else:
        song = s or song
        artist = a or artist
        if not song or not artist:
            return JSONResponse({"error": "Missing parameters"}, status_code=400)
        result = lyrics_service.find_by_song_artist(
            song, artist, d if d is not None else duration
        )

    if result is None:
        return JSONResponse({"error": "Not found"}, status_code=404)
    return LegacyLyrics(lyrics=result.lyrics, format=result.format)
