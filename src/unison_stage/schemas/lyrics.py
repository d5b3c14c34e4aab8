# src/unison_stage/schemas/lyrics.py
"""Lyrics-related Pydantic schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from unison_stage.core.settings import settings
from unison_stage.utils.ttml import SyncType, validate_ttml_structure

LyricsFormat = Literal["ttml", "lrc", "plain"]
ConfidenceLabel = Literal["low", "medium", "high"]


class LyricsSubmission(BaseModel):
    """Signed payload fields for submitting lyrics for a video."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    video_id: str = Field(..., min_length=1, max_length=64)
    song: str = Field(..., min_length=1, max_length=settings.field_max_length)
    artist: str = Field(..., min_length=1, max_length=settings.field_max_length)
    album: str | None = Field(None, max_length=settings.field_max_length)
    duration: float = Field(
        ...,
        ge=settings.duration_min_seconds,
        le=settings.duration_max_seconds,
        description="Track length in seconds",
    )
    lyrics: str = Field(..., min_length=1)
    format: LyricsFormat
    language: str | None = Field(None, max_length=32)
    sync_type: SyncType | None = None

    @model_validator(mode="after")
    def _check_lyrics_body(self) -> LyricsSubmission:
        size = len(self.lyrics.encode("utf-8"))
        if size > settings.lyrics_max_bytes:
            raise ValueError("lyrics exceed the maximum size")
        if self.format == "ttml":
            if size < settings.ttml_min_bytes:
                raise ValueError("TTML document is too small")
            if not validate_ttml_structure(self.lyrics):
                raise ValueError("Invalid TTML structure")
        return self


class LyricsResponse(BaseModel):
    """Schema for lyric documents returned by the API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    video_id: str
    song: str
    artist: str
    album: str | None = None
    lyrics: str
    format: LyricsFormat
    language: str | None = None
    sync_type: str
    score: int
    effective_score: float
    vote_count: int
    confidence: ConfidenceLabel


class SubmitResult(BaseModel):
    """Outcome of a submission: the document id and whether content was replaced."""

    id: int
    updated: bool
    # Not serialized; tells the API layer to answer 201.
    created: bool = Field(default=False, exclude=True)


class LegacyLyrics(BaseModel):
    """Response body of the legacy `/getLyrics` route."""

    lyrics: str
    format: LyricsFormat
