"""Document registry: lookup, search and submission of lyric documents."""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError
from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from unison_stage.core.config import ReputationConfig
from unison_stage.db.time import utcnow
from unison_stage.models import Lyrics
from unison_stage.schemas.lyrics import LyricsResponse, LyricsSubmission, SubmitResult
from unison_stage.services.cache import CacheService
from unison_stage.utils.compression import compress, ensure_decompressed
from unison_stage.utils.normalize import normalize_artist, normalize_song
from unison_stage.utils.ttml import detect_sync_type

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 20


def video_cache_key(video_id: str) -> str:
    """Return the cache key under which a video's document is stored."""
    return f"v:{video_id}"


def to_response(row: Lyrics) -> LyricsResponse:
    """Build the API representation of a document with its text decompressed."""
    return LyricsResponse(
        id=row.id,
        video_id=row.video_id,
        song=row.song,
        artist=row.artist,
        album=row.album or None,
        lyrics=ensure_decompressed(row.lyrics),
        format=row.format,
        language=row.language or None,
        sync_type=row.sync_type,
        score=row.score,
        effective_score=row.effective_score,
        vote_count=row.vote_count,
        confidence=row.confidence,
    )


def resolve_sync_type(submission: LyricsSubmission) -> str:
    """Return the declared sync type, or infer one from the format and content."""
    if submission.sync_type:
        return submission.sync_type
    if submission.format == "ttml":
        return detect_sync_type(submission.lyrics)
    if submission.format == "plain":
        return "plain"
    return "linesync"


class LyricsService:
    """Reads and writes lyric documents, keeping the per-video cache coherent."""

    def __init__(
        self,
        db: Session,
        cache: CacheService,
        config: ReputationConfig,
        *,
        cache_ttl_seconds: int,
        duration_tolerance: int,
    ) -> None:
        self.db = db
        self.cache = cache
        self.config = config
        self.cache_ttl_seconds = cache_ttl_seconds
        self.duration_tolerance = duration_tolerance

    # --- Reads ----------------------------------------------------------------------
    def get_row(self, lyrics_id: int) -> Lyrics | None:
        """Return the ORM row for a document id."""
        return self.db.get(Lyrics, lyrics_id)

    def get_by_id(self, lyrics_id: int) -> LyricsResponse | None:
        """Return a document by id."""
        row = self.get_row(lyrics_id)
        return to_response(row) if row is not None else None

    def find_by_video_id(self, video_id: str) -> LyricsResponse | None:
        """Return the document for a video, serving from the cache when possible."""
        key = video_cache_key(video_id)
        cached = self.cache.get(key)
        if cached is not None:
            try:
                data = json.loads(cached)
                data["lyrics"] = ensure_decompressed(data["lyrics"])
                return LyricsResponse.model_validate(data)
            except (ValueError, KeyError, OSError, ValidationError) as exc:
                logger.warning("Dropping unreadable cache entry %s: %s", key, exc)
                self.cache.delete(key)

        row = self.db.scalars(select(Lyrics).where(Lyrics.video_id == video_id)).first()
        if row is None:
            return None
        response = to_response(row)
        self._cache_response(response)
        return response

    def _song_artist_query(
        self,
        song: str,
        artist: str,
        duration: float | None,
        album: str | None,
    ) -> Select[tuple[Lyrics]]:
        stmt = select(Lyrics).where(
            Lyrics.song_norm == normalize_song(song),
            Lyrics.artist_norm == normalize_artist(artist),
        )
        if duration is not None:
            stmt = stmt.where(func.abs(Lyrics.duration - duration) <= self.duration_tolerance)
        if album:
            stmt = stmt.where(Lyrics.album == album.strip())
        return stmt.order_by(Lyrics.score.desc(), Lyrics.id)

    def find_by_song_artist(
        self,
        song: str,
        artist: str,
        duration: float | None = None,
        album: str | None = None,
    ) -> LyricsResponse | None:
        """Return the highest raw-scored document matching the song metadata."""
        row = self.db.scalars(self._song_artist_query(song, artist, duration, album)).first()
        return to_response(row) if row is not None else None

    def search(
        self,
        song: str,
        artist: str,
        duration: float | None = None,
        album: str | None = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[LyricsResponse]:
        """Return candidate documents ordered by raw score."""
        stmt = self._song_artist_query(song, artist, duration, album).limit(limit)
        return [to_response(row) for row in self.db.scalars(stmt)]

    # --- Writes ---------------------------------------------------------------------
    def submit(self, submission: LyricsSubmission, submitter_id: int) -> SubmitResult:
        """Store a submission for its video.

        A new video gets a new document. An existing document is overwritten
        unless its raw score has reached the protection threshold, in which
        case the stored content is kept and `updated` is False.
        """
        existing = self.db.scalars(
            select(Lyrics).where(Lyrics.video_id == submission.video_id)
        ).first()

        fields = {
            "song": submission.song.strip(),
            "artist": submission.artist.strip(),
            "album": submission.album.strip() if submission.album else None,
            "duration": round(submission.duration),
            "song_norm": normalize_song(submission.song),
            "artist_norm": normalize_artist(submission.artist),
            "lyrics": compress(submission.lyrics),
            "format": submission.format,
            "language": submission.language or None,
            "sync_type": resolve_sync_type(submission),
            "submitter_id": submitter_id,
        }

        if existing is not None:
            if self.is_protected(existing):
                logger.info(
                    "Rejected overwrite of protected lyrics %s (score %s)",
                    existing.id,
                    existing.score,
                )
                return SubmitResult(id=existing.id, updated=False)

            for key, value in fields.items():
                setattr(existing, key, value)
            existing.updated_at = utcnow()
            self.db.commit()
            self.invalidate_video(submission.video_id)
            return SubmitResult(id=existing.id, updated=True)

        row = Lyrics(video_id=submission.video_id, **fields)
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return SubmitResult(id=row.id, updated=False, created=True)

    def is_protected(self, row: Lyrics) -> bool:
        """Return True once a document's raw score locks its content."""
        return row.score >= self.config.protection_min_score

    # --- Cache ----------------------------------------------------------------------
    def _cache_response(self, response: LyricsResponse) -> None:
        data = response.model_dump()
        data["lyrics"] = compress(response.lyrics)
        self.cache.set(
            video_cache_key(response.video_id),
            json.dumps(data),
            ttl_seconds=self.cache_ttl_seconds,
        )

    def invalidate_video(self, video_id: str) -> None:
        """Drop the cached document for a video."""
        self.cache.delete(video_cache_key(video_id))
