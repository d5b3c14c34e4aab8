# tests/conftest.py
from __future__ import annotations

import os
import time
from collections.abc import Generator, Iterator
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ["USE_TEST_DATABASE"] = "true"
os.environ["TEST_DATABASE_URL"] = "sqlite://"
os.environ["SCORE_UPDATE_ENABLED"] = "false"
os.environ["CACHE_BACKEND"] = "memory"

from unison_stage.core.config import ReputationConfig
from unison_stage.db.session import Base
from unison_stage.db.session import get_db as app_get_session
from unison_stage.main import app as fastapi_app
from unison_stage.models import Lyrics, Voter
from unison_stage.services.cache import get_cache_service
from unison_stage.services.crypto import CryptoService
from unison_stage.utils.compression import compress
from unison_stage.utils.hash import key_id_for
from unison_stage.utils.normalize import normalize_artist, normalize_song

TEST_DB_URL = "sqlite://"

_VIDEO_COUNTER = count(1)
_DEVICE_COUNTER = count(1)

SAMPLE_TTML = (
    '<tt xmlns="http://www.w3.org/ns/ttml"><body><div>'
    '<p begin="00:01.000" end="00:03.000">Hello there</p>'
    "</div></body></tt>"
)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Services commit for real; wipe every table so each test starts clean.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture(autouse=True)
def clear_cache() -> Iterator[None]:
    """Start every test with an empty in-process cache (nonces, rate limits, lookups)."""
    get_cache_service().clear()
    yield
    get_cache_service().clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def config() -> ReputationConfig:
    """Engine configuration with default parameters."""
    return ReputationConfig()


class SigningIdentity:
    """A client key pair able to produce signed request bodies."""

    def __init__(self) -> None:
        self.private_key, self.public_key = CryptoService.generate_key_pair()
        self.key_id = key_id_for(self.public_key)
        self.public_key_b64 = CryptoService.encode_base64(self.public_key)

    def sign(
        self,
        fields: dict[str, Any] | None = None,
        *,
        include_public_key: bool = True,
        timestamp_ms: float | None = None,
        nonce: str | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "timestamp": int(time.time() * 1000) if timestamp_ms is None else timestamp_ms,
            "nonce": nonce or CryptoService.generate_nonce(),
            "keyId": self.key_id,
            **(fields or {}),
        }
        signature = CryptoService.sign_payload(self.private_key, payload)
        body: dict[str, Any] = {
            "payload": payload,
            "signature": CryptoService.encode_base64(signature),
        }
        if include_public_key:
            body["publicKey"] = self.public_key_b64
        return body


@pytest.fixture()
def identity() -> SigningIdentity:
    """Primary client signing identity."""
    return SigningIdentity()


@pytest.fixture()
def other_identity() -> SigningIdentity:
    """Secondary client signing identity."""
    return SigningIdentity()


def make_voter(
    db: Session,
    *,
    reputation: float = 1.0,
    avg_vote: float = 0.0,
    device_hash: str | None = None,
) -> Voter:
    """Persist and return a voter."""
    voter = Voter(
        device_hash=device_hash or f"device-{next(_DEVICE_COUNTER):04d}",
        reputation=reputation,
        avg_vote=avg_vote,
    )
    db.add(voter)
    db.commit()
    db.refresh(voter)
    return voter


def make_lyrics(
    db: Session,
    *,
    video_id: str | None = None,
    song: str = "Hello",
    artist: str = "Adele",
    album: str | None = None,
    duration: int = 295,
    text: str = SAMPLE_TTML,
    lyrics_format: str = "ttml",
    submitter: Voter | None = None,
    score: int = 0,
) -> Lyrics:
    """Persist and return a lyric document."""
    row = Lyrics(
        video_id=video_id or f"vid{next(_VIDEO_COUNTER):05d}",
        song=song,
        artist=artist,
        album=album,
        duration=duration,
        song_norm=normalize_song(song),
        artist_norm=normalize_artist(artist),
        lyrics=compress(text),
        format=lyrics_format,
        sync_type="linesync",
        score=score,
        submitter_id=submitter.id if submitter is not None else None,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture()
def voter_factory(db_session: Session) -> Any:
    """Return a callable persisting voters in the test session."""

    def _factory(**kwargs: Any) -> Voter:
        return make_voter(db_session, **kwargs)

    return _factory


@pytest.fixture()
def lyrics_factory(db_session: Session) -> Any:
    """Return a callable persisting lyric documents in the test session."""

    def _factory(**kwargs: Any) -> Lyrics:
        return make_lyrics(db_session, **kwargs)

    return _factory


@pytest.fixture()
def identity_factory() -> Any:
    """Return a callable creating fresh signing identities."""
    return SigningIdentity
