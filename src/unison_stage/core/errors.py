"""Domain exceptions raised by the Unison services."""

from __future__ import annotations


class UnisonError(Exception):
    """Base class for service-level errors."""


class LyricsNotFoundError(UnisonError):
    """Raised when a lyrics document referenced by id or video id is absent."""

    def __init__(self, lyrics_id: int | str) -> None:
        super().__init__(f"Lyrics not found: {lyrics_id}")
        self.lyrics_id = lyrics_id


class VoterNotFoundError(UnisonError):
    """Raised when a voter referenced by id is absent."""

    def __init__(self, voter_id: int) -> None:
        super().__init__(f"Voter not found: {voter_id}")
        self.voter_id = voter_id


class SignedRequestError(UnisonError):
    """Raised when a signed request fails verification.

    Attributes:
        status_code: HTTP status the API layer should respond with.
        detail: Client-facing error message.
    """

    def __init__(self, detail: str, status_code: int = 400) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code
