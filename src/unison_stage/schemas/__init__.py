"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .common import ApiResponse, MessageData
from .lyrics import LegacyLyrics, LyricsResponse, LyricsSubmission, SubmitResult
from .vote import ReportPayload, VotePayload

__all__ = [
    "ApiResponse", "MessageData",
    "LegacyLyrics", "LyricsResponse", "LyricsSubmission", "SubmitResult",
    "ReportPayload", "VotePayload",
]
