# src/unison_stage/schemas/vote.py
"""Vote- and report-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, Field

from unison_stage.core.settings import settings


class VotePayload(BaseModel):
    """Signed payload fields for casting a vote."""

    vote: Literal[-1, 1] = Field(..., description="1 for upvote, -1 for downvote")


class ReportPayload(BaseModel):
    """Signed payload fields for reporting a lyric document."""

    reason: Literal["wrong_song", "bad_sync", "offensive", "spam", "other"]
    details: str | None = Field(None, max_length=settings.report_details_max_length)
