"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope wrapping every `/lyrics` response."""

    success: bool
    data: T | None = None
    error: str | None = None


class MessageData(BaseModel):
    """Human-readable outcome of a vote or report operation."""

    message: str = Field(..., description="Outcome message, e.g. 'Vote recorded'.")
