# src/unison_stage/api/v1/endpoints/votes.py
"""Vote and report endpoints for lyric documents."""

from fastapi import APIRouter, HTTPException, Response, status

from unison_stage.api.v1.dependencies import (
    ConfigDep,
    SessionDep,
    SignedRequestDep,
    parse_payload,
)
from unison_stage.core.errors import LyricsNotFoundError
from unison_stage.schemas import ApiResponse, MessageData, ReportPayload, VotePayload
from unison_stage.services import moderation, vote_service

router = APIRouter(prefix="/lyrics", tags=["votes"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lyrics not found")


@router.post("/{lyrics_id}/vote", response_model=ApiResponse[MessageData])
async def cast_vote(
    lyrics_id: int,
    response: Response,
    signed: SignedRequestDep,
    db: SessionDep,
) -> ApiResponse[MessageData]:
    """Upvote or downvote a document; 409 when the same vote already stands."""
    payload = parse_payload(VotePayload, signed.payload)
    try:
        result = vote_service.cast_vote(db, lyrics_id, signed.voter.id, payload.vote)
    except LyricsNotFoundError as err:
        raise _not_found() from err

    if not result.success:
        response.status_code = status.HTTP_409_CONFLICT
    return ApiResponse(success=result.success, data=MessageData(message=result.message))


@router.delete("/{lyrics_id}/vote", response_model=ApiResponse[MessageData])
async def remove_vote(
    lyrics_id: int,
    signed: SignedRequestDep,
    db: SessionDep,
) -> ApiResponse[MessageData]:
    """Retract the caller's vote on a document."""
    try:
        result = vote_service.remove_vote(db, lyrics_id, signed.voter.id)
    except LyricsNotFoundError as err:
        raise _not_found() from err
    return ApiResponse(success=result.success, data=MessageData(message=result.message))


@router.post(
    "/{lyrics_id}/report",
    response_model=ApiResponse[MessageData],
    status_code=status.HTTP_201_CREATED,
)
async def report_lyrics(
    lyrics_id: int,
    response: Response,
    signed: SignedRequestDep,
    db: SessionDep,
    config: ConfigDep,
) -> ApiResponse[MessageData]:
    """Report a document; 409 when the caller already reported it."""
    payload = parse_payload(ReportPayload, signed.payload)
    try:
        result = moderation.submit_report(
            db,
            lyrics_id,
            signed.voter.id,
            payload.reason,
            payload.details,
            config,
        )
    except LyricsNotFoundError as err:
        raise _not_found() from err

    if not result.success:
        response.status_code = status.HTTP_409_CONFLICT
    return ApiResponse(success=result.success, data=MessageData(message=result.message))
