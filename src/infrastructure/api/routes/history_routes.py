from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from src.application.dtos.history_dto import HistoryItem, ListHistoryResponse
from src.application.dtos.session_dto import SessionStateResponse
from src.application.use_cases.revert_image import RevertImageUseCase
from src.domain.errors import SessionBusyError
from src.infrastructure.api.dependencies import get_current_user, get_session_store
from src.infrastructure.api.routes.session_routes import raise_for_session_error
from src.infrastructure.sessions.session_store import SessionStore

router = APIRouter(
    prefix="/session/history",
    tags=["Edit History"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing authentication token"},
        404: {"description": "Not Found - History entry does not exist"},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


@router.get(
    "",
    response_model=ListHistoryResponse,
    summary="List Edit History",
    description="""
    Retrieve the archived images of the caller's edit chain, newest first.

    Each item carries the prompt that produced it and the commentary the
    edit service attached to it.

    **Authentication required**: Yes (Bearer token)
    """,
    response_description="List of history items",
)
async def list_history(
    user=Depends(get_current_user),
    sessions: SessionStore = Depends(get_session_store),
):
    """Get the caller's edit history."""
    entries = sessions.get(user.id).history.list()
    return ListHistoryResponse(history=[HistoryItem.from_entity(e) for e in entries], total=len(entries))


@router.get(
    "/{entry_id}/image",
    summary="Download Archived Image",
    description="""
    Download the raw bytes of an archived image with its media type.

    **Authentication required**: Yes (Bearer token)
    """,
    response_description="The archived image file",
)
async def download_history_image(
    entry_id: str,
    user=Depends(get_current_user),
    sessions: SessionStore = Depends(get_session_store),
):
    """Download an archived image."""
    entry = sessions.get(user.id).history.get(entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="History entry not found")
    return Response(content=entry.image.raw_bytes(), media_type=entry.image.media_type)


@router.post(
    "/{entry_id}/select",
    response_model=SessionStateResponse,
    summary="Restore History Entry",
    description="""
    Make an archived image the working image again.

    The entry leaves the history and the working image it replaces is
    archived in its place, with its own prompt and commentary. The prompt
    text is pre-filled with the prompt that produced the restored image.
    Selecting an unknown id leaves the session unchanged.

    Rejected with 409 while an edit request is in flight.

    **Authentication required**: Yes (Bearer token)
    """,
    response_description="Session state after the restore",
)
async def select_history_entry(
    entry_id: str,
    user=Depends(get_current_user),
    sessions: SessionStore = Depends(get_session_store),
):
    """Restore an archived image."""
    uc = RevertImageUseCase(sessions=sessions)
    try:
        session = uc.execute(user.id, entry_id)
    except SessionBusyError as exc:
        raise_for_session_error(exc)
    return SessionStateResponse.from_session(session)
