from __future__ import annotations

import logging
import os
from io import BytesIO

from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import Response
from PIL import Image, UnidentifiedImageError

from src.application.dtos.session_dto import (
    ResetSessionResponse,
    SessionStateResponse,
    SetPromptRequest,
    SubmitEditRequest,
)
from src.application.use_cases.submit_edit import SubmitEditUseCase
from src.application.use_cases.upload_image import UploadImageUseCase, allowed_image_types
from src.domain.errors import MalformedPayload, SessionBusyError, ValidationError
from src.domain.services.codec_service import CodecService
from src.domain.services.session_reducer import SetPrompt
from src.infrastructure.api.dependencies import (
    get_current_user,
    get_image_edit_client,
    get_session_store,
)
from src.infrastructure.clients.image_edit_client import ImageEditClient
from src.infrastructure.sessions.session_store import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/session",
    tags=["Edit Session"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing authentication token"},
        409: {"description": "Conflict - An edit request is already in flight"},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


def raise_for_session_error(exc: Exception) -> None:
    """Translate a domain error into the matching HTTPException."""
    if isinstance(exc, SessionBusyError):
        logger.info("Rejected while an edit request is in flight: %s", exc)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, (ValidationError, MalformedPayload)):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    raise exc


def _sniff_media_type(data: bytes) -> str:
    # identification only, pixel data is not decoded
    img = Image.open(BytesIO(data))
    return Image.MIME.get(img.format or "", "application/octet-stream")


@router.get(
    "",
    response_model=SessionStateResponse,
    summary="Get Edit Session",
    description="""
    Retrieve the caller's edit session.

    **Returns:**
    - The working image as a data URL (absent before the first upload)
    - The prompt text, the prompt that produced the working image and the
      service commentary attached to it
    - The request status (`idle`, `pending`, `failed`) and failure message
    - The archived images, newest first

    **Authentication required**: Yes (Bearer token)
    """,
    response_description="Current state of the edit session",
)
async def get_session(
    user=Depends(get_current_user),
    sessions: SessionStore = Depends(get_session_store),
):
    """Get the caller's edit session."""
    return SessionStateResponse.from_session(sessions.get(user.id))


@router.delete(
    "",
    response_model=ResetSessionResponse,
    summary="Reset Edit Session",
    description="""
    Discard the working image and the whole history and start over.

    Rejected with 409 while an edit request is in flight.

    **Authentication required**: Yes (Bearer token)
    """,
    response_description="Confirmation of the reset",
)
async def reset_session(
    user=Depends(get_current_user),
    sessions: SessionStore = Depends(get_session_store),
):
    """Reset the caller's edit session."""
    try:
        sessions.reset(user.id)
    except SessionBusyError as exc:
        raise_for_session_error(exc)
    return {"ok": True}


@router.post(
    "/image",
    response_model=SessionStateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Base Image",
    description="""
    Upload a new base image for editing.

    **Supported formats**: PNG, JPEG, WEBP (configurable)
    **Maximum file size**: `MAX_UPLOAD_SIZE` bytes (10 MiB by default)

    The current working image, if any, is archived into the history first,
    and any previous failure is cleared. The image bytes are stored as-is.

    **Authentication required**: Yes (Bearer token)
    """,
    response_description="Session state with the uploaded image as the working image",
    responses={
        400: {"description": "Bad Request - Invalid image file or unsupported format"},
        413: {"description": "Payload Too Large - File size exceeds limit"},
    },
)
async def upload_image(
    file: UploadFile = File(..., description="Image file to upload"),
    user=Depends(get_current_user),
    sessions: SessionStore = Depends(get_session_store),
):
    """Upload a new working image."""
    data = file.file.read()
    max_size = int(os.getenv("MAX_UPLOAD_SIZE", str(10 * 1024 * 1024)))
    if len(data) > max_size:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {max_size} byte upload limit",
        )
    try:
        sniffed = _sniff_media_type(data)
    except (UnidentifiedImageError, OSError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid image file: {exc}") from exc

    declared = (file.content_type or "").lower()
    media_type = declared if CodecService.is_supported_media_type(declared, allowed_image_types()) else sniffed

    uc = UploadImageUseCase(sessions=sessions)
    try:
        session = uc.execute(user.id, data, media_type)
    except ValidationError as exc:
        raise_for_session_error(exc)
    return SessionStateResponse.from_session(session)


@router.get(
    "/image",
    summary="Download Working Image",
    description="""
    Download the raw bytes of the working image with its media type.

    **Authentication required**: Yes (Bearer token)
    """,
    response_description="The working image file",
    responses={404: {"description": "Not Found - No image uploaded yet"}},
)
async def download_image(
    user=Depends(get_current_user),
    sessions: SessionStore = Depends(get_session_store),
):
    """Download the working image."""
    image = sessions.get(user.id).current_image
    if image is None:
        raise HTTPException(status_code=404, detail="No image uploaded yet")
    return Response(content=image.raw_bytes(), media_type=image.media_type)


@router.put(
    "/prompt",
    response_model=SessionStateResponse,
    summary="Set Prompt",
    description="""
    Update the prompt text for the next edit. Any text is accepted, including
    an empty string; the prompt is only validated on submission.

    **Authentication required**: Yes (Bearer token)
    """,
    response_description="Session state with the updated prompt",
)
async def set_prompt(
    body: SetPromptRequest,
    user=Depends(get_current_user),
    sessions: SessionStore = Depends(get_session_store),
):
    """Update the prompt text."""
    return SessionStateResponse.from_session(sessions.dispatch(user.id, SetPrompt(body.prompt)))


@router.post(
    "/edit",
    response_model=SessionStateResponse,
    summary="Submit Edit",
    description="""
    Send the working image and the prompt to the image-edit service.

    **Behaviour:**
    - Only one request may be in flight per session; concurrent submissions,
      uploads and history selections get 409 until it resolves
    - On success the previous working image is archived, the edited image
      becomes the working image and the prompt is cleared
    - When the service fails or returns no image, the session status becomes
      `failed` with a message; the working image and prompt are kept so the
      edit can be retried. This is reported with status 200.
    - Nothing is retried automatically

    **Authentication required**: Yes (Bearer token)
    """,
    response_description="Session state after the request resolved",
    responses={400: {"description": "Bad Request - No working image or empty prompt"}},
)
async def submit_edit(
    body: SubmitEditRequest | None = Body(None),
    user=Depends(get_current_user),
    sessions: SessionStore = Depends(get_session_store),
    client: ImageEditClient = Depends(get_image_edit_client),
):
    """Submit the working image for editing."""
    uc = SubmitEditUseCase(sessions=sessions, client=client)
    try:
        session = await uc.execute(user.id, prompt=body.prompt if body else None)
    except ValidationError as exc:
        raise_for_session_error(exc)
    return SessionStateResponse.from_session(session)
