from __future__ import annotations

import logging
import os
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from src.application.dtos.edit_service_dto import EditImageRequest, EditImageResponse
from src.domain.entities.edit_outcome import EditFailure, EditOutcome, EditSuccess
from src.domain.entities.image_payload import ImagePayload
from src.domain.errors import MalformedPayload, MalformedResponse, NetworkError, ServiceError
from src.domain.services.codec_service import CodecService

logger = logging.getLogger(__name__)

EDIT_PATH = "/api/edit-image-with-prompt"
# Error body fields checked in priority order
_ERROR_FIELDS = ("error", "message", "textResponse")


class ImageEditClient:
    """Client for the remote prompt-driven image-edit endpoint.

    Every call resolves to an ``EditSuccess`` or an ``EditFailure``; transport,
    status and body problems are classified instead of raised. No retries.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or os.getenv("IMAGE_EDIT_API_URL", "http://127.0.0.1:8787")).rstrip("/")
        self.timeout = timeout if timeout is not None else float(os.getenv("IMAGE_EDIT_TIMEOUT_SECONDS", "60"))
        self._http = http_client

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}{EDIT_PATH}"

    async def submit_edit(self, image: ImagePayload, prompt: str) -> EditOutcome:
        body = EditImageRequest(
            image_data_b64=image.data, mime_type=image.media_type, prompt=prompt
        ).model_dump(by_alias=True)

        try:
            response = await self._post(body)
        except httpx.TransportError as exc:
            logger.warning("Image edit request to %s failed: %s", self.endpoint, exc)
            return EditFailure(NetworkError(f"Could not reach the image edit service: {exc}"))

        if not response.is_success:
            message = self._error_message(response)
            logger.info("Image edit service returned %s: %s", response.status_code, message)
            return EditFailure(ServiceError(response.status_code, message))

        return self._parse_success(response)

    async def _post(self, body: dict[str, Any]) -> httpx.Response:
        if self._http is not None:
            return await self._http.post(self.endpoint, json=body, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.endpoint, json=body)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        fallback = f"HTTP error! status: {response.status_code}"
        try:
            payload = response.json()
        except ValueError:
            return fallback
        if not isinstance(payload, dict):
            return fallback
        for key in _ERROR_FIELDS:
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value
        return fallback

    @staticmethod
    def _parse_success(response: httpx.Response) -> EditOutcome:
        try:
            body = EditImageResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as exc:
            return EditFailure(MalformedResponse(f"Unreadable response from image edit service: {exc}"))

        image = None
        if body.edited_image_data_b64 and body.mime_type:
            try:
                CodecService.decode(body.edited_image_data_b64)
            except MalformedPayload as exc:
                return EditFailure(MalformedResponse(str(exc)))
            image = ImagePayload(data=body.edited_image_data_b64, media_type=body.mime_type)
        return EditSuccess(image=image, response_text=body.text_response or None)
