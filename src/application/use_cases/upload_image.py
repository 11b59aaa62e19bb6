from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from src.domain.entities.edit_session import EditSession
from src.domain.entities.image_payload import ImagePayload
from src.domain.errors import ValidationError
from src.domain.services.codec_service import DEFAULT_IMAGE_TYPES, CodecService
from src.domain.services.session_reducer import UploadImage
from src.infrastructure.sessions.session_store import SessionStore

logger = logging.getLogger(__name__)


def allowed_image_types() -> tuple[str, ...]:
    raw = os.getenv("ALLOWED_IMAGE_TYPES")
    if not raw:
        return DEFAULT_IMAGE_TYPES
    return tuple(t.strip().lower() for t in raw.split(",") if t.strip())


@dataclass
class UploadImageUseCase:
    sessions: SessionStore

    def execute(self, user_id: str, raw: bytes, media_type: str) -> EditSession:
        """
        Replace the working image with a freshly uploaded one.

        The previous working image, if any, is archived into the history
        with the prompt and response it carried. Uploading the same bytes
        twice still archives the displayed image.

        Raises:
            ValidationError: Empty upload or unsupported media type
            SessionBusyError: An edit request is in flight
        """
        if not raw:
            raise ValidationError("Uploaded image is empty")
        if not CodecService.is_supported_media_type(media_type, allowed_image_types()):
            raise ValidationError(f"Unsupported image type: {media_type}")

        image = ImagePayload.from_bytes(raw, media_type.lower())
        session = self.sessions.dispatch(user_id, UploadImage(image))
        logger.debug("User %s uploaded a %s image (%d bytes)", user_id, image.media_type, len(raw))
        return session
