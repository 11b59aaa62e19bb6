from __future__ import annotations

import base64
import binascii
import re

from src.domain.entities.image_payload import ImagePayload
from src.domain.errors import MalformedPayload

DEFAULT_IMAGE_TYPES = ("image/png", "image/jpeg", "image/webp")

_MEDIA_TYPE_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9!#$&^_.+-]*/[a-zA-Z0-9][a-zA-Z0-9!#$&^_.+-]*$")


class CodecService:
    """Conversions between raw image bytes, base64 text and data-URL transport payloads.

    Transport layout: ``data:<media_type>;base64,<data>``
    """

    DATA_PREFIX = "data:"
    DELIMITER = ";base64,"

    @staticmethod
    def encode(raw: bytes) -> str:
        return base64.b64encode(raw).decode("ascii")

    @staticmethod
    def decode(data: str) -> bytes:
        try:
            return base64.b64decode(data.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError, ValueError) as exc:
            raise MalformedPayload(f"Invalid base64 image data: {exc}") from exc

    @staticmethod
    def is_valid_media_type(media_type: str) -> bool:
        return bool(media_type) and _MEDIA_TYPE_RE.match(media_type) is not None

    @staticmethod
    def is_supported_media_type(
        media_type: str, allowed: tuple[str, ...] | list[str] = DEFAULT_IMAGE_TYPES
    ) -> bool:
        return media_type.lower() in {m.lower() for m in allowed}

    @classmethod
    def to_transport_payload(cls, payload: ImagePayload) -> str:
        return f"{cls.DATA_PREFIX}{payload.media_type}{cls.DELIMITER}{payload.data}"

    @classmethod
    def from_transport_payload(cls, value: str) -> ImagePayload:
        if not value.startswith(cls.DATA_PREFIX):
            raise MalformedPayload("Transport payload must start with 'data:'")
        head, sep, data = value[len(cls.DATA_PREFIX) :].partition(cls.DELIMITER)
        if not sep:
            raise MalformedPayload("Transport payload is missing the ';base64,' delimiter")
        if not cls.is_valid_media_type(head):
            raise MalformedPayload(f"Unrecognized media type: {head!r}")
        # validates the data part, result is discarded
        cls.decode(data)
        return ImagePayload(data=data, media_type=head)
