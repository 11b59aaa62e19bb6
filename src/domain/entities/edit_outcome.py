from __future__ import annotations

from dataclasses import dataclass

from src.domain.entities.image_payload import ImagePayload
from src.domain.errors import RequestError


@dataclass(frozen=True)
class EditSuccess:
    """The service answered with 2xx. ``image`` is None when it declined to
    produce one (text-only answer)."""

    image: ImagePayload | None
    response_text: str | None = None


@dataclass(frozen=True)
class EditFailure:
    error: RequestError


EditOutcome = EditSuccess | EditFailure
