from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from src.domain.entities.image_payload import ImagePayload


@dataclass(frozen=True)
class HistoryEntry:
    id: str
    image: ImagePayload
    prompt: str | None = None  # The prompt that produced this image
    service_response_text: str | None = None  # Commentary the service attached to it
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
