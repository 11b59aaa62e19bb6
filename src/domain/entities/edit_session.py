from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.domain.entities.history_buffer import HistoryBuffer
from src.domain.entities.image_payload import ImagePayload

INITIAL_UPLOAD_PROMPT = "Initial Upload"
RESTORED_PROMPT = "Restored from history"


class SessionStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    FAILED = "failed"


@dataclass(frozen=True)
class EditSession:
    """Working state of one user's edit chain.

    Values are never mutated in place; transitions produce a new session
    (see ``src.domain.services.session_reducer``).
    """

    current_image: ImagePayload | None = None
    current_prompt: str = ""
    associated_prompt: str | None = None  # Prompt (or sentinel) that produced current_image
    last_response_text: str | None = None
    status: SessionStatus = SessionStatus.IDLE
    error_message: str | None = None  # Set only while status is FAILED
    history: HistoryBuffer = field(default_factory=HistoryBuffer)
    next_entry_seq: int = 1

    @property
    def has_image(self) -> bool:
        return self.current_image is not None

    @property
    def is_pending(self) -> bool:
        return self.status is SessionStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        from src.domain.services.codec_service import CodecService

        return {
            "current_image": (
                CodecService.to_transport_payload(self.current_image) if self.current_image else None
            ),
            "media_type": self.current_image.media_type if self.current_image else None,
            "current_prompt": self.current_prompt,
            "associated_prompt": self.associated_prompt,
            "last_response_text": self.last_response_text,
            "status": self.status.value,
            "error_message": self.error_message,
            "history": [
                {
                    "id": entry.id,
                    "image": CodecService.to_transport_payload(entry.image),
                    "media_type": entry.image.media_type,
                    "prompt": entry.prompt,
                    "service_response_text": entry.service_response_text,
                    "created_at": entry.created_at.isoformat(),
                }
                for entry in self.history.list()
            ],
        }
