from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from src.domain.entities.history_entry import HistoryEntry
from src.domain.services.codec_service import CodecService


class HistoryItem(BaseModel):
    """An archived image of the edit chain, ready for display."""
    id: str = Field(..., description="Unique identifier of the history entry", example="hist_1")
    image: str = Field(..., description="Archived image as a data URL", example="data:image/png;base64,iVBORw0...")
    media_type: str = Field(..., description="MIME type of the archived image", example="image/png")
    prompt: str | None = Field(None, description="Prompt that produced this image", example="add hat")
    service_response_text: str | None = Field(
        None, description="Commentary the edit service attached to this image", example="Added a hat"
    )
    created_at: datetime = Field(..., description="ISO timestamp when the image was archived")

    @classmethod
    def from_entity(cls, entry: HistoryEntry) -> HistoryItem:
        return cls(
            id=entry.id,
            image=CodecService.to_transport_payload(entry.image),
            media_type=entry.image.media_type,
            prompt=entry.prompt,
            service_response_text=entry.service_response_text,
            created_at=entry.created_at,
        )


class ListHistoryResponse(BaseModel):
    """Response model for listing the edit history, newest first."""
    history: list[HistoryItem] = Field(..., description="List of history items")
    total: int = Field(..., description="Number of archived images", example=3, ge=0)
