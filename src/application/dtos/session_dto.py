from __future__ import annotations

from pydantic import BaseModel, Field

from src.application.dtos.history_dto import HistoryItem
from src.domain.entities.edit_session import EditSession, SessionStatus


class SessionStateResponse(BaseModel):
    """Full state of the caller's edit session."""
    current_image: str | None = Field(
        None, description="Working image as a data URL, absent before the first upload"
    )
    media_type: str | None = Field(None, description="MIME type of the working image", example="image/png")
    current_prompt: str = Field("", description="Prompt text for the next edit")
    associated_prompt: str | None = Field(
        None, description="Prompt that produced the working image", example="Initial Upload"
    )
    last_response_text: str | None = Field(
        None, description="Commentary the edit service attached to the working image"
    )
    status: SessionStatus = Field(..., description="Request lifecycle status", example="idle")
    error_message: str | None = Field(None, description="Failure message when status is 'failed'")
    history: list[HistoryItem] = Field(default_factory=list, description="Archived images, newest first")

    @classmethod
    def from_session(cls, session: EditSession) -> SessionStateResponse:
        return cls.model_validate(session.to_dict())


class SetPromptRequest(BaseModel):
    """Request model for updating the prompt text."""
    prompt: str = Field(..., description="Prompt text, may be empty", example="Make the cat wear a party hat")


class SubmitEditRequest(BaseModel):
    """Request model for submitting an edit."""
    prompt: str | None = Field(
        None, description="Prompt to set before submitting; the stored prompt is used when omitted"
    )


class ResetSessionResponse(BaseModel):
    """Response model for session reset."""
    ok: bool = Field(True, description="Indicates whether the session was reset")
