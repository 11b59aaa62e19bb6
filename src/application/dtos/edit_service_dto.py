"""Wire models for the remote image-edit service."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class EditImageRequest(BaseModel):
    """Body POSTed to the image-edit service."""
    model_config = ConfigDict(populate_by_name=True)

    image_data_b64: str = Field(..., alias="imageDataB64", description="Base64 image data without data-URL prefix")
    mime_type: str = Field(..., alias="mimeType", description="Media type of the image", example="image/png")
    prompt: str = Field(..., description="Natural-language edit instruction", example="Add a party hat")


class EditImageResponse(BaseModel):
    """Successful (2xx) body returned by the image-edit service."""
    model_config = ConfigDict(populate_by_name=True)

    edited_image_data_b64: str | None = Field(None, alias="editedImageDataB64")
    mime_type: str | None = Field(None, alias="mimeType")
    text_response: str | None = Field(None, alias="textResponse")
