from __future__ import annotations

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from src.infrastructure.api.dependencies import get_current_user

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing authentication token"},
        422: {"description": "Validation Error - Invalid request format"}
    }
)


class ValidateTokenResponse(BaseModel):
    """Response model for token validation."""
    user_id: str = Field(..., description="Unique identifier of the authenticated user")
    email: str | None = Field(None, description="Email address of the authenticated user", example="user@example.com")


@router.post(
    "/validate",
    response_model=ValidateTokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Validate Authentication Token",
    description="""
    Validate the provided JWT token and return the user it belongs to.

    The returned user id is the owner of the edit session served by the
    `/session` endpoints.

    **Authentication required**: Yes (Bearer token)
    """,
    response_description="User information confirming valid authentication"
)
def validate_token(user=Depends(get_current_user)):
    """Validate JWT token."""
    return {"user_id": user.id, "email": user.email}
