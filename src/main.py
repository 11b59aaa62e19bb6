from __future__ import annotations

from fastapi import FastAPI

from src.application.dtos.common_dto import HealthResponse, RootResponse
from src.infrastructure.api.middlewares import add_default_middlewares
from src.infrastructure.api.routes.auth_routes import router as auth_router
from src.infrastructure.api.routes.history_routes import router as history_router
from src.infrastructure.api.routes.session_routes import router as session_router
from src.infrastructure.logging_config import setup_logging


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(
        title="PromptEdit Backend",
        version="0.1.0",
        description="""
        ## PromptEdit Backend API

        FastAPI backend for iterative, prompt-driven image editing. Each user
        owns one in-memory edit session: a working image, the prompt for the
        next edit, and an undo-style history of every image it replaced.

        ### Features
        - **Authentication**: Token-based authentication with Supabase
        - **Edit Session**: Upload a base image and send natural-language edit
          requests to the remote image-edit service, one at a time
        - **History**: Every replaced image is archived with the prompt that
          produced it; any archived image can be restored without losing the
          current one

        ### Authentication
        All endpoints (except root and health) require authentication via Bearer token
        in the Authorization header:
        ```
        Authorization: Bearer your-jwt-token
        ```

        ### Error Responses
        - **400 Bad Request**: Missing image or prompt, invalid or unsupported image file
        - **401 Unauthorized**: Missing or invalid authentication token
        - **404 Not Found**: Requested history entry or image does not exist
        - **409 Conflict**: An edit request is already in flight for the session
        - **413 Payload Too Large**: Uploaded file exceeds the size limit
        - **422 Unprocessable Entity**: Validation error in request body
        """,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )
    add_default_middlewares(app)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the PromptEdit API",
        response_description="API information including status and version",
    )
    def root():
        """Get API root information."""
        return {"status": "ok", "service": "promptedit-backend", "version": app.version}

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the API service is running and healthy",
        response_description="Health status of the API service",
    )
    def health():
        """Check API health status."""
        return {"status": "healthy"}

    app.include_router(auth_router)
    app.include_router(session_router)
    app.include_router(history_router)
    return app


app = create_app()
