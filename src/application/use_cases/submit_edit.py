from __future__ import annotations

import logging
from dataclasses import dataclass

from src.domain.entities.edit_outcome import EditFailure, EditOutcome
from src.domain.entities.edit_session import EditSession
from src.domain.errors import NoImageReturned, RequestError
from src.domain.services.session_reducer import (
    EditFailed,
    EditSucceeded,
    SetPrompt,
    SubmitEdit,
    reduce_session,
)
from src.infrastructure.clients.image_edit_client import ImageEditClient
from src.infrastructure.sessions.session_store import SessionStore

logger = logging.getLogger(__name__)

EDIT_CANCELLED_MESSAGE = "The edit request was cancelled."


@dataclass
class SubmitEditUseCase:
    """
    Send the working image and prompt to the image-edit service.

    Single-flight: the session is marked pending before the request is
    awaited, so any other submission, upload or history selection for the
    same session is rejected until this one resolves. The request always
    resolves into either an adopted image or a failed status.
    """

    sessions: SessionStore
    client: ImageEditClient

    async def execute(self, user_id: str, prompt: str | None = None) -> EditSession:
        """
        Submit an edit for ``user_id``'s session.

        Args:
            user_id: The user owning the session
            prompt: Optional prompt to set before submitting

        Returns:
            The session after the request resolved

        Raises:
            ValidationError: No image or empty prompt (nothing is sent)
            SessionBusyError: Another request is already in flight
        """
        pending = self.sessions.get(user_id)
        if prompt is not None:
            pending = reduce_session(pending, SetPrompt(prompt))
        # raises before anything is stored
        pending = reduce_session(pending, SubmitEdit())

        image = pending.current_image
        submitted_prompt = pending.current_prompt
        logger.info(
            "Submitting edit for user %s (%s, prompt of %d chars)",
            user_id,
            image.media_type,
            len(submitted_prompt),
        )

        outcome: EditOutcome | None = None
        try:
            self.sessions.save(user_id, pending)
            outcome = await self.client.submit_edit(image, submitted_prompt)
        except Exception as exc:
            logger.exception("Image edit request raised unexpectedly")
            outcome = EditFailure(RequestError(f"An unknown error occurred while editing the image: {exc}"))
        finally:
            if outcome is None:
                # cancelled mid-request: release the pending state before the cancellation propagates
                logger.warning("Edit request for user %s was cancelled", user_id)
                self.sessions.dispatch(user_id, EditFailed(EDIT_CANCELLED_MESSAGE))

        session = self.sessions.dispatch(user_id, self._completion(outcome, submitted_prompt))
        if session.error_message:
            logger.info("Edit for user %s failed: %s", user_id, session.error_message)
        else:
            logger.info("Edit for user %s succeeded, history size %d", user_id, len(session.history))
        return session

    @staticmethod
    def _completion(outcome: EditOutcome, prompt: str) -> EditSucceeded | EditFailed:
        if isinstance(outcome, EditFailure):
            return EditFailed(outcome.error.message)
        if outcome.image is None:
            return EditFailed(NoImageReturned(outcome.response_text).message)
        return EditSucceeded(image=outcome.image, prompt=prompt, response_text=outcome.response_text)
