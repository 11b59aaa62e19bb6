from __future__ import annotations

import dataclasses
from dataclasses import dataclass

from src.domain.entities.edit_session import (
    INITIAL_UPLOAD_PROMPT,
    RESTORED_PROMPT,
    EditSession,
    SessionStatus,
)
from src.domain.entities.history_entry import HistoryEntry
from src.domain.entities.image_payload import ImagePayload
from src.domain.errors import SessionBusyError, ValidationError


@dataclass(frozen=True)
class UploadImage:
    image: ImagePayload


@dataclass(frozen=True)
class SetPrompt:
    text: str


@dataclass(frozen=True)
class SubmitEdit:
    pass


@dataclass(frozen=True)
class EditSucceeded:
    image: ImagePayload
    prompt: str
    response_text: str | None = None


@dataclass(frozen=True)
class EditFailed:
    message: str


@dataclass(frozen=True)
class SelectHistoryEntry:
    entry_id: str


SessionAction = UploadImage | SetPrompt | SubmitEdit | EditSucceeded | EditFailed | SelectHistoryEntry


def _archive_current(session: EditSession) -> EditSession:
    """Push the working image onto a copy of the history, with the prompt and
    response that were associated with it."""
    if session.current_image is None:
        return session
    history = session.history.copy()
    history.push(
        HistoryEntry(
            id=f"hist_{session.next_entry_seq}",
            image=session.current_image,
            prompt=session.associated_prompt,
            service_response_text=session.last_response_text,
        )
    )
    return dataclasses.replace(session, history=history, next_entry_seq=session.next_entry_seq + 1)


def _reject_if_pending(session: EditSession, action: str) -> None:
    if session.is_pending:
        raise SessionBusyError(f"Cannot {action} while an edit request is in flight")


def validate_submit(session: EditSession) -> None:
    """Raise if an edit cannot be submitted from this state."""
    _reject_if_pending(session, "submit an edit")
    if session.current_image is None:
        raise ValidationError("Please select an image before submitting an edit.")
    if not session.current_prompt:
        raise ValidationError("Please enter a prompt before submitting an edit.")


def reduce_session(session: EditSession, action: SessionAction) -> EditSession:
    """Apply one action and return the resulting session.

    The input session is left untouched. Rejected actions raise
    ``ValidationError`` (``SessionBusyError`` while pending) without any
    state change.
    """
    if isinstance(action, UploadImage):
        _reject_if_pending(session, "upload an image")
        archived = _archive_current(session)
        return dataclasses.replace(
            archived,
            current_image=action.image,
            associated_prompt=INITIAL_UPLOAD_PROMPT,
            last_response_text=None,
            current_prompt="",
            status=SessionStatus.IDLE,
            error_message=None,
        )

    if isinstance(action, SetPrompt):
        return dataclasses.replace(session, current_prompt=action.text)

    if isinstance(action, SubmitEdit):
        validate_submit(session)
        return dataclasses.replace(session, status=SessionStatus.PENDING, error_message=None)

    if isinstance(action, EditSucceeded):
        if not session.is_pending:
            raise ValidationError("No edit request is in flight")
        archived = _archive_current(session)
        return dataclasses.replace(
            archived,
            current_image=action.image,
            associated_prompt=action.prompt,
            last_response_text=action.response_text,
            current_prompt="",
            status=SessionStatus.IDLE,
            error_message=None,
        )

    if isinstance(action, EditFailed):
        if not session.is_pending:
            raise ValidationError("No edit request is in flight")
        return dataclasses.replace(session, status=SessionStatus.FAILED, error_message=action.message)

    if isinstance(action, SelectHistoryEntry):
        _reject_if_pending(session, "restore a history entry")
        history = session.history.copy()
        entry = history.remove(action.entry_id)
        if entry is None:
            return session
        restored = dataclasses.replace(session, history=history)
        current = session.current_image
        if current is not None and current.data != entry.image.data:
            restored = _archive_current(restored)
        if entry.prompt and entry.prompt != INITIAL_UPLOAD_PROMPT:
            associated = entry.prompt
        else:
            associated = RESTORED_PROMPT
        return dataclasses.replace(
            restored,
            current_image=entry.image,
            associated_prompt=associated,
            last_response_text=entry.service_response_text,
            current_prompt=entry.prompt or "",
            status=SessionStatus.IDLE,
            error_message=None,
        )

    raise ValidationError(f"Unsupported action: {type(action).__name__}")
