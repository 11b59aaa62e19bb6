"""
Tests for the submit-edit use case and its single-flight behaviour.
"""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from src.application.use_cases.submit_edit import EDIT_CANCELLED_MESSAGE, SubmitEditUseCase
from src.domain.entities.edit_outcome import EditFailure, EditSuccess
from src.domain.entities.edit_session import INITIAL_UPLOAD_PROMPT, SessionStatus
from src.domain.entities.image_payload import ImagePayload
from src.domain.errors import NetworkError, NoImageReturned, ServiceError, SessionBusyError, ValidationError
from src.domain.services.session_reducer import SetPrompt, UploadImage
from src.infrastructure.sessions.session_store import SessionStore

IMG_A = ImagePayload.from_bytes(b"image-a", "image/png")
IMG_B = ImagePayload.from_bytes(b"image-b", "image/png")
USER = "user_1"


@pytest.fixture
def store() -> SessionStore:
    return SessionStore(sessions={}, listeners={})


@pytest.fixture
def client():
    edit_client = Mock()
    edit_client.submit_edit = AsyncMock()
    return edit_client


def _with_image(store: SessionStore, prompt: str = "add hat") -> None:
    store.dispatch(USER, UploadImage(IMG_A))
    store.dispatch(USER, SetPrompt(prompt))


class TestSubmitEditUseCase:
    @pytest.mark.asyncio
    async def test_success_adopts_image(self, store, client):
        _with_image(store)
        client.submit_edit.return_value = EditSuccess(image=IMG_B, response_text="Added a hat")

        session = await SubmitEditUseCase(store, client).execute(USER)

        client.submit_edit.assert_awaited_once_with(IMG_A, "add hat")
        assert session.current_image == IMG_B
        assert session.current_prompt == ""
        assert session.status is SessionStatus.IDLE
        assert session.associated_prompt == "add hat"
        assert session.last_response_text == "Added a hat"
        assert [e.image for e in session.history.list()] == [IMG_A]
        assert session.history.list()[0].prompt == INITIAL_UPLOAD_PROMPT
        assert store.get(USER) is session

    @pytest.mark.asyncio
    async def test_prompt_argument_is_applied_first(self, store, client):
        _with_image(store, prompt="")
        client.submit_edit.return_value = EditSuccess(image=IMG_B)

        await SubmitEditUseCase(store, client).execute(USER, prompt="add hat")

        client.submit_edit.assert_awaited_once_with(IMG_A, "add hat")

    @pytest.mark.asyncio
    async def test_no_image_returned_fails_with_service_text(self, store, client):
        _with_image(store)
        client.submit_edit.return_value = EditSuccess(image=None, response_text="I can't do that")

        session = await SubmitEditUseCase(store, client).execute(USER)

        assert session.status is SessionStatus.FAILED
        assert session.error_message == "I can't do that"
        assert session.current_image == IMG_A
        assert session.current_prompt == "add hat"
        assert session.history.is_empty()

    @pytest.mark.asyncio
    async def test_no_image_and_no_text_uses_default_message(self, store, client):
        _with_image(store)
        client.submit_edit.return_value = EditSuccess(image=None)

        session = await SubmitEditUseCase(store, client).execute(USER)

        assert session.error_message == NoImageReturned.DEFAULT_MESSAGE

    @pytest.mark.asyncio
    async def test_service_error(self, store, client):
        _with_image(store)
        client.submit_edit.return_value = EditFailure(ServiceError(500, "rate limited"))

        session = await SubmitEditUseCase(store, client).execute(USER)

        assert session.status is SessionStatus.FAILED
        assert session.error_message == "rate limited"
        assert session.current_image == IMG_A

    @pytest.mark.asyncio
    async def test_network_error(self, store, client):
        _with_image(store)
        client.submit_edit.return_value = EditFailure(NetworkError("connection refused"))

        session = await SubmitEditUseCase(store, client).execute(USER)

        assert session.status is SessionStatus.FAILED
        assert session.error_message == "connection refused"

    @pytest.mark.asyncio
    async def test_unexpected_client_exception_does_not_leave_session_pending(self, store, client):
        _with_image(store)
        client.submit_edit.side_effect = RuntimeError("kaboom")

        session = await SubmitEditUseCase(store, client).execute(USER)

        assert session.status is SessionStatus.FAILED
        assert "kaboom" in session.error_message
        assert session.current_image == IMG_A

    @pytest.mark.asyncio
    async def test_cancelled_request_does_not_leave_session_pending(self, store, client):
        _with_image(store)
        started = asyncio.Event()

        async def hanging_edit(image, prompt):
            started.set()
            await asyncio.Event().wait()

        client.submit_edit.side_effect = hanging_edit
        task = asyncio.create_task(SubmitEditUseCase(store, client).execute(USER))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        session = store.get(USER)
        assert session.status is SessionStatus.FAILED
        assert session.error_message == EDIT_CANCELLED_MESSAGE
        assert session.current_image == IMG_A
        assert session.current_prompt == "add hat"
        # the session is usable again
        assert store.dispatch(USER, UploadImage(IMG_B)).current_image == IMG_B
        assert store.reset(USER).status is SessionStatus.IDLE

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_leave_session_pending(self, store, client):
        _with_image(store)
        client.submit_edit.return_value = EditSuccess(image=IMG_B)
        seen = []

        def listener(session):
            seen.append(session.status)
            if session.status is SessionStatus.PENDING:
                raise RuntimeError("listener down")

        store.subscribe(USER, listener)
        session = await SubmitEditUseCase(store, client).execute(USER)

        client.submit_edit.assert_not_awaited()
        assert session.status is SessionStatus.FAILED
        assert "listener down" in session.error_message
        assert seen == [SessionStatus.PENDING, SessionStatus.FAILED]

    @pytest.mark.asyncio
    async def test_empty_prompt_never_reaches_network(self, store, client):
        _with_image(store, prompt="")
        before = store.get(USER)

        with pytest.raises(ValidationError):
            await SubmitEditUseCase(store, client).execute(USER)

        client.submit_edit.assert_not_awaited()
        assert store.get(USER) is before
        assert before.status is SessionStatus.IDLE

    @pytest.mark.asyncio
    async def test_missing_image_never_reaches_network(self, store, client):
        store.dispatch(USER, SetPrompt("add hat"))

        with pytest.raises(ValidationError):
            await SubmitEditUseCase(store, client).execute(USER)

        client.submit_edit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_single_flight(self, store, client):
        _with_image(store)
        release = asyncio.Event()

        async def slow_edit(image, prompt):
            await release.wait()
            return EditSuccess(image=IMG_B)

        client.submit_edit.side_effect = slow_edit
        uc = SubmitEditUseCase(store, client)

        first = asyncio.create_task(uc.execute(USER))
        await asyncio.sleep(0)
        assert store.get(USER).status is SessionStatus.PENDING

        with pytest.raises(SessionBusyError):
            await uc.execute(USER)
        with pytest.raises(SessionBusyError):
            await uc.execute(USER, prompt="something else")
        with pytest.raises(SessionBusyError):
            store.dispatch(USER, UploadImage(IMG_B))
        with pytest.raises(SessionBusyError):
            store.reset(USER)

        release.set()
        session = await first

        assert client.submit_edit.await_count == 1
        assert session.status is SessionStatus.IDLE
        assert session.current_image == IMG_B
