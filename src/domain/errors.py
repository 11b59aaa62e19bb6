from __future__ import annotations


class EditSessionError(Exception):
    """Base class for every error raised by the edit-session core."""


class ValidationError(EditSessionError, ValueError):
    """A caller-side precondition failed. Never reaches the network."""


class SessionBusyError(ValidationError):
    """The action was rejected because an edit request is still in flight."""


class MalformedPayload(EditSessionError, ValueError):
    """Encoded image data or a transport payload could not be parsed."""


class RequestError(EditSessionError):
    """Base class for failures of the remote image-edit call."""

    kind = "request_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NetworkError(RequestError):
    kind = "network_error"


class ServiceError(RequestError):
    kind = "service_error"

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(RequestError):
    kind = "malformed_response"


class NoImageReturned(EditSessionError):
    """The service accepted the request but produced no usable image."""

    DEFAULT_MESSAGE = "The service did not return an edited image."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.DEFAULT_MESSAGE
        super().__init__(self.message)
