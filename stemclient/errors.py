"""Error taxonomy shared by the API client and the job lifecycle components.

Transport and server errors describe what happened on the wire; the one-shot
flows (upload, download, cancel) wrap them in an operation-scoped error that
carries a human-readable message for the user.
"""

from __future__ import annotations

from typing import Optional


class StemClientError(Exception):
    """Base class for every error raised by the client."""


class TransportError(StemClientError):
    """Network unreachable, connection reset or request timeout."""


class NotFoundError(StemClientError):
    """The server does not know the requested job."""


class ServerError(StemClientError):
    """Non-2xx response; ``body`` holds the response text when available."""

    def __init__(self, message: str, status_code: int, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ValidationError(StemClientError, ValueError):
    """Rejected locally, before any network call."""


class OperationError(StemClientError):
    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class UploadError(OperationError):
    pass


class DownloadError(OperationError):
    pass


class CancelError(OperationError):
    pass
