"""
Application errors for clean API error handling.

Every failure the services report is a ServiceError tagged with an ErrorKind.
The API layer turns the kind into an HTTP status and the message into the
{"error": message} body; nothing below the API layer knows about HTTP.
"""

from enum import Enum


class ErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    BAD_REQUEST = "bad_request"
    NOT_FOUND = "not_found"
    UPLOAD_FAILED = "upload_failed"
    INGESTION_FAILED = "ingestion_failed"
    INGESTION_TIMEOUT = "ingestion_timeout"
    GENERATION_FAILED = "generation_failed"
    IO_ERROR = "io_error"
    BACKEND_ERROR = "backend_error"


HTTP_STATUS: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.NOT_FOUND: 500,
    ErrorKind.UPLOAD_FAILED: 500,
    ErrorKind.INGESTION_FAILED: 500,
    ErrorKind.INGESTION_TIMEOUT: 500,
    ErrorKind.GENERATION_FAILED: 500,
    ErrorKind.IO_ERROR: 500,
    ErrorKind.BACKEND_ERROR: 500,
}


class ServiceError(Exception):
    """Tagged failure raised by services; `stage` names the ingestion step that failed."""

    def __init__(self, kind: ErrorKind, message: str, stage: str | None = None) -> None:
        self.kind = kind
        self.message = message
        self.stage = stage
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS.get(self.kind, 500)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message}

    def __repr__(self) -> str:
        return f"ServiceError({self.kind.value!r}, {self.message!r}, stage={self.stage!r})"


class BackendError(ServiceError):
    """Raised by backend adapters for failures other than not-found."""

    def __init__(self, message: str, code: int | None = None) -> None:
        self.code = code
        super().__init__(ErrorKind.BACKEND_ERROR, message)


def unauthorized(message: str = "API key required") -> ServiceError:
    return ServiceError(ErrorKind.UNAUTHORIZED, message)


def bad_request(message: str) -> ServiceError:
    return ServiceError(ErrorKind.BAD_REQUEST, message)


def not_found(message: str) -> ServiceError:
    return ServiceError(ErrorKind.NOT_FOUND, message)
