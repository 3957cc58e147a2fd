"""Error taxonomy for the remote resource store."""

from enum import Enum

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


class ErrorKind(str, Enum):
    NETWORK = "network"
    CONSTRAINT = "constraint"
    DUPLICATE = "duplicate"
    NOT_FOUND = "not_found"
    MALFORMED = "malformed"


class RestError(Exception):
    """Base class for every failure talking to the backend."""

    kind = ErrorKind.NETWORK

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransportError(RestError):
    """The request never produced an HTTP response."""

    kind = ErrorKind.NETWORK


class MalformedResponseError(RestError):
    """The response body could not be decoded or had an unexpected shape."""

    kind = ErrorKind.MALFORMED


class ApiError(RestError):
    """The backend answered with a non-2xx status."""

    def __init__(self, message: str, *, status_code: int, code: str | None = None, details: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.details = details

    @property
    def is_unique_violation(self) -> bool:
        if self.code == UNIQUE_VIOLATION:
            return True
        return "duplicate key" in self.message.lower()

    @property
    def kind(self) -> ErrorKind:
        if self.is_unique_violation:
            return ErrorKind.DUPLICATE
        if self.status_code == 404:
            return ErrorKind.NOT_FOUND
        if 400 <= self.status_code < 500:
            return ErrorKind.CONSTRAINT
        return ErrorKind.NETWORK

    @classmethod
    def from_response(cls, response) -> "ApiError":
        """Build from a ``requests.Response`` carrying a PostgREST or auth error body."""
        code = None
        details = None
        message = ""
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            code = body.get("code")
            code = str(code) if code is not None else None
            details = body.get("details")
            message = (
                body.get("message")
                or body.get("msg")
                or body.get("error_description")
                or body.get("error")
                or ""
            )
        if not message:
            message = response.text or f"HTTP {response.status_code}"

        return cls(str(message), status_code=response.status_code, code=code, details=details)

    def __str__(self) -> str:
        prefix = f"[{self.code}] " if self.code else ""
        return f"{prefix}{self.message} (HTTP {self.status_code})"
