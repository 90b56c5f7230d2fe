"""Error taxonomy shared by the stores and the API layer.

Every error carries the HTTP status it maps to and a client-safe message.
Operator-facing detail (connection categories, tracebacks) belongs in logs,
never in :attr:`MessageBoardError.message`.
"""

from __future__ import annotations


class MessageBoardError(Exception):
    """Base class for errors the API layer knows how to render."""

    status_code: int = 500
    error: str = "Internal server error"
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def envelope(self) -> dict:
        return {"error": self.error, "message": self.message}


class ValidationError(MessageBoardError):
    status_code = 400
    error = "Validation error"
    default_message = "Invalid request"


class NotFound(MessageBoardError):
    status_code = 404
    error = "Not found"
    default_message = "Message not found"


class StoreUnavailable(MessageBoardError):
    status_code = 503
    error = "Service unavailable"
    default_message = "Message store is temporarily unavailable"


class ConfigurationMissing(StoreUnavailable):
    error = "Database not configured"
    default_message = "The message database has not been configured"


class ConnectionFailed(StoreUnavailable):
    """The database could not be reached.

    ``category`` is one of ``"dns"``, ``"auth"`` or ``"other"`` and is meant
    for log lines only; the client sees the generic message.
    """

    def __init__(self, category: str = "other", message: str | None = None) -> None:
        self.category = category
        super().__init__(message)


class InternalError(MessageBoardError):
    pass
