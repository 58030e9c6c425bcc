# eventix/errors.py
"""Error kinds raised by the service layer.

Every error carries an HTTP status code and a human-readable message; the
request layer in ``main.py`` turns them into the JSON error envelope.
"""
from __future__ import annotations


class EventixError(Exception):
    """Base class for all application errors."""

    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(EventixError):
    status_code = 400
    default_message = "Invalid input"


class NotFoundError(EventixError):
    status_code = 404
    default_message = "Not found"


class SlotNotAvailableError(EventixError):
    status_code = 400
    default_message = "Time slot not available"


class SlotFullError(SlotNotAvailableError):
    """Capacity exhausted. Also a ``SlotNotAvailableError``."""

    default_message = "Time slot is full"


class InvalidTokenError(EventixError):
    status_code = 400
    default_message = "Invalid or expired token"


class TokenExpiredError(EventixError):
    status_code = 400
    default_message = "Token expired"


class ConflictError(EventixError):
    status_code = 409
    default_message = "Already exists"


class AuthenticationError(EventixError):
    status_code = 401
    default_message = "Unauthorized request"


class PermissionDeniedError(EventixError):
    status_code = 403
    default_message = "Access denied"


class InternalError(EventixError):
    pass


class NotificationError(InternalError):
    default_message = "Failed to send email"


class LLMError(InternalError):
    default_message = "Failed to generate content"
