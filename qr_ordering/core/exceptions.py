"""
Domain Exceptions

Services raise these instead of HTTPException so they stay usable from
Celery tasks and scripts. The FastAPI application maps each one to a JSON
error response with the attached status code.
"""

from typing import Optional


class QROrderingError(Exception):
    """Base class for every expected, user-facing failure."""

    status_code = 400
    error = "Bad Request"

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": self.error,
            "detail": self.message if self.detail is None else f"{self.message}: {self.detail}",
        }


class ValidationFailedError(QROrderingError):
    status_code = 400
    error = "Validation Failed"


class AuthenticationError(QROrderingError):
    status_code = 401
    error = "Unauthorized"


class PermissionDeniedError(QROrderingError):
    status_code = 403
    error = "Forbidden"


class NotFoundError(QROrderingError):
    status_code = 404
    error = "Not Found"


class ConflictError(QROrderingError):
    status_code = 409
    error = "Conflict"


class InvalidStateError(ConflictError):
    """An order or shift is not in a state that allows the operation."""

    error = "Invalid State"
