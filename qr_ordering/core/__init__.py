"""
Core module initialization.
Exports configuration, logging utilities and domain exceptions.
"""

from qr_ordering.core.config import get_settings, Settings, EnvironmentMode
from qr_ordering.core.exceptions import (
    QROrderingError,
    ValidationFailedError,
    AuthenticationError,
    PermissionDeniedError,
    NotFoundError,
    ConflictError,
    InvalidStateError,
)

__all__ = [
    "get_settings",
    "Settings",
    "EnvironmentMode",
    "QROrderingError",
    "ValidationFailedError",
    "AuthenticationError",
    "PermissionDeniedError",
    "NotFoundError",
    "ConflictError",
    "InvalidStateError",
]
