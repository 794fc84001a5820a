"""
Operation results - Tagged success/failure values returned by the state machine.

Every account operation returns an OperationResult instead of raising, so
callers handle each outcome explicitly.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """Failure reasons reported to callers."""

    # Validation (rejected before touching state)
    VALIDATION_FAILED = "validation_failed"
    MISSING_EMAIL = "missing_email"
    MISSING_FIELD = "missing_field"
    # Conflict
    ALREADY_REGISTERED = "already_registered"
    ALREADY_VERIFIED = "already_verified"
    # Lookup
    NOT_FOUND = "not_found"
    # Code checks
    CODE_EXPIRED = "code_expired"
    INVALID_CODE = "invalid_code"
    # Authentication
    INVALID_CREDENTIALS = "invalid_credentials"
    NOT_VERIFIED = "not_verified"
    # Infrastructure
    NOTIFICATION_FAILED = "notification_failed"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class OperationResult:
    """
    Outcome of an account operation.

    ``error`` is None on success. ``email`` is echoed by register and
    ``token`` is set by login.
    """

    error: ErrorKind | None = None
    email: str | None = None
    token: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, email: str | None = None, token: str | None = None) -> "OperationResult":
        return cls(email=email, token=token)

    @classmethod
    def failure(cls, error: ErrorKind) -> "OperationResult":
        return cls(error=error)
