"""
Domain exceptions - Semantic error types raised by infrastructure ports.

Adapters raise these so the state machine can translate infrastructure
faults into structured results without importing any driver or transport.
"""


class AccountError(Exception):
    """Base class for account domain errors."""

    pass


class AccountStoreError(AccountError):
    """Account store unreachable, or a write could not be committed."""

    pass


class NotificationError(AccountError):
    """Verification code could not be delivered to the recipient."""

    pass
