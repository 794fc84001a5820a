"""
Domain layer - Pure business logic with zero framework imports.

This package contains the account state machine governing registration,
email verification and login. It defines its own port interfaces for
infrastructure abstraction, ensuring true hexagonal architecture decoupling.
"""

from .accounts import AccountStateMachine
from .codes import CodeGenerator
from .exceptions import AccountError, AccountStoreError, NotificationError
from .locking import KeyedLock
from .ports import (
    Account,
    AccountStore,
    CredentialVerifier,
    Notifier,
    PendingCode,
    Profile,
    SessionTokenIssuer,
    VerificationState,
)
from .results import ErrorKind, OperationResult

__all__ = [
    "Account",
    "AccountError",
    "AccountStateMachine",
    "AccountStore",
    "AccountStoreError",
    "CodeGenerator",
    "CredentialVerifier",
    "ErrorKind",
    "KeyedLock",
    "Notifier",
    "NotificationError",
    "OperationResult",
    "PendingCode",
    "Profile",
    "SessionTokenIssuer",
    "VerificationState",
]
