"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the account record types and the interfaces (ports)
that the domain requires from infrastructure. Adapters implement these
protocols through structural subtyping.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol


class VerificationState(str, Enum):
    """
    Account verification states.

    State Transitions (forward-only):
    - (no row) -> PENDING_VERIFICATION (register)
    - PENDING_VERIFICATION -> PENDING_VERIFICATION (re-register, resend)
    - PENDING_VERIFICATION -> VERIFIED (successful verification)

    VERIFIED is terminal. Stores refuse writes to a VERIFIED row.
    """

    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    VERIFIED = "VERIFIED"


@dataclass(frozen=True)
class Profile:
    """Account metadata carried through registration unchanged."""

    college: str
    committee: str
    contact: str


@dataclass(frozen=True)
class PendingCode:
    """An issued verification code and the instant it stops being valid."""

    code: str
    expires_at: datetime


@dataclass(frozen=True)
class Account:
    """
    One account per normalized email.

    ``version`` is the optimistic concurrency token owned by the store:
    0 for an account that has never been written, otherwise the value
    read back from the store.
    """

    email: str
    password_hash: str
    profile: Profile
    state: VerificationState
    pending_code: PendingCode | None = None
    version: int = 0

    @property
    def is_verified(self) -> bool:
        return self.state is VerificationState.VERIFIED


class AccountStore(Protocol):
    """Port interface for account persistence."""

    def find_by_email(self, email: str) -> Account | None:
        """
        Fetch the account stored under a normalized email.

        Raises:
            AccountStoreError: If the store cannot be reached
        """
        ...

    def upsert(self, account: Account) -> bool:
        """
        Conditionally create or overwrite an account.

        The write only applies when the stored version still equals
        ``account.version`` (or no row exists) and the stored row is not
        VERIFIED. The store bumps the version on every applied write.

        Returns:
            True if the write was applied, False on a version conflict

        Raises:
            AccountStoreError: If the store cannot be reached
        """
        ...

    def ping(self) -> None:
        """Raise AccountStoreError if the store is not reachable."""
        ...


class Notifier(Protocol):
    """Port interface for verification code delivery."""

    def send_verification_code(self, email: str, code: str) -> None:
        """
        Deliver a verification code to an email address.

        Raises:
            NotificationError: If delivery failed
        """
        ...


class CredentialVerifier(Protocol):
    """Port interface for one-way password hashing."""

    def hash(self, raw: str) -> str:
        """
        Hash a password with a fresh salt.

        Raises:
            ValueError: If the password cannot be hashed (e.g. too long)
        """
        ...

    def compare(self, raw: str, hashed: str) -> bool: ...


class SessionTokenIssuer(Protocol):
    """Port interface for signed session credentials."""

    @property
    def ttl_seconds(self) -> int:
        """Validity window of issued tokens."""
        ...

    def issue(self, email: str) -> str:
        """Return a signed token identifying ``email``."""
        ...

    def decode(self, token: str) -> str | None:
        """Return the email carried by a valid token, or None."""
        ...
