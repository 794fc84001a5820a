"""
Account state machine - Verification code lifecycle and login.

This module contains the core business logic: issuing, replacing and
consuming verification codes, and authenticating verified accounts.

Account State Machine (Forward-Only Transitions)
================================================

States:
- Unregistered: no row stored for the email
- PENDING_VERIFICATION: credentials stored, email ownership unconfirmed
- VERIFIED: terminal state after a correct code was submitted in time

Transitions:
    Unregistered         -> PENDING_VERIFICATION  (register)
    PENDING_VERIFICATION -> PENDING_VERIFICATION  (register again, resend:
                                                   the new code replaces the old one)
    PENDING_VERIFICATION -> VERIFIED              (verify with the current code)

Exactly one code is valid per account at a time. A code is consumed by a
successful verify and purged once found expired.

Concurrency: each read-check-write runs under a per-email lock and is
committed with the store's optimistic version check, retried when a writer
outside this process moved the row first.
"""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from functools import cached_property

from .codes import CodeGenerator
from .exceptions import AccountStoreError, NotificationError
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

logger = logging.getLogger(__name__)

# (account to write or None, error to report or None)
Transition = tuple[Account | None, ErrorKind | None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AccountStateMachine:
    """
    Domain service for registration, verification and login.

    Orchestrates the store, code generator, credential verifier, notifier
    and token issuer. Every public operation returns an OperationResult;
    infrastructure faults surface as INTERNAL_ERROR and are logged.
    """

    store: AccountStore
    notifier: Notifier
    credentials: CredentialVerifier
    tokens: SessionTokenIssuer
    code_generator: CodeGenerator = field(default_factory=CodeGenerator)
    code_ttl: timedelta = timedelta(minutes=10)
    max_write_retries: int = 3
    clock: Callable[[], datetime] = utc_now
    _locks: KeyedLock = field(default_factory=KeyedLock, init=False, repr=False)

    @property
    def code_ttl_seconds(self) -> int:
        return int(self.code_ttl.total_seconds())

    def register(self, email: str, profile: Profile, password: str) -> OperationResult:
        """
        Create or refresh a pending account and send it a verification code.

        An unverified account is fully overwritten (profile, password hash,
        code). The account is stored before delivery is attempted, so a
        delivery failure leaves a valid code server-side for resend.

        Args:
            email: User's email address (will be normalized)
            profile: College, committee and contact details
            password: Plaintext password, already validated by the caller

        Returns:
            Success carrying the normalized email, or VALIDATION_FAILED,
            ALREADY_REGISTERED, NOTIFICATION_FAILED, INTERNAL_ERROR
        """
        normalized_email = self._normalize_email(email)
        try:
            password_hash = self.credentials.hash(password)
        except ValueError:
            logger.info("Rejected unhashable password for %s", normalized_email)
            return OperationResult.failure(ErrorKind.VALIDATION_FAILED)
        code = self.code_generator.generate()

        def step(account: Account | None) -> Transition:
            if account is not None and account.is_verified:
                return None, ErrorKind.ALREADY_REGISTERED
            pending = Account(
                email=normalized_email,
                password_hash=password_hash,
                profile=profile,
                state=VerificationState.PENDING_VERIFICATION,
                pending_code=self._issue(code),
                version=account.version if account is not None else 0,
            )
            return pending, None

        try:
            error = self._transition(normalized_email, step)
        except AccountStoreError:
            logger.exception("Registration failed for %s", normalized_email)
            return OperationResult.failure(ErrorKind.INTERNAL_ERROR)
        if error is not None:
            return OperationResult.failure(error)

        error = self._deliver(normalized_email, code)
        if error is not None:
            return OperationResult.failure(error)
        return OperationResult.success(email=normalized_email)

    def resend(self, email: str) -> OperationResult:
        """
        Replace the pending code with a fresh one and deliver it.

        Returns:
            Success, or NOT_FOUND, ALREADY_VERIFIED, NOTIFICATION_FAILED,
            INTERNAL_ERROR
        """
        normalized_email = self._normalize_email(email)
        code = self.code_generator.generate()

        def step(account: Account | None) -> Transition:
            if account is None:
                return None, ErrorKind.NOT_FOUND
            if account.is_verified:
                return None, ErrorKind.ALREADY_VERIFIED
            return replace(account, pending_code=self._issue(code)), None

        try:
            error = self._transition(normalized_email, step)
        except AccountStoreError:
            logger.exception("Resend failed for %s", normalized_email)
            return OperationResult.failure(ErrorKind.INTERNAL_ERROR)
        if error is not None:
            return OperationResult.failure(error)

        error = self._deliver(normalized_email, code)
        if error is not None:
            return OperationResult.failure(error)
        return OperationResult.success(email=normalized_email)

    def verify(self, email: str, code: str) -> OperationResult:
        """
        Consume the pending code and mark the account VERIFIED.

        Checks run in order, each with its own failure:
        1. Account exists (NOT_FOUND)
        2. Account not yet verified (ALREADY_VERIFIED)
        3. A code is pending and not past its expiry (CODE_EXPIRED)
        4. Code matches, compared in constant time (INVALID_CODE)

        An expired code is cleared as part of the failed attempt. A wrong
        code leaves the account untouched.
        """
        normalized_email = self._normalize_email(email)

        def step(account: Account | None) -> Transition:
            if account is None:
                return None, ErrorKind.NOT_FOUND
            if account.is_verified:
                return None, ErrorKind.ALREADY_VERIFIED
            pending = account.pending_code
            if pending is None:
                return None, ErrorKind.CODE_EXPIRED
            if self.clock() > pending.expires_at:
                return replace(account, pending_code=None), ErrorKind.CODE_EXPIRED
            if not secrets.compare_digest(pending.code.encode(), code.encode()):
                return None, ErrorKind.INVALID_CODE
            verified = replace(account, state=VerificationState.VERIFIED, pending_code=None)
            return verified, None

        try:
            error = self._transition(normalized_email, step)
        except AccountStoreError:
            logger.exception("Verification failed for %s", normalized_email)
            return OperationResult.failure(ErrorKind.INTERNAL_ERROR)
        if error is not None:
            return OperationResult.failure(error)

        logger.info("Account verified: %s", normalized_email)
        return OperationResult.success(email=normalized_email)

    def login(self, email: str, password: str) -> OperationResult:
        """
        Authenticate a verified account and issue a session token.

        Unknown emails and wrong passwords both yield INVALID_CREDENTIALS.
        A dummy hash comparison runs for unknown emails so the response
        time does not reveal which emails are registered.
        """
        normalized_email = self._normalize_email(email)
        try:
            account = self.store.find_by_email(normalized_email)
        except AccountStoreError:
            logger.exception("Login failed for %s", normalized_email)
            return OperationResult.failure(ErrorKind.INTERNAL_ERROR)

        if account is None:
            self.credentials.compare(password, self._dummy_hash)
            return OperationResult.failure(ErrorKind.INVALID_CREDENTIALS)
        if not account.is_verified:
            return OperationResult.failure(ErrorKind.NOT_VERIFIED)
        if not self.credentials.compare(password, account.password_hash):
            return OperationResult.failure(ErrorKind.INVALID_CREDENTIALS)

        token = self.tokens.issue(normalized_email)
        logger.info("Login succeeded for %s", normalized_email)
        return OperationResult.success(email=normalized_email, token=token)

    def _transition(
        self, email: str, step: Callable[[Account | None], Transition]
    ) -> ErrorKind | None:
        """
        Run one read-check-write for ``email`` under its lock.

        ``step`` sees the current account and decides what to write and
        what to report. A rejected conditional write means another process
        changed the row; the read is repeated with fresh state.

        Raises:
            AccountStoreError: Store failure, or conflicts on every attempt
        """
        with self._locks.hold(email):
            for attempt in range(1, self.max_write_retries + 1):
                account = self.store.find_by_email(email)
                to_write, error = step(account)
                if to_write is None or self.store.upsert(to_write):
                    return error
                logger.warning(
                    "Write conflict on %s (attempt %d of %d)",
                    email,
                    attempt,
                    self.max_write_retries,
                )
        raise AccountStoreError(
            f"Write conflict on {email} not resolved after {self.max_write_retries} attempts"
        )

    def _deliver(self, email: str, code: str) -> ErrorKind | None:
        try:
            self.notifier.send_verification_code(email, code)
        except NotificationError:
            logger.warning("Verification code delivery failed for %s", email, exc_info=True)
            return ErrorKind.NOTIFICATION_FAILED
        return None

    def _issue(self, code: str) -> PendingCode:
        return PendingCode(code=code, expires_at=self.clock() + self.code_ttl)

    @cached_property
    def _dummy_hash(self) -> str:
        return self.credentials.hash("dummy_password_for_timing_safety")

    def _normalize_email(self, email: str) -> str:
        """
        Normalize email address for consistent storage and lookup.

        Applies: strip whitespace + lowercase
        """
        return email.strip().lower()
