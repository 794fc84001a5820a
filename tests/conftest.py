"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- An in-memory account store and a controllable clock
- Recording and failing notifiers
- A fully wired AccountStateMachine with a cheap bcrypt work factor
"""

import os
from datetime import datetime, timedelta, timezone

import pytest

from src.adapters.repository.memory import InMemoryAccountStore
from src.adapters.security.passwords import BcryptCredentialVerifier
from src.adapters.security.tokens import JwtSessionTokenIssuer
from src.domain.accounts import AccountStateMachine
from src.domain.exceptions import NotificationError
from src.domain.ports import Profile

TEST_SECRET = "test-secret-with-at-least-32-bytes!"

# Settings require a signing key; tests that build the app read this one
os.environ.setdefault("JWT_SECRET", TEST_SECRET)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class RecordingNotifier:
    """Notifier that keeps every delivered code, optionally failing instead."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.fail = False

    def send_verification_code(self, email: str, code: str) -> None:
        if self.fail:
            raise NotificationError(f"delivery to {email} failed")
        self.sent.append((email, code))

    def last_code(self, email: str) -> str:
        return [code for to, code in self.sent if to == email][-1]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryAccountStore:
    return InMemoryAccountStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def jwt_secret() -> str:
    return TEST_SECRET


@pytest.fixture
def tokens(jwt_secret: str) -> JwtSessionTokenIssuer:
    return JwtSessionTokenIssuer(secret=jwt_secret)


@pytest.fixture
def service(
    store: InMemoryAccountStore,
    notifier: RecordingNotifier,
    tokens: JwtSessionTokenIssuer,
    clock: FakeClock,
) -> AccountStateMachine:
    """State machine over in-memory adapters; bcrypt at its minimum cost."""
    return AccountStateMachine(
        store=store,
        notifier=notifier,
        credentials=BcryptCredentialVerifier(rounds=4),
        tokens=tokens,
        clock=clock,
    )


@pytest.fixture
def profile() -> Profile:
    return Profile(college="MIT", committee="Events", contact="5551234567")
