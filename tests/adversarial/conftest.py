"""
Shared fixtures for adversarial tests.

Provides a registered pending account and a second state machine sharing
the same store, standing in for another server process. Both machines
retry conflicting writes more times than the other can write, so a
conflict can delay an operation but never exhaust its retries.
"""

import pytest

from src.adapters.security.passwords import BcryptCredentialVerifier
from src.domain.accounts import AccountStateMachine

# Module-level marker for all adversarial tests
pytestmark = pytest.mark.adversarial

EMAIL = "attack@example.com"
WRITE_RETRIES = 50


def _machine(store, notifier, tokens, clock) -> AccountStateMachine:
    return AccountStateMachine(
        store=store,
        notifier=notifier,
        credentials=BcryptCredentialVerifier(rounds=4),
        tokens=tokens,
        clock=clock,
        max_write_retries=WRITE_RETRIES,
    )


@pytest.fixture
def service(store, notifier, tokens, clock) -> AccountStateMachine:
    return _machine(store, notifier, tokens, clock)


@pytest.fixture
def other_process(store, notifier, tokens, clock) -> AccountStateMachine:
    """A state machine with its own locks over the shared store."""
    return _machine(store, notifier, tokens, clock)


@pytest.fixture
def pending_code(service: AccountStateMachine, notifier, profile) -> str:
    """Register EMAIL and return the delivered code."""
    assert service.register(EMAIL, profile, "secret1").ok
    return notifier.last_code(EMAIL)
