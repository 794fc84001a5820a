"""
In-memory repository adapter - Implements AccountStore protocol.

Process-local dict store with the same conditional-write semantics as the
PostgreSQL adapter. Used for development without a database and in tests.
"""

import threading
from dataclasses import replace

from src.domain.ports import Account


class InMemoryAccountStore:
    """
    Implements AccountStore protocol with a dict guarded by a lock.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._accounts: dict[str, Account] = {}

    def find_by_email(self, email: str) -> Account | None:
        with self._lock:
            return self._accounts.get(email)

    def upsert(self, account: Account) -> bool:
        with self._lock:
            stored = self._accounts.get(account.email)
            if stored is None:
                self._accounts[account.email] = replace(account, version=1)
                return True
            if stored.version != account.version or stored.is_verified:
                return False
            self._accounts[account.email] = replace(account, version=stored.version + 1)
            return True

    def ping(self) -> None:
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)
