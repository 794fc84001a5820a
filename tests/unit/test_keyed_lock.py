"""
Unit tests for KeyedLock.

Verifies per-key serialization, independence of different keys and
cleanup of unused lock entries.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from src.domain.locking import KeyedLock


class TestKeyedLock:
    """Tests for KeyedLock.hold()."""

    def test_same_key_is_serialized(self) -> None:
        """Critical sections on one key never overlap."""
        locks = KeyedLock()
        active = 0
        max_active = 0
        counter_lock = threading.Lock()

        def critical() -> None:
            nonlocal active, max_active
            with locks.hold("user@example.com"):
                with counter_lock:
                    active += 1
                    max_active = max(max_active, active)
                time.sleep(0.01)
                with counter_lock:
                    active -= 1

        with ThreadPoolExecutor(max_workers=8) as executor:
            for future in [executor.submit(critical) for _ in range(8)]:
                future.result()

        assert max_active == 1

    def test_different_keys_do_not_block(self) -> None:
        """Holding one key does not block another."""
        locks = KeyedLock()
        entered = threading.Event()

        def other() -> None:
            with locks.hold("b@example.com"):
                entered.set()

        with locks.hold("a@example.com"):
            thread = threading.Thread(target=other)
            thread.start()
            assert entered.wait(timeout=2)
            thread.join()

    def test_entries_are_released(self) -> None:
        """No lock entries remain once nobody holds a key."""
        locks = KeyedLock()
        with locks.hold("a@example.com"):
            with locks.hold("b@example.com"):
                assert len(locks) == 2
        assert len(locks) == 0

    def test_lock_released_on_exception(self) -> None:
        """An exception inside the block releases the key."""
        locks = KeyedLock()
        with pytest.raises(RuntimeError):
            with locks.hold("a@example.com"):
                raise RuntimeError("boom")

        acquired = threading.Event()

        def reacquire() -> None:
            with locks.hold("a@example.com"):
                acquired.set()

        thread = threading.Thread(target=reacquire)
        thread.start()
        thread.join(timeout=2)
        assert acquired.is_set()
        assert len(locks) == 0
