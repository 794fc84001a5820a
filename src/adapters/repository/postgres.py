"""
PostgreSQL repository adapter - Implements AccountStore protocol.

This module provides the PostgreSQL implementation of the domain's
account store port using psycopg3 with raw SQL.

Concurrency Design - Conditional Upsert:
----------------------------------------
Every write is a single ``INSERT ... ON CONFLICT DO UPDATE ... WHERE``
statement. The WHERE clause only lets the update through when the stored
version still equals the version the caller read, and the stored row is
not VERIFIED. A zero row count therefore means "someone else wrote first"
(or the account is already terminal) and the domain re-reads and retries.
Combined with the UNIQUE email key this keeps concurrent register, resend
and verify calls from different processes free of lost updates.

Connection Handling:
--------------------
The pool is opened once at startup and passed in. Broken connections are
replaced by the pool; a read that hits a dropped connection is retried once
on a fresh one. Writes are never replayed, their outcome is re-derived by
the caller from a fresh read. Driver errors never leave this module, they
are re-raised as AccountStoreError.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import psycopg
from psycopg_pool import ConnectionPool, PoolTimeout

from src.domain.exceptions import AccountStoreError
from src.domain.ports import Account, PendingCode, Profile, VerificationState

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SELECT_SQL = """
    SELECT email, password_hash, college, committee, contact,
           state, verification_code, code_expires_at, version
    FROM accounts
    WHERE email = %s
"""

_UPSERT_SQL = """
    INSERT INTO accounts (email, password_hash, college, committee, contact,
                          state, verification_code, code_expires_at, version)
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, 1)
    ON CONFLICT (email) DO UPDATE
    SET password_hash = EXCLUDED.password_hash,
        college = EXCLUDED.college,
        committee = EXCLUDED.committee,
        contact = EXCLUDED.contact,
        state = EXCLUDED.state,
        verification_code = EXCLUDED.verification_code,
        code_expires_at = EXCLUDED.code_expires_at,
        version = accounts.version + 1,
        updated_at = NOW()
    WHERE accounts.version = %s
      AND accounts.state <> 'VERIFIED'
"""


class PostgresAccountStore:
    """
    Implements AccountStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize store with an open connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def find_by_email(self, email: str) -> Account | None:
        def query(cursor: psycopg.Cursor) -> Any:
            cursor.execute(_SELECT_SQL, (email,))
            return cursor.fetchone()

        row = self._execute(query, retry=True)
        if row is None:
            return None
        return _row_to_account(row)

    def upsert(self, account: Account) -> bool:
        """
        Conditionally write an account.

        Returns:
            True if a row was inserted or updated, False if the stored
            version moved on or the stored account is VERIFIED
        """
        pending = account.pending_code
        params = (
            account.email,
            account.password_hash,
            account.profile.college,
            account.profile.committee,
            account.profile.contact,
            account.state.value,
            pending.code if pending is not None else None,
            pending.expires_at if pending is not None else None,
            account.version,
        )

        def write(cursor: psycopg.Cursor) -> bool:
            cursor.execute(_UPSERT_SQL, params)
            return cursor.rowcount == 1

        return self._execute(write, retry=False)

    def ping(self) -> None:
        self._execute(lambda cursor: cursor.execute("SELECT 1"), retry=True)

    def _execute(self, work: Callable[[psycopg.Cursor], T], retry: bool) -> T:
        attempts = 2 if retry else 1
        for attempt in range(1, attempts + 1):
            try:
                with self._pool.connection() as conn, conn.cursor() as cursor:
                    result = work(cursor)
                    conn.commit()
                    return result
            except psycopg.OperationalError as e:
                if attempt == attempts:
                    raise AccountStoreError("Account store unreachable") from e
                logger.warning("Database connection lost, retrying: %s", e)
            except (psycopg.Error, PoolTimeout) as e:
                raise AccountStoreError("Account store query failed") from e
        raise AccountStoreError("Account store unreachable")


def _row_to_account(row: tuple) -> Account:
    email, password_hash, college, committee, contact, state, code, expires_at, version = row
    pending = PendingCode(code=code, expires_at=expires_at) if code is not None else None
    return Account(
        email=email,
        password_hash=password_hash,
        profile=Profile(college=college, committee=committee, contact=contact),
        state=VerificationState(state),
        pending_code=pending,
        version=version,
    )


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            with pool.connection() as conn:
                conn.execute(sql_file.read_text())
            logger.info("Migration complete: %s", sql_file.name)
        except psycopg.Error as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
