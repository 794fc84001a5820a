"""
Shared fixtures for integration tests.

Connects to the PostgreSQL database from settings, runs migrations once
per session and empties the accounts table before each test. Tests that
need the database are skipped when it cannot be reached.
"""

from collections.abc import Generator

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresAccountStore, run_migrations
from src.config.settings import get_settings


@pytest.fixture(scope="session")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for integration tests."""
    settings = get_settings()
    try:
        with psycopg.connect(settings.database_url, connect_timeout=3):
            pass
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL not reachable: {e}")

    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=True,
    )
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def pg_store(pool: ConnectionPool) -> PostgresAccountStore:
    """Create store instance for each test."""
    return PostgresAccountStore(pool)


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Clean accounts table before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM accounts")
        conn.commit()
    yield
