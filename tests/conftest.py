"""Shared pytest fixtures for all tests."""

import sqlite3
import pytest
from pathlib import Path

from config import Config, get_migrations_dir
from db.manager import DatabaseManager
from db.migrator import apply_migrations
from services.base import Services
from tests.helpers import FakeClock


@pytest.fixture
def test_db():
    """Create an in-memory SQLite database for testing.

    Yields:
        sqlite3.Connection: Connection to in-memory database.
    """
    conn = sqlite3.connect(":memory:")
    conn.execute("PRAGMA foreign_keys = ON")
    yield conn
    conn.close()


@pytest.fixture
def test_config(tmp_path):
    """Create a test configuration pointing to a temporary directory.

    bcrypt runs at its minimum cost so the suite stays fast.
    """
    return Config(
        base_dir=tmp_path / "budgeteer",
        db_data_dir=tmp_path / "budgeteer" / "db",
        db_filename="test.db",
        log_level="DEBUG",
        log_dir=tmp_path / "budgeteer" / "logs",
        access_token_secret="test-access-secret",
        refresh_token_secret="test-refresh-secret",
        access_token_ttl_minutes=15,
        refresh_token_ttl_days=7,
        bcrypt_rounds=4,
        default_categories=["Food", "Transport"],
    )


@pytest.fixture
def db_manager_with_schema(test_config, test_db):
    """Create a DatabaseManager with schema already set up.

    The manager hands out the same in-memory connection every time, so
    ``transaction()`` commits and rolls back on it exactly like on a file
    database.
    """
    apply_migrations(test_db, get_migrations_dir())

    class TestDatabaseManager(DatabaseManager):
        """Database manager that reuses one in-memory connection."""

        def __init__(self, config, conn):
            super().__init__(config)
            self.conn = conn

        def connect(self):
            return _TestConnectionContext(self.conn)

        def get_db_path(self):
            return Path(":memory:")

    class _TestConnectionContext:
        """Context manager for test database connections."""

        def __init__(self, conn):
            self.conn = conn

        def __enter__(self):
            return self.conn

        def __exit__(self, exc_type, exc_val, exc_tb):
            # Don't close the connection - let the fixture handle it
            pass

    return TestDatabaseManager(test_config, test_db)


@pytest.fixture
def clock():
    """A controllable clock starting at the real current time."""
    return FakeClock()


@pytest.fixture
def services(test_config, db_manager_with_schema, clock):
    """Create a Services container with test database and fake clock."""
    return Services(test_config, db_manager=db_manager_with_schema, clock=clock)
