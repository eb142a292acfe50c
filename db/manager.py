"""SQLite access for Budgeteer: connections, units of work and schema setup."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import List
from config import Config, get_migrations_dir
from db.migrator import apply_migrations, get_pending_migrations


class DatabaseManager:
    """Hands out connections to the configured database file.

    Every connection has foreign key enforcement switched on; ownership
    cascades and the category/transaction link depend on it.

    Args:
        config: Application configuration object.
    """

    def __init__(self, config: Config):
        self.config = config

    @contextmanager
    def connect(self):
        """Open a connection and close it when the block exits.

        Yields:
            sqlite3.Connection: Database connection.
        """
        db_path = self.get_db_path()
        db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self):
        """Run a block of statements as a single unit of work.

        Commits when the block exits normally, rolls back and re-raises if
        it raises.

        Yields:
            sqlite3.Connection: Connection with an open transaction.
        """
        with self.connect() as conn:
            try:
                yield conn
                conn.commit()
            except BaseException:
                conn.rollback()
                raise

    def pending_migrations(self) -> List[str]:
        with self.connect() as conn:
            return get_pending_migrations(conn, self.get_migrations_dir())

    def migrate(self) -> List[str]:
        """Bring the schema up to date.

        Returns:
            Names of the migrations applied by this call.
        """
        with self.connect() as conn:
            return apply_migrations(conn, self.get_migrations_dir())

    def get_db_path(self) -> Path:
        return self.config.db_path

    def get_migrations_dir(self) -> Path:
        return get_migrations_dir()
