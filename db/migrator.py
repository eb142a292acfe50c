"""Applies the ordered .sql files in the migrations directory."""

import sqlite3
from pathlib import Path
from typing import List, Set
from logger import get_logger

logger = get_logger()


def init_schema_migrations_table(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            migration_file TEXT PRIMARY KEY,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    conn.commit()


def get_applied_migrations(conn: sqlite3.Connection) -> Set[str]:
    cursor = conn.execute("SELECT migration_file FROM schema_migrations")
    return {row[0] for row in cursor.fetchall()}


def get_available_migrations(migrations_dir: Path) -> List[str]:
    """Names of the migration files, in the order they must run."""
    if not migrations_dir.exists():
        return []
    return sorted(path.name for path in migrations_dir.glob("*.sql"))


def get_pending_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> List[str]:
    init_schema_migrations_table(conn)
    applied = get_applied_migrations(conn)
    return [name for name in get_available_migrations(migrations_dir) if name not in applied]


def apply_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> List[str]:
    """Apply every pending migration in order.

    Args:
        conn: Connection to migrate.
        migrations_dir: Directory holding the .sql files.

    Returns:
        Names of the migrations that were applied.

    Raises:
        sqlite3.Error: If a migration fails. Migrations applied before the
            failing one stay applied.
    """
    applied = []
    for migration_file in get_pending_migrations(conn, migrations_dir):
        sql = (migrations_dir / migration_file).read_text()
        try:
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_migrations (migration_file) VALUES (?)",
                (migration_file,),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error applying migration {migration_file}: {e}")
            raise
        logger.info(f"Applied migration: {migration_file}")
        applied.append(migration_file)
    return applied
