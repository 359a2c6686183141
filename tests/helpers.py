"""Helper utilities for tests."""

from pathlib import Path
import io
import sqlite3


def run_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> None:
    """Run all SQL migrations in order.

    Args:
        conn: SQLite connection to run migrations against.
        migrations_dir: Path to directory containing .sql migration files.
    """
    for migration_file in sorted(migrations_dir.glob("*.sql")):
        with open(migration_file, "r", encoding="utf-8") as f:
            conn.executescript(f.read())

    conn.commit()


def csv_source(*lines: str) -> io.StringIO:
    """Build an in-memory CSV file from lines."""
    return io.StringIO("\n".join(lines) + "\n")


def count_rows(services, table: str) -> int:
    """Count rows in a table through the services' database manager."""
    with services.db_manager.connect() as conn:
        return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
