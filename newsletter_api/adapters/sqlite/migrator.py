"""
Schema migrations.

Each ``*.sql`` file in the migrations directory is applied once, in
filename order, and recorded in ``_migrations``. Only the part of a file
above its ``-- Down`` marker runs.
"""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import closing, contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

DOWN_MARKER = "-- Down"


class SQLiteMigrator:
    def __init__(self, db_path: str, migrations_dir: str):
        self.db_path = db_path
        self.migrations_dir = Path(migrations_dir)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        with closing(sqlite3.connect(self.db_path)) as conn:
            conn.execute("PRAGMA foreign_keys = ON;")
            conn.execute("""
                CREATE TABLE IF NOT EXISTS _migrations (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    filename TEXT UNIQUE NOT NULL,
                    applied_at DATETIME DEFAULT CURRENT_TIMESTAMP
                );
            """)
            yield conn

    def _pending(self, conn: sqlite3.Connection) -> list[Path]:
        applied = {row[0] for row in conn.execute("SELECT filename FROM _migrations")}
        return [
            path
            for path in sorted(self.migrations_dir.glob("*.sql"))
            if path.name not in applied
        ]

    def pending_migrations(self) -> list[str]:
        """Filenames not yet applied, in the order they would run."""
        with self._connect() as conn:
            return [path.name for path in self._pending(conn)]

    def run_migrations(self) -> list[str]:
        """Apply all pending migrations and return the filenames applied."""
        applied_now: list[str] = []
        with self._connect() as conn:
            for path in self._pending(conn):
                logger.info("Applying migration: %s", path.name)
                self._apply(conn, path)
                applied_now.append(path.name)
        logger.info("Schema up to date (%d applied)", len(applied_now))
        return applied_now

    @staticmethod
    def up_script(content: str) -> str:
        return content.split(DOWN_MARKER, 1)[0]

    def _apply(self, conn: sqlite3.Connection, path: Path) -> None:
        script = self.up_script(path.read_text())
        try:
            conn.executescript(script)
            conn.execute("INSERT INTO _migrations (filename) VALUES (?)", (path.name,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RuntimeError(f"Migration {path.name} failed: {e}") from e
