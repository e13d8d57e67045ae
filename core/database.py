"""
Reader AI - Database Module
SQLite storage for chapter summaries and small named state blobs
"""

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional, Any, List, Tuple, Dict, Iterator

from core.logger import log_success, log_error, log_config, log_section

# Ordered migrations; each entry upgrades the schema to that version
MIGRATIONS: Dict[int, List[str]] = {
    1: [
        """
        CREATE TABLE IF NOT EXISTS state (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS chapter_summaries (
            book_id TEXT NOT NULL,
            chapter_id TEXT NOT NULL,
            summary TEXT NOT NULL,
            provider_id TEXT NOT NULL,
            created_at INTEGER NOT NULL,
            PRIMARY KEY (book_id, chapter_id)
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_chapter_summaries_book ON chapter_summaries(book_id)",
    ],
}

SCHEMA_VERSION = max(MIGRATIONS)


class Database:
    """
    One SQLite file opened in WAL mode.

    Every call opens its own short-lived connection, so instances can be
    shared freely between the worker pool threads.
    """

    def __init__(self, db_path: Path, busy_timeout_ms: int = 10000):
        self.db_path = Path(db_path)
        self.busy_timeout_ms = busy_timeout_ms
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> bool:
        """
        Create the file if needed, switch to WAL and run pending migrations.

        Returns:
            True if the database is usable, False otherwise (already logged)
        """
        log_section("Opening database", "📁")
        log_config("Path", str(self.db_path), indent=1)

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            with self.connection() as conn:
                journal_mode = conn.execute("PRAGMA journal_mode=WAL").fetchone()[0]
                conn.execute("PRAGMA synchronous=NORMAL")

                current = self._migrate(conn)

            log_config("Schema", f"v{current}", indent=1)
            log_config("Journal", journal_mode.upper(), indent=1)
        except (sqlite3.Error, OSError, RuntimeError) as e:
            log_error(f"Database initialization failed: {e}")
            return False

        self._initialized = True
        log_success("Database ready")
        return True

    @staticmethod
    def _migrate(conn: sqlite3.Connection) -> int:
        conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_version ("
            "version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)"
        )
        current = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()[0] or 0

        if current > SCHEMA_VERSION:
            raise RuntimeError(
                f"Database schema v{current} is newer than this build (v{SCHEMA_VERSION})"
            )

        for version in sorted(v for v in MIGRATIONS if v > current):
            for statement in MIGRATIONS[version]:
                conn.execute(statement)
            conn.execute(
                "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                (version, datetime.now().isoformat())
            )
            current = version

        return current

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Connection that commits on success and rolls back on error."""
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=self.busy_timeout_ms / 1000,
            check_same_thread=False
        )
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def execute(
        self,
        sql: str,
        params: Tuple = (),
        fetch: bool = False
    ) -> Optional[List[sqlite3.Row]]:
        """Run one statement in its own transaction; rows only when fetch=True."""
        with self.connection() as conn:
            cursor = conn.execute(sql, params)
            return cursor.fetchall() if fetch else None

    # ---- named state blobs -------------------------------------------------

    def get_state(self, key: str, default: Any = None) -> Any:
        """Decoded JSON value stored under key, or default."""
        rows = self.execute("SELECT value FROM state WHERE key = ?", (key,), fetch=True)
        if not rows:
            return default
        return json.loads(rows[0]["value"])

    def set_state(self, key: str, value: Any) -> None:
        """Store value (JSON-encoded) under key, replacing any previous value."""
        self.execute(
            """
            INSERT INTO state (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (key, json.dumps(value, ensure_ascii=False), datetime.now().isoformat())
        )

    def delete_state(self, key: str) -> None:
        self.execute("DELETE FROM state WHERE key = ?", (key,))

    def get_stats(self) -> Dict[str, int]:
        """Row counts for the status line."""
        with self.connection() as conn:
            summaries, books = conn.execute(
                "SELECT COUNT(*), COUNT(DISTINCT book_id) FROM chapter_summaries"
            ).fetchone()
            state_entries = conn.execute("SELECT COUNT(*) FROM state").fetchone()[0]

        return {
            "total_summaries": summaries,
            "books_with_summaries": books,
            "state_entries": state_entries,
        }


# Global database instance
_db: Optional[Database] = None


def get_database() -> Database:
    """Get the global database instance."""
    if _db is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _db


def init_database(db_path: Path, busy_timeout_ms: int = 10000) -> Database:
    """Create, initialize and install the global database."""
    global _db
    _db = Database(db_path, busy_timeout_ms)
    _db.initialize()
    return _db
