"""
Reader AI - Summary Cache
Persistent (book, chapter) -> summary store with replace-on-regenerate
"""

import sqlite3
import time
from datetime import datetime
from dataclasses import dataclass
from typing import Optional, Dict, Any

from core.database import Database, get_database
from core.logger import log_info, log_error
from llm.errors import PersistenceError


def now_millis() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class SummaryRecord:
    """The single live summary for one chapter."""
    book_id: str
    chapter_id: str
    text: str
    provider_id: str
    created_at: int  # epoch milliseconds

    @property
    def created_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.created_at / 1000)

    def to_dict(self) -> Dict[str, Any]:
        from llm.router import display_name
        return {
            "book_id": self.book_id,
            "chapter_id": self.chapter_id,
            "summary": self.text,
            "provider": self.provider_id,
            "provider_name": display_name(self.provider_id),
            "created_at": self.created_at,
            "created_at_iso": self.created_datetime.isoformat(timespec="seconds"),
        }


class SummaryCache:
    """
    Summary storage keyed by (book_id, chapter_id).

    No expiry: a record lives until its chapter or book is purged. Writes
    to the same key are last-writer-wins.
    """

    def __init__(self, database: Optional[Database] = None):
        self._database = database

    @property
    def db(self) -> Database:
        return self._database or get_database()

    def get(self, book_id: str, chapter_id: str) -> Optional[SummaryRecord]:
        """Get the summary for a chapter, or None if none is cached."""
        try:
            result = self.db.execute(
                """
                SELECT book_id, chapter_id, summary, provider_id, created_at
                FROM chapter_summaries
                WHERE book_id = ? AND chapter_id = ?
                """,
                (book_id, chapter_id),
                fetch=True
            )
        except sqlite3.Error as e:
            log_error(f"Summary lookup failed for {book_id}/{chapter_id}: {e}")
            raise PersistenceError(f"Failed to read summary: {e}") from e

        if result:
            return self._row_to_record(result[0])
        return None

    def put(self, record: SummaryRecord) -> None:
        """Insert or fully replace the summary for the record's key."""
        try:
            self.db.execute(
                """
                INSERT INTO chapter_summaries
                (book_id, chapter_id, summary, provider_id, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(book_id, chapter_id) DO UPDATE SET
                    summary = excluded.summary,
                    provider_id = excluded.provider_id,
                    created_at = excluded.created_at
                """,
                (record.book_id, record.chapter_id, record.text,
                 record.provider_id, record.created_at)
            )
        except sqlite3.Error as e:
            log_error(f"Summary write failed for {record.book_id}/{record.chapter_id}: {e}")
            raise PersistenceError(f"Failed to save summary: {e}") from e

    def delete_for_book(self, book_id: str) -> None:
        """Drop every cached summary of a book (book removed from the library)."""
        try:
            self.db.execute(
                "DELETE FROM chapter_summaries WHERE book_id = ?",
                (book_id,)
            )
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to delete summaries: {e}") from e

        log_info(f"Cleared cached summaries for book {book_id}", prefix="🧹")

    def delete_one(self, book_id: str, chapter_id: str) -> None:
        """Drop the cached summary of one chapter."""
        try:
            self.db.execute(
                "DELETE FROM chapter_summaries WHERE book_id = ? AND chapter_id = ?",
                (book_id, chapter_id)
            )
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to delete summary: {e}") from e

    def count_for_book(self, book_id: str) -> int:
        """Number of chapters of a book with a cached summary."""
        try:
            result = self.db.execute(
                "SELECT COUNT(*) FROM chapter_summaries WHERE book_id = ?",
                (book_id,),
                fetch=True
            )
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to count summaries: {e}") from e

        return result[0][0] if result else 0

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> SummaryRecord:
        return SummaryRecord(
            book_id=row["book_id"],
            chapter_id=row["chapter_id"],
            text=row["summary"],
            provider_id=row["provider_id"],
            created_at=row["created_at"]
        )


# Global summary cache instance
_summary_cache: Optional[SummaryCache] = None


def get_summary_cache() -> SummaryCache:
    """Get the global summary cache instance."""
    global _summary_cache
    if _summary_cache is None:
        _summary_cache = SummaryCache()
    return _summary_cache


def init_summary_cache(database: Optional[Database] = None) -> SummaryCache:
    """Initialize the global summary cache."""
    global _summary_cache
    _summary_cache = SummaryCache(database)
    return _summary_cache
