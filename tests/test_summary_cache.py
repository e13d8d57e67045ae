"""
Tests for the SQLite-backed summary cache.

Each test gets a fresh database file in a temporary directory.
"""

import sqlite3
import tempfile
import threading
import unittest
from pathlib import Path
from unittest.mock import MagicMock

from core.database import Database
from llm.errors import PersistenceError
from memory.summary_cache import SummaryCache, SummaryRecord, now_millis


def make_record(book="book-1", chapter="ch-1", text="A summary.", provider="deepseek", created_at=1000):
    return SummaryRecord(
        book_id=book,
        chapter_id=chapter,
        text=text,
        provider_id=provider,
        created_at=created_at
    )


class DatabaseTestCase(unittest.TestCase):
    """Base class providing an initialized temporary database."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.db = Database(Path(self._tmp.name) / "test.db")
        self.assertTrue(self.db.initialize())

    def tearDown(self):
        self._tmp.cleanup()


class TestDatabase(DatabaseTestCase):

    def test_initialize_is_repeatable(self):
        self.assertTrue(Database(self.db.db_path).initialize())

    def test_state_round_trip(self):
        self.db.set_state("k", {"a": [1, 2]})
        self.assertEqual(self.db.get_state("k"), {"a": [1, 2]})

        self.db.set_state("k", "replaced")
        self.assertEqual(self.db.get_state("k"), "replaced")

        self.db.delete_state("k")
        self.assertIsNone(self.db.get_state("k"))
        self.assertEqual(self.db.get_state("k", default=[]), [])

    def test_stats(self):
        cache = SummaryCache(self.db)
        cache.put(make_record(book="b1", chapter="c1"))
        cache.put(make_record(book="b1", chapter="c2"))
        cache.put(make_record(book="b2", chapter="c1"))
        self.db.set_state("x", 1)

        stats = self.db.get_stats()

        self.assertEqual(stats["total_summaries"], 3)
        self.assertEqual(stats["books_with_summaries"], 2)
        self.assertEqual(stats["state_entries"], 1)


class TestSummaryCache(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.cache = SummaryCache(self.db)

    def test_get_missing_returns_none(self):
        self.assertIsNone(self.cache.get("nope", "nope"))

    def test_put_then_get(self):
        record = make_record()
        self.cache.put(record)
        self.assertEqual(self.cache.get("book-1", "ch-1"), record)

    def test_second_put_replaces_all_fields(self):
        self.cache.put(make_record(text="Old", provider="deepseek", created_at=1000))
        self.cache.put(make_record(text="New", provider="gemini", created_at=2000))

        stored = self.cache.get("book-1", "ch-1")

        self.assertEqual(stored.text, "New")
        self.assertEqual(stored.provider_id, "gemini")
        self.assertEqual(stored.created_at, 2000)
        self.assertEqual(self.cache.count_for_book("book-1"), 1)

    def test_delete_for_book(self):
        for chapter in ("c1", "c2", "c3"):
            self.cache.put(make_record(book="b", chapter=chapter))
        self.cache.put(make_record(book="other", chapter="c1"))

        self.cache.delete_for_book("b")

        self.assertEqual(self.cache.count_for_book("b"), 0)
        for chapter in ("c1", "c2", "c3"):
            self.assertIsNone(self.cache.get("b", chapter))
        self.assertIsNotNone(self.cache.get("other", "c1"))

    def test_delete_one(self):
        self.cache.put(make_record(chapter="c1"))
        self.cache.put(make_record(chapter="c2"))

        self.cache.delete_one("book-1", "c1")

        self.assertIsNone(self.cache.get("book-1", "c1"))
        self.assertIsNotNone(self.cache.get("book-1", "c2"))
        self.assertEqual(self.cache.count_for_book("book-1"), 1)

    def test_concurrent_puts_on_different_keys(self):
        errors = []

        def writer(chapter):
            try:
                for i in range(10):
                    self.cache.put(make_record(chapter=chapter, text=f"{chapter}-{i}", created_at=i))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=writer, args=(c,)) for c in ("left", "right")]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        self.assertEqual(errors, [])
        self.assertEqual(self.cache.get("book-1", "left").text, "left-9")
        self.assertEqual(self.cache.get("book-1", "right").text, "right-9")

    def test_storage_failure_raises_persistence_error(self):
        broken = MagicMock()
        broken.execute.side_effect = sqlite3.OperationalError("disk I/O error")
        cache = SummaryCache(broken)

        with self.assertRaises(PersistenceError):
            cache.put(make_record())
        with self.assertRaises(PersistenceError):
            cache.get("b", "c")
        with self.assertRaises(PersistenceError):
            cache.delete_for_book("b")


class TestSummaryRecord(unittest.TestCase):

    def test_to_dict(self):
        data = make_record(provider="glm", created_at=now_millis()).to_dict()
        self.assertEqual(data["summary"], "A summary.")
        self.assertEqual(data["provider"], "glm")
        self.assertEqual(data["provider_name"], "GLM-4")
        self.assertIn("T", data["created_at_iso"])

    def test_now_millis_is_milliseconds(self):
        self.assertGreater(now_millis(), 1_600_000_000_000)


if __name__ == "__main__":
    unittest.main()
