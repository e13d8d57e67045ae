"""
Tests for the Flask HTTP API.

Services are real apart from the provider router, which is mocked.
"""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

from assistant.recommendations import RecommendationConversation, RecommendationService
from assistant.summaries import SummaryService
from concurrency.locks import LockManager
from concurrency.worker_pool import WorkerPool
from core.database import Database
from interface.http_api import create_app
from llm.errors import ProviderHttpError, ProviderConnectionError
from memory.chat_session import ChatSessionStore, MemoryBlobStore
from memory.summary_cache import SummaryCache
from prompt_builder import PromptBuilder

SUMMARY_BODY = {
    "book_id": "b1",
    "chapter_id": "c1",
    "book_name": "The Road",
    "chapter_title": "Departure",
    "content": "He left at dawn. Nobody saw him go.",
    "provider": "deepseek",
    "api_key": "k",
}


class TestHttpApi(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        db = Database(Path(self._tmp.name) / "api.db")
        db.initialize()

        self.router = MagicMock()
        self.router.generate.return_value = "He leaves quietly."
        self.pool = WorkerPool(max_workers=1)
        builder = PromptBuilder()

        summaries = SummaryService(
            router=self.router,
            cache=SummaryCache(db),
            prompt_builder=builder,
            worker_pool=self.pool,
            content_limit=3000
        )
        conversation = RecommendationConversation(
            service=RecommendationService(router=self.router, prompt_builder=builder),
            session=ChatSessionStore(
                blob_store=MemoryBlobStore(),
                key="chat",
                welcome_text="Welcome!",
                lock_manager=LockManager()
            ),
            worker_pool=self.pool
        )

        self.client = create_app(summary_service=summaries, conversation=conversation).test_client()

    def tearDown(self):
        self.pool.shutdown(wait=True)
        self._tmp.cleanup()

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["status"], "healthy")

    def test_providers(self):
        data = self.client.get("/providers").get_json()
        self.assertEqual([p["name"] for p in data["providers"]], ["DeepSeek", "GLM-4", "Gemini"])

    def test_summary_lifecycle(self):
        self.assertEqual(self.client.get("/summaries/b1/c1").status_code, 404)

        created = self.client.post("/summaries", json=SUMMARY_BODY)
        self.assertEqual(created.status_code, 200)
        self.assertEqual(created.get_json()["summary"], "He leaves quietly.")
        self.assertEqual(created.get_json()["provider_name"], "DeepSeek")

        fetched = self.client.get("/summaries/b1/c1")
        self.assertEqual(fetched.status_code, 200)
        self.assertEqual(fetched.get_json()["summary"], "He leaves quietly.")

        self.assertEqual(self.client.get("/books/b1/summaries/count").get_json()["count"], 1)

        self.client.delete("/summaries/b1")
        self.assertEqual(self.client.get("/books/b1/summaries/count").get_json()["count"], 0)
        self.assertEqual(self.client.get("/summaries/b1/c1").status_code, 404)

    def test_chapter_named_count_is_reachable(self):
        self.client.post("/summaries", json=dict(SUMMARY_BODY, chapter_id="count"))

        fetched = self.client.get("/summaries/b1/count")

        self.assertEqual(fetched.status_code, 200)
        self.assertEqual(fetched.get_json()["chapter_id"], "count")
        self.assertEqual(self.client.get("/books/b1/summaries/count").get_json()["count"], 1)

    def test_cached_summary_is_reused_unless_regenerating(self):
        self.client.post("/summaries", json=SUMMARY_BODY)
        self.client.post("/summaries", json=SUMMARY_BODY)
        self.assertEqual(self.router.generate.call_count, 1)

        self.router.generate.return_value = "Fresh summary."
        response = self.client.post("/summaries", json=dict(SUMMARY_BODY, regenerate=True))

        self.assertEqual(response.get_json()["summary"], "Fresh summary.")
        self.assertEqual(self.router.generate.call_count, 2)

    def test_delete_one_chapter(self):
        self.client.post("/summaries", json=SUMMARY_BODY)
        self.client.post("/summaries", json=dict(SUMMARY_BODY, chapter_id="c2"))

        response = self.client.delete("/summaries/b1/c1")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get("/summaries/b1/c1").status_code, 404)
        self.assertEqual(self.client.get("/summaries/b1/c2").status_code, 200)

    def test_summary_missing_fields(self):
        response = self.client.post("/summaries", json={"book_id": "b1"})
        self.assertEqual(response.status_code, 400)

    def test_summary_unsupported_provider(self):
        response = self.client.post("/summaries", json=dict(SUMMARY_BODY, provider="claude"))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["type"], "UnsupportedProvider")
        self.router.generate.assert_not_called()

    def test_summary_provider_http_error(self):
        self.router.generate.side_effect = ProviderHttpError("DeepSeek", 429, "Too Many Requests")

        response = self.client.post("/summaries", json=SUMMARY_BODY)

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.get_json()["provider_status"], 429)

    def test_recommendations(self):
        self.router.generate.return_value = (
            'Sure! {"recommendations": [{"title": "T", "author": "A", "reason": "R", "tags": ["x"]}]}'
        )

        response = self.client.post("/recommendations", json={"query": "anything", "api_key": "k"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["recommendations"], [
            {"title": "T", "author": "A", "reason": "R", "tags": ["x"], "search_key": "T A"}
        ])

    def test_recommendations_malformed_reply_carries_raw_text(self):
        self.router.generate.return_value = "No JSON today."

        response = self.client.post("/recommendations", json={"query": "anything", "api_key": "k"})

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.get_json()["raw_text"], "No JSON today.")

    def test_recommendations_missing_query(self):
        self.assertEqual(self.client.post("/recommendations", json={}).status_code, 400)

    def test_chat_flow(self):
        history = self.client.get("/chat").get_json()
        self.assertEqual([m["kind"] for m in history["messages"]], ["welcome"])

        self.router.generate.return_value = (
            '{"recommendations": [{"title": "T", "author": "A", "reason": "R"}]}'
        )
        sent = self.client.post("/chat", json={"message": "fantasy", "provider": "glm", "api_key": "k"})

        self.assertEqual(sent.status_code, 200)
        body = sent.get_json()
        self.assertEqual(body["state"], "resolved")
        self.assertEqual(body["reply"]["recommendations"][0]["title"], "T")

        history = self.client.get("/chat").get_json()
        self.assertEqual([m["kind"] for m in history["messages"]], ["welcome", "user", "assistant"])

        cleared = self.client.delete("/chat").get_json()
        self.assertEqual([m["kind"] for m in cleared["messages"]], ["welcome"])

    def test_chat_provider_failure_becomes_reply(self):
        self.router.generate.side_effect = ProviderConnectionError("GLM-4", "Request timed out")

        response = self.client.post("/chat", json={"message": "fantasy", "provider": "glm", "api_key": "k"})

        self.assertEqual(response.status_code, 200)
        self.assertIn("Request timed out", response.get_json()["reply"]["content"])

    def test_chat_empty_message(self):
        response = self.client.post("/chat", json={"message": "  ", "api_key": "k"})
        self.assertEqual(response.status_code, 400)


if __name__ == "__main__":
    unittest.main()
