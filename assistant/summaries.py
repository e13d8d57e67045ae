"""
Reader AI - Chapter Summaries
Generate, regenerate and look up cached AI summaries of chapters
"""

from concurrent.futures import Future
from typing import Optional, Callable, Any

from core.logger import log_info, log_success
from core.text_prep import prepare
from concurrency.worker_pool import WorkerPool, get_worker_pool
from llm.response_parser import parse_summary
from llm.router import ProviderRouter, get_provider_router, resolve_provider
from memory.summary_cache import SummaryCache, SummaryRecord, get_summary_cache, now_millis
from prompt_builder import PromptBuilder, get_prompt_builder


class SummaryService:
    """
    Chapter summary flow: prepare text, prompt, call provider, cache result.

    Provider and parse failures propagate unchanged; so do cache write
    failures (PersistenceError).
    """

    def __init__(
        self,
        router: Optional[ProviderRouter] = None,
        cache: Optional[SummaryCache] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        worker_pool: Optional[WorkerPool] = None,
        content_limit: Optional[int] = None
    ):
        import config

        self.router = router or get_provider_router()
        self.cache = cache or get_summary_cache()
        self.prompt_builder = prompt_builder or get_prompt_builder()
        self._worker_pool = worker_pool
        self.content_limit = content_limit if content_limit is not None else config.SUMMARY_CONTENT_LIMIT

    @property
    def worker_pool(self) -> WorkerPool:
        return self._worker_pool or get_worker_pool()

    def get_cached_summary(self, book_id: str, chapter_id: str) -> Optional[SummaryRecord]:
        """Cached summary for a chapter, or None."""
        return self.cache.get(book_id, chapter_id)

    def generate_summary(
        self,
        provider: str,
        api_key: str,
        book_id: str,
        chapter_id: str,
        book_name: str,
        chapter_title: str,
        content: str
    ) -> SummaryRecord:
        """
        Summarize a chapter and store the result, replacing any cached one.

        Args:
            provider: Provider identifier (any case)
            api_key: Credential for the provider
            book_id: Cache key of the book
            chapter_id: Cache key of the chapter
            book_name: Book title shown to the model
            chapter_title: Chapter title shown to the model
            content: Raw chapter text

        Returns:
            The stored SummaryRecord
        """
        provider_id = resolve_provider(provider).value

        prepared = prepare(content, self.content_limit)
        prompt = self.prompt_builder.build_summary_prompt(book_name, chapter_title, prepared)

        log_info(
            f"Summarizing '{chapter_title}' of '{book_name}' "
            f"({len(content)} -> {len(prepared)} chars)",
            prefix="📖"
        )

        raw = self.router.generate(provider_id, api_key, prompt)

        record = SummaryRecord(
            book_id=book_id,
            chapter_id=chapter_id,
            text=parse_summary(raw),
            provider_id=provider_id,
            created_at=now_millis()
        )
        self.cache.put(record)

        log_success(f"Summary stored for {book_id}/{chapter_id}")
        return record

    def regenerate_summary(self, *args, **kwargs) -> SummaryRecord:
        """Same contract as generate_summary; always overwrites the cached record."""
        return self.generate_summary(*args, **kwargs)

    def get_or_generate_summary(
        self,
        provider: str,
        api_key: str,
        book_id: str,
        chapter_id: str,
        book_name: str,
        chapter_title: str,
        content: str
    ) -> SummaryRecord:
        """Return the cached summary, generating one only on a cache miss."""
        cached = self.cache.get(book_id, chapter_id)
        if cached is not None:
            return cached
        return self.generate_summary(
            provider, api_key, book_id, chapter_id, book_name, chapter_title, content
        )

    def generate_summary_async(
        self,
        *args,
        on_success: Optional[Callable[[SummaryRecord], Any]] = None,
        on_error: Optional[Callable[[BaseException], Any]] = None,
        **kwargs
    ) -> Future:
        """generate_summary on the worker pool; callbacks fire on the worker thread."""
        return self.worker_pool.submit(
            self.generate_summary, *args,
            on_success=on_success, on_error=on_error, **kwargs
        )

    def regenerate_summary_async(self, *args, **kwargs) -> Future:
        """
        regenerate_summary on the worker pool.

        Does not cancel an earlier request for the same chapter; whichever
        finishes last is what the cache keeps.
        """
        return self.generate_summary_async(*args, **kwargs)

    def purge_book(self, book_id: str) -> None:
        """Forget every summary of a book."""
        self.cache.delete_for_book(book_id)

    def purge_chapter(self, book_id: str, chapter_id: str) -> None:
        """Forget the summary of one chapter."""
        self.cache.delete_one(book_id, chapter_id)

    def count_for_book(self, book_id: str) -> int:
        return self.cache.count_for_book(book_id)


# Global summary service instance
_summary_service: Optional[SummaryService] = None


def get_summary_service() -> SummaryService:
    """Get the global summary service instance."""
    global _summary_service
    if _summary_service is None:
        _summary_service = SummaryService()
    return _summary_service


def init_summary_service(**kwargs) -> SummaryService:
    """Initialize the global summary service."""
    global _summary_service
    _summary_service = SummaryService(**kwargs)
    return _summary_service
