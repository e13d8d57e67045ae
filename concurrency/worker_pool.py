"""
Reader AI - Worker Pool
Runs network-bound work off the caller's thread and reports back via callbacks

Usage:
    from concurrency.worker_pool import get_worker_pool

    pool = get_worker_pool()
    pool.submit(
        service.generate_summary, provider, api_key, book, chapter, title, text,
        on_success=show_summary,
        on_error=show_error
    )

Callbacks run on the worker thread; callers that own a UI thread marshal
the result themselves. Completion order between submissions is not defined.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, Future
from typing import Optional, Callable, Any

from core.logger import log_info, log_error

SuccessCallback = Callable[[Any], None]
ErrorCallback = Callable[[BaseException], None]


class WorkerPool:
    """Thin wrapper around ThreadPoolExecutor with success/error callbacks."""

    def __init__(self, max_workers: int = 4, name: str = "reader-ai-worker"):
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=name)
        self._lock = threading.Lock()
        self._shutdown = False

    def submit(
        self,
        fn: Callable[..., Any],
        *args,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        **kwargs
    ) -> Future:
        """
        Schedule fn(*args, **kwargs) on the pool.

        Exactly one of on_success / on_error fires per submission. Failures
        are never retried.

        Returns:
            The Future for callers that prefer to wait on it
        """
        with self._lock:
            if self._shutdown:
                raise RuntimeError("Worker pool has been shut down")
            future = self._executor.submit(fn, *args, **kwargs)

        future.add_done_callback(lambda f: self._dispatch(f, on_success, on_error))
        return future

    @staticmethod
    def _dispatch(
        future: Future,
        on_success: Optional[SuccessCallback],
        on_error: Optional[ErrorCallback]
    ) -> None:
        error = future.exception()
        try:
            if error is not None:
                if on_error is not None:
                    on_error(error)
                else:
                    log_error(f"Background task failed: {error}")
            elif on_success is not None:
                on_success(future.result())
        except Exception as e:
            log_error(f"Worker callback raised: {e}")

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and optionally wait for in-flight tasks."""
        with self._lock:
            if self._shutdown:
                return
            self._shutdown = True
        self._executor.shutdown(wait=wait)
        log_info("Worker pool stopped", prefix="🧵")


# Global worker pool instance
_worker_pool: Optional[WorkerPool] = None


def get_worker_pool() -> WorkerPool:
    """Get the global worker pool instance."""
    global _worker_pool
    if _worker_pool is None:
        import config
        _worker_pool = WorkerPool(max_workers=config.WORKER_POOL_SIZE)
    return _worker_pool


def init_worker_pool(max_workers: int = 4) -> WorkerPool:
    """Initialize the global worker pool."""
    global _worker_pool
    _worker_pool = WorkerPool(max_workers=max_workers)
    return _worker_pool
