"""
Reader AI - Book Recommendations
One-shot recommendation requests and the chat conversation built on them
"""

import threading
from concurrent.futures import Future
from enum import Enum
from typing import Optional, List, Callable, Any

from core.logger import log_info, log_error
from concurrency.worker_pool import WorkerPool, get_worker_pool
from llm.errors import MissingApiKey, RequestInFlight, MalformedRecommendationResponse
from llm.response_parser import Recommendation, parse_recommendations
from llm.router import ProviderRouter, get_provider_router
from memory.chat_session import ChatMessage, ChatSessionStore, get_chat_session
from prompt_builder import PromptBuilder, get_prompt_builder


class RecommendationService:
    """Prompt, call, parse. Stateless: no chat context reaches the provider."""

    def __init__(
        self,
        router: Optional[ProviderRouter] = None,
        prompt_builder: Optional[PromptBuilder] = None
    ):
        self.router = router or get_provider_router()
        self.prompt_builder = prompt_builder or get_prompt_builder()

    def recommend_books(self, provider: str, api_key: str, user_query: str) -> List[Recommendation]:
        """
        Ask the provider for books matching a free-text request.

        Raises:
            UnsupportedProvider, MissingApiKey, ProviderHttpError,
            ProviderResponseError, ProviderConnectionError,
            MalformedRecommendationResponse
        """
        prompt = self.prompt_builder.build_recommendation_prompt(user_query)
        raw = self.router.generate(provider, api_key, prompt)
        recommendations = parse_recommendations(raw)
        log_info(f"Parsed {len(recommendations)} recommendations", prefix="📚")
        return recommendations


class RequestState(Enum):
    """Lifecycle of the conversation's current request."""
    IDLE = "idle"
    LOADING = "loading"
    RESOLVED = "resolved"


class RecommendationConversation:
    """
    Drives one recommendation chat.

    Idle -> Loading (user message stored, placeholder shown) -> Resolved
    (placeholder gone, reply or error message appended and persisted).
    Only one request may be loading at a time.
    """

    def __init__(
        self,
        service: Optional[RecommendationService] = None,
        session: Optional[ChatSessionStore] = None,
        worker_pool: Optional[WorkerPool] = None
    ):
        self.service = service or RecommendationService()
        self.session = session or get_chat_session()
        self._worker_pool = worker_pool
        self._state = RequestState.IDLE
        self._state_lock = threading.Lock()

    @property
    def worker_pool(self) -> WorkerPool:
        return self._worker_pool or get_worker_pool()

    @property
    def state(self) -> RequestState:
        with self._state_lock:
            return self._state

    def open(self) -> List[ChatMessage]:
        """Load the stored transcript (welcome banner if it is empty)."""
        return self.session.load()

    def messages(self) -> List[ChatMessage]:
        return self.session.current()

    def clear_history(self) -> None:
        """Drop the transcript and show the welcome banner again."""
        self.session.clear()
        self.session.show_welcome()

    def ask(self, provider: str, api_key: str, user_query: str) -> ChatMessage:
        """Run a whole request on the calling thread and return the reply message."""
        query = self._begin(api_key, user_query)
        return self._resolve(provider, api_key, query)

    def ask_async(
        self,
        provider: str,
        api_key: str,
        user_query: str,
        on_reply: Optional[Callable[[ChatMessage], Any]] = None,
        on_error: Optional[Callable[[BaseException], Any]] = None
    ) -> Future:
        """
        Store the user message and placeholder now, resolve on the worker pool.

        on_reply receives the appended assistant message, error replies
        included; on_error only fires for failures outside the request itself.
        """
        query = self._begin(api_key, user_query)
        try:
            return self.worker_pool.submit(
                self._resolve, provider, api_key, query,
                on_success=on_reply, on_error=on_error
            )
        except Exception:
            # Nothing will resolve this request; release the conversation
            self.session.end_loading()
            with self._state_lock:
                self._state = RequestState.IDLE
            raise

    def _begin(self, api_key: str, user_query: str) -> str:
        query = (user_query or "").strip()
        if not query:
            raise ValueError("Recommendation request is empty")

        with self._state_lock:
            if self._state == RequestState.LOADING:
                raise RequestInFlight()
            self._state = RequestState.LOADING

        self.session.append(ChatMessage.user(query))
        self.session.persist()
        self.session.begin_loading()
        return query

    def _resolve(self, provider: str, api_key: str, query: str) -> ChatMessage:
        import config

        try:
            # A missing key is answered in the transcript like any other failure
            if not api_key or not api_key.strip():
                raise MissingApiKey()
            recommendations = self.service.recommend_books(provider, api_key, query)
            if recommendations:
                reply = ChatMessage.assistant("", recommendations)
            else:
                reply = ChatMessage.assistant(config.NO_RECOMMENDATIONS_MESSAGE)
        except Exception as e:
            log_error(f"Recommendation request failed: {e}")
            reply = ChatMessage.assistant(
                config.RECOMMENDATION_ERROR_TEMPLATE.format(error=_describe(e))
            )

        self.session.end_loading()
        self.session.append(reply)
        self.session.persist()

        with self._state_lock:
            self._state = RequestState.RESOLVED
        return reply


# Global conversation instance
_conversation: Optional[RecommendationConversation] = None


def get_recommendation_conversation() -> RecommendationConversation:
    """Get the global recommendation conversation."""
    global _conversation
    if _conversation is None:
        _conversation = RecommendationConversation()
    return _conversation


def init_recommendation_conversation(**kwargs) -> RecommendationConversation:
    """Initialize the global recommendation conversation."""
    global _conversation
    _conversation = RecommendationConversation(**kwargs)
    return _conversation


def _describe(error: Exception) -> str:
    # The raw reply is for logs, not for the chat bubble
    if isinstance(error, MalformedRecommendationResponse):
        return f"Failed to parse recommendations: {error.reason}"
    return str(error)
