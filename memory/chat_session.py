"""
Reader AI - Chat Session Store
Ordered recommendation-chat transcript, persisted as one blob under a fixed key
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional, List, Tuple, Dict, Any

from core.database import Database, get_database
from core.logger import log_info, log_warning, log_error
from concurrency.locks import LockManager, get_lock_manager
from llm.errors import CorruptHistoryEntry
from llm.response_parser import Recommendation


class MessageKind(Enum):
    """What a transcript entry is. LOADING and WELCOME are never persisted."""
    USER = "user"
    ASSISTANT = "assistant"
    LOADING = "loading"
    WELCOME = "welcome"


TRANSIENT_KINDS = (MessageKind.LOADING, MessageKind.WELCOME)


@dataclass(frozen=True)
class ChatMessage:
    """A single transcript entry."""
    content: str
    kind: MessageKind
    recommendations: Optional[Tuple[Recommendation, ...]] = None

    def __post_init__(self):
        if self.recommendations is not None and self.kind != MessageKind.ASSISTANT:
            raise ValueError(f"{self.kind.value} messages cannot carry recommendations")

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(content=content, kind=MessageKind.USER)

    @classmethod
    def assistant(
        cls,
        content: str,
        recommendations: Optional[List[Recommendation]] = None
    ) -> "ChatMessage":
        recs = tuple(recommendations) if recommendations else None
        return cls(content=content, kind=MessageKind.ASSISTANT, recommendations=recs)

    @classmethod
    def loading(cls) -> "ChatMessage":
        return cls(content="", kind=MessageKind.LOADING)

    @classmethod
    def welcome(cls, content: str) -> "ChatMessage":
        return cls(content=content, kind=MessageKind.WELCOME)

    @property
    def is_from_user(self) -> bool:
        return self.kind == MessageKind.USER

    @property
    def is_transient_loading(self) -> bool:
        return self.kind == MessageKind.LOADING

    @property
    def is_transient_welcome(self) -> bool:
        return self.kind == MessageKind.WELCOME

    @property
    def is_transient(self) -> bool:
        return self.kind in TRANSIENT_KINDS

    def to_dict(self) -> Dict[str, Any]:
        """Stored/wire form. Recommendations are omitted when there are none."""
        data: Dict[str, Any] = {
            "is_user": self.is_from_user,
            "content": self.content,
        }
        if self.recommendations:
            data["recommendations"] = [r.to_dict() for r in self.recommendations]
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "ChatMessage":
        """
        Rebuild a durable message from its stored form.

        Raises:
            ValueError: If the entry is not a well-formed stored message
        """
        if not isinstance(data, dict):
            raise ValueError("entry is not an object")

        is_user = data.get("is_user")
        content = data.get("content")
        if not isinstance(is_user, bool):
            raise ValueError("'is_user' missing or not a boolean")
        if not isinstance(content, str):
            raise ValueError("'content' missing or not a string")

        if is_user:
            return cls.user(content)

        raw_recs = data.get("recommendations")
        if raw_recs is None:
            return cls.assistant(content)
        if not isinstance(raw_recs, list):
            raise ValueError("'recommendations' is not a list")
        return cls.assistant(content, [Recommendation.from_dict(r) for r in raw_recs])


class BlobStore(ABC):
    """Opaque string storage keyed by name."""

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """Return the stored blob, or None if absent."""

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        """Store (replace) the blob."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the blob if present."""


class DatabaseBlobStore(BlobStore):
    """Blobs kept in the SQLite state table."""

    def __init__(self, database: Optional[Database] = None):
        self._database = database

    @property
    def db(self) -> Database:
        return self._database or get_database()

    def read(self, key: str) -> Optional[str]:
        value = self.db.get_state(key)
        if value is None:
            return None
        if not isinstance(value, str):
            # Older writers stored the decoded list directly
            return json.dumps(value)
        return value

    def write(self, key: str, value: str) -> None:
        self.db.set_state(key, value)

    def delete(self, key: str) -> None:
        self.db.delete_state(key)


class MemoryBlobStore(BlobStore):
    """Process-local blobs (ephemeral sessions and tests)."""

    def __init__(self):
        self._blobs: Dict[str, str] = {}

    def read(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    def write(self, key: str, value: str) -> None:
        self._blobs[key] = value

    def delete(self, key: str) -> None:
        self._blobs.pop(key, None)


class ChatSessionStore:
    """
    Transcript of one recommendation conversation.

    Append-only apart from removing loading placeholders. Persistence
    failures are logged and swallowed so a storage hiccup never breaks
    the conversation itself.
    """

    def __init__(
        self,
        blob_store: Optional[BlobStore] = None,
        key: Optional[str] = None,
        welcome_text: Optional[str] = None,
        lock_manager: Optional[LockManager] = None
    ):
        """
        Args:
            blob_store: Where the transcript blob lives (default: SQLite state table)
            key: Blob key (default: config.CHAT_HISTORY_KEY)
            welcome_text: Welcome banner text (default: config.WELCOME_MESSAGE)
            lock_manager: Lock provider (default: global lock manager)
        """
        import config

        self._blob_store = blob_store or DatabaseBlobStore()
        self.key = key or config.CHAT_HISTORY_KEY
        self.welcome_text = welcome_text if welcome_text is not None else config.WELCOME_MESSAGE
        self._lock_manager = lock_manager or get_lock_manager()
        self._messages: List[ChatMessage] = []

    def append(self, message: ChatMessage) -> None:
        """Add a message to the end of the transcript."""
        with self._lock_manager.acquire("chat_session"):
            self._messages.append(message)

    def current(self) -> List[ChatMessage]:
        """Snapshot of the transcript in insertion order."""
        with self._lock_manager.acquire("chat_session"):
            return list(self._messages)

    def durable(self) -> List[ChatMessage]:
        """The subsequence that persist() writes."""
        return [m for m in self.current() if not m.is_transient]

    @property
    def is_loading(self) -> bool:
        return any(m.is_transient_loading for m in self.current())

    def begin_loading(self) -> None:
        """Append the in-flight placeholder."""
        self.append(ChatMessage.loading())

    def end_loading(self) -> int:
        """Remove every loading placeholder. Returns how many were removed."""
        with self._lock_manager.acquire("chat_session"):
            before = len(self._messages)
            self._messages = [m for m in self._messages if not m.is_transient_loading]
            return before - len(self._messages)

    def show_welcome(self) -> None:
        """Append the welcome banner (in memory only)."""
        if self.welcome_text:
            self.append(ChatMessage.welcome(self.welcome_text))

    def clear(self) -> None:
        """Discard the in-memory transcript and the persisted blob."""
        with self._lock_manager.acquire("chat_session"):
            self._messages = []

        try:
            self._blob_store.delete(self.key)
            log_info("Chat history cleared", prefix="🧹")
        except Exception as e:
            log_error(f"Failed to clear chat history: {e}")

    def serialize(self) -> str:
        """JSON blob of the durable subsequence."""
        return json.dumps(
            [m.to_dict() for m in self.durable()],
            ensure_ascii=False
        )

    def persist(self) -> bool:
        """
        Write the durable subsequence to the blob store.

        Returns:
            True if saved, False if the write failed (already logged)
        """
        try:
            self._blob_store.write(self.key, self.serialize())
            return True
        except Exception as e:
            log_error(f"Failed to save chat history: {e}")
            return False

    def load(self) -> List[ChatMessage]:
        """
        Replace the in-memory transcript with the persisted one.

        Corrupt entries are skipped one by one. When nothing usable was
        stored, the welcome banner is appended in memory.

        Returns:
            The transcript after loading
        """
        loaded = self._decode(self._read_blob())

        with self._lock_manager.acquire("chat_session"):
            self._messages = loaded

        if not loaded:
            self.show_welcome()

        return self.current()

    def _read_blob(self) -> Optional[str]:
        try:
            return self._blob_store.read(self.key)
        except Exception as e:
            log_error(f"Failed to load chat history: {e}")
            return None

    @staticmethod
    def _decode(blob: Optional[str]) -> List[ChatMessage]:
        if not blob:
            return []

        try:
            entries = json.loads(blob)
        except json.JSONDecodeError as e:
            log_error(f"Chat history blob is not valid JSON, starting fresh: {e}")
            return []

        if not isinstance(entries, list):
            log_error("Chat history blob is not a list, starting fresh")
            return []

        messages = []
        for index, entry in enumerate(entries):
            try:
                messages.append(_decode_entry(index, entry))
            except CorruptHistoryEntry as e:
                log_warning(f"Skipping {e.message}")

        return messages


def _decode_entry(index: int, entry: Any) -> ChatMessage:
    try:
        return ChatMessage.from_dict(entry)
    except ValueError as e:
        raise CorruptHistoryEntry(index, str(e)) from e


# Global chat session store instance
_chat_session: Optional[ChatSessionStore] = None


def get_chat_session() -> ChatSessionStore:
    """Get the global chat session store instance."""
    global _chat_session
    if _chat_session is None:
        _chat_session = ChatSessionStore()
    return _chat_session


def init_chat_session(
    blob_store: Optional[BlobStore] = None,
    key: Optional[str] = None,
    welcome_text: Optional[str] = None
) -> ChatSessionStore:
    """Initialize the global chat session store."""
    global _chat_session
    _chat_session = ChatSessionStore(blob_store=blob_store, key=key, welcome_text=welcome_text)
    return _chat_session
