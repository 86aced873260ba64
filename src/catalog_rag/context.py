"""Per-session category context with expiry."""

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Sequence

from catalog_rag.config import ContextConfig
from catalog_rag.models import RetrievedDocument, SessionId

logger = logging.getLogger(__name__)

# Ordered: the first category with a matching keyword wins.
CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "graphics_cards": ("видеокарт", "видео карт", "rtx", "gtx", "radeon", "rx ", "gpu"),
    "processors": ("процессор", "процесс", "cpu", "ryzen", "intel", "core", "amd"),
    "laptops": ("ноутбук", "laptop", "macbook", "notebook"),
    "motherboards": ("материнск", "материнка", "мать", "motherboard"),
    "memory": ("память", "ram", "ddr", "оперативка"),
    "storage": ("ssd", "hdd", "диск", "накопитель"),
    "cooling": ("охлаждение", "кулер", "cooler", "вентилятор"),
}


@dataclass(frozen=True)
class SessionContext:
    category: str
    last_query: str
    timestamp: float


class ContextStore(ABC):
    """Per-session memory of the inferred product category."""

    @abstractmethod
    def set_context(self, session_id: str, category: str, query: str) -> None: ...

    @abstractmethod
    def get_context(self, session_id: str) -> str | None: ...

    @abstractmethod
    def active_session_count(self) -> int: ...

    def extract_category_from_results(
        self, documents: Sequence[RetrievedDocument]
    ) -> str | None:
        """Category of the most relevant (first) document."""
        if not documents:
            return None
        return documents[0].category or None

    def infer_category_from_query(self, query: str) -> str | None:
        """Guess a category from keywords in the raw query.

        Multi-category queries resolve to whichever category comes first
        in ``CATEGORY_KEYWORDS``.
        """
        lowered = query.lower()
        for category, keywords in CATEGORY_KEYWORDS.items():
            if any(keyword in lowered for keyword in keywords):
                return category
        return None


class InMemoryContextStore(ContextStore):
    """Thread-safe in-process context store with lazy and periodic expiry.

    Entries older than ``ttl_seconds`` read as absent and are dropped on
    read. ``cleanup`` evicts anything older than ``cleanup_seconds``.
    """

    def __init__(
        self,
        config: ContextConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or ContextConfig()
        self._clock = clock
        self._contexts: dict[str, SessionContext] = {}
        self._lock = threading.Lock()

    def set_context(self, session_id: str, category: str, query: str) -> None:
        key = SessionId(session_id).value
        entry = SessionContext(category=category, last_query=query, timestamp=self._clock())
        with self._lock:
            self._contexts[key] = entry
        logger.debug("Session %s context set to %s", key, category)

    def get_context(self, session_id: str) -> str | None:
        key = SessionId(session_id).value
        with self._lock:
            entry = self._contexts.get(key)
            if entry is None:
                return None
            if self._clock() - entry.timestamp > self.config.ttl_seconds:
                del self._contexts[key]
                logger.debug("Session %s context expired", key)
                return None
            return entry.category

    def get_entry(self, session_id: str) -> SessionContext | None:
        """Raw stored entry, ignoring freshness."""
        with self._lock:
            return self._contexts.get(session_id)

    def cleanup(self) -> int:
        """Evict entries older than the cleanup window; return how many."""
        cutoff = self._clock() - self.config.cleanup_seconds
        with self._lock:
            stale = [k for k, v in self._contexts.items() if v.timestamp < cutoff]
            for key in stale:
                del self._contexts[key]
        if stale:
            logger.info("Evicted %d stale session context(s)", len(stale))
        return len(stale)

    def active_session_count(self) -> int:
        self.cleanup()
        with self._lock:
            return len(self._contexts)
