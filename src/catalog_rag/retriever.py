"""Embeds the search term and queries the product index."""

import logging
from abc import ABC, abstractmethod
from typing import Callable

from catalog_rag import vector_store as vs
from catalog_rag.config import VectorStoreConfig
from catalog_rag.embedding import EmbeddingProvider
from catalog_rag.exceptions import RetrievalError, ServiceUnavailableError
from catalog_rag.models import RetrievedDocument

logger = logging.getLogger(__name__)


class DocumentRetriever(ABC):
    @abstractmethod
    def retrieve(
        self,
        optimized_query: str,
        category_filter: str | None = None,
        limit: int = 5,
        threshold: float = 0.3,
    ) -> list[RetrievedDocument]:
        """Return documents similar to ``optimized_query``, most similar first."""

    @abstractmethod
    def get_index_stats(self) -> dict: ...

    @abstractmethod
    def is_available(self) -> bool: ...


class ChromaDocumentRetriever(DocumentRetriever):
    """Retriever over the ChromaDB product collection.

    The collection is opened lazily on first use through
    ``collection_factory`` so that constructing the pipeline never
    touches the index.
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        collection_factory: Callable[[], object] | None = None,
        config: VectorStoreConfig | None = None,
    ) -> None:
        self.embedder = embedder
        self.config = config or VectorStoreConfig()
        self._collection_factory = collection_factory or self._open_collection
        self._collection = None

    def retrieve(
        self,
        optimized_query: str,
        category_filter: str | None = None,
        limit: int = 5,
        threshold: float = 0.3,
    ) -> list[RetrievedDocument]:
        if not optimized_query or not optimized_query.strip():
            raise RetrievalError("search query cannot be empty")

        collection = self._ensure_initialized()

        try:
            vector = self.embedder.embed(optimized_query)
            hits = vs.search(
                collection,
                vector,
                category=category_filter or None,
                limit=limit,
                score_threshold=threshold,
            )
            documents = [RetrievedDocument.from_hit(hit) for hit in hits]
        except Exception as exc:
            logger.error("Retrieval for %r failed: %s", optimized_query, exc)
            raise RetrievalError(str(exc)) from exc

        logger.debug(
            "Retrieved %d document(s) for %r (category=%s)",
            len(documents),
            optimized_query,
            category_filter,
        )
        return documents

    def get_index_stats(self) -> dict:
        stats = {"collection_name": self.config.collection_name}
        try:
            stats.update(vs.collection_info(self._ensure_initialized()))
        except Exception as exc:
            logger.warning("Could not read index stats: %s", exc)
            stats["error"] = str(exc)
        return stats

    def is_available(self) -> bool:
        try:
            self._ensure_initialized().count()
        except Exception as exc:
            logger.warning("Vector index unavailable: %s", exc)
            return False
        return True

    def _open_collection(self):
        client = vs.get_client(self.config)
        return vs.get_or_create_collection(client, self.config)

    def _ensure_initialized(self):
        if self._collection is not None:
            return self._collection
        try:
            self._collection = self._collection_factory()
        except Exception as exc:
            raise ServiceUnavailableError(
                "vector index", f"failed to open collection: {exc}"
            ) from exc
        return self._collection
