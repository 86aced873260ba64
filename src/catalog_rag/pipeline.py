"""Pipeline orchestrator — optimize, retrieve, remember context, generate."""

import logging
import time
from typing import Callable

from catalog_rag.config import AppConfig
from catalog_rag.context import ContextStore, InMemoryContextStore
from catalog_rag.embedding import SentenceTransformerEmbedder
from catalog_rag.generator import LLMResponseGenerator, ResponseGenerator
from catalog_rag.llm import OllamaLLM
from catalog_rag.models import RAGSearchResult, RetrievedDocument, SearchQuery, SessionId
from catalog_rag.query_optimizer import LLMQueryOptimizer, QueryOptimizer
from catalog_rag.retriever import ChromaDocumentRetriever, DocumentRetriever

logger = logging.getLogger(__name__)


class RAGPipeline:
    """Runs one search request through the three stages.

    A request reads the session's category context, optimizes the query,
    retrieves with a category filter (retrying once without it when the
    filtered search is empty), stores the category of the results and
    generates a recommendation. Retrieval errors propagate; optimizer and
    generator failures are absorbed by their own fallbacks.
    """

    def __init__(
        self,
        optimizer: QueryOptimizer,
        retriever: DocumentRetriever,
        generator: ResponseGenerator,
        context_store: ContextStore,
        config: AppConfig | None = None,
    ) -> None:
        self.optimizer = optimizer
        self.retriever = retriever
        self.generator = generator
        self.context_store = context_store
        self.config = config or AppConfig()

    def search(self, user_query: str) -> RAGSearchResult:
        """Single-shot search on the shared default session."""
        return self.search_with_context(user_query, self.config.context.default_session)

    def search_with_context(self, user_query: str, session_id: str) -> RAGSearchResult:
        started = time.perf_counter()
        query = SearchQuery.from_user_input(user_query).value
        session = SessionId(session_id).value

        context = self.context_store.get_context(session)
        optimized = self.optimizer.optimize(query, context)
        category = context or self.context_store.infer_category_from_query(query)
        logger.debug(
            "Session %s: context=%s optimized=%r filter=%s",
            session,
            context,
            optimized,
            category,
        )

        documents = self._retrieve(optimized, category)
        if not documents and category is not None:
            logger.info(
                "No results in category %s for %r, retrying without filter",
                category,
                optimized,
            )
            documents = self._retrieve(optimized, None)

        self._update_session_context(session, documents, query)
        response = self.generator.generate(documents, query)

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        return RAGSearchResult(
            original_query=query,
            optimized_query=optimized,
            documents=tuple(documents),
            response=response,
            processing_time_ms=elapsed_ms,
        )

    def health_check(self) -> dict[str, bool]:
        """Probe each stage; usable whenever retrieval works."""
        health = {
            "query_optimizer": _probe("query optimizer", self.optimizer.is_available),
            "document_retriever": _probe(
                "document retriever", self.retriever.is_available
            ),
            "response_generator": _probe(
                "response generator", self.generator.is_available
            ),
            "context_store": True,
        }
        health["overall"] = health["document_retriever"]
        return health

    def system_stats(self) -> dict:
        return {
            "health": self.health_check(),
            "collection": self.retriever.get_index_stats(),
            "active_sessions": self.context_store.active_session_count(),
        }

    def _retrieve(self, query: str, category: str | None) -> list[RetrievedDocument]:
        vs_cfg = self.config.vector_store
        return self.retriever.retrieve(
            query,
            category,
            limit=vs_cfg.search_limit,
            threshold=vs_cfg.score_threshold,
        )

    def _update_session_context(
        self, session_id: str, documents: list[RetrievedDocument], query: str
    ) -> None:
        if not documents:
            return
        category = self.context_store.extract_category_from_results(documents)
        if category is not None:
            self.context_store.set_context(session_id, category, query)


def _probe(name: str, check: Callable[[], bool]) -> bool:
    try:
        return bool(check())
    except Exception as exc:
        logger.warning("Health probe for %s failed: %s", name, exc)
        return False


def build_pipeline(config: AppConfig | None = None) -> RAGPipeline:
    """Wire the production stage implementations from configuration."""
    cfg = config or AppConfig()
    llm = OllamaLLM(cfg.llm)
    embedder = SentenceTransformerEmbedder(cfg.embedding)
    return RAGPipeline(
        optimizer=LLMQueryOptimizer(llm, cfg.llm),
        retriever=ChromaDocumentRetriever(embedder, config=cfg.vector_store),
        generator=LLMResponseGenerator(llm, cfg.llm),
        context_store=InMemoryContextStore(cfg.context),
        config=cfg,
    )
