"""Rewrites a free-form user query into a concise search term."""

import logging
from abc import ABC, abstractmethod

from catalog_rag.config import LLMConfig
from catalog_rag.exceptions import QueryProcessingError
from catalog_rag.llm import OllamaLLM
from catalog_rag.prompts import build_query_prompt, extract_search_term

logger = logging.getLogger(__name__)


class QueryOptimizer(ABC):
    @abstractmethod
    def optimize(self, user_query: str, context: str | None = None) -> str:
        """Return a search term for ``user_query``, biased by ``context``."""

    @abstractmethod
    def is_available(self) -> bool: ...


class LLMQueryOptimizer(QueryOptimizer):
    """Optimizes queries with a small Ollama model.

    Model failures are never fatal: the original query is returned
    unchanged whenever the model cannot produce a usable term.
    """

    def __init__(self, llm: OllamaLLM, config: LLMConfig | None = None) -> None:
        self.llm = llm
        self.config = config or llm.config

    def optimize(self, user_query: str, context: str | None = None) -> str:
        if not user_query or not user_query.strip():
            raise QueryProcessingError("query cannot be empty")

        try:
            return self._optimize(user_query, context)
        except Exception as exc:
            logger.warning("Query optimization failed, using original query: %s", exc)
            return user_query

    def _optimize(self, user_query: str, context: str | None) -> str:
        raw = self.llm.generate(
            build_query_prompt(user_query, context),
            model=self.config.query_model,
            temperature=self.config.temperature,
            max_tokens=self.config.query_max_tokens,
        )
        term = extract_search_term(raw)
        if not term.strip():
            raise QueryProcessingError("model returned an empty optimization result")
        logger.debug("Optimized %r -> %r (context=%s)", user_query, term, context)
        return term

    def is_available(self) -> bool:
        return self.llm.is_available()
