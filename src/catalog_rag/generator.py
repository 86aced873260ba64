"""Grounded product recommendation from retrieved items."""

import logging
from abc import ABC, abstractmethod
from typing import Sequence

from catalog_rag.config import LLMConfig
from catalog_rag.exceptions import GenerationError
from catalog_rag.llm import OllamaLLM
from catalog_rag.models import RetrievedDocument
from catalog_rag.prompts import (
    EMPTY_RESULT_MESSAGE,
    build_recommendation_prompt,
    fallback_response,
)

logger = logging.getLogger(__name__)


class ResponseGenerator(ABC):
    @abstractmethod
    def generate(
        self, documents: Sequence[RetrievedDocument], original_query: str
    ) -> str: ...

    @abstractmethod
    def is_available(self) -> bool: ...


class LLMResponseGenerator(ResponseGenerator):
    """Generates a recommendation constrained to the supplied documents."""

    def __init__(self, llm: OllamaLLM, config: LLMConfig | None = None) -> None:
        self.llm = llm
        self.config = config or llm.config

    def generate(
        self, documents: Sequence[RetrievedDocument], original_query: str
    ) -> str:
        """Recommend one product from ``documents``.

        Returns the fixed empty-result message without calling the model
        when there are no documents. If the model fails or answers with
        blank text, a templated recommendation of the top document is
        returned instead.

        Raises:
            GenerationError: If the query is blank.
        """
        if not original_query or not original_query.strip():
            raise GenerationError("original query cannot be empty")

        if not documents:
            return EMPTY_RESULT_MESSAGE

        documents = list(documents)
        try:
            response = self.llm.generate(
                build_recommendation_prompt(documents, original_query),
                model=self.config.model,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
        except Exception as exc:
            logger.warning("Response generation failed, using fallback: %s", exc)
            return fallback_response(documents)

        if not response.strip():
            logger.warning("Model returned an empty response, using fallback")
            return fallback_response(documents)

        return response

    def is_available(self) -> bool:
        return self.llm.is_available()
