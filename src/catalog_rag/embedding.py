"""Embedding providers that turn text into fixed-size vectors."""

import logging
from abc import ABC, abstractmethod

from chromadb.utils import embedding_functions

from catalog_rag.config import EmbeddingConfig
from catalog_rag.exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)

# Module-level cache so each model is loaded only once per process.
_embedding_fn_cache: dict[tuple[str, str], object] = {}


def get_embedding_function(
    model_name: str = "all-MiniLM-L6-v2",
    device: str = "cpu",
) -> embedding_functions.SentenceTransformerEmbeddingFunction:
    """Return a cached SentenceTransformer embedding function.

    Args:
        model_name: HuggingFace model identifier for the embedding model.
        device: Torch device the model runs on.

    Returns:
        A SentenceTransformerEmbeddingFunction instance (cached).
    """
    key = (model_name, device)
    if key not in _embedding_fn_cache:
        _embedding_fn_cache[key] = (
            embedding_functions.SentenceTransformerEmbeddingFunction(
                model_name=model_name,
                device=device,
            )
        )
    return _embedding_fn_cache[key]  # type: ignore[return-value]


class EmbeddingProvider(ABC):
    """Converts text into vectors of a fixed dimensionality."""

    @property
    @abstractmethod
    def model_name(self) -> str: ...

    @property
    @abstractmethod
    def dimensions(self) -> int: ...

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Embed a single text."""

    def embed_many(self, texts: list[str]) -> list[list[float]]:
        return [self.embed(text) for text in texts]

    @abstractmethod
    def is_available(self) -> bool: ...


class SentenceTransformerEmbedder(EmbeddingProvider):
    """Embedding provider backed by a local sentence-transformers model."""

    def __init__(self, config: EmbeddingConfig | None = None) -> None:
        self.config = config or EmbeddingConfig()
        self._fn = None
        self._dimensions: int | None = None

    @property
    def model_name(self) -> str:
        return self.config.model_name

    @property
    def dimensions(self) -> int:
        if self._dimensions is None:
            self._dimensions = len(self.embed("test"))
        return self._dimensions

    def embed(self, text: str) -> list[float]:
        return self.embed_many([text])[0]

    def embed_many(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        fn = self._ensure_initialized()
        try:
            vectors = fn(texts)
        except Exception as exc:
            raise ServiceUnavailableError("embedding model", str(exc)) from exc

        if vectors is None or len(vectors) != len(texts):
            raise ServiceUnavailableError(
                "embedding model", "embedding generation returned empty result"
            )
        return [[float(x) for x in vector] for vector in vectors]

    def is_available(self) -> bool:
        try:
            self._ensure_initialized()
        except ServiceUnavailableError as exc:
            logger.warning("Embedding model unavailable: %s", exc)
            return False
        return True

    def _ensure_initialized(self):
        if self._fn is not None:
            return self._fn
        try:
            self._fn = get_embedding_function(self.config.model_name, self.config.device)
        except Exception as exc:
            raise ServiceUnavailableError(
                "embedding model",
                f"failed to initialize {self.config.model_name}: {exc}",
            ) from exc
        logger.info("Loaded embedding model %s", self.config.model_name)
        return self._fn
