"""Shared fixtures and in-memory fakes for the test suite."""

import json
import re
from unittest.mock import MagicMock

import pytest

from catalog_rag.config import AppConfig, ContextConfig, LLMConfig
from catalog_rag.context import InMemoryContextStore
from catalog_rag.embedding import EmbeddingProvider
from catalog_rag.generator import ResponseGenerator
from catalog_rag.llm import OllamaLLM
from catalog_rag.models import Product, RelevanceScore, RetrievedDocument
from catalog_rag.pipeline import RAGPipeline
from catalog_rag.prompts import EMPTY_RESULT_MESSAGE, fallback_response
from catalog_rag.query_optimizer import QueryOptimizer
from catalog_rag.retriever import DocumentRetriever


def make_document(
    name: str = "AMD Ryzen 7 7800X3D",
    category: str = "processors",
    score: float = 0.9,
    brand: str = "AMD",
    price: int = 4299000,
    doc_id: str = "1",
) -> RetrievedDocument:
    return RetrievedDocument(
        id=doc_id,
        name=name,
        brand=brand,
        category=category,
        price=price,
        description=f"{name}. Great for gaming.",
        score=RelevanceScore(score),
    )


class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeOptimizer(QueryOptimizer):
    """Records calls; returns a mapped term or the query itself."""

    def __init__(self, mapping: dict[str, str] | None = None) -> None:
        self.mapping = mapping or {}
        self.calls: list[tuple[str, str | None]] = []
        self.available = True

    def optimize(self, user_query: str, context: str | None = None) -> str:
        self.calls.append((user_query, context))
        term = self.mapping.get(user_query, user_query)
        if context and user_query not in self.mapping:
            term = f"{user_query} {context}"
        return term

    def is_available(self) -> bool:
        return self.available


class FakeRetriever(DocumentRetriever):
    """Serves documents by category; ``None`` key answers unfiltered searches."""

    def __init__(self, by_category: dict[str | None, list[RetrievedDocument]] | None = None) -> None:
        self.by_category = by_category or {}
        self.calls: list[dict] = []
        self.error: Exception | None = None
        self.available = True

    def retrieve(self, optimized_query, category_filter=None, limit=5, threshold=0.3):
        self.calls.append(
            {
                "query": optimized_query,
                "category": category_filter,
                "limit": limit,
                "threshold": threshold,
            }
        )
        if self.error is not None:
            raise self.error
        return list(self.by_category.get(category_filter, []))[:limit]

    def get_index_stats(self) -> dict:
        count = sum(len(v) for v in self.by_category.values())
        return {"collection_name": "products", "vectors_count": count, "indexed_count": count, "status": "green"}

    def is_available(self) -> bool:
        return self.available


class FakeGenerator(ResponseGenerator):
    """Deterministic generator that mentions the top document and its price."""

    def __init__(self) -> None:
        self.calls: list[tuple[list[RetrievedDocument], str]] = []
        self.available = True

    def generate(self, documents, original_query):
        self.calls.append((list(documents), original_query))
        if not documents:
            return EMPTY_RESULT_MESSAGE
        top = documents[0]
        return f"I recommend {top.name} for {top.formatted_price}."

    def is_available(self) -> bool:
        return self.available


_VOCABULARY = (
    "amd", "intel", "nvidia", "ryzen", "core", "processor", "graphics",
    "rtx", "radeon", "laptop", "macbook", "motherboard", "memory", "ddr",
    "ssd", "cooler", "gaming", "budget",
)


class KeywordEmbedder(EmbeddingProvider):
    """Deterministic embedder: one axis per vocabulary keyword plus a bias."""

    model_name = "keyword-test"

    def __init__(self) -> None:
        self.calls: list[str] = []

    @property
    def dimensions(self) -> int:
        return len(_VOCABULARY) + 1

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        tokens = re.findall(r"\w+", text.lower())
        vector = [float(sum(1 for t in tokens if word in t)) for word in _VOCABULARY]
        vector.append(0.1)
        return vector

    def is_available(self) -> bool:
        return True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def context_store(clock: FakeClock) -> InMemoryContextStore:
    return InMemoryContextStore(ContextConfig(), clock=clock)


@pytest.fixture
def amd_processors() -> list[RetrievedDocument]:
    return [
        make_document("AMD Ryzen 7 7800X3D", score=0.91, price=4299000, doc_id="1"),
        make_document("AMD Ryzen 5 7600", score=0.84, price=1999000, doc_id="2"),
        make_document("AMD Ryzen 9 7950X", score=0.77, price=5999000, doc_id="3"),
    ]


@pytest.fixture
def fake_optimizer() -> FakeOptimizer:
    return FakeOptimizer()


@pytest.fixture
def fake_retriever() -> FakeRetriever:
    return FakeRetriever()


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def pipeline(fake_optimizer, fake_retriever, fake_generator, context_store) -> RAGPipeline:
    return RAGPipeline(
        optimizer=fake_optimizer,
        retriever=fake_retriever,
        generator=fake_generator,
        context_store=context_store,
        config=AppConfig(),
    )


@pytest.fixture
def mock_llm() -> MagicMock:
    llm = MagicMock(spec=OllamaLLM)
    llm.config = LLMConfig()
    return llm


@pytest.fixture
def sample_products() -> list[Product]:
    return [
        Product(
            id=1,
            name="AMD Ryzen 7 7800X3D",
            brand="AMD",
            category="processors",
            price=4299000,
            description="8-core gaming processor with 3D V-Cache.",
            specifications={"socket": "AM5", "cores": 8},
        ),
        Product(
            id=2,
            name="Intel Core i5-14600K",
            brand="Intel",
            category="processors",
            price=3199000,
            description="Unlocked processor for gaming and streaming.",
        ),
        Product(
            id=3,
            name="NVIDIA GeForce RTX 4070 Super",
            brand="NVIDIA",
            category="graphics_cards",
            price=6499000,
            description="Graphics card for 1440p gaming.",
        ),
        Product(
            id=4,
            name="Apple MacBook Air 13",
            brand="Apple",
            category="laptops",
            price=11999000,
            description="Thin and light laptop for work.",
        ),
    ]


@pytest.fixture
def catalog_file(tmp_path, sample_products):
    records = [
        {**p.payload(), "id": p.id, "specifications": p.specifications}
        for p in sample_products
    ]
    path = tmp_path / "products.json"
    path.write_text(json.dumps(records, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def document_factory():
    return make_document


@pytest.fixture
def keyword_embedder() -> KeywordEmbedder:
    return KeywordEmbedder()
