"""Domain models for the product search pipeline."""

import math
import re
import uuid
from dataclasses import dataclass, field

from catalog_rag.exceptions import ValidationError

MAX_QUERY_LENGTH = 1000
MAX_SESSION_ID_LENGTH = 255
HIGH_VALUE_PRICE = 100_000

_UNSAFE_CHARS = re.compile(r"[<>\"']")
_SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")
_FIRST_SENTENCE = re.compile(r"^[^.!?]*[.!?]")


def _normalize_whitespace(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


def _sanitize(value: str) -> str:
    """Drop markup-significant characters and collapse whitespace."""
    return _normalize_whitespace(_UNSAFE_CHARS.sub("", value))


def format_price(price: int) -> str:
    """Render a price in minor units as whole major units, e.g. ``45 990 ₽``."""
    if price <= 0:
        return "Price not specified"
    return f"{price // 100:,}".replace(",", " ") + " ₽"


@dataclass(frozen=True)
class SearchQuery:
    """A validated, normalized user search query."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValidationError("Search query cannot be empty")
        if len(self.value) > MAX_QUERY_LENGTH:
            raise ValidationError(
                f"Search query is too long (max {MAX_QUERY_LENGTH} characters, "
                f"got {len(self.value)})"
            )
        if _UNSAFE_CHARS.search(self.value):
            raise ValidationError("Search query contains invalid characters")

    @classmethod
    def from_user_input(cls, raw: str) -> "SearchQuery":
        return cls(_sanitize(raw or ""))

    @property
    def length(self) -> int:
        return len(self.value)

    def contains(self, term: str) -> bool:
        return term.lower() in self.value.lower()

    def is_empty(self) -> bool:
        return self.value in ("", "0")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SessionId:
    """Identifier of a conversation whose category context is remembered."""

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValidationError("Session ID cannot be empty")
        if len(self.value) > MAX_SESSION_ID_LENGTH:
            raise ValidationError(
                f"Session ID is too long (max {MAX_SESSION_ID_LENGTH} characters)"
            )
        if not _SESSION_ID_PATTERN.match(self.value):
            raise ValidationError("Session ID contains invalid characters")

    @classmethod
    def generate(cls) -> "SessionId":
        return cls(f"session_{uuid.uuid4().hex}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, order=True)
class RelevanceScore:
    """Similarity score in [0.0, 1.0] reported by the vector index.

    Used for display and filtering only. Ranking is whatever order the
    index returned.
    """

    value: float

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise ValidationError("Relevance score must be a number")
        if not math.isfinite(self.value):
            raise ValidationError("Relevance score must be a finite number")
        if self.value < 0.0 or self.value > 1.0:
            raise ValidationError(
                f"Relevance score must be between 0.0 and 1.0, got: {self.value}"
            )

    @property
    def percentage(self) -> float:
        return round(self.value * 100, 1)

    @property
    def level(self) -> str:
        if self.is_high():
            return "high"
        if self.is_medium():
            return "medium"
        return "low"

    @property
    def description(self) -> str:
        return f"{self.level.capitalize()} relevance"

    def is_high(self) -> bool:
        return self.value > 0.8

    def is_medium(self) -> bool:
        return 0.5 <= self.value <= 0.8

    def is_low(self) -> bool:
        return self.value < 0.5

    def meets_threshold(self, threshold: float) -> bool:
        return self.value >= threshold

    def __str__(self) -> str:
        return f"{self.percentage}%"


@dataclass(frozen=True)
class Product:
    """A catalog record as it is loaded for indexing."""

    id: int | str
    name: str
    brand: str
    category: str
    price: int
    description: str
    specifications: dict = field(default_factory=dict)

    def embedding_text(self) -> str:
        """Text that represents the product in the vector index."""
        parts = [self.name, self.description]
        parts.extend(v for v in self.specifications.values() if isinstance(v, str))
        parts.extend([self.brand, self.category])
        return " ".join(p for p in parts if p)

    def payload(self) -> dict:
        return {
            "name": self.name,
            "brand": self.brand,
            "category": self.category,
            "price": self.price,
            "description": self.description,
        }


@dataclass(frozen=True)
class RetrievedDocument:
    """One catalog item matched by a similarity search."""

    id: str
    name: str
    brand: str
    category: str
    price: int
    description: str
    score: RelevanceScore

    @classmethod
    def from_hit(cls, hit: dict) -> "RetrievedDocument":
        """Build a document from a raw index hit ``{id, score, payload}``."""
        payload = hit.get("payload") or {}
        return cls(
            id=str(hit.get("id", "")),
            name=str(payload.get("name") or "Unknown Product"),
            brand=str(payload.get("brand") or "Unknown Brand"),
            category=str(payload.get("category") or "unknown"),
            price=int(payload.get("price") or 0),
            description=str(payload.get("description") or "No description available"),
            score=RelevanceScore(float(hit.get("score", 0.0))),
        )

    @property
    def formatted_price(self) -> str:
        return format_price(self.price)

    @property
    def short_description(self) -> str:
        match = _FIRST_SENTENCE.match(self.description)
        if match:
            return match.group(0).strip()
        if len(self.description) > 100:
            return self.description[:97] + "..."
        return self.description

    @property
    def is_high_value(self) -> bool:
        return self.price > HIGH_VALUE_PRICE

    @property
    def relevance_percentage(self) -> float:
        return self.score.percentage

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "category": self.category,
            "description": self.description,
            "price": self.price,
            "formatted_price": self.formatted_price,
            "relevance_score": self.score.value,
            "relevance_percentage": self.relevance_percentage,
            "relevance_level": self.score.level,
        }


@dataclass(frozen=True)
class RAGSearchResult:
    """The assembled outcome of one pipeline run."""

    original_query: str
    optimized_query: str
    documents: tuple[RetrievedDocument, ...] = ()
    response: str = ""
    processing_time_ms: float = 0.0

    def __post_init__(self) -> None:
        # Accept any sequence but store a tuple so the result stays immutable.
        object.__setattr__(self, "documents", tuple(self.documents))
        if self.processing_time_ms < 0.0:
            raise ValidationError("Processing time cannot be negative")

    @property
    def has_results(self) -> bool:
        return bool(self.documents)

    @property
    def result_count(self) -> int:
        return len(self.documents)

    @property
    def top_score(self) -> float | None:
        if not self.documents:
            return None
        return self.documents[0].score.value

    @property
    def average_score(self) -> float | None:
        if not self.documents:
            return None
        return sum(d.score.value for d in self.documents) / len(self.documents)

    def high_relevance_documents(self) -> list[RetrievedDocument]:
        return [d for d in self.documents if d.score.is_high()]

    def categories(self) -> list[str]:
        return list(dict.fromkeys(d.category for d in self.documents))

    def brands(self) -> list[str]:
        return list(dict.fromkeys(d.brand for d in self.documents))

    def price_range(self) -> tuple[int, int] | None:
        if not self.documents:
            return None
        prices = [d.price for d in self.documents]
        return min(prices), max(prices)

    def to_dict(self) -> dict:
        price_range = self.price_range()
        return {
            "original_query": self.original_query,
            "optimized_query": self.optimized_query,
            "documents": [d.to_dict() for d in self.documents],
            "response": self.response,
            "processing_time_ms": self.processing_time_ms,
            "statistics": {
                "result_count": self.result_count,
                "top_relevance_score": self.top_score,
                "average_relevance_score": self.average_score,
                "categories": self.categories(),
                "brands": self.brands(),
                "price_range": (
                    {"min": price_range[0], "max": price_range[1]}
                    if price_range
                    else None
                ),
            },
        }
