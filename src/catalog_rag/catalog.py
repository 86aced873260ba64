"""Load product records from a JSON catalog file for indexing."""

import json
import logging
from pathlib import Path

from catalog_rag import vector_store as vs
from catalog_rag.embedding import EmbeddingProvider
from catalog_rag.models import Product

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "name", "brand", "category", "price", "description")


def _parse_product(record: dict) -> Product:
    missing = [f for f in REQUIRED_FIELDS if f not in record]
    if missing:
        raise ValueError(f"missing field(s): {', '.join(missing)}")
    specifications = record.get("specifications") or {}
    if not isinstance(specifications, dict):
        raise ValueError("specifications must be an object")
    return Product(
        id=record["id"],
        name=str(record["name"]),
        brand=str(record["brand"]),
        category=str(record["category"]),
        price=int(record["price"]),
        description=str(record["description"]),
        specifications=specifications,
    )


def load_products(path: str | Path) -> list[Product]:
    """Load product records from a JSON array.

    Records that are not objects or lack a required field are skipped
    with a warning.

    Args:
        path: Path to the catalog JSON file.

    Returns:
        Products in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid JSON or not a JSON array.
    """
    catalog = Path(path)
    if not catalog.is_file():
        raise FileNotFoundError(f"Catalog not found: {path}")

    try:
        data = json.loads(catalog.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Failed to parse catalog {path}: {exc}") from exc

    if not isinstance(data, list):
        raise ValueError(f"Catalog {path} must contain a JSON array of products")

    products: list[Product] = []
    for i, record in enumerate(data):
        if not isinstance(record, dict):
            logger.warning("Skipping catalog entry %d: not an object", i)
            continue
        try:
            products.append(_parse_product(record))
        except (TypeError, ValueError) as exc:
            logger.warning("Skipping catalog entry %d: %s", i, exc)

    logger.info("Loaded %d product(s) from %s", len(products), catalog.name)
    return products


def index_catalog(
    products: list[Product],
    collection,
    embedder: EmbeddingProvider,
    batch_size: int = 50,
) -> int:
    """Embed and store ``products``; returns the number indexed."""
    return vs.add_products(collection, products, embedder, batch_size=batch_size)
