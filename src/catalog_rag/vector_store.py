"""Vector store — manages the ChromaDB product collection and similarity search."""

import logging

import chromadb

from catalog_rag.config import VectorStoreConfig
from catalog_rag.embedding import EmbeddingProvider
from catalog_rag.models import Product

logger = logging.getLogger(__name__)


def get_client(config: VectorStoreConfig | None = None):
    """Return a ChromaDB client.

    A remote ``HttpClient`` is used when a host is configured, otherwise
    a local persistent client at ``db_path``.

    Args:
        config: Vector store settings. Uses defaults if not provided.

    Returns:
        A ChromaDB client.
    """
    cfg = config or VectorStoreConfig()
    if cfg.host:
        return chromadb.HttpClient(host=cfg.host, port=cfg.port)
    return chromadb.PersistentClient(path=cfg.db_path)


def get_or_create_collection(
    client,
    config: VectorStoreConfig | None = None,
) -> chromadb.Collection:
    """Get or create the product collection with cosine similarity.

    The collection has no embedding function: vectors are always computed
    by the caller's embedding provider, both at indexing and at query time.

    Args:
        client: An active ChromaDB client.
        config: Vector store settings (collection name).
            Uses defaults if not provided.

    Returns:
        A ChromaDB Collection configured with cosine distance.
    """
    cfg = config or VectorStoreConfig()
    return client.get_or_create_collection(
        name=cfg.collection_name,
        embedding_function=None,
        metadata={"hnsw:space": "cosine"},
    )


def reset_collection(
    client,
    config: VectorStoreConfig | None = None,
) -> chromadb.Collection:
    """Delete and recreate the collection (used before re-indexing).

    If the collection does not exist yet, the delete is ignored.
    """
    cfg = config or VectorStoreConfig()
    try:
        client.delete_collection(cfg.collection_name)
    except Exception:
        logger.debug("Collection %s did not exist", cfg.collection_name)
    return get_or_create_collection(client, cfg)


def add_products(
    collection: chromadb.Collection,
    products: list[Product],
    embedder: EmbeddingProvider,
    batch_size: int = 50,
) -> int:
    """Embed products and upsert them into the collection in batches.

    Product ids become point ids, so re-indexing the same catalog
    overwrites rather than duplicates.

    Args:
        collection: The target ChromaDB collection.
        products: Catalog records to index.
        embedder: Provider used to embed each product's text.
        batch_size: Maximum number of products per upsert call.

    Returns:
        Number of products indexed (0 if the list is empty).
    """
    if not products:
        return 0

    for start in range(0, len(products), batch_size):
        batch = products[start : start + batch_size]
        texts = [p.embedding_text() for p in batch]
        collection.upsert(
            ids=[str(p.id) for p in batch],
            embeddings=embedder.embed_many(texts),
            metadatas=[p.payload() for p in batch],
            documents=texts,
        )
        logger.info(
            "Indexed products %d-%d of %d",
            start + 1,
            start + len(batch),
            len(products),
        )

    return len(products)


def search(
    collection: chromadb.Collection,
    vector: list[float],
    category: str | None = None,
    limit: int = 5,
    score_threshold: float = 0.3,
) -> list[dict]:
    """Run a similarity search and return hits above the threshold.

    Cosine distances are converted to similarity scores (1 - distance).
    Hits keep the order the index returned them in.

    Args:
        collection: The ChromaDB collection to search.
        vector: Query embedding.
        category: When given, only products of this category are searched.
        limit: Maximum number of hits.
        score_threshold: Minimum similarity a hit must reach.

    Returns:
        List of ``{"id", "score", "payload"}`` dicts.
    """
    kwargs = {
        "query_embeddings": [vector],
        "n_results": limit,
        "include": ["metadatas", "distances"],
    }
    if category:
        kwargs["where"] = {"category": category}

    results = collection.query(**kwargs)

    ids = (results.get("ids") or [[]])[0]
    metadatas = (results.get("metadatas") or [[]])[0]
    distances = (results.get("distances") or [[]])[0]

    hits: list[dict] = []
    for point_id, meta, dist in zip(ids, metadatas, distances):
        score = min(1.0, round(1 - dist, 4))
        if score < score_threshold:
            continue
        hits.append({"id": point_id, "score": score, "payload": dict(meta or {})})
    return hits


def collection_info(collection: chromadb.Collection) -> dict:
    """Return size and status of the collection."""
    count = collection.count()
    return {
        "vectors_count": count,
        "indexed_count": count,
        "status": "green" if count > 0 else "empty",
    }
