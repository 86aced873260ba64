"""CLI interface for the product search pipeline."""

import argparse
import logging
import sys

import uvicorn

from catalog_rag import vector_store as vs
from catalog_rag.catalog import index_catalog, load_products
from catalog_rag.config import AppConfig
from catalog_rag.embedding import SentenceTransformerEmbedder
from catalog_rag.exceptions import RAGError
from catalog_rag.models import RAGSearchResult
from catalog_rag.pipeline import RAGPipeline, build_pipeline

CHAT_SESSION = "chat_session"
_EXIT_WORDS = ("quit", "exit", "q", "выход")


def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _print_result(result: RAGSearchResult) -> None:
    print(f"\n🔎 Search term: {result.optimized_query}")
    if not result.has_results:
        print("\nNo products found in the catalog.")
        print(f"\nAssistant:\n{result.response}\n")
        return

    print(f"\n📦 Found {result.result_count} product(s):")
    for i, doc in enumerate(result.documents, start=1):
        print(
            f"  {i}. {doc.name} | {doc.brand} | {doc.formatted_price} "
            f"| {doc.score}"
        )
    print(f"\nAssistant:\n{result.response}\n")


def index(catalog_path: str | None = None, config: AppConfig | None = None) -> int:
    """Load the catalog and (re)build the vector index.

    The existing collection is reset before indexing.

    Args:
        catalog_path: Catalog JSON file. Defaults to ``config.catalog_path``.
        config: Application configuration. Uses defaults if not provided.

    Returns:
        Number of products indexed.
    """
    cfg = config or AppConfig()
    path = catalog_path or cfg.catalog_path

    print(f"\n📂 Loading catalog from: {path}")
    products = load_products(path)
    if not products:
        print("No valid products found in the catalog.")
        return 0

    print(f"\n💾 Vectorizing {len(products)} product(s)...")
    client = vs.get_client(cfg.vector_store)
    collection = vs.reset_collection(client, cfg.vector_store)
    embedder = SentenceTransformerEmbedder(cfg.embedding)
    added = index_catalog(products, collection, embedder, cfg.vector_store.batch_size)

    print(f"\n✅ Indexing complete! ({added} products stored)")
    return added


def search(query: str, session_id: str, pipeline: RAGPipeline) -> bool:
    """Run one search and print it. Returns False if the request failed."""
    try:
        result = pipeline.search_with_context(query, session_id)
    except RAGError as exc:
        print(f"❌ {exc}")
        return False
    _print_result(result)
    return True


def chat(pipeline: RAGPipeline) -> None:
    """Start an interactive product search session.

    All turns share one session, so follow-up questions such as
    "what about AMD?" keep the category of the previous answer. Exits on
    'quit', 'exit', 'q', EOF, or KeyboardInterrupt.
    """
    print("\n🛒 Product consultant")
    print("Type what you are looking for (or 'quit' to exit):\n")

    while True:
        try:
            query = input("You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye!")
            break

        if not query:
            continue
        if query.lower() in _EXIT_WORDS:
            print("Goodbye!")
            break

        search(query, CHAT_SESSION, pipeline)


def health(pipeline: RAGPipeline) -> bool:
    status = pipeline.health_check()
    for component, ok in status.items():
        mark = "✅" if ok else "❌"
        print(f"  {mark} {component}")
    return status["overall"]


def stats(pipeline: RAGPipeline) -> None:
    data = pipeline.system_stats()
    collection = data["collection"]
    print(f"\n📊 Collection: {collection['collection_name']}")
    if "error" in collection:
        print(f"  error: {collection['error']}")
    else:
        print(f"  vectors: {collection['vectors_count']}")
        print(f"  status: {collection['status']}")
    print(f"  active sessions: {data['active_sessions']}")
    print(f"  overall health: {'ok' if data['health']['overall'] else 'degraded'}")


def serve(host: str = "127.0.0.1", port: int = 8080) -> None:
    """Run the HTTP API. Blocks until the server is stopped."""
    print(f"\n🌐 Serving API on http://{host}:{port}/api/v1")
    uvicorn.run("catalog_rag.web:app", host=host, port=port, log_level="info")


def main() -> None:
    """CLI entry point — parse arguments and dispatch to a command."""
    parser = argparse.ArgumentParser(
        description="Catalog RAG — product search with Ollama and ChromaDB",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    index_p = subparsers.add_parser("index", help="Vectorize the product catalog")
    index_p.add_argument("--catalog", type=str, default=None, help="Catalog JSON path")

    search_p = subparsers.add_parser("search", help="Run a single search")
    search_p.add_argument("query", type=str, help="What you are looking for")
    search_p.add_argument(
        "--session", type=str, default=None, help="Session id for follow-ups"
    )

    subparsers.add_parser("chat", help="Start interactive product chat")
    subparsers.add_parser("health", help="Check component availability")
    subparsers.add_parser("stats", help="Show index and session statistics")

    serve_p = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_p.add_argument("--host", type=str, default="127.0.0.1", help="Bind address")
    serve_p.add_argument("--port", type=int, default=8080, help="Bind port")

    args = parser.parse_args()
    _setup_logging(args.verbose)

    cfg = AppConfig()
    if args.command == "index":
        try:
            index(args.catalog, cfg)
        except (FileNotFoundError, ValueError, RAGError) as exc:
            print(f"❌ {exc}")
            sys.exit(1)
    elif args.command == "search":
        session = args.session or cfg.context.default_session
        if not search(args.query, session, build_pipeline(cfg)):
            sys.exit(1)
    elif args.command == "chat":
        chat(build_pipeline(cfg))
    elif args.command == "health":
        if not health(build_pipeline(cfg)):
            sys.exit(1)
    elif args.command == "stats":
        stats(build_pipeline(cfg))
    elif args.command == "serve":
        serve(args.host, args.port)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
