"""
Visual Search Pipeline - Main Entry Point

This module provides the command line interface for:
- Searching an article source and clustering the results by topic
- Re-clustering the last search (from the session cache) with another k
- Running the FastAPI backend

Example usage:
    # Search 100 articles and split them into 8 topics
    python -m visual_search.pipeline search "protein folding" -n 100 -k 8

    # Re-cluster the last search into 12 topics with LLM labels
    python -m visual_search.pipeline cluster -k 12 --prettify

    # Start the FastAPI backend
    python -m visual_search.pipeline serve --port 8000
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from . import options as stored_options
from .clustering.cache import SessionCache
from .config import LOG_LEVEL
from .models.request import ClusterizeRequest, SearchRequest
from .orchestrator import Orchestrator
from .state import ClusterizeResult

logger = logging.getLogger(__name__)


def setup_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(level=level, format="%(asctime)s - %(levelname)s - %(message)s")
    for noisy in ("httpx", "openai", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def print_clusters(result: ClusterizeResult) -> None:
    print(f"\n{result.k} clusters{' (LLM labels)' if result.refined else ''}:\n")
    for info in result.clusters:
        print(f"[{info.cluster_id}] {info.label}  ({info.size} articles)")
        for title in info.sample_titles[:3]:
            print(f"    - {title[:100]}")
        print()


def search(
    query: str,
    *,
    amount: Optional[int] = None,
    n_clusters: Optional[int] = None,
    source: Optional[str] = None,
    include_empty: bool = False,
    prettify: bool = False,
) -> None:
    """Search, cluster and print the clusters.

    Unspecified options come from the stored options, and the ones used are
    stored again for the next run.
    """
    opts = stored_options.load()
    opts = opts.model_copy(update={
        "amount_of_articles": amount or opts.amount_of_articles,
        "amount_of_clusters": n_clusters or opts.amount_of_clusters,
        "articles_source": source or opts.articles_source,
        "exclude_empty_articles": opts.exclude_empty_articles and not include_empty,
    })

    orchestrator = Orchestrator(cache=SessionCache())
    request = SearchRequest(
        query=query,
        amount=opts.amount_of_articles,
        source=opts.articles_source,
        exclude_empty=opts.exclude_empty_articles,
    )

    async def run():
        result = await orchestrator.search(request)
        print(f"\nFound {len(result)} articles for: {query}")
        k = min(opts.amount_of_clusters, len(result))
        if k < 2:
            print("Not enough articles to cluster.")
            return None
        return await orchestrator.reclusterize(ClusterizeRequest(n_clusters=k, prettify=prettify))

    clusters = asyncio.run(run())
    stored_options.save(opts)
    if clusters is not None:
        print_clusters(clusters)


def cluster(n_clusters: int, prettify: bool = False) -> None:
    """Re-cluster the cached session without fetching again."""
    orchestrator = Orchestrator(cache=SessionCache())
    if orchestrator.restore_session() is None:
        print("No cached search found. Run 'python -m visual_search.pipeline search QUERY' first.")
        sys.exit(1)

    clusters = asyncio.run(orchestrator.reclusterize(ClusterizeRequest(n_clusters=n_clusters, prettify=prettify)))
    if clusters is not None:
        print_clusters(clusters)


def serve(port: int = 8000, reload: bool = False) -> None:
    """Start the FastAPI backend server.

    Args:
        port: Port to run on
        reload: Enable auto-reload for development
    """
    import uvicorn

    print(f"Starting Visual Search API on http://localhost:{port}")
    uvicorn.run(
        "visual_search.api.main:app",
        host="0.0.0.0",
        port=port,
        reload=reload,
    )


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Visual Search - topic clusters of article search results",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Search and cluster
  python -m visual_search.pipeline search "graph neural networks" -k 8

  # Search PubMed, keeping articles without abstract
  python -m visual_search.pipeline search "sepsis biomarkers" --source pub-med --include-empty

  # Re-cluster the last search
  python -m visual_search.pipeline cluster -k 12

  # Start FastAPI backend
  python -m visual_search.pipeline serve
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Search command
    search_parser = subparsers.add_parser("search", help="Search articles and cluster them")
    search_parser.add_argument("query", type=str, help="Search query")
    search_parser.add_argument("--amount", "-n", type=int, default=None, help="Number of articles (default: stored option)")
    search_parser.add_argument("--clusters", "-k", type=int, default=None, help="Number of clusters (default: stored option)")
    search_parser.add_argument("--source", "-s", choices=["semantic-scholar", "pub-med"], default=None, help="Article source")
    search_parser.add_argument("--include-empty", action="store_true", help="Keep articles without abstract")
    search_parser.add_argument("--prettify", action="store_true", help="Refine cluster labels with an LLM")

    # Cluster command
    cluster_parser = subparsers.add_parser("cluster", help="Re-cluster the last search")
    cluster_parser.add_argument("--clusters", "-k", type=int, required=True, help="Number of clusters")
    cluster_parser.add_argument("--prettify", action="store_true", help="Refine cluster labels with an LLM")

    # FastAPI serve command
    serve_parser = subparsers.add_parser("serve", help="Start FastAPI backend")
    serve_parser.add_argument("--port", "-p", type=int, default=8000, help="Port (default: 8000)")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    setup_logging()
    try:
        if args.command == "search":
            search(
                args.query,
                amount=args.amount,
                n_clusters=args.clusters,
                source=args.source,
                include_empty=args.include_empty,
                prettify=args.prettify,
            )
        elif args.command == "cluster":
            cluster(args.clusters, prettify=args.prettify)
        elif args.command == "serve":
            serve(port=args.port, reload=args.reload)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(0)
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
