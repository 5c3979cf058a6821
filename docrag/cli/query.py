# =============================================================================
# docrag/cli/query.py -- CLI Query Command (search and ask)
# =============================================================================
#
#   search -- Print the chunks most similar to a query
#   ask    -- Answer a question from the indexed documents
#
# Usage examples:
#   python -m docrag.cli.query search --query "refund policy" --top-k 5
#   python -m docrag.cli.query ask --question "Who signs off on refunds?"
# =============================================================================

"""Standalone CLI for querying the docrag corpus."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from docrag.config.settings import Settings
from docrag.services.factory import build_components
from docrag.utils.errors import DocRagError
from docrag.utils.logging import configure_logging


async def _handle_search(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Run a semantic search and print ranked chunks."""
    response = await components["retrieval_service"].search(args.query, top_k=args.top_k)
    if not response.chunks:
        print("No matching chunks.")
        return 0

    print(f"Top {len(response.chunks)} chunks for: {args.query}")
    for rank, chunk in enumerate(response.chunks, start=1):
        print(f"\n  #{rank}  score={chunk.score:.4f}  document={chunk.document_id}")
        print(f"  {chunk.text}")
    return 0


async def _handle_ask(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Answer a question and print the answer with its sources."""
    response = await components["retrieval_service"].ask(args.question, top_k=args.top_k)

    print(f"Q: {response.question}")
    print(f"A: {response.answer}")
    if response.sources:
        print("\nSources:")
        for chunk in response.sources:
            print(f"  - {chunk.document_id}  score={chunk.score:.4f}")
    return 0


async def _run(args: argparse.Namespace, components: dict[str, Any]) -> int:
    handler = _handle_search if args.command == "search" else _handle_ask
    try:
        return await handler(args, components)
    except DocRagError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def _build_parser(default_top_k: int = 3) -> argparse.ArgumentParser:
    """Build the argparse parser for the query CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m docrag.cli.query",
        description="Search and question the docrag corpus.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Query commands")

    search_parser = subparsers.add_parser("search", help="Semantic search over chunks")
    search_parser.add_argument("--query", required=True, help="Search text")
    search_parser.add_argument(
        "--top-k", type=int, default=default_top_k, dest="top_k", help="Chunks to return"
    )

    ask_parser = subparsers.add_parser("ask", help="Answer a question from the documents")
    ask_parser.add_argument("--question", required=True, help="Question text")
    ask_parser.add_argument(
        "--top-k", type=int, default=default_top_k, dest="top_k", help="Chunks used as context"
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the query tool."""
    app_settings = Settings()
    parser = _build_parser(default_top_k=app_settings.default_top_k)
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    configure_logging(log_level=app_settings.log_level)
    components = build_components(app_settings)
    exit_code = asyncio.run(_run(args, components))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
