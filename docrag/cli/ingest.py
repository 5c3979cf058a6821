# =============================================================================
# docrag/cli/ingest.py -- CLI Ingest Command (corpus management)
# =============================================================================
#
# Supported subcommands:
#
#   file      -- Ingest one PDF, text or Markdown file
#   directory -- Ingest every .pdf/.txt/.md file in a directory
#   list      -- List documents, newest first
#   show      -- Show one document and its chunks
#   delete    -- Delete a document, its chunks and its vectors
#   reconcile -- Remove vectors left behind by a failed or deleted document
#   health    -- Check that the configured backends answer
#
# Usage examples:
#   python -m docrag.cli.ingest file --path ./handbook.pdf
#   python -m docrag.cli.ingest directory --path ./docs --concurrency 2
#   python -m docrag.cli.ingest delete --id 3f0c... --yes
# =============================================================================

"""Standalone CLI for managing the docrag document corpus."""

from __future__ import annotations

import argparse
import asyncio
import sys
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from docrag.config.settings import Settings
from docrag.services.factory import build_components
from docrag.utils.errors import DocRagError
from docrag.utils.logging import configure_logging

Handler = Callable[[argparse.Namespace, dict[str, Any]], Awaitable[int]]


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_file(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Ingest a single file."""
    print(f"Ingesting file: {args.path}")
    result = await components["ingestion_service"].ingest_file(args.path)

    print("\nIngestion complete:")
    print(f"  Document ID:    {result.document_id}")
    print(f"  Status:         {result.status.value}")
    print(f"  Chunks created: {result.chunk_count}")
    print(f"  Time:           {result.ingestion_time:.2f}s")
    return 0


async def _handle_directory(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Ingest all supported files in a directory."""
    print(f"Ingesting directory: {args.path} (concurrency: {args.concurrency})")
    results = await components["ingestion_service"].ingest_directory(
        args.path, concurrency=args.concurrency
    )

    total_chunks = sum(r.chunk_count for r in results)
    total_time = sum(r.ingestion_time for r in results)

    print("\nDirectory ingestion complete:")
    print(f"  Files indexed: {len(results)}")
    print(f"  Total chunks:  {total_chunks}")
    print(f"  Total time:    {total_time:.2f}s")
    return 0


async def _handle_list(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """List documents."""
    documents = await components["ingestion_service"].list_documents()
    if not documents:
        print("No documents.")
        return 0

    print(f"{'ID':<36}  {'STATUS':<10}  {'CHUNKS':>6}  FILE")
    for doc in documents:
        print(f"{doc.id!s:<36}  {doc.status.value:<10}  {doc.chunk_count:>6}  {doc.file_name}")
    print(f"\n  Total: {len(documents)}")
    return 0


async def _handle_show(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Show one document with its chunks."""
    service = components["ingestion_service"]
    document = await service.get_document(args.id)
    chunks = await service.get_chunks(args.id)

    print(f"Document {document.id}")
    print(f"  File:         {document.file_name}")
    print(f"  Content type: {document.content_type}")
    print(f"  Size:         {document.file_size_bytes} bytes")
    print(f"  Status:       {document.status.value}")
    print(f"  Chunks:       {document.chunk_count}")
    print(f"  Created:      {document.created_at.isoformat()}")
    if document.processed_at:
        print(f"  Processed:    {document.processed_at.isoformat()}")

    for chunk in chunks:
        preview = chunk.text[:80] + ("..." if len(chunk.text) > 80 else "")
        print(f"\n  [{chunk.chunk_index}] {preview}")
    return 0


async def _handle_delete(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Delete a document.  Asks for confirmation unless --yes is passed."""
    service = components["ingestion_service"]
    document = await service.get_document(args.id)

    if not args.yes:
        confirm = input(f"  Delete '{document.file_name}' ({document.id})? [y/N] ").strip().lower()
        if confirm not in ("y", "yes"):
            print("  Aborted.")
            return 0

    removed = await service.delete_document(args.id)
    print(f"Deleted document {args.id} ({removed} vectors removed).")
    return 0


async def _handle_reconcile(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Remove orphaned vectors for a document id."""
    report = await components["ingestion_service"].reconcile(args.id)
    status = report.status.value if report.status else "missing"
    print(f"Reconciled {report.document_id}")
    print(f"  Document status:  {status}")
    print(f"  Action:           {report.action}")
    print(f"  Vectors deleted:  {report.vectors_deleted}")
    return 0


async def _handle_health(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Report backend reachability; exit 1 when any check fails."""
    vector_store = components["vector_store"]
    embedding = components["embedding_provider"]
    llm = components["llm_provider"]

    checks = {
        f"vector_store ({vector_store.get_provider_name()})": await vector_store.is_healthy(),
        f"embedding ({embedding.get_provider_name()})": await asyncio.to_thread(
            embedding.is_available
        ),
        f"llm ({llm.get_provider_name()})": await llm.validate_credentials(),
    }

    print("Backend health")
    print("=" * 40)
    for name, ok in checks.items():
        print(f"  {name:<32} {'ok' if ok else 'UNAVAILABLE'}")
    return 0 if all(checks.values()) else 1


_HANDLERS: dict[str, Handler] = {
    "file": _handle_file,
    "directory": _handle_directory,
    "list": _handle_list,
    "show": _handle_show,
    "delete": _handle_delete,
    "reconcile": _handle_reconcile,
    "health": _handle_health,
}


async def _run(handler: Handler, args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Initialise the document store, then run *handler*.

    Application errors are reported on stderr and turned into exit code 1.
    """
    try:
        await components["document_store"].initialize()
        return await handler(args, components)
    except DocRagError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ingestion CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m docrag.cli.ingest",
        description="Manage the docrag document corpus.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Corpus commands")

    file_parser = subparsers.add_parser("file", help="Ingest a PDF, text or Markdown file")
    file_parser.add_argument("--path", required=True, help="Path to the file")

    dir_parser = subparsers.add_parser("directory", help="Ingest all files in a directory")
    dir_parser.add_argument("--path", required=True, help="Directory path")
    dir_parser.add_argument(
        "--concurrency",
        type=int,
        default=1,
        help="Files ingested in parallel (default: 1)",
    )

    subparsers.add_parser("list", help="List documents, newest first")

    show_parser = subparsers.add_parser("show", help="Show a document and its chunks")
    show_parser.add_argument("--id", required=True, type=uuid.UUID, help="Document ID")

    delete_parser = subparsers.add_parser("delete", help="Delete a document and its vectors")
    delete_parser.add_argument("--id", required=True, type=uuid.UUID, help="Document ID")
    delete_parser.add_argument(
        "--yes", "-y", action="store_true", help="Skip confirmation prompt"
    )

    reconcile_parser = subparsers.add_parser(
        "reconcile", help="Remove vectors left behind by a failed or deleted document"
    )
    reconcile_parser.add_argument("--id", required=True, type=uuid.UUID, help="Document ID")

    subparsers.add_parser("health", help="Check backend reachability")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ingestion tool."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    configure_logging(log_level=app_settings.log_level)

    components = build_components(app_settings)
    exit_code = asyncio.run(_run(_HANDLERS[args.command], args, components))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
