# =============================================================================
# docrag/cli/__init__.py -- CLI Module Overview
# =============================================================================
#
# Command-line tools for operating docrag without the HTTP server.  Each
# submodule is a self-contained argparse utility runnable with
# `python -m docrag.cli.<module>`:
#
#   1. INGEST (ingest.py)
#      Manages the indexed corpus: ingest a file or a whole directory,
#      list / show / delete documents, reconcile orphaned vectors and
#      check backend health.
#
#   2. QUERY (query.py)
#      Runs semantic search and question answering against the corpus
#      and prints the ranked chunks or the generated answer.
#
# Architecture Notes:
#   - argparse only; no extra CLI dependency.
#   - Components are assembled through docrag.services.factory, the same
#     wiring the FastAPI app uses, so CLI and API always agree on the
#     configured backends.
#   - Handlers are async, return an exit code and run under asyncio.run.
# =============================================================================

"""CLI tools for docrag.

- ``python -m docrag.cli.ingest`` -- manage indexed documents.
- ``python -m docrag.cli.query`` -- search and ask.
- ``python -m docrag.cli`` -- alias for the ingest tool.
"""
