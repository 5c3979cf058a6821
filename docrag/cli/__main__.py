"""Allow ``python -m docrag.cli`` execution (runs the ingest tool)."""

from docrag.cli.ingest import main

main()
