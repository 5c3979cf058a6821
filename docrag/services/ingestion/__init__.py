"""Document ingestion: extraction, chunking and the ingestion orchestrator."""

from docrag.services.ingestion.chunker import TextChunker
from docrag.services.ingestion.extraction_dispatcher import (
    ExtractionDispatcher,
    infer_content_type,
)
from docrag.services.ingestion.ingestion_service import IngestionService

__all__ = ["ExtractionDispatcher", "IngestionService", "TextChunker", "infer_content_type"]
