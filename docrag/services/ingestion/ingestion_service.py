"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **extract -> chunk -> embed -> store**.

:class:`IngestionService` coordinates five collaborators (extraction
dispatcher, chunker, embedding provider, vector store, document store)
without any of them knowing about each other.  Every ingestion follows the
same flow:

    1. IDocumentStore -- record the upload as ``Processing``
    2. ExtractionDispatcher -- raw bytes to plain text
    3. TextChunker -- overlapping character windows
    4. IEmbeddingProvider -- one vector per chunk, in chunk order
    5. IVectorStoreProvider -- upsert all points, then chunk records
    6. IDocumentStore -- ``Indexed`` on success, ``Failed`` on any error

Vectors are written before chunk records, so a crash between the two
leaves orphaned vectors rather than chunk rows without vectors.
:meth:`IngestionService.reconcile` removes such orphans.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

import structlog

from docrag.models.document import Document, DocumentChunk, DocumentStatus
from docrag.models.rag import (
    PAYLOAD_CHUNK_INDEX,
    PAYLOAD_DOCUMENT_ID,
    PAYLOAD_FILE_NAME,
    PAYLOAD_TEXT,
    IngestionResult,
    ReconciliationReport,
    VectorPoint,
)
from docrag.services.ingestion.chunker import TextChunker
from docrag.services.ingestion.extraction_dispatcher import (
    ExtractionDispatcher,
    infer_content_type,
)
from docrag.utils.concurrency import throttled_gather
from docrag.utils.errors import IngestionCancelledError, InvalidInputError, NotFoundError

if TYPE_CHECKING:
    from docrag.interfaces.document_store import IDocumentStore
    from docrag.interfaces.embedding_provider import IEmbeddingProvider
    from docrag.interfaces.vector_store_provider import IVectorStoreProvider

logger = structlog.get_logger(logger_name=__name__)

# Extensions picked up by ingest_directory.
_SUPPORTED_EXTENSIONS = frozenset({".pdf", ".txt", ".md"})


class IngestionService:
    """Orchestrates the ingestion pipeline: extract -> chunk -> embed -> store.

    Parameters
    ----------
    dispatcher:
        Routes each upload to the extractor for its format.
    chunker:
        Splits extracted text into overlapping windows.
    embedding_provider:
        Generates one embedding vector per chunk.
    vector_store:
        Stores chunk vectors for similarity search.
    document_store:
        Persists document and chunk records.
    collection_name:
        Vector store collection shared by every document.
    embedding_concurrency:
        Maximum embedding calls in flight per document.  ``1`` (default)
        embeds strictly one chunk after another.
    cleanup_on_failure:
        When ``True`` a failed ingestion deletes any vectors it may have
        written before recording ``Failed``.
    """

    def __init__(
        self,
        dispatcher: ExtractionDispatcher,
        chunker: TextChunker,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        document_store: IDocumentStore,
        collection_name: str = "documents",
        embedding_concurrency: int = 1,
        cleanup_on_failure: bool = False,
    ) -> None:
        # Injected collaborators, all behind interfaces except the two
        # pure-Python stages.
        self._dispatcher = dispatcher
        self._chunker = chunker
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._document_store = document_store
        self._collection_name = collection_name
        # max(1, ...) keeps a zero or negative value from stalling the gather.
        self._embedding_concurrency = max(1, embedding_concurrency)
        self._cleanup_on_failure = cleanup_on_failure

    @property
    def collection_name(self) -> str:
        return self._collection_name

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(
        self,
        stream: BinaryIO,
        file_name: str,
        content_type: str,
        file_size: int,
        cancel_event: asyncio.Event | None = None,
    ) -> IngestionResult:
        """Ingest one document through the full pipeline.

        Parameters
        ----------
        stream:
            Readable binary stream holding the file content.
        file_name:
            Original file name; its extension selects the extractor.
        content_type:
            Declared MIME type, recorded on the document as-is.
        file_size:
            Size of the upload in bytes.
        cancel_event:
            Optional event checked before each chunk is embedded.  Once set,
            the ingestion stops with :class:`IngestionCancelledError`.

        Returns
        -------
        IngestionResult
            Identity, chunk count and final status of the document.

        Raises
        ------
        DocRagError
            Any stage failure, after the document has been marked ``Failed``.
        """
        start = time.monotonic()
        # The record exists before any work starts so a crash mid-pipeline
        # still leaves a Failed row to reconcile against.
        document = await self._document_store.create(
            Document(
                file_name=file_name,
                content_type=content_type,
                file_size_bytes=file_size,
                status=DocumentStatus.PROCESSING,
            )
        )
        log = logger.bind(document_id=str(document.id), file_name=file_name)
        log.info("ingestion_started", content_type=content_type, file_size=file_size)

        try:
            # Step 1: extract plain text.
            text = await self._dispatcher.extract_text(stream, file_name)

            # Step 2: chunk.
            chunks = self._chunker.chunk(text)
            log.info("chunks_created", count=len(chunks), chars=len(text))

            # Step 3: make sure the collection exists at this model's size.
            await self._vector_store.ensure_collection(
                self._collection_name, self._embedding_provider.vector_size
            )

            # Step 4: embed, one vector per chunk in chunk order.
            vectors = await self._embed_chunks(chunks, cancel_event)
            records, points = self._build_records(document, chunks, vectors)

            # Step 5: vectors first, then chunk rows.  A failure between the
            # two leaves orphaned vectors that reconcile() can remove.
            await self._vector_store.upsert(self._collection_name, points)
            await self._document_store.add_chunks(records)

            # Step 6: flip to Indexed.  update() is a compare-and-set on version.
            document = await self._document_store.update(
                document.transition(
                    DocumentStatus.INDEXED,
                    chunk_count=len(records),
                    processed_at=datetime.now(timezone.utc),
                )
            )
        # CancelledError is a BaseException; it must still mark the row Failed.
        except (Exception, asyncio.CancelledError) as exc:
            await self._record_failure(document.id, exc)
            raise

        elapsed = round(time.monotonic() - start, 3)
        log.info("ingestion_complete", chunk_count=document.chunk_count, elapsed_s=elapsed)
        return IngestionResult(
            document_id=document.id,
            file_name=document.file_name,
            chunk_count=document.chunk_count,
            status=document.status,
            ingestion_time=elapsed,
        )

    async def ingest_file(
        self,
        file_path: str | Path,
        cancel_event: asyncio.Event | None = None,
    ) -> IngestionResult:
        """Ingest a local file; the content type is inferred from its extension."""
        path = Path(file_path)
        if not path.is_file():
            raise InvalidInputError(message=f"File not found: {path}")

        with path.open("rb") as fh:
            return await self.ingest(
                fh,
                file_name=path.name,
                content_type=infer_content_type(path.name),
                file_size=path.stat().st_size,
                cancel_event=cancel_event,
            )

    async def ingest_directory(
        self,
        dir_path: str | Path,
        concurrency: int = 1,
    ) -> list[IngestionResult]:
        """Ingest every ``.pdf``, ``.txt`` and ``.md`` file in *dir_path*.

        Files are processed in name order, at most *concurrency* at a time.
        A file that fails is logged and skipped; it still leaves a ``Failed``
        document record behind.

        Returns
        -------
        list[IngestionResult]
            One result per successfully ingested file.
        """
        path = Path(dir_path)
        if not path.is_dir():
            raise InvalidInputError(message=f"Not a directory: {path}")

        files = sorted(
            fp for fp in path.iterdir()
            if fp.is_file() and fp.suffix.lower() in _SUPPORTED_EXTENSIONS
        )
        # Non-recursive; subdirectories are ignored.
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def _process_file(fp: Path) -> IngestionResult | None:
            async with semaphore:
                try:
                    return await self.ingest_file(fp)
                # One bad file must not abort the batch.  ingest() has
                # already recorded it as Failed.
                except Exception as exc:
                    logger.warning("ingest_file_failed", file=fp.name, error=str(exc))
                    return None

        outcomes = await asyncio.gather(*(_process_file(fp) for fp in files))
        results = [r for r in outcomes if r is not None]
        logger.info(
            "ingest_directory_complete",
            dir_path=str(path),
            files=len(files),
            succeeded=len(results),
            failed=len(files) - len(results),
        )
        return results

    async def delete_document(self, document_id: uuid.UUID) -> int:
        """Delete a document's vectors, then its record (chunks cascade).

        Returns
        -------
        int
            Number of vectors removed from the index.

        Raises
        ------
        NotFoundError
            If no document has *document_id*.
        """
        document = await self._document_store.get_by_id(document_id)
        if document is None:
            raise NotFoundError(message=f"Document {document_id} not found")

        # Index first: if the record delete fails the document is still
        # listed and the delete can be retried.
        removed = await self._vector_store.delete_by_document_id(
            self._collection_name, document_id
        )
        await self._document_store.delete(document_id)
        logger.info("document_removed", document_id=str(document_id), vectors_deleted=removed)
        return removed

    async def reconcile(self, document_id: uuid.UUID) -> ReconciliationReport:
        """Remove vectors that no indexed document accounts for.

        A ``Failed`` document, or an id with no record at all, has any
        vectors under its id deleted.  ``Indexed`` and ``Processing``
        documents are left untouched.  Safe to repeat.
        """
        document = await self._document_store.get_by_id(document_id)
        status = document.status if document else None

        # Processing may be a live ingestion still writing vectors.
        if status in (DocumentStatus.INDEXED, DocumentStatus.PROCESSING):
            report = ReconciliationReport(
                document_id=document_id, status=status, action="skipped"
            )
        else:
            removed = await self._vector_store.delete_by_document_id(
                self._collection_name, document_id
            )
            report = ReconciliationReport(
                document_id=document_id,
                status=status,
                vectors_deleted=removed,
                action="removed_orphaned_vectors" if removed else "clean",
            )

        logger.info(
            "reconcile_complete",
            document_id=str(document_id),
            status=status.value if status else None,
            action=report.action,
            vectors_deleted=report.vectors_deleted,
        )
        return report

    async def list_documents(self) -> list[Document]:
        """Return every document, newest first."""
        return await self._document_store.get_all()

    async def get_document(self, document_id: uuid.UUID) -> Document:
        """Return the document with *document_id*.

        Raises
        ------
        NotFoundError
            If no document has *document_id*.
        """
        document = await self._document_store.get_by_id(document_id)
        if document is None:
            raise NotFoundError(message=f"Document {document_id} not found")
        return document

    async def get_chunks(self, document_id: uuid.UUID) -> list[DocumentChunk]:
        """Return the chunk records of a document, in chunk order."""
        return await self._document_store.get_chunks(document_id)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _embed_chunks(
        self,
        chunks: list[str],
        cancel_event: asyncio.Event | None,
    ) -> list[list[float]]:
        """Embed *chunks* in order, checking *cancel_event* before each call."""

        async def _embed(index: int, text: str) -> list[float]:
            # Checkpoint: nothing is in flight for this chunk yet.
            if cancel_event is not None and cancel_event.is_set():
                raise IngestionCancelledError(
                    message=f"Ingestion cancelled before chunk {index}"
                )
            return await self._embedding_provider.generate_embedding(text)

        # Sequential path keeps exactly one request open against the backend.
        if self._embedding_concurrency == 1:
            return [await _embed(i, text) for i, text in enumerate(chunks)]

        return await throttled_gather(
            [_embed(i, text) for i, text in enumerate(chunks)],
            limit=self._embedding_concurrency,
        )

    @staticmethod
    def _build_records(
        document: Document,
        chunks: list[str],
        vectors: list[list[float]],
    ) -> tuple[list[DocumentChunk], list[VectorPoint]]:
        """Pair each chunk with its vector under a fresh shared chunk id."""
        records: list[DocumentChunk] = []
        points: list[VectorPoint] = []
        for index, (text, vector) in enumerate(zip(chunks, vectors, strict=True)):
            # Same id on the chunk row and the vector point.
            chunk_id = uuid.uuid4()
            records.append(
                DocumentChunk(id=chunk_id, document_id=document.id, text=text, chunk_index=index)
            )
            points.append(
                VectorPoint(
                    id=chunk_id,
                    vector=vector,
                    # Payload values are strings for every backend.
                    payload={
                        PAYLOAD_TEXT: text,
                        PAYLOAD_DOCUMENT_ID: str(document.id),
                        PAYLOAD_FILE_NAME: document.file_name,
                        PAYLOAD_CHUNK_INDEX: str(index),
                    },
                )
            )
        return records, points

    async def _record_failure(self, document_id: uuid.UUID, error: BaseException) -> None:
        """Mark the document ``Failed``, optionally removing partial vectors first.

        Errors raised here are logged only; the caller re-raises the
        original ingestion error.
        """
        log = logger.bind(document_id=str(document_id))
        log.error(
            "ingestion_failed",
            error_type=type(error).__name__,
            error=str(error),
        )

        # Off by default; reconcile() covers the same ground after the fact.
        if self._cleanup_on_failure:
            try:
                removed = await self._vector_store.delete_by_document_id(
                    self._collection_name, document_id
                )
                log.info("ingestion_cleanup_complete", vectors_deleted=removed)
            except Exception as exc:
                log.warning("ingestion_cleanup_failed", error=str(exc))

        try:
            # Re-read so a version bump from a partial success doesn't conflict.
            current = await self._document_store.get_by_id(document_id)
            if current is not None and not current.status.is_terminal:
                await self._document_store.update(current.transition(DocumentStatus.FAILED))
        except Exception as exc:
            log.warning("ingestion_status_update_failed", error=str(exc))
