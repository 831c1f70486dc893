"""Ingestion pipeline: chunk → batch embed → persist, for one document.

Order of side effects:
1. One document write.
2. One embedding provider call covering every chunk.
3. One transaction writing all chunks and their vectors.

Steps 1 and 2 are not atomic. If the embedding call fails, the document row
stays behind without chunks; ``knowbase.resources.prune_orphans()`` removes
such rows. Retrieval never sees a partial chunk set because step 3 runs only
after step 2 has returned every vector.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from knowbase.db.models import PDF_MEDIA_TYPE, Provenance
from knowbase.db.repository import Repository
from knowbase.errors import (
    GENERIC_FAILURE,
    EmbeddingError,
    KnowbaseError,
    ValidationError,
    failure_message,
)
from knowbase.ingest.chunker import DEFAULT_MAX_UNIT_SIZE, TextChunker
from knowbase.ingest.embedder import BaseEmbedder

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Outcome of a successful ingestion."""

    document_id: str
    chunk_count: int
    provenance: Provenance | None = None

    @property
    def summary(self) -> str:
        if self.provenance is None:
            return "Resource successfully created and embedded."
        kind = "PDF" if self.provenance.file_type == PDF_MEDIA_TYPE else "File"
        return f'{kind} "{self.provenance.file_name}" successfully processed and embedded.'


def _failure_fallback(provenance: Provenance | None) -> str:
    if provenance is None:
        return GENERIC_FAILURE
    if provenance.file_type == PDF_MEDIA_TYPE:
        return "Error processing PDF, please try again."
    return "Error processing file, please try again."


def ingest_document(
    content: str,
    provenance: Provenance | None = None,
    *,
    store: Repository,
    embedder: BaseEmbedder,
    chunker: TextChunker | None = None,
) -> IngestResult:
    """Persist *content* as a document with embedded chunks.

    Raises:
        ValidationError: If *content* is empty after stripping.
        EmbeddingError: If the provider fails or returns malformed output.
        StoreError: If a store write fails.
    """
    if not content or not content.strip():
        raise ValidationError("Content must not be empty.")
    chunker = chunker or TextChunker(DEFAULT_MAX_UNIT_SIZE)

    # Chunking is pure, so it runs before the write: punctuation-only input
    # is rejected without leaving a chunk-less document behind.
    texts = chunker.chunk(content)
    if not texts:
        raise ValidationError("Content contains no text to embed.")

    document_id = store.add_document(content, provenance)
    logger.debug("Document %s split into %d chunk(s)", document_id, len(texts))

    try:
        embeddings = embedder.embed_batch(texts)
    except EmbeddingError:
        logger.warning(
            "Embedding failed; document %s was stored without chunks", document_id
        )
        raise

    store.add_chunks(document_id, texts, embeddings)
    logger.info("Ingested document %s (%d chunks)", document_id, len(texts))
    return IngestResult(document_id=document_id, chunk_count=len(texts), provenance=provenance)


def ingest(
    content: str,
    provenance: Provenance | None = None,
    *,
    store: Repository,
    embedder: BaseEmbedder,
    chunker: TextChunker | None = None,
) -> str:
    """Ingest *content* and return a human-readable outcome message.

    Never raises for pipeline failures: the error text is returned instead,
    falling back to a generic message when the error carries none.
    """
    try:
        result = ingest_document(
            content, provenance, store=store, embedder=embedder, chunker=chunker
        )
    except KnowbaseError as exc:
        return failure_message(exc, _failure_fallback(provenance))
    return result.summary
