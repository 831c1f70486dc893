"""Resource lifecycle: listing uploaded documents, deletion, orphan cleanup."""

from __future__ import annotations

import logging

from knowbase.db.models import Document
from knowbase.db.repository import Repository
from knowbase.errors import KnowbaseError, failure_message

logger = logging.getLogger(__name__)

DELETE_FAILURE = "Error deleting resource, please try again."
DEFAULT_ORPHAN_AGE_SECONDS = 600


def list_resources(store: Repository) -> list[Document]:
    """Return file-derived documents, newest first."""
    return store.list_documents_with_provenance()


def remove_document(store: Repository, document_id: str) -> str | None:
    """Delete a document's vectors and chunks, then the document itself.

    Chunks go first so no chunk ever outlives its document. If the second
    step fails the document is still present with no chunks, and calling
    this again finishes the job.

    Returns:
        The document's file name (None for text documents or unknown ids).
    """
    removed = store.delete_chunks_by_document(document_id)
    file_name = store.delete_document(document_id)
    logger.info("Deleted document %s (%d chunks)", document_id, removed)
    return file_name


def delete_resource(store: Repository, document_id: str) -> str:
    """Delete a document and return a human-readable outcome message."""
    try:
        file_name = remove_document(store, document_id)
    except KnowbaseError as exc:
        return failure_message(exc, DELETE_FAILURE)
    return f'Successfully deleted "{file_name or "resource"}".'


def find_orphans(store: Repository, min_age_seconds: int = 0) -> list[Document]:
    """Return documents with no chunks (left by a failed embedding call)."""
    return store.list_orphan_documents(min_age_seconds)


def prune_orphans(
    store: Repository, min_age_seconds: int = DEFAULT_ORPHAN_AGE_SECONDS
) -> list[str]:
    """Delete chunk-less documents older than *min_age_seconds*.

    Younger documents may still be waiting on their embedding call in
    another process and are left alone.

    Returns:
        The deleted ids.
    """
    deleted = [
        document.id
        for document in find_orphans(store, min_age_seconds)
        if store.delete_orphan_document(document.id)
    ]
    if deleted:
        logger.info("Pruned %d orphaned document(s)", len(deleted))
    return deleted
