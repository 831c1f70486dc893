"""Error taxonomy for the knowbase ingestion and retrieval pipeline.

Callers at the pipeline boundary do not branch on the error kind; they turn
any failure into one display string with ``failure_message()``.
"""

from __future__ import annotations

GENERIC_FAILURE = "Error, please try again."


class KnowbaseError(Exception):
    """Base class for all knowbase pipeline failures."""


class ValidationError(KnowbaseError):
    """Input content or query parameters are empty or invalid."""


class EmbeddingError(KnowbaseError):
    """The embedding provider failed or returned malformed output."""


class StoreError(KnowbaseError):
    """A persistence or similarity query against the resource store failed."""


def failure_message(exc: BaseException, fallback: str = GENERIC_FAILURE) -> str:
    """Return the exception text, or *fallback* when the text is empty.

    Example:
        failure_message(StoreError(""), "Error deleting resource, please try again.")
        -> "Error deleting resource, please try again."
    """
    message = str(exc).strip()
    return message if message else fallback
