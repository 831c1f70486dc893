"""Dense retriever: embed the query, rank stored chunks by cosine similarity.

similarity = 1 - cosine_distance

Only chunks with similarity strictly above ``min_similarity`` are returned,
best-first, at most ``limit`` of them. The provenance join and the nearest-
neighbour search live in the store; this module owns query normalisation,
parameter validation and the final ordering.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from knowbase.db.models import SimilarChunk
from knowbase.db.repository import Repository
from knowbase.errors import ValidationError
from knowbase.ingest.embedder import BaseEmbedder

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 4
DEFAULT_MIN_SIMILARITY = 0.5

# sqlite-vec caps KNN queries at k = 4096.
MAX_LIMIT = 4096


@dataclass
class RetrieverConfig:
    """Configuration for the retriever.

    Attributes:
        limit: Maximum number of passages to return.
        min_similarity: Exclusive lower bound on cosine similarity.
    """

    limit: int = DEFAULT_LIMIT
    min_similarity: float = DEFAULT_MIN_SIMILARITY


@dataclass
class RelevantPassage:
    """A retrieved chunk with its score and the owning document's provenance.

    Attributes:
        text: The chunk text.
        similarity: Cosine similarity to the query (higher = more relevant).
        document_id: Id of the document the chunk belongs to.
        file_name: Origin file name, or None for directly submitted text.
        file_type: Origin media type, or None for directly submitted text.
    """

    text: str
    similarity: float
    document_id: str
    file_name: str | None = None
    file_type: str | None = None

    @property
    def source_label(self) -> str:
        return self.file_name or "text resource"


def normalize_query(query: str) -> str:
    """Replace literal ``\\n`` escapes and real newlines with spaces, then strip."""
    return query.replace("\\n", " ").replace("\n", " ").strip()


def retrieve(
    query: str,
    *,
    store: Repository,
    embedder: BaseEmbedder,
    config: RetrieverConfig | None = None,
) -> list[RelevantPassage]:
    """Return the passages most similar to *query*, best-first.

    Makes exactly one embedding call. Either the full ranked list is returned
    or an exception is raised; never a truncated list.

    Raises:
        ValidationError: If the query is empty or the config is out of range.
        EmbeddingError: If the query cannot be embedded.
        StoreError: If the similarity query fails.
    """
    config = config or RetrieverConfig()
    _validate_config(config)

    text = normalize_query(query)
    if not text:
        raise ValidationError("Query must not be empty.")

    query_embedding = embedder.embed_one(text)
    rows = store.search_similar(
        query_embedding, min_similarity=config.min_similarity, limit=config.limit
    )
    passages = _rank(rows, config)
    logger.debug("Query matched %d passage(s)", len(passages))
    return passages


def _rank(rows: list[SimilarChunk], config: RetrieverConfig) -> list[RelevantPassage]:
    """Apply the similarity filter and limit, sorted by similarity descending.

    The store already filters and orders; this re-check keeps the ranking
    contract independent of the store implementation. ``sorted`` is stable,
    so ties keep the store's insertion order.
    """
    kept = [r for r in rows if r.similarity > config.min_similarity]
    kept = sorted(kept, key=lambda r: r.similarity, reverse=True)[: config.limit]
    return [
        RelevantPassage(
            text=r.text,
            similarity=r.similarity,
            document_id=r.document_id,
            file_name=r.file_name,
            file_type=r.file_type,
        )
        for r in kept
    ]


def _validate_config(config: RetrieverConfig) -> None:
    if not 1 <= config.limit <= MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_LIMIT}, got {config.limit}")
    if not -1.0 <= config.min_similarity <= 1.0:
        raise ValidationError(
            f"min_similarity must be between -1 and 1, got {config.min_similarity}"
        )
