"""knowbase resource store: SQLite documents and chunks, sqlite-vec vectors."""

from knowbase.db.connection import Database
from knowbase.db.migrations import MIGRATIONS, run_migrations
from knowbase.db.models import Chunk, Document, Provenance, SimilarChunk
from knowbase.db.repository import Repository
from knowbase.db.vectors import ensure_vec_table, model_to_slug, vec_table_name

__all__ = [
    "Database",
    "run_migrations",
    "MIGRATIONS",
    "Chunk",
    "Document",
    "Provenance",
    "Repository",
    "SimilarChunk",
    "ensure_vec_table",
    "model_to_slug",
    "vec_table_name",
]
