"""Repository pattern for all knowbase store operations.

Single interface for: documents, chunks, vec embeddings and the similarity
query. The similarity query joins each chunk with its owning document's
provenance so the retriever never touches SQL.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from knowbase.db.models import Chunk, Document, Provenance, SimilarChunk
from knowbase.db.vectors import list_vec_tables
from knowbase.errors import StoreError

_DOCUMENT_COLUMNS = (
    "id, content, file_name, file_type, file_size, created_at, updated_at"
)


@contextmanager
def _store_errors() -> Iterator[None]:
    """Re-raise sqlite3 failures as StoreError, keeping the driver's message."""
    try:
        yield
    except sqlite3.Error as exc:
        raise StoreError(str(exc)) from exc


class Repository:
    """Data access layer for documents, chunks and their embeddings.

    Wraps an open sqlite3.Connection plus the name of the vec table holding
    vectors for the active embedding model. The connection is owned by the
    caller and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection, vec_table: str | None = None) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with sqlite-vec loaded and schema
                migrated (see knowbase.db.connection.Database).
            vec_table: vec_chunks_* table for the active embedding model
                (see knowbase.db.vectors.ensure_vec_table). Only needed for
                writing chunks and similarity search.
        """
        self._conn = conn
        self._vec_table = vec_table

    @property
    def vec_table(self) -> str:
        if self._vec_table is None:
            raise StoreError(
                "No vector table configured for this repository. "
                "Ingest a document first to create the vector index."
            )
        return self._vec_table

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def add_document(self, content: str, provenance: Provenance | None = None) -> str:
        """Insert a new document and return its generated id.

        Args:
            content: Full raw text of the document.
            provenance: File origin metadata, or None for directly submitted text.

        Returns:
            The new document id.
        """
        document_id = uuid.uuid4().hex
        with _store_errors():
            self._conn.execute(
                """
                INSERT INTO documents (id, content, file_name, file_type, file_size)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    document_id,
                    content,
                    provenance.file_name if provenance else None,
                    provenance.file_type if provenance else None,
                    provenance.file_size if provenance else None,
                ),
            )
            self._conn.commit()
        return document_id

    def get_document(self, document_id: str) -> Document | None:
        """Return a document by id, or None if not found."""
        with _store_errors():
            row = self._conn.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = ?",
                (document_id,),
            ).fetchone()
        return _row_to_document(row) if row else None

    def list_documents_with_provenance(self) -> list[Document]:
        """Return documents that came from a file, newest first."""
        with _store_errors():
            rows = self._conn.execute(
                f"""
                SELECT {_DOCUMENT_COLUMNS} FROM documents
                WHERE file_name IS NOT NULL
                ORDER BY created_at DESC, rowid DESC
                """
            ).fetchall()
        return [_row_to_document(r) for r in rows]

    def list_orphan_documents(self, min_age_seconds: int = 0) -> list[Document]:
        """Return documents that have no chunks, oldest first.

        These are left behind when the embedding call fails after the
        document row was written. A document still waiting on its embedding
        call looks the same, so *min_age_seconds* skips recent rows.
        """
        with _store_errors():
            rows = self._conn.execute(
                f"""
                SELECT {_DOCUMENT_COLUMNS} FROM documents d
                WHERE NOT EXISTS (SELECT 1 FROM chunks c WHERE c.document_id = d.id)
                  AND created_at <= datetime('now', ?)
                ORDER BY created_at, rowid
                """,
                (f"-{int(min_age_seconds)} seconds",),
            ).fetchall()
        return [_row_to_document(r) for r in rows]

    def delete_orphan_document(self, document_id: str) -> bool:
        """Delete *document_id* only if it still has no chunks.

        Returns True if a row was deleted.
        """
        with _store_errors():
            cur = self._conn.execute(
                """
                DELETE FROM documents
                WHERE id = ?
                  AND NOT EXISTS (SELECT 1 FROM chunks WHERE document_id = ?)
                """,
                (document_id, document_id),
            )
            self._conn.commit()
        return cur.rowcount > 0

    def delete_document(self, document_id: str) -> str | None:
        """Delete a document row and return its file name.

        Chunks are removed by the ON DELETE CASCADE foreign key, but vectors
        live in a virtual table without one: call delete_chunks_by_document()
        first.

        Returns:
            The document's file name, or None if it had no provenance or did
            not exist.
        """
        with _store_errors():
            row = self._conn.execute(
                "SELECT file_name FROM documents WHERE id = ?", (document_id,)
            ).fetchone()
            self._conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))
            self._conn.commit()
        return row["file_name"] if row else None

    # ------------------------------------------------------------------
    # Chunks + vec embeddings
    # ------------------------------------------------------------------

    def add_chunks(
        self,
        document_id: str,
        texts: Sequence[str],
        embeddings: Sequence[Sequence[float]],
    ) -> list[int]:
        """Insert chunks and their vectors in one transaction. Returns rowids.

        Either every (text, vector) pair is stored or none is.
        """
        if len(texts) != len(embeddings):
            raise StoreError(
                f"Got {len(texts)} chunk texts but {len(embeddings)} embeddings."
            )
        table = self.vec_table
        rowids: list[int] = []
        try:
            for index, (text, embedding) in enumerate(zip(texts, embeddings)):
                cur = self._conn.execute(
                    "INSERT INTO chunks (document_id, chunk_index, text) VALUES (?, ?, ?)",
                    (document_id, index, text),
                )
                rowid = cur.lastrowid
                self._conn.execute(
                    f"INSERT INTO {table}(rowid, embedding) VALUES (?, ?)",
                    (rowid, json.dumps(list(embedding))),
                )
                rowids.append(rowid)
            self._conn.commit()
        except sqlite3.Error as exc:
            self._conn.rollback()
            raise StoreError(str(exc)) from exc
        return rowids

    def list_chunks(self, document_id: str) -> list[Chunk]:
        """Return a document's chunks in document order."""
        with _store_errors():
            rows = self._conn.execute(
                """
                SELECT id AS rowid, document_id, chunk_index, text, created_at
                FROM chunks WHERE document_id = ? ORDER BY chunk_index
                """,
                (document_id,),
            ).fetchall()
        return [_row_to_chunk(r) for r in rows]

    def count_chunks_by_document(self, document_id: str) -> int:
        """Return the number of chunks belonging to *document_id*."""
        with _store_errors():
            return self._conn.execute(
                "SELECT COUNT(*) FROM chunks WHERE document_id = ?", (document_id,)
            ).fetchone()[0]

    def delete_chunks_by_document(self, document_id: str) -> int:
        """Delete a document's vectors (every vec table) and then its chunks.

        Runs as one transaction: on failure nothing is deleted.

        Returns the number of chunk rows deleted.
        """
        try:
            rowids = [
                r[0]
                for r in self._conn.execute(
                    "SELECT id FROM chunks WHERE document_id = ?", (document_id,)
                ).fetchall()
            ]
            if rowids:
                placeholders = ",".join("?" * len(rowids))
                for table in list_vec_tables(self._conn):
                    self._conn.execute(
                        f"DELETE FROM [{table}] WHERE rowid IN ({placeholders})",  # noqa: S608
                        rowids,
                    )
            cur = self._conn.execute(
                "DELETE FROM chunks WHERE document_id = ?", (document_id,)
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            self._conn.rollback()
            raise StoreError(str(exc)) from exc
        return cur.rowcount

    # ------------------------------------------------------------------
    # Similarity search
    # ------------------------------------------------------------------

    def search_similar(
        self, embedding: Sequence[float], min_similarity: float, limit: int
    ) -> list[SimilarChunk]:
        """Cosine nearest-neighbour search joined with document provenance.

        similarity = 1 - cosine_distance. Rows with similarity <= *min_similarity*
        are dropped; the rest come back best-first, ties in insertion order.
        """
        table = self.vec_table
        with _store_errors():
            rows = self._conn.execute(
                f"""
                WITH knn AS (
                    SELECT rowid, distance FROM {table}
                    WHERE embedding MATCH ? AND k = ?
                )
                SELECT c.id AS rowid, c.document_id, c.text,
                       1.0 - knn.distance AS similarity,
                       d.file_name, d.file_type
                FROM knn
                JOIN chunks c ON c.id = knn.rowid
                LEFT JOIN documents d ON d.id = c.document_id
                WHERE 1.0 - knn.distance > ?
                ORDER BY similarity DESC, c.id ASC
                """,
                (json.dumps(list(embedding)), limit, min_similarity),
            ).fetchall()
        return [
            SimilarChunk(
                rowid=r["rowid"],
                document_id=r["document_id"],
                text=r["text"],
                similarity=r["similarity"],
                file_name=r["file_name"],
                file_type=r["file_type"],
            )
            for r in rows
        ]


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------

def _row_to_document(row: sqlite3.Row) -> Document:
    return Document(
        id=row["id"],
        content=row["content"],
        file_name=row["file_name"],
        file_type=row["file_type"],
        file_size=row["file_size"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_chunk(row: sqlite3.Row) -> Chunk:
    return Chunk(
        rowid=row["rowid"],
        document_id=row["document_id"],
        chunk_index=row["chunk_index"],
        text=row["text"],
        created_at=row["created_at"],
    )
