"""Tests for resource listing, deletion and orphan cleanup."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from knowbase.db.connection import Database
from knowbase.db.models import PDF_MEDIA_TYPE, Provenance
from knowbase.db.repository import Repository
from knowbase.errors import EmbeddingError, StoreError
from knowbase.ingest.pipeline import ingest_document
from knowbase.resources import (
    DELETE_FAILURE,
    delete_resource,
    find_orphans,
    list_resources,
    prune_orphans,
    remove_document,
)

_PDF = Provenance("guide.pdf", PDF_MEDIA_TYPE, "4096")


def _vec_count(conn, table):
    return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


def test_list_resources_only_file_documents(repo, embedder):
    ingest_document("Plain text.", store=repo, embedder=embedder)
    result = ingest_document("From a file.", _PDF, store=repo, embedder=embedder)
    resources = list_resources(repo)
    assert [d.id for d in resources] == [result.document_id]
    assert resources[0].file_name == "guide.pdf"


def test_list_resources_empty(repo):
    assert list_resources(repo) == []


def test_remove_document_deletes_everything(repo, embedder, tmp_db):
    result = ingest_document("One. Two.", _PDF, store=repo, embedder=embedder)
    assert remove_document(repo, result.document_id) == "guide.pdf"
    assert repo.get_document(result.document_id) is None
    assert repo.count_chunks_by_document(result.document_id) == 0
    assert _vec_count(tmp_db, repo.vec_table) == 0


def test_delete_resource_message_with_file_name(repo, embedder):
    result = ingest_document("One.", _PDF, store=repo, embedder=embedder)
    assert delete_resource(repo, result.document_id) == 'Successfully deleted "guide.pdf".'


def test_delete_resource_message_for_text_document(repo, embedder):
    result = ingest_document("One.", store=repo, embedder=embedder)
    assert delete_resource(repo, result.document_id) == 'Successfully deleted "resource".'


def test_delete_resource_unknown_id_is_idempotent(repo):
    assert delete_resource(repo, "missing") == 'Successfully deleted "resource".'


def test_delete_resource_failure_text(repo):
    with patch.object(repo, "delete_chunks_by_document", side_effect=StoreError("database is locked")):
        assert delete_resource(repo, "any") == "database is locked"


def test_delete_resource_failure_fallback(repo):
    with patch.object(repo, "delete_chunks_by_document", side_effect=StoreError("")):
        assert delete_resource(repo, "any") == DELETE_FAILURE


def test_delete_after_partial_failure_can_be_retried(repo, embedder):
    result = ingest_document("One. Two.", store=repo, embedder=embedder)
    with patch.object(repo, "delete_document", side_effect=StoreError("disk I/O error")):
        with pytest.raises(StoreError):
            remove_document(repo, result.document_id)
    # Chunks are gone, the document remains as an orphan.
    assert [d.id for d in find_orphans(repo)] == [result.document_id]
    remove_document(repo, result.document_id)
    assert repo.get_document(result.document_id) is None


def test_prune_orphans(repo, embedder, make_failing_embedder, tmp_db):
    kept = ingest_document("Kept.", store=repo, embedder=embedder)
    with pytest.raises(EmbeddingError):
        ingest_document("Lost.", store=repo, embedder=make_failing_embedder(RuntimeError("x")))
    orphan_ids = [d.id for d in find_orphans(repo)]
    assert len(orphan_ids) == 1
    tmp_db.execute("UPDATE documents SET created_at = datetime('now', '-1 hour')")
    tmp_db.commit()

    assert prune_orphans(repo) == orphan_ids
    assert find_orphans(repo) == []
    assert repo.get_document(kept.document_id) is not None


def test_prune_orphans_keeps_recent_documents(repo, make_failing_embedder):
    with pytest.raises(EmbeddingError):
        ingest_document("Lost.", store=repo, embedder=make_failing_embedder(RuntimeError("x")))
    assert prune_orphans(repo) == []
    assert len(find_orphans(repo)) == 1
    assert len(prune_orphans(repo, min_age_seconds=0)) == 1


def test_prune_during_embedding_call_leaves_ingestion_intact(
    repo, vec_table, tmp_path, make_embedder
):
    class PruningEmbedder(make_embedder):
        """Runs prune from a second connection while the provider call is in flight."""

        def _embed_texts(self, texts):
            with Database(tmp_path / ".knowbase.db") as other:
                self.pruned = prune_orphans(Repository(other, vec_table))
            return super()._embed_texts(texts)

    embedder = PruningEmbedder()
    result = ingest_document("Valid text. Second.", store=repo, embedder=embedder)

    assert embedder.pruned == []
    assert result.chunk_count == 2
    assert repo.count_chunks_by_document(result.document_id) == 2


def test_prune_orphans_nothing_to_do(repo):
    assert prune_orphans(repo) == []
