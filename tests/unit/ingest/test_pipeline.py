"""Tests for the chunk → embed → persist ingestion pipeline."""

from __future__ import annotations

import logging

import pytest

from knowbase.db.models import PDF_MEDIA_TYPE, Provenance
from knowbase.errors import EmbeddingError, StoreError, ValidationError
from knowbase.ingest.chunker import TextChunker
from knowbase.ingest.pipeline import IngestResult, ingest, ingest_document

_PDF = Provenance(file_name="report.pdf", file_type=PDF_MEDIA_TYPE, file_size="1234")
_MD = Provenance(file_name="notes.md", file_type="text/markdown", file_size="56")


def _vec_count(conn, table):
    return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


# ------------------------------------------------------------------
# ingest_document
# ------------------------------------------------------------------

def test_ingest_document_stores_chunks_and_vectors(repo, embedder, tmp_db):
    result = ingest_document("Hello world. This is a test!", store=repo, embedder=embedder)

    assert isinstance(result, IngestResult)
    assert result.chunk_count == 2
    assert repo.get_document(result.document_id).content == "Hello world. This is a test!"
    assert [c.text for c in repo.list_chunks(result.document_id)] == ["Hello world", "This is a test"]
    assert _vec_count(tmp_db, repo.vec_table) == 2


def test_single_embedding_call_for_all_chunks(repo, embedder):
    ingest_document("One. Two. Three.", store=repo, embedder=embedder)
    assert embedder.calls == [["One", "Two", "Three"]]


def test_custom_chunker(repo, embedder):
    text = "Aaaa aaaa. Bbbb bbbb. Cccc cccc. Dddd dddd."
    result = ingest_document(text, store=repo, embedder=embedder, chunker=TextChunker(25))
    assert result.chunk_count == 2


def test_provenance_persisted(repo, embedder):
    result = ingest_document("Page text.", _PDF, store=repo, embedder=embedder)
    assert repo.get_document(result.document_id).provenance == _PDF


@pytest.mark.parametrize("content", ["", "   \n\t "])
def test_empty_content_rejected_without_writes(repo, embedder, content):
    with pytest.raises(ValidationError, match="must not be empty"):
        ingest_document(content, store=repo, embedder=embedder)
    assert repo.list_orphan_documents() == []
    assert embedder.calls == []


def test_punctuation_only_content_rejected_without_writes(repo, embedder):
    with pytest.raises(ValidationError, match="no text to embed"):
        ingest_document("... !!! ???", store=repo, embedder=embedder)
    assert repo.list_orphan_documents() == []


def test_embedding_failure_leaves_orphan_document(repo, make_failing_embedder, caplog):
    embedder = make_failing_embedder(RuntimeError("provider down"))
    with caplog.at_level(logging.WARNING, logger="knowbase"):
        with pytest.raises(EmbeddingError, match="provider down"):
            ingest_document("Some text.", store=repo, embedder=embedder)

    orphans = repo.list_orphan_documents()
    assert len(orphans) == 1
    assert repo.count_chunks_by_document(orphans[0].id) == 0
    assert "stored without chunks" in caplog.text


def test_vector_count_mismatch_stores_no_chunks(repo, make_embedder, tmp_db):
    class _ShortEmbedder(make_embedder):
        def _embed_texts(self, texts):
            return super()._embed_texts(texts)[:-1]

    with pytest.raises(EmbeddingError, match="returned 1 vectors for 2 inputs"):
        ingest_document("First. Second.", store=repo, embedder=_ShortEmbedder())
    assert _vec_count(tmp_db, repo.vec_table) == 0


# ------------------------------------------------------------------
# ingest (message form)
# ------------------------------------------------------------------

def test_ingest_text_success_message(repo, embedder):
    assert ingest("Hello world.", store=repo, embedder=embedder) == (
        "Resource successfully created and embedded."
    )


def test_ingest_pdf_success_message(repo, embedder):
    assert ingest("Page text.", _PDF, store=repo, embedder=embedder) == (
        'PDF "report.pdf" successfully processed and embedded.'
    )


def test_ingest_other_file_success_message(repo, embedder):
    assert ingest("# Notes. More.", _MD, store=repo, embedder=embedder) == (
        'File "notes.md" successfully processed and embedded.'
    )


def test_ingest_returns_error_text(repo, embedder):
    assert ingest("", store=repo, embedder=embedder) == "Content must not be empty."


@pytest.mark.parametrize("provenance,expected", [
    (None, "Error, please try again."),
    (_PDF, "Error processing PDF, please try again."),
    (_MD, "Error processing file, please try again."),
])
def test_ingest_empty_error_text_falls_back(repo, make_failing_embedder, provenance, expected):
    embedder = make_failing_embedder(EmbeddingError(""))
    assert ingest("Some text.", provenance, store=repo, embedder=embedder) == expected


def test_ingest_store_error_returned_as_message(tmp_db, embedder):
    from knowbase.db.repository import Repository

    # No vec table: the chunk write fails after embedding.
    message = ingest("Some text.", store=Repository(tmp_db), embedder=embedder)
    assert message.startswith("No vector table configured")


def test_store_error_propagates_from_ingest_document(tmp_db, embedder):
    from knowbase.db.repository import Repository

    with pytest.raises(StoreError):
        ingest_document("Some text.", store=Repository(tmp_db), embedder=embedder)
