"""Tests for CLI error message helpers."""

from __future__ import annotations

from knowbase.cli.errors import (
    err_config,
    err_document_not_found,
    err_failure,
    err_file_too_large,
    err_no_db,
    err_no_embeddings,
    err_no_readable_text,
    err_unsupported_file,
    warn_orphans,
)


def test_err_no_db_has_action():
    msg = err_no_db("x.db")
    assert "x.db" in msg
    assert "knowbase init" in msg


def test_err_no_embeddings_names_model():
    msg = err_no_embeddings("openai/text-embedding-ada-002")
    assert "openai/text-embedding-ada-002" in msg
    assert "knowbase ingest" in msg


def test_err_failure_passes_message():
    assert err_failure("Content must not be empty.").endswith("Content must not be empty.")


def test_err_config_points_at_files():
    assert "knowbase.yaml" in err_config("bad")


def test_err_unsupported_file_lists_supported():
    msg = err_unsupported_file("a.docx", ".docx")
    assert ".docx" in msg
    assert ".pdf" in msg


def test_err_unsupported_file_without_suffix():
    assert "(none)" in err_unsupported_file("Makefile", "")


def test_err_file_too_large():
    msg = err_file_too_large("big.pdf", 12.34, 10.0)
    assert "10 MB" in msg
    assert "12.3 MB" in msg


def test_err_no_readable_text():
    assert "scan.pdf" in err_no_readable_text("scan.pdf")


def test_err_document_not_found():
    msg = err_document_not_found("abc123")
    assert "abc123" in msg
    assert "knowbase list" in msg


def test_warn_orphans():
    msg = warn_orphans(2)
    assert "2 document(s)" in msg
    assert "knowbase prune" in msg
