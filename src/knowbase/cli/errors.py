"""knowbase rich error messages: actionable feedback for the CLI.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from knowbase.cli.errors import err_no_db
    console.print(err_no_db(".knowbase.db"))
    raise typer.Exit(1)
"""

from __future__ import annotations


def err_no_db(db_path: str = ".knowbase.db") -> str:
    """No store found at *db_path*."""
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Run:  knowbase init"
    )


def err_no_embeddings(model: str) -> str:
    """The store has no vector table for the configured embedding model."""
    return (
        f"[red]Error:[/] No embeddings found for model '{model}'.\n"
        "  Run:  knowbase add \"<text>\"  or  knowbase ingest <file>"
    )


def err_failure(message: str) -> str:
    """A pipeline failure, already converted to a single message."""
    return f"[red]Error:[/] {message}"


def err_config(message: str) -> str:
    """Config file could not be loaded."""
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {message}\n"
        "  Fix knowbase.yaml or ~/.knowbase/config.yaml and retry."
    )


def err_unsupported_file(path: str, suffix: str) -> str:
    """File extension is not one knowbase can read."""
    return (
        f"[red]✗ Unsupported file type:[/] {suffix or '(none)'!r} for '{path}'\n"
        "  Supported: .txt .text .md .markdown .pdf"
    )


def err_file_too_large(path: str, size_mb: float, limit_mb: float) -> str:
    """File exceeds the configured upload limit."""
    return (
        f"[red]✗ File exceeds {limit_mb:g} MB limit:[/] '{path}' ({size_mb:.1f} MB)\n"
        "  Split the document or raise ingest.max_file_mb in knowbase.yaml."
    )


def err_no_readable_text(path: str) -> str:
    """The file produced no text after extraction and cleanup."""
    return (
        f"[yellow]✗ No readable text found in[/] '{path}'\n"
        "  Scanned PDFs need OCR before they can be ingested."
    )


def err_document_not_found(document_id: str) -> str:
    """Document id not in the store."""
    return (
        f"[yellow]Document not found:[/] '{document_id}' is not in the knowledge base.\n"
        "  Run:  knowbase list  to see uploaded documents."
    )


def warn_orphans(count: int) -> str:
    """Documents without chunks exist (left by failed embedding calls)."""
    return (
        f"[yellow]⚠[/] {count} document(s) have no embedded chunks.\n"
        "  Run:  knowbase prune  to remove them."
    )
