"""knowbase remove: delete a document with its chunks and vectors.

Deletion order: vectors (all vec tables) → chunks → document. A failure part
way leaves no orphaned chunks and is safe to retry.

Usage:
  knowbase remove 3f2a9c...
  knowbase remove 3f2a9c... --yes
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from knowbase.cli.errors import err_document_not_found, err_failure, err_no_db
from knowbase.cli.store import DEFAULT_DB, load_config_or_exit, open_repository
from knowbase.errors import KnowbaseError, failure_message
from knowbase.resources import DELETE_FAILURE, remove_document

console = Console()


def remove_cmd(
    document_id: Annotated[str, typer.Argument(help="Id of the document to remove.")],
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to the knowbase database."),
    ] = DEFAULT_DB,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Remove a document and all its chunks from the knowledge base."""
    if not db.exists():
        console.print(err_no_db(str(db)))
        raise typer.Exit(1)

    cfg = load_config_or_exit(console)
    conn, repo = open_repository(db, cfg.embedding, create_vec_table=False)

    try:
        try:
            document = repo.get_document(document_id)
            chunk_count = repo.count_chunks_by_document(document_id)
        except KnowbaseError as exc:
            console.print(err_failure(failure_message(exc)))
            raise typer.Exit(1) from exc

        if document is None:
            console.print(err_document_not_found(document_id))
            raise typer.Exit(0)

        label = document.file_name or "text resource"
        console.print(f"\nRemove document: [bold]{label}[/] ({document_id})")
        console.print(f"  Chunks: {chunk_count}")

        if not yes:
            if not typer.confirm("Confirm removal?", default=False):
                console.print("[dim]Cancelled.[/]")
                raise typer.Exit(0)

        try:
            remove_document(repo, document_id)
        except KnowbaseError as exc:
            console.print(err_failure(failure_message(exc, DELETE_FAILURE)))
            raise typer.Exit(1) from exc
    finally:
        conn.close()

    console.print(f"\n[green]✓[/] Removed: {label}")
    console.print(f"  {chunk_count} chunks deleted")
