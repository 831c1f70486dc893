"""knowbase add: ingest directly submitted text (no file provenance)."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from knowbase.cli.errors import err_failure
from knowbase.cli.store import DEFAULT_DB, load_config_or_exit, open_repository
from knowbase.errors import KnowbaseError, failure_message
from knowbase.ingest.chunker import TextChunker
from knowbase.ingest.embedder import LiteLLMEmbedder
from knowbase.ingest.pipeline import ingest_document

console = Console()


def add_cmd(
    text: Annotated[
        str,
        typer.Argument(help="Text to add. Use '-' to read from stdin."),
    ],
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to the knowbase database (created if missing)."),
    ] = DEFAULT_DB,
    max_unit_size: Annotated[
        int | None,
        typer.Option("--max-unit-size", min=1, help="Override chunking.max_unit_size."),
    ] = None,
) -> None:
    """Chunk, embed and store a piece of text."""
    cfg = load_config_or_exit(console)
    content = sys.stdin.read() if text == "-" else text

    conn, repo = open_repository(db, cfg.embedding, create_vec_table=True)
    try:
        result = ingest_document(
            content,
            store=repo,
            embedder=LiteLLMEmbedder(cfg.embedding.model, cfg.embedding.dimensions),
            chunker=TextChunker(max_unit_size or cfg.chunking.max_unit_size),
        )
    except KnowbaseError as exc:
        console.print(err_failure(failure_message(exc)))
        raise typer.Exit(1) from exc
    finally:
        conn.close()

    console.print(f"[green]✓[/] {result.summary}")
    console.print(f"  [dim]{result.document_id} · {result.chunk_count} chunks[/]")
