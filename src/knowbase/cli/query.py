"""knowbase query: show the stored passages most similar to a question."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from knowbase.cli.errors import err_failure, err_no_db, err_no_embeddings
from knowbase.cli.store import DEFAULT_DB, has_embeddings, load_config_or_exit, open_repository
from knowbase.errors import KnowbaseError, failure_message
from knowbase.ingest.embedder import LiteLLMEmbedder
from knowbase.rag.retriever import RelevantPassage, RetrieverConfig, retrieve

console = Console()


def query_cmd(
    query: Annotated[str, typer.Argument(help="Question or search text.")],
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to the knowbase database."),
    ] = DEFAULT_DB,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", min=1, help="Override retrieval.limit."),
    ] = None,
    min_similarity: Annotated[
        float | None,
        typer.Option("--min-similarity", min=-1.0, max=1.0, help="Override retrieval.min_similarity."),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print results as JSON."),
    ] = False,
) -> None:
    """Retrieve passages ranked by cosine similarity to QUERY."""
    if not db.exists():
        console.print(err_no_db(str(db)))
        raise typer.Exit(1)

    cfg = load_config_or_exit(console)
    config = RetrieverConfig(
        limit=limit if limit is not None else cfg.retrieval.limit,
        min_similarity=(
            min_similarity if min_similarity is not None else cfg.retrieval.min_similarity
        ),
    )

    conn, repo = open_repository(db, cfg.embedding, create_vec_table=False)
    try:
        if not has_embeddings(conn, cfg.embedding):
            console.print(err_no_embeddings(cfg.embedding.model))
            raise typer.Exit(1)
        passages = retrieve(
            query,
            store=repo,
            embedder=LiteLLMEmbedder(cfg.embedding.model, cfg.embedding.dimensions),
            config=config,
        )
    except KnowbaseError as exc:
        console.print(err_failure(failure_message(exc)))
        raise typer.Exit(1) from exc
    finally:
        conn.close()

    if as_json:
        typer.echo(json.dumps([_to_dict(p) for p in passages], indent=2))
        return

    if not passages:
        console.print(
            f"[yellow]No passages above similarity {config.min_similarity:g}.[/]"
        )
        return

    table = Table(title=f"Top {len(passages)} passage(s)", show_lines=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Similarity", justify="right")
    table.add_column("Source")
    table.add_column("Passage")
    for i, p in enumerate(passages, start=1):
        table.add_row(str(i), f"{p.similarity:.3f}", p.source_label, p.text)
    console.print(table)


def _to_dict(passage: RelevantPassage) -> dict:
    return {
        "text": passage.text,
        "similarity": passage.similarity,
        "document_id": passage.document_id,
        "file_name": passage.file_name,
        "file_type": passage.file_type,
    }
