"""knowbase list: show uploaded documents, newest first."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from knowbase.cli.errors import err_failure, err_no_db, warn_orphans
from knowbase.cli.store import DEFAULT_DB, load_config_or_exit, open_repository
from knowbase.errors import KnowbaseError, failure_message
from knowbase.resources import DEFAULT_ORPHAN_AGE_SECONDS, find_orphans, list_resources

console = Console()


def list_cmd(
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to the knowbase database."),
    ] = DEFAULT_DB,
) -> None:
    """List documents ingested from files."""
    if not db.exists():
        console.print(err_no_db(str(db)))
        raise typer.Exit(1)

    cfg = load_config_or_exit(console)
    conn, repo = open_repository(db, cfg.embedding, create_vec_table=False)
    try:
        documents = list_resources(repo)
        orphan_count = len(find_orphans(repo, DEFAULT_ORPHAN_AGE_SECONDS))
    except KnowbaseError as exc:
        console.print(err_failure(failure_message(exc)))
        raise typer.Exit(1) from exc
    finally:
        conn.close()

    if not documents:
        console.print("[dim]No uploaded documents.[/]")
    else:
        console.print(f"[bold]{len(documents)} document(s)[/]\n")
        for d in documents:
            console.print(f"  [bold]{d.file_name}[/]  [dim]{d.file_type} · {d.file_size} bytes[/]")
            console.print(f"    {d.id}  [dim]{d.created_at}[/]")

    if orphan_count:
        console.print(f"\n{warn_orphans(orphan_count)}")
