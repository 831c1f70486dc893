"""knowbase prune: delete documents left without chunks by a failed embedding call."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from knowbase.cli.errors import err_failure, err_no_db
from knowbase.cli.store import DEFAULT_DB, load_config_or_exit, open_repository
from knowbase.errors import KnowbaseError, failure_message
from knowbase.resources import DEFAULT_ORPHAN_AGE_SECONDS, find_orphans, prune_orphans

console = Console()


def prune_cmd(
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to the knowbase database."),
    ] = DEFAULT_DB,
    older_than: Annotated[
        int,
        typer.Option(
            "--older-than",
            min=0,
            help="Only touch orphans at least this many minutes old.",
        ),
    ] = DEFAULT_ORPHAN_AGE_SECONDS // 60,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="List orphaned documents without deleting them."),
    ] = False,
) -> None:
    """Remove documents that have no embedded chunks.

    Recent orphans are skipped: their ingestion may still be running.
    """
    if not db.exists():
        console.print(err_no_db(str(db)))
        raise typer.Exit(1)

    min_age = older_than * 60
    cfg = load_config_or_exit(console)
    conn, repo = open_repository(db, cfg.embedding, create_vec_table=False)
    try:
        if dry_run:
            orphans = find_orphans(repo, min_age)
            for d in orphans:
                console.print(f"  {d.id}  {d.file_name or 'text resource'}")
            console.print(f"[dim]{len(orphans)} orphaned document(s). Dry run, nothing deleted.[/]")
            return
        deleted = prune_orphans(repo, min_age)
    except KnowbaseError as exc:
        console.print(err_failure(failure_message(exc)))
        raise typer.Exit(1) from exc
    finally:
        conn.close()

    if deleted:
        console.print(f"[green]✓[/] Pruned {len(deleted)} orphaned document(s).")
    elif older_than:
        console.print(f"[dim]No orphaned documents older than {older_than} minute(s).[/]")
    else:
        console.print("[dim]No orphaned documents.[/]")
