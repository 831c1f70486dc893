"""knowbase init: create the store and the global config file."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from knowbase.cli.store import DEFAULT_DB, load_config_or_exit, open_repository
from knowbase.config import ensure_global_config

console = Console()


def init_cmd(
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to the knowbase database (created if missing)."),
    ] = DEFAULT_DB,
    global_config: Annotated[
        Path | None,
        typer.Option("--global-config", hidden=True, help="Override global config path (for testing)."),
    ] = None,
) -> None:
    """Create the knowbase database and ~/.knowbase/config.yaml."""
    cfg = load_config_or_exit(console)
    existed = db.exists()

    conn, repo = open_repository(db, cfg.embedding, create_vec_table=True)
    conn.close()

    config_path = ensure_global_config(global_config)

    verb = "Opened existing" if existed else "Created"
    console.print(f"[green]✓[/] {verb} database: {db}")
    console.print(f"  Vector index: {repo.vec_table} ({cfg.embedding.dimensions} dims)")
    console.print(f"[green]✓[/] Global config: {config_path}")
