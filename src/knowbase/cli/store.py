"""Shared helpers for opening the store and loading config from CLI commands."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import typer
from rich.console import Console

from knowbase.cli.errors import err_config
from knowbase.config import ConfigError, EmbeddingCfg, KnowbaseConfig, load_config
from knowbase.db.connection import Database
from knowbase.db.repository import Repository
from knowbase.db.vectors import ensure_vec_table, model_to_slug, vec_table_exists, vec_table_name

DEFAULT_DB = Path(".knowbase.db")


def load_config_or_exit(console: Console) -> KnowbaseConfig:
    """Load config, printing an actionable error and exiting 1 on failure."""
    try:
        return load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from exc


def open_repository(
    db_path: Path, embedding: EmbeddingCfg, *, create_vec_table: bool
) -> tuple[sqlite3.Connection, Repository]:
    """Open (or create) the store and bind a Repository to the model's vec table.

    With ``create_vec_table=False`` a missing vec table leaves the repository
    unbound; callers check ``has_embeddings()`` before querying.
    """
    conn = Database(db_path, migrate=True).connect()
    slug = model_to_slug(embedding.model)
    if create_vec_table:
        table: str | None = ensure_vec_table(conn, slug, embedding.dimensions)
    else:
        table = vec_table_name(slug)
        if not vec_table_exists(conn, table):
            table = None
    return conn, Repository(conn, table)


def has_embeddings(conn: sqlite3.Connection, embedding: EmbeddingCfg) -> bool:
    return vec_table_exists(conn, vec_table_name(model_to_slug(embedding.model)))
