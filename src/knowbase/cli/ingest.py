"""knowbase ingest: ingest files as documents with provenance.

Source dispatch by extension:
  .txt .text         → read as UTF-8 text
  .md .markdown      → read as UTF-8 text
  .pdf               → pypdf extraction + clean_pdf_text()
  directory          → expanded to supported files (--recursive for subdirs)
"""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn

from knowbase.cli.errors import (
    err_failure,
    err_file_too_large,
    err_no_readable_text,
    err_unsupported_file,
)
from knowbase.cli.store import DEFAULT_DB, load_config_or_exit, open_repository
from knowbase.db.models import PDF_MEDIA_TYPE, Provenance
from knowbase.db.repository import Repository
from knowbase.errors import KnowbaseError, ValidationError, failure_message
from knowbase.ingest.chunker import TextChunker
from knowbase.ingest.embedder import BaseEmbedder, LiteLLMEmbedder
from knowbase.ingest.pdf import PdfText, clean_pdf_text, extract_pdf_text
from knowbase.ingest.pipeline import ingest_document

console = Console()
log = logging.getLogger(__name__)

_MEDIA_TYPES: dict[str, str] = {
    ".txt": "text/plain",
    ".text": "text/plain",
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".pdf": PDF_MEDIA_TYPE,
}

_BYTES_PER_MB = 1024 * 1024
_MAX_DEPTH = 10


def ingest_cmd(
    paths: Annotated[
        list[Path],
        typer.Argument(help="Files or directories to ingest."),
    ],
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to the knowbase database (created if missing)."),
    ] = DEFAULT_DB,
    recursive: Annotated[
        bool,
        typer.Option("--recursive", help="Recurse into subdirectories (max 10 levels)."),
    ] = False,
    exclude: Annotated[
        list[str] | None,
        typer.Option("--exclude", help="Glob pattern to exclude (repeatable)."),
    ] = None,
    max_unit_size: Annotated[
        int | None,
        typer.Option("--max-unit-size", min=1, help="Override chunking.max_unit_size."),
    ] = None,
) -> None:
    """Ingest one or more files into the knowledge base."""
    cfg = load_config_or_exit(console)
    files = _expand_paths(paths, recursive=recursive, exclude=exclude or [])
    if not files:
        console.print("[yellow]No files found to ingest.[/]")
        raise typer.Exit(0)

    embedder = LiteLLMEmbedder(cfg.embedding.model, cfg.embedding.dimensions)
    chunker = TextChunker(max_unit_size or cfg.chunking.max_unit_size)
    limit_mb = cfg.ingest.max_file_mb

    conn, repo = open_repository(db, cfg.embedding, create_vec_table=True)
    failed = 0
    try:
        for path in files:
            if not _process_file(path, repo, embedder, chunker, limit_mb):
                failed += 1
    finally:
        conn.close()

    if failed:
        console.print(f"\n[red]{failed} of {len(files)} file(s) failed.[/]")
        raise typer.Exit(1)


# ------------------------------------------------------------------
# Per-file pipeline
# ------------------------------------------------------------------


def _process_file(
    path: Path,
    repo: Repository,
    embedder: BaseEmbedder,
    chunker: TextChunker,
    limit_mb: float,
) -> bool:
    """Read, chunk, embed and store one file. Returns False on failure."""
    console.print(f"\n[bold]→ {path}[/]")

    suffix = path.suffix.lower()
    media_type = _MEDIA_TYPES.get(suffix)
    if media_type is None:
        console.print(err_unsupported_file(str(path), suffix))
        return False

    size = path.stat().st_size
    if size > limit_mb * _BYTES_PER_MB:
        console.print(err_file_too_large(str(path), size / _BYTES_PER_MB, limit_mb))
        return False

    pdf: PdfText | None = None
    try:
        if media_type == PDF_MEDIA_TYPE:
            pdf = extract_pdf_text(path)
            content = clean_pdf_text(pdf.text)
        else:
            content = path.read_text(encoding="utf-8")
    except (ValidationError, OSError, UnicodeDecodeError) as exc:
        console.print(err_failure(failure_message(exc)))
        return False

    if not content.strip():
        console.print(err_no_readable_text(str(path)))
        return False

    provenance = Provenance(file_name=path.name, file_type=media_type, file_size=str(size))
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        console=console,
    ) as prog:
        prog.add_task("Chunking and embedding…", total=None)
        try:
            result = ingest_document(
                content, provenance, store=repo, embedder=embedder, chunker=chunker
            )
        except KnowbaseError as exc:
            console.print(err_failure(failure_message(exc)))
            return False

    console.print(f"  [green]✓[/] {result.summary}")
    console.print(f"  [dim]{result.document_id} · {result.chunk_count} chunks[/]")
    if pdf is not None:
        console.print(f"  [dim]{escape(_describe_pdf(pdf))}[/]")
    return True


def _describe_pdf(pdf: PdfText) -> str:
    parts = [f"{pdf.page_count} page(s)"]
    if pdf.title:
        parts.append(f"title: {pdf.title}")
    if pdf.author:
        parts.append(f"author: {pdf.author}")
    return " · ".join(parts)


# ------------------------------------------------------------------
# Directory expansion
# ------------------------------------------------------------------


def _expand_paths(paths: list[Path], recursive: bool, exclude: list[str]) -> list[Path]:
    """Expand directories to supported files; leave file paths as-is."""
    result: list[Path] = []
    for p in paths:
        if p.is_dir():
            files = list(_iter_supported(p, recursive=recursive, exclude=exclude))
            if not files:
                console.print(f"[yellow]No supported files found in directory:[/] {p}")
            result.extend(files)
        elif p.exists():
            result.append(p)
        else:
            console.print(f"[yellow]Not found, skipping:[/] {p}")
    return result


def _iter_supported(
    directory: Path, *, recursive: bool, exclude: list[str], levels_left: int = _MAX_DEPTH
) -> Iterator[Path]:
    """Yield supported files under *directory* in sorted, depth-first order."""
    try:
        children = sorted(directory.iterdir())
    except PermissionError:
        log.warning("Permission denied, skipping directory %s", directory)
        return
    for child in children:
        if _excluded(child, exclude):
            continue
        if child.is_dir():
            if recursive and levels_left > 0:
                yield from _iter_supported(
                    child, recursive=True, exclude=exclude, levels_left=levels_left - 1
                )
        elif child.is_file() and child.suffix.lower() in _MEDIA_TYPES:
            yield child


def _excluded(path: Path, patterns: list[str]) -> bool:
    return any(fnmatch.fnmatch(path.name, pattern) for pattern in patterns)
