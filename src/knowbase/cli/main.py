"""knowbase CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from knowbase.cli.add import add_cmd
from knowbase.cli.ingest import ingest_cmd
from knowbase.cli.init import init_cmd
from knowbase.cli.listing import list_cmd
from knowbase.cli.prune import prune_cmd
from knowbase.cli.query import query_cmd
from knowbase.cli.remove import remove_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("knowbase")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"knowbase {_installed_version()}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Route knowbase.* log records to stderr through rich.

    Warnings (e.g. an orphaned document after a failed embedding call) always
    show; --verbose adds info and debug records.
    """
    log = logging.getLogger("knowbase")
    for handler in [h for h in log.handlers if isinstance(h, RichHandler)]:
        log.removeHandler(handler)
    log.addHandler(RichHandler(console=Console(stderr=True), show_path=False))
    log.setLevel(logging.DEBUG if verbose else logging.WARNING)


app = typer.Typer(
    name="knowbase",
    help=(
        "knowbase: embed documents and retrieve passages by similarity.\n\n"
        "  knowbase ingest  Add files (txt, md, pdf) to the knowledge base.\n"
        "  knowbase query   Rank stored passages against a question."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging on stderr."),
    ] = False,
) -> None:
    """knowbase: embed documents and retrieve passages by similarity."""
    _configure_logging(verbose)


app.command("init")(init_cmd)
app.command("add")(add_cmd)
app.command("ingest")(ingest_cmd)
app.command("query")(query_cmd)
app.command("list")(list_cmd)
app.command("remove")(remove_cmd)
app.command("prune")(prune_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed knowbase version."""
    typer.echo(f"knowbase {_installed_version()}")


if __name__ == "__main__":
    app()
