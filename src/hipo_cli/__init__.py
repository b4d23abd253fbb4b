"""
Hipo CLI - fetch and run JVM artifacts with a managed Java runtime.

Usage:
    hipo                                  # provision the runtime only
    hipo <group:artifact>                 # run the latest release
    hipo <group:artifact:version> [ARGS]  # run a pinned version
"""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError, version as _package_version
from typing import Optional

import typer
from rich.logging import RichHandler

from hipo_cli.bootstrap import run
from hipo_cli.ui import console

try:
    __version__ = _package_version("hipo-cli")
except PackageNotFoundError:
    __version__ = "0.0.0"

app = typer.Typer(
    name="hipo",
    help="Fetch a JVM artifact by coordinate and run it with a managed Java runtime.",
    add_completion=False,
)


def _configure_logging() -> None:
    package_logger = logging.getLogger("hipo_cli")
    package_logger.setLevel(logging.DEBUG)
    if any(isinstance(h, RichHandler) for h in package_logger.handlers):
        return
    handler = RichHandler(console=console, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger.addHandler(handler)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"hipo {__version__}")
        raise typer.Exit()


@app.command(
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        # Everything after the coordinate belongs to the launched artifact
        "allow_interspersed_args": False,
    }
)
def launch(
    ctx: typer.Context,
    coordinate: Optional[str] = typer.Argument(
        None,
        metavar="[COORDINATE] [ARGS]...",
        help="Artifact as group:artifact[:version]; trailing ARGS are passed to it",
        show_default=False,
    ),
    refresh: bool = typer.Option(
        False,
        "--refresh",
        help="Download the artifact again even if it is cached",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """Ensure a Java runtime is installed, then fetch and run COORDINATE."""
    if verbose:
        _configure_logging()

    exit_code = run(coordinate, list(ctx.args), refresh=refresh)
    if coordinate is None and exit_code == 0:
        typer.echo(ctx.get_help())
    raise typer.Exit(exit_code)


def main():
    app()


if __name__ == "__main__":
    main()
