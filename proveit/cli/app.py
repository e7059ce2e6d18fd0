"""Main Typer application: imports and registers all CLI commands.

Entry point: ``proveit`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import logging

import typer

from proveit import __version__
from proveit.cli.commands.address import address_cmd
from proveit.cli.commands.verify import verify_cmd
from proveit.config import config

app = typer.Typer(
    name="proveit",
    help="Proveit: verify generative-art assets against their provenance hash.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="verify", help="Prove a collection against its provenance hash.")(verify_cmd)
app.command(name="address", help="Extract the content address from a URI.")(address_cmd)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"proveit {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (default: PROVEIT_LOG_LEVEL or WARNING).",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Configure logging before any command runs."""
    level = (log_level or config.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
