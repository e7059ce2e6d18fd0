"""``proveit address URI``: show the content address a URI resolves to."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape

from proveit.core.content_address import extract_content_address
from proveit.core.errors import NoAddressFoundError

console = Console()


def address_cmd(
    uri: str = typer.Argument(..., help="Content-addressed URI, e.g. ipfs://<cid>/0"),
) -> None:
    """Print the content address extracted from URI."""
    try:
        address = extract_content_address(uri)
    except NoAddressFoundError as exc:
        console.print(f"[bold red][!][/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    # Plain output for scripting
    console.print(address, markup=False, highlight=False)
