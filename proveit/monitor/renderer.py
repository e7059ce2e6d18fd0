"""Rich terminal renderer for proof runs.

Prints a banner, one progress line per verified item, and a final
verdict panel covering both proofs.  Errors are rendered with the full
context needed to locate the offending item or URL.

Color scheme
------------
- green  : matched
- red    : mismatch / failure
- cyan   : digests and progress
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from proveit.core.errors import (
    FetchError,
    FetchTimeoutError,
    ProofKind,
    ProofMismatchError,
    ProveitError,
)
from proveit.models.proof import ItemResult, VerificationResult


def _verdict(matched: bool) -> str:
    return "[bold green]MATCH[/bold green]" if matched else "[bold red]MISMATCH[/bold red]"


class ProofRenderer:
    """Renders proof progress and verdicts as Rich terminal output.

    Parameters
    ----------
    console:
        Console for progress and verdicts.  A new one is created if not
        provided.
    err_console:
        Console for errors.  Defaults to a stderr console.
    """

    def __init__(
        self,
        console: Console | None = None,
        err_console: Console | None = None,
    ) -> None:
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)

    def print_banner(self, version: str) -> None:
        self.console.print(f"[bold]Proveit[/bold] \\[v{version}]")
        self.console.rule(style="dim")

    def print_start(self, total: int) -> None:
        self.console.print(f"[bold cyan]\\[@][/bold cyan] Proving hash over {total} items...")

    def print_item(self, result: ItemResult) -> None:
        """One progress line per verified item."""
        self.console.print(
            f"[green][+][/green] Hashed {result.token_id}.png: [cyan]{result.digest}[/cyan]"
        )

    # ------------------------------------------------------------------
    # Verdicts
    # ------------------------------------------------------------------

    def render_result(self, result: VerificationResult) -> Panel:
        """Render a successful run as a Panel containing a summary table."""
        table = Table(show_header=False, box=None, padding=(0, 1))
        table.add_column("Field", style="bold")
        table.add_column("Value", overflow="fold")

        table.add_row("Items", str(len(result.items)))
        table.add_row("Proof 1 (images)", _verdict(result.all_items_matched))
        table.add_row("Concatenated", result.concatenated_digests or "[dim](empty)[/dim]")
        table.add_row("Hashed provenance", result.aggregate_digest)
        table.add_row("Committed provenance", result.expected_provenance_hash)
        table.add_row("Proof 2 (provenance)", _verdict(result.aggregate_matched))
        table.add_row("Elapsed", f"{result.elapsed_seconds:.4f}s")

        return Panel(
            table,
            title="[bold]Provenance Proof[/bold]",
            border_style="green" if result.aggregate_matched else "red",
            padding=(1, 2),
        )

    def print_result(self, result: VerificationResult) -> None:
        self.console.print()
        self.console.print(self.render_result(result))

    def print_error(self, exc: ProveitError) -> None:
        """Print the single error that aborted the run."""
        if isinstance(exc, ProofMismatchError):
            if exc.kind == ProofKind.PER_ITEM:
                lines = [
                    "[bold red]IMAGE HASH DOES NOT MATCH METADATA HASH[/bold red]",
                    "",
                    f"[bold]Token:[/bold]    {exc.token_id}",
                    f"[bold]URL:[/bold]      {escape(exc.url)}",
                    f"[bold]Computed:[/bold] {escape(exc.actual)}",
                    f"[bold]Declared:[/bold] {escape(exc.expected)}",
                ]
            else:
                lines = [
                    "[bold red]PROVENANCE HASH DID NOT MATCH[/bold red]",
                    "",
                    f"[bold]Committed:[/bold] {escape(exc.expected)}",
                    f"[bold]Computed:[/bold]  {escape(exc.actual)}",
                ]
            self.err_console.print(
                Panel("\n".join(lines), title="[bold]Proof Failed[/bold]", border_style="red")
            )
            return

        label = "Timeout" if isinstance(exc, FetchTimeoutError) else (
            "Fetch failed" if isinstance(exc, FetchError) else "Error"
        )
        self.err_console.print(f"[bold red][!] {label}:[/bold red] {escape(str(exc))}")
