"""``proveit verify IMPORT_DIR``: prove a collection against its provenance hash.

Loads ``<IMPORT_DIR>/manifest.json``, verifies every item's image digest
against its metadata (Proof 1), then the aggregate digest against the
committed provenance hash (Proof 2).
"""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from proveit import __version__
from proveit.bridge.fetcher import GatewayFetcher
from proveit.config import config
from proveit.core.errors import ProveitError
from proveit.core.proof_engine import ProofEngine
from proveit.models.manifest import load_manifest, normalize_import_dir
from proveit.monitor.renderer import ProofRenderer

console = Console()
err_console = Console(stderr=True)


def verify_cmd(
    import_dir: Optional[str] = typer.Argument(
        None,
        help="Import output directory containing manifest.json.",
        show_default=False,
    ),
    gateway: str = typer.Option(
        None,
        "--gateway",
        "-g",
        help="IPFS gateway prefix (default: PROVEIT_GATEWAY_URL or https://ipfs.io/ipfs/).",
    ),
    workers: int = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Items fetched concurrently (1 = sequential).",
    ),
    retries: int = typer.Option(
        None,
        "--retries",
        "-r",
        min=0,
        help="Retries for timed-out fetches.",
    ),
    image_timeout: float = typer.Option(
        None,
        "--image-timeout",
        min=0.001,
        help="Seconds to wait for each image.",
    ),
    metadata_timeout: float = typer.Option(
        None,
        "--metadata-timeout",
        min=0.001,
        help="Seconds to wait for each metadata document.",
    ),
) -> None:
    """Verify a collection's images and provenance hash.

    Exit codes: 0 when both proofs match, 1 on any failure, 2 when the
    import directory is missing.
    """
    renderer = ProofRenderer(console=console, err_console=err_console)
    renderer.print_banner(__version__)

    if not import_dir:
        err_console.print("[bold red][!][/bold red] Missing import path")
        err_console.print("[bold][?][/bold] Usage: proveit verify /path/to/import/output/")
        raise typer.Exit(code=2)

    settings = config.model_copy(
        update={
            key: value
            for key, value in {
                "gateway_url": gateway,
                "max_workers": workers,
                "timeout_retries": retries,
                "image_timeout_seconds": image_timeout,
                "metadata_timeout_seconds": metadata_timeout,
            }.items()
            if value is not None
        }
    )

    fetcher = GatewayFetcher(settings.gateway_url, user_agent=settings.user_agent)
    engine = ProofEngine.from_config(fetcher, settings, on_item=renderer.print_item)

    try:
        manifest = load_manifest(normalize_import_dir(import_dir), settings.manifest_filename)
        renderer.print_start(manifest.total)
        result = engine.verify(manifest)
    except ProveitError as exc:
        renderer.print_error(exc)
        raise typer.Exit(code=1)

    renderer.print_result(result)
