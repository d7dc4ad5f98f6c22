"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TransferSpeedColumn,
)

from msstore_dl import __version__
from msstore_dl.api.catalog import ProductCatalogResolver
from msstore_dl.api.transport import HttpTransport
from msstore_dl.core.pipeline import fetch_product
from msstore_dl.exceptions import MsStoreError
from msstore_dl.models.config import ResolverConfig
from msstore_dl.storage.config_manager import ConfigManager

from .actions import report_failure, report_success
from .formatters import format_error_with_suggestions, print_product, print_summary_panel

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("msstore_dl")

app = typer.Typer(
    name="msstore-dl",
    help=(
        "Download the installer packages of a Microsoft Store product. Use"
        " 'msstore-dl <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "msstore-dl"


CONFIG_FILE = get_config_dir() / "config.ini"


def _load_config(config_file: Path | None, cli_options: dict) -> ResolverConfig:
    """An explicit --config must exist; the default location is optional."""
    if config_file is None and CONFIG_FILE.is_file():
        config_file = CONFIG_FILE
    overrides = {key: value for key, value in cli_options.items() if value is not None}
    return ConfigManager(config_file).load_config(overrides)


def _fail(error: BaseException, context: dict | None = None) -> None:
    console.print(format_error_with_suggestions(error, context))
    log.debug("Full traceback:", exc_info=error)
    report_failure(error)
    raise typer.Exit(code=1) from error


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only show warnings and errors."
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
):
    """Microsoft Store package downloader"""
    if version:
        console.print(f"[bold]msstore-dl[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if quiet:
        log_level = "WARNING"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("msstore_dl").setLevel(log_level)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command(name="download")
def download_command(
    product_id: str = typer.Argument(
        ...,
        envvar="INPUT_PRODUCT-ID",
        help="Store product id, e.g. 9NBLGGH4NNS1.",
    ),
    output: Path | None = typer.Option(
        None,
        "-o",
        "--output",
        envvar="INPUT_OUTPUT-PATH",
        help="Directory to write the packages to (default: current directory).",
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", help="Per-request timeout in seconds (default 120)."
    ),
    max_concurrency: int | None = typer.Option(
        None,
        "-w",
        "--max-concurrency",
        help="Limit simultaneous file downloads (default: unlimited).",
    ),
    config_file: Path | None = typer.Option(
        None, "--config", help="Path to an INI configuration file."
    ),
):
    """Resolve a product and download all of its package files."""
    try:
        config = _load_config(
            config_file,
            {
                "timeout": timeout,
                "max_concurrency": max_concurrency,
                "output_path": str(output) if output else None,
            },
        )
    except MsStoreError as e:
        _fail(e)

    output_path = Path(config.output_path).resolve()

    async def _download_async():
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(bar_width=30),
            DownloadColumn(),
            TransferSpeedColumn(),
            console=console,
            transient=True,
        ) as progress:
            return await fetch_product(product_id, output_path, config, progress)

    start_time = time.monotonic()
    try:
        report = asyncio.run(_download_async())
    except MsStoreError as e:
        _fail(e)
    except Exception as e:
        _fail(e, {"type": "Unexpected"})

    print_summary_panel(report, time.monotonic() - start_time, console)
    report_success()


@app.command()
def resolve(
    product_id: str = typer.Argument(..., help="Store product id."),
    config_file: Path | None = typer.Option(
        None, "--config", help="Path to an INI configuration file."
    ),
):
    """Show the catalog data of a product without downloading anything."""

    async def _resolve_async():
        config = _load_config(config_file, {})
        async with HttpTransport(config.timeout) as transport:
            return await ProductCatalogResolver(transport, config).resolve_product(
                product_id
            )

    try:
        product = asyncio.run(_resolve_async())
    except MsStoreError as e:
        _fail(e)

    print_product(product, console)
