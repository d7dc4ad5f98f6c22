"""
Functions for formatting and displaying data in the console using Rich.
"""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from msstore_dl.models.product import ProductDescriptor
from msstore_dl.models.update import ResolutionReport
from msstore_dl.utils.formatting import format_duration, format_size


def format_error_with_suggestions(
    error: BaseException, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ProductNotFoundError": [
            "• Check the product id (the 12-character id in the Store URL).",
            "• The product may not be available in the US market.",
        ],
        "SkuNotFoundError": [
            "• The product exists but has no purchasable SKU.",
        ],
        "FulfillmentMissingError": [
            "• This is most likely a Win32 app that the Store installs from the publisher.",
            "• Only MSIX/AppX packaged apps can be fetched this way.",
        ],
        "CookieMissingError": [
            "• The update service did not issue a session cookie.",
            "• Please try again in a few minutes.",
        ],
        "NetworkError": [
            "• A network connection issue occurred.",
            "• The Store or update service might be temporarily unavailable.",
            "• Increase `--timeout` on slow connections.",
        ],
        "XmlParseError": [
            "• The update service returned an unexpected response.",
            "• Run the command with -vv for detailed logs.",
        ],
        "TrustContextError": [
            "• The Microsoft root certificates could not be loaded.",
            "• A proxy may be rewriting the certificate downloads.",
        ],
        "ConfigurationError": [
            "• Check the values in your configuration file.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_product(product: ProductDescriptor, console: Console | None = None):
    """Displays the fields of a resolved product."""
    console = console or Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Product:", product.product_id)
    table.add_row("SKU:", product.sku_id or "[dim]-[/dim]")
    table.add_row("Category:", product.category_id)
    table.add_row("Package Family:", product.package_family_name)
    table.add_row("File Prefix:", product.package_family_prefix or "[dim](any)[/dim]")

    console.print(
        Panel(table, title="[bold green]✓ Product Resolved[/bold green]", border_style="green")
    )


def print_summary_panel(
    report: ResolutionReport, duration_s: float, console: Console | None = None
):
    """Displays the files written by a run."""
    console = console or Console()

    files_table = Table(box=box.SIMPLE, show_edge=False)
    files_table.add_column("File", style="cyan")
    files_table.add_column("Size", justify="right", style="green")
    for item in sorted(report.downloaded, key=lambda f: f.filename):
        files_table.add_row(item.filename, format_size(item.size_bytes))

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=16)
    stats_table.add_column(style="white", justify="left")
    stats_table.add_row(
        "✓ Downloaded:", f"[bold green]{len(report.downloaded)}[/bold green]"
    )
    if report.unresolved:
        stats_table.add_row(
            "⚠ No URL:", f"[yellow]{', '.join(sorted(report.unresolved))}[/yellow]"
        )
    if report.warnings:
        stats_table.add_row(
            "⚠ Skipped nodes:", f"[yellow]{len(report.warnings)}[/yellow]"
        )
    stats_table.add_row("Total Size:", f"[cyan]{format_size(report.total_size)}[/cyan]")
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    content = Table.grid(padding=(1, 0))
    if report.downloaded:
        content.add_row(files_table)
    content.add_row(stats_table)

    console.print()
    console.print(
        Panel(
            content,
            title=f"📦 [bold]{report.product.package_family_name}[/bold]",
            border_style="green",
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
