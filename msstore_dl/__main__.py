"""
Main entry point for msstore-dl, both as a console script and as the command
of a GitHub Actions step.
"""

import asyncio
import logging
import os
import sys

import typer
from rich.console import Console

from msstore_dl.cli.app import app
from msstore_dl.cli.formatters import format_error_with_suggestions
from msstore_dl.exceptions import MsStoreError

log = logging.getLogger("msstore_dl")


def resolve_argv(argv: list[str]) -> list[str]:
    """
    An Actions step passes its inputs as `INPUT_*` variables and no arguments,
    which means `download`.
    """
    if not argv and os.getenv("INPUT_PRODUCT-ID"):
        return ["download"]
    return argv


def main(argv: list[str] | None = None) -> None:
    if os.name == "nt":
        # Emoji in log lines fail on legacy Windows code pages.
        for stream in (sys.stdout, sys.stderr):
            reconfigure = getattr(stream, "reconfigure", None)
            if reconfigure is not None:
                reconfigure(encoding="utf-8")

    args = resolve_argv(sys.argv[1:] if argv is None else list(argv))
    console = Console(stderr=True)
    try:
        app(args=args, prog_name="msstore-dl")
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]⚠️  Download cancelled.[/yellow]")
        sys.exit(130)
    except MsStoreError as e:
        console.print(format_error_with_suggestions(e))
        sys.exit(1)
    except Exception as e:
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
