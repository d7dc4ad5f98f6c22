"""
Reports the outcome of a run to GitHub Actions when running inside a workflow.

Outside a workflow both functions do nothing.
"""

import logging
import os
import traceback

log = logging.getLogger(__name__)


def _escape_data(value: str) -> str:
    """Escapes a workflow command message (`%`, CR and LF)."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def set_output(name: str, value: str) -> bool:
    """Appends `name=value` to the step's output file. Returns False outside Actions."""
    output_file = os.getenv("GITHUB_OUTPUT")
    if not output_file:
        return False
    try:
        with open(output_file, "a", encoding="utf-8") as f:
            f.write(f"{name}={value}\n")
    except OSError as e:
        log.warning(f"[yellow]Could not write step output:[/] {e}")
        return False
    return True


def report_success() -> None:
    set_output("status", "success")


def report_failure(error: BaseException) -> str | None:
    """
    Emits an `::error::` command carrying the error name, message and stack.

    Returns:
        The emitted command, or None when not running under GitHub Actions.
    """
    if os.getenv("GITHUB_ACTIONS") != "true":
        return None
    stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    command = f"::error::{_escape_data(f'{type(error).__name__}: {error}, stack:{stack}')}"
    print(command, flush=True)
    return command
