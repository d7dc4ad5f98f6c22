"""
Utilities for handling output paths.
"""

from pathlib import Path

from pathvalidate import sanitize_filename


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


def destination_for(output_dir: Path, filename: str) -> Path:
    """
    Joins a service-provided filename onto the output directory. The name is
    sanitized so it cannot escape the directory or be invalid on this platform.
    """
    return output_dir / sanitize_filename(filename, platform="auto")
