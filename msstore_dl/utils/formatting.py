"""
Human-readable sizes and durations for the run summary.
"""

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_size(size_bytes: int) -> str:
    """Size of a package file, e.g. '145.3 MB'. Plain bytes are not rounded."""
    size = float(max(size_bytes, 0))
    for unit in _SIZE_UNITS[:-1]:
        if size < 1024:
            break
        size /= 1024
    else:
        unit = _SIZE_UNITS[-1]
    if unit == "B":
        return f"{int(size)} B"
    return f"{size:.1f} {unit}"


def format_duration(seconds: float) -> str:
    """Elapsed time of a run, e.g. '2m 12s' or '1h 0m 5s'."""
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
