"""
This module contains helper functions for formatting data into human-readable
strings, used by the directory scan table and in log messages.
"""


def formatted_size(size_bytes: int) -> str:
    """
    Converts a size in bytes to a human-readable string (e.g., B, KB, MB, GB, TB).

    Args:
        size_bytes: The size of the file in bytes.

    Returns:
        A formatted string with the appropriate unit.
        For example, 1536 becomes "1.50 KB", and 2097152 becomes "2.00 MB".
    """
    if size_bytes < 0:
        size_bytes = 0

    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    factor = 1024.0

    if size_bytes == 0:
        return "0 B"

    size = float(size_bytes)
    for unit in units:
        if size < factor:
            return f"{size:.2f} {unit}" if unit != "B" else f"{int(size)} B"
        size /= factor
    return f"{size:.2f} EB"


def truncate(text: str, width: int) -> str:
    """Cuts `text` to at most `width` characters, marking the cut with an ellipsis."""
    if len(text) <= width:
        return text
    if width <= 1:
        return text[:width]
    return text[: width - 1] + "…"
