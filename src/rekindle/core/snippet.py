"""Extraction of a bounded window of source lines around a target line."""

from typing import NamedTuple

DEFAULT_RADIUS = 10


class Snippet(NamedTuple):
    """Lines ``[start, end)`` of a text, joined back with newlines."""

    code: str
    start: int
    end: int


def extract(full_text: str | bytes, target_line: int, radius: int = DEFAULT_RADIUS) -> Snippet:
    """Cut the window of lines around ``target_line``.

    ``start = max(target_line - radius, 0)`` and
    ``end = min(target_line + radius, total_lines)``. Passing a 1-based
    line number leaves that line at index ``target_line - 1 - start`` of
    the window.

    Args:
        full_text: Complete source text
        target_line: Line to center the window on
        radius: Number of lines on each side

    Returns:
        Snippet with ``0 <= start <= end <= total_lines``
    """
    if isinstance(full_text, bytes):
        full_text = full_text.decode("utf-8", errors="replace")

    lines = full_text.split("\n")
    total = len(lines)
    start = min(max(target_line - radius, 0), total)
    end = max(min(target_line + radius, total), start)

    return Snippet("\n".join(lines[start:end]), start, end)
