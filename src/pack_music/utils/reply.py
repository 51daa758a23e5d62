"""Utility functions for formatting Discord messages."""

from __future__ import annotations

from functools import cache

PROGRESS_BAR_WIDTH = 20


@cache
def format_duration(seconds: int | float | None) -> str:
    if seconds is None:
        return "–"

    total_seconds = int(seconds)
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    secs = total_seconds % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def parse_timestamp(value: str) -> int | None:
    """Parse a timestamp string into total seconds.

    Accepts formats like "90", "1:30", or "1:30:00".
    Returns None if the input is invalid.
    """
    value = value.strip()
    if not value:
        return None

    parts = value.split(":")
    if len(parts) > 3:
        return None

    try:
        int_parts = [int(p) for p in parts]
    except ValueError:
        return None

    if any(p < 0 for p in int_parts):
        return None
    if len(int_parts) > 1 and any(p >= 60 for p in int_parts[1:]):
        return None

    total = 0
    for part in int_parts:
        total = total * 60 + part
    return total


def progress_bar(elapsed: float, total: int | None, width: int = PROGRESS_BAR_WIDTH) -> str:
    """Render ``elapsed / total`` as a text bar; unknown totals get an empty bar."""
    if not total:
        return "▱" * width
    filled = min(width, int(width * max(0.0, elapsed) / total))
    return "▰" * filled + "▱" * (width - filled)


@cache
def truncate(text: str, max_length: int = 90) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"
