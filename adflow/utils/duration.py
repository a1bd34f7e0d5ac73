from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

NO_DATA = "N/A"


def format_seconds(seconds: int) -> str:
    """Render whole seconds as ``"42s"`` or ``"3m 5s"``."""
    minutes = seconds // 60
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def format_duration(elapsed_ms: float) -> str:
    """Render elapsed milliseconds, truncating to whole seconds."""
    return format_seconds(int(elapsed_ms // 1000))


def duration_between(start: datetime, end: datetime) -> str:
    elapsed_ms = (end - start).total_seconds() * 1000
    return format_duration(max(elapsed_ms, 0))


def parse_duration_to_seconds(duration: Optional[str]) -> int:
    """Parse a string produced by :func:`format_seconds` back to seconds."""
    if not duration:
        return 0
    seconds = 0
    for part in duration.split():
        if part.endswith("m"):
            seconds += int(part[:-1]) * 60
        elif part.endswith("s"):
            seconds += int(part[:-1])
    return seconds


def average_duration(durations: Iterable[Optional[str]]) -> str:
    """Average human-readable durations, or ``"N/A"`` when there are none."""
    values = [d for d in durations if d]
    if not values:
        return NO_DATA
    total = sum(parse_duration_to_seconds(d) for d in values)
    return format_seconds(total // len(values))
