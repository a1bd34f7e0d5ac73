from .duration import (
    NO_DATA,
    average_duration,
    duration_between,
    format_duration,
    format_seconds,
    parse_duration_to_seconds,
)

__all__ = [
    "NO_DATA",
    "average_duration",
    "duration_between",
    "format_duration",
    "format_seconds",
    "parse_duration_to_seconds",
]
