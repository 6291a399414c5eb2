"""Utility functions for the dashboard client."""

from arbwatch.utils.time import (
    LatencyTimer,
    format_duration_us,
    format_timestamp_ms,
    get_timestamp_ms,
)


__all__ = [
    "LatencyTimer",
    "format_duration_us",
    "format_timestamp_ms",
    "get_timestamp_ms",
]
