"""Telemetry module for logging, metrics, and user-visible notices."""

from arbwatch.telemetry.logger import AsyncLogger, setup_logging
from arbwatch.telemetry.metrics import MetricsCollector
from arbwatch.telemetry.notices import NoticeBoard


__all__ = [
    "AsyncLogger",
    "MetricsCollector",
    "NoticeBoard",
    "setup_logging",
]
