"""Core module containing the event bus, scheduler, and type definitions."""

from arbwatch.core.event_bus import Event, EventBus, EventType
from arbwatch.core.scheduler import Debouncer, Scheduler, TimerHandle
from arbwatch.core.types import (
    AutoTraderCommand,
    AutoTraderState,
    CommandResult,
    FieldSyncState,
    Notice,
    NoticeLevel,
    OpportunityKey,
    RiskLevel,
    TrackedValue,
    TradeOutcome,
    TradingMode,
)


__all__ = [
    "AutoTraderCommand",
    "AutoTraderState",
    "CommandResult",
    "Debouncer",
    "Event",
    "EventBus",
    "EventType",
    "FieldSyncState",
    "Notice",
    "NoticeLevel",
    "OpportunityKey",
    "RiskLevel",
    "Scheduler",
    "TimerHandle",
    "TrackedValue",
    "TradeOutcome",
    "TradingMode",
]
