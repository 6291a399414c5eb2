"""
Internal event bus for decoupled communication.

Provides publish/subscribe messaging between dashboard components
without tight coupling, e.g. a committed settings edit triggering a
feed refresh.
"""

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Generic, TypeVar

from arbwatch.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


class EventType(Enum):
    """Dashboard event types."""

    # Feed events
    SPREADS_UPDATED = auto()
    SPREADS_FAILED = auto()

    # Settings events
    SETTINGS_CHANGED = auto()

    # Trading events
    TRADE_EXECUTED = auto()
    AUTO_STATUS_UPDATED = auto()
    TRADING_MODE_CHANGED = auto()

    # Presentation events
    NOTICE = auto()

    # System events
    SHUTDOWN = auto()


T = TypeVar("T")


@dataclass
class Event(Generic[T]):
    """Generic event with typed payload."""

    type: EventType
    payload: T
    timestamp_ms: int = 0
    source: str = ""

    def __post_init__(self) -> None:
        if not self.timestamp_ms:
            self.timestamp_ms = get_timestamp_ms()


# Type alias for event handlers
EventHandler = Callable[[Event[Any]], Awaitable[None]]
SyncEventHandler = Callable[[Event[Any]], None]


class EventBus:
    """
    Event bus for internal messaging on a single event loop.

    Features:
    - Async and sync handler support
    - Priority-based handler ordering
    - Error isolation per handler
    """

    def __init__(self) -> None:
        """Initialize event bus."""
        self._handlers: dict[EventType, list[tuple[int, EventHandler]]] = defaultdict(list)
        self._sync_handlers: dict[EventType, list[tuple[int, SyncEventHandler]]] = defaultdict(list)

    def subscribe(
        self,
        event_type: EventType,
        handler: EventHandler,
        priority: int = 0,
    ) -> None:
        """
        Subscribe an async handler to an event type.

        Args:
            event_type: Event type to handle.
            handler: Async handler function.
            priority: Handler priority (higher = earlier execution).
        """
        self._handlers[event_type].append((priority, handler))
        self._handlers[event_type].sort(key=lambda x: x[0], reverse=True)

    def subscribe_sync(
        self,
        event_type: EventType,
        handler: SyncEventHandler,
        priority: int = 0,
    ) -> None:
        """
        Subscribe a sync handler to an event type.

        Args:
            event_type: Event type to handle.
            handler: Sync handler function.
            priority: Handler priority.
        """
        self._sync_handlers[event_type].append((priority, handler))
        self._sync_handlers[event_type].sort(key=lambda x: x[0], reverse=True)

    async def publish(self, event: Event[Any]) -> None:
        """
        Publish an event to all subscribers.

        Sync handlers run first, then async handlers in priority order.
        A failing handler is logged and does not stop delivery.
        """
        self._dispatch_sync(event)

        for _, async_handler in self._handlers[event.type]:
            try:
                await async_handler(event)
            except Exception as e:
                logger.error(f"Async handler error for {event.type.name}: {e}")

    def publish_sync(self, event: Event[Any]) -> None:
        """
        Publish event synchronously (sync handlers only).

        Used from non-async call sites such as timer callbacks.
        """
        self._dispatch_sync(event)

    def _dispatch_sync(self, event: Event[Any]) -> None:
        for _, handler in self._sync_handlers[event.type]:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Sync handler error for {event.type.name}: {e}")
