"""
User-visible notices.

Transient notices (command results, commit failures) dismiss themselves
after a fixed lifetime. Persistent notices (poll failures, remote fault
state) stay until the component that raised them clears them.
"""

import asyncio
import logging

from arbwatch.config.constants import NOTICE_TTL_SECONDS
from arbwatch.core.event_bus import Event, EventBus, EventType
from arbwatch.core.types import Notice, NoticeLevel
from arbwatch.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


class NoticeBoard:
    """Holds the notices currently shown to the user."""

    def __init__(
        self,
        ttl: float = NOTICE_TTL_SECONDS,
        event_bus: EventBus | None = None,
        max_transient: int = 20,
    ) -> None:
        """
        Initialize notice board.

        Args:
            ttl: Lifetime of transient notices in seconds.
            event_bus: Optional bus receiving a NOTICE event per notice.
            max_transient: Oldest transient notices are dropped beyond this.
        """
        self._ttl = ttl
        self._bus = event_bus
        self._max_transient = max_transient
        self._transient: list[Notice] = []
        self._timers: dict[int, asyncio.TimerHandle] = {}
        self._persistent: dict[str, Notice] = {}

    def push(
        self,
        text: str,
        level: NoticeLevel = NoticeLevel.INFO,
        ttl: float | None = None,
    ) -> Notice:
        """
        Show a transient notice.

        Must be called from the event loop; the notice is dismissed
        after `ttl` seconds.
        """
        notice = Notice(text=text, level=level, created_ms=get_timestamp_ms())
        self._transient.append(notice)

        loop = asyncio.get_running_loop()
        self._timers[id(notice)] = loop.call_later(
            self._ttl if ttl is None else ttl, self.dismiss, notice
        )

        while len(self._transient) > self._max_transient:
            self.dismiss(self._transient[0])

        self._announce(notice)
        return notice

    def success(self, text: str) -> Notice:
        return self.push(text, NoticeLevel.SUCCESS)

    def error(self, text: str) -> Notice:
        return self.push(text, NoticeLevel.ERROR)

    def dismiss(self, notice: Notice) -> None:
        """Remove a transient notice."""
        timer = self._timers.pop(id(notice), None)
        if timer is not None:
            timer.cancel()
        self._transient = [n for n in self._transient if n is not notice]

    def set_persistent(
        self,
        key: str,
        text: str,
        level: NoticeLevel = NoticeLevel.ERROR,
    ) -> Notice:
        """Show or replace the persistent notice stored under `key`."""
        current = self._persistent.get(key)
        if current is not None and current.text == text and current.level == level:
            return current

        notice = Notice(text=text, level=level, key=key, created_ms=get_timestamp_ms())
        self._persistent[key] = notice
        self._announce(notice)
        return notice

    def clear_persistent(self, key: str) -> bool:
        """
        Remove the persistent notice stored under `key`.

        Returns:
            True if a notice was removed.
        """
        return self._persistent.pop(key, None) is not None

    def get_persistent(self, key: str) -> Notice | None:
        return self._persistent.get(key)

    def clear(self) -> None:
        """Drop every notice and cancel pending dismissals."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._transient.clear()
        self._persistent.clear()

    def _announce(self, notice: Notice) -> None:
        log = logger.warning if notice.level == NoticeLevel.ERROR else logger.info
        log(f"Notice [{notice.level.value}]: {notice.text}")
        if self._bus is not None:
            self._bus.publish_sync(Event(EventType.NOTICE, notice, source="notices"))

    @property
    def transient(self) -> list[Notice]:
        """Transient notices, oldest first."""
        return list(self._transient)

    @property
    def persistent(self) -> list[Notice]:
        """Persistent notices in insertion order."""
        return list(self._persistent.values())

    @property
    def visible(self) -> list[Notice]:
        """All notices, persistent first."""
        return self.persistent + self.transient
