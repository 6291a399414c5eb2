"""
Type definitions for the dashboard client.

This module contains the enums and plain dataclasses shared across
components. Wire payloads live in `arbwatch.api.models`.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar


# =============================================================================
# Enums
# =============================================================================


class TradingMode(str, Enum):
    """Execution context for a manual trade."""

    SIMULATION = "simulation"
    TESTNET = "testnet"
    LIVE = "live"


class AutoTraderState(str, Enum):
    """Remote auto-trader lifecycle state as reported by the backend."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    ERROR = "error"


class AutoTraderCommand(str, Enum):
    """Lifecycle command accepted by the auto-trader endpoints."""

    START = "start"
    STOP = "stop"
    PAUSE = "pause"
    RESUME = "resume"


class RiskLevel(str, Enum):
    """Risk of executing an opportunity at scale."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    EXTREME = "EXTREME"


class NoticeLevel(str, Enum):
    """Severity of a user-visible notice."""

    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


class FieldSyncState(str, Enum):
    """Sync state of a locally edited settings field."""

    SYNCED = "synced"
    PENDING = "pending"
    FAILED = "failed"


# =============================================================================
# Opportunity Identity
# =============================================================================


@dataclass(slots=True, frozen=True)
class OpportunityKey:
    """
    Identity of an opportunity: pair plus the two exchanges.

    Not unique within a poll; the feed may carry duplicates.
    """

    pair: str
    buy_exchange: str
    sell_exchange: str

    @property
    def path_pair(self) -> str:
        """Pair formatted for URL paths ("BTC/USDT" -> "BTC-USDT")."""
        return self.pair.replace("/", "-")

    def __str__(self) -> str:
        return f"{self.pair} {self.buy_exchange}->{self.sell_exchange}"


# =============================================================================
# Command & Execution Results
# =============================================================================


class CommandResult:
    """Result of a user-issued command."""

    __slots__ = ("ok", "reason")

    def __init__(self, ok: bool, reason: str = "") -> None:
        self.ok = ok
        self.reason = reason

    def __bool__(self) -> bool:
        return self.ok

    def __repr__(self) -> str:
        return f"CommandResult(ok={self.ok}, reason={self.reason!r})"


@dataclass(slots=True)
class TradeOutcome:
    """Result of a manual trade submission."""

    success: bool
    mode: TradingMode
    profit: float | None = None
    buy_order_id: str | None = None
    sell_order_id: str | None = None
    error: str = ""

    @property
    def is_partial(self) -> bool:
        """A successful trade missing either order id executed partially."""
        return self.success and (self.buy_order_id is None or self.sell_order_id is None)


# =============================================================================
# Settings Tracking
# =============================================================================


T = TypeVar("T")


@dataclass(slots=True)
class TrackedValue(Generic[T]):
    """
    Locally edited value with its last server-confirmed counterpart.

    `value` is what the user sees; `confirmed` is what the backend last
    accepted. They differ while a commit is pending or after it failed.
    """

    confirmed: T
    pending: T | None = None
    state: FieldSyncState = FieldSyncState.SYNCED
    error: str = ""

    @property
    def value(self) -> T:
        """Displayed value."""
        return self.pending if self.pending is not None else self.confirmed

    @property
    def diverged(self) -> bool:
        """True when the displayed value is not persisted."""
        return self.pending is not None and self.pending != self.confirmed

    def stage(self, value: T) -> None:
        """Apply a local edit."""
        self.pending = value
        self.state = FieldSyncState.PENDING
        self.error = ""

    def confirm(self, value: T) -> None:
        """Record a value accepted by the backend."""
        self.confirmed = value
        if self.pending == value:
            self.pending = None
            self.state = FieldSyncState.SYNCED

    def fail(self, error: str) -> None:
        """Record a rejected commit; the local edit is kept."""
        self.state = FieldSyncState.FAILED
        self.error = error

    def reset(self, value: T) -> None:
        """Overwrite with a server snapshot, dropping local edits."""
        self.confirmed = value
        self.pending = None
        self.state = FieldSyncState.SYNCED
        self.error = ""


# =============================================================================
# Notices
# =============================================================================


@dataclass(slots=True)
class Notice:
    """User-visible message, transient unless `key` is set."""

    text: str
    level: NoticeLevel = NoticeLevel.INFO
    key: str | None = None
    created_ms: int = 0

    @property
    def is_persistent(self) -> bool:
        """Persistent notices stay until explicitly cleared."""
        return self.key is not None
