"""
Async REST client for the dashboard backend.

One client instance serves every component of a dashboard:
- Single session with connection pooling
- orjson for request and response bodies
- Pydantic validation of every response
- Uniform error mapping to ApiClientError / ApiResponseError
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import aiohttp
import orjson
from pydantic import BaseModel, TypeAdapter, ValidationError

from arbwatch.api.models import (
    ApiCredentials,
    AutoTraderStatus,
    BlacklistResponse,
    ConfiguredExchanges,
    DisplaySettings,
    ExchangeConnection,
    ExchangeList,
    LiquidityAnalysis,
    LiveSpreads,
    Opportunity,
    RiskSettings,
    SimulationStats,
    TradeRequest,
    TradeResult,
    TradingStatus,
)
from arbwatch.config.constants import (
    DEFAULT_REQUEST_TIMEOUT,
    ENDPOINT_API_KEYS,
    ENDPOINT_API_KEYS_EXCHANGE,
    ENDPOINT_AUTO_COMMAND,
    ENDPOINT_AUTO_RISK_SETTINGS,
    ENDPOINT_AUTO_STATUS,
    ENDPOINT_BLACKLIST,
    ENDPOINT_EXCHANGES,
    ENDPOINT_LIQUIDITY,
    ENDPOINT_MAX_THRESHOLD,
    ENDPOINT_MIN_THRESHOLD,
    ENDPOINT_SETTINGS,
    ENDPOINT_SIMULATION_STATS,
    ENDPOINT_SPREADS_FALLBACK,
    ENDPOINT_SPREADS_LIVE,
    ENDPOINT_TRADING_EXECUTE,
    ENDPOINT_TRADING_STATUS,
)
from arbwatch.core.types import AutoTraderCommand, OpportunityKey
from arbwatch.telemetry.metrics import MetricsCollector
from arbwatch.utils.time import LatencyTimer


logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_OPPORTUNITY_LIST = TypeAdapter(list[Opportunity])


class ApiClientError(Exception):
    """Base exception for network, protocol and schema errors."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ApiResponseError(ApiClientError):
    """Exception for non-2xx backend responses."""

    def __init__(self, message: str, status: int, detail: str | None = None) -> None:
        super().__init__(message, status=status)
        self.detail = detail


def error_detail(error: Exception, fallback: str) -> str:
    """Server-supplied detail of an error, or `fallback`."""
    if isinstance(error, ApiResponseError) and error.detail:
        return error.detail
    return fallback


class DashboardClient:
    """
    Async client for every backend endpoint the dashboard uses.

    The base URL is injected at construction; the client never reads
    global configuration.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Backend base URL, e.g. "http://127.0.0.1:8000/api/v1".
            timeout: Total timeout per request in seconds.
            metrics: Optional collector for request latencies.
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._metrics = metrics
        self._session: aiohttp.ClientSession | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=20,
                keepalive_timeout=30,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=self._timeout,
                headers={"Accept": "application/json"},
                json_serialize=lambda x: orjson.dumps(x).decode(),
            )

        return self._session

    async def close(self) -> None:
        """Close the client session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    @asynccontextmanager
    async def _request_context(self) -> AsyncIterator[aiohttp.ClientSession]:
        """Context manager mapping transport failures to ApiClientError."""
        session = await self._get_session()
        try:
            yield session
        except aiohttp.ClientError as e:
            raise ApiClientError(f"Network error: {e}") from e
        except TimeoutError as e:
            raise ApiClientError("Request timed out") from e

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, str] | None = None,
        json: Any = None,
    ) -> Any:
        """
        Make an API request.

        Args:
            method: HTTP method.
            endpoint: Endpoint path relative to the base URL.
            params: Query parameters.
            json: JSON request body.

        Returns:
            Parsed JSON response (None for an empty body).

        Raises:
            ApiResponseError: On non-2xx response.
            ApiClientError: On network, timeout or invalid JSON.
        """
        url = f"{self._base_url}{endpoint}"

        with LatencyTimer() as timer:
            async with self._request_context() as session:
                async with session.request(method, url, params=params, json=json) as response:
                    data = await self._handle_response(response)

        if self._metrics is not None:
            self._metrics.record_latency(f"{method} {endpoint}", timer.latency_us)
        return data

    async def _handle_response(self, response: aiohttp.ClientResponse) -> Any:
        """Parse and validate response."""
        body = await response.read()

        data: Any = None
        if body:
            try:
                data = orjson.loads(body)
            except orjson.JSONDecodeError as e:
                if response.status >= 400:
                    raise ApiResponseError(
                        f"HTTP {response.status}", status=response.status
                    ) from e
                raise ApiClientError(f"Invalid JSON response: {e}", status=response.status) from e

        if response.status >= 400:
            detail = None
            if isinstance(data, dict) and data.get("detail") is not None:
                detail = str(data["detail"])
            message = f"HTTP {response.status}: {detail}" if detail else f"HTTP {response.status}"
            raise ApiResponseError(message, status=response.status, detail=detail)

        return data

    @staticmethod
    def _parse(model: type[M], data: Any) -> M:
        """Validate a payload, mapping schema mismatches to ApiClientError."""
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ApiClientError(f"Malformed {model.__name__} response: {e}") from e

    # =========================================================================
    # Opportunity Feed
    # =========================================================================

    async def get_live_spreads(self) -> list[Opportunity]:
        """Get opportunities from the primary feed."""
        data = await self._request("GET", ENDPOINT_SPREADS_LIVE)
        return self._parse(LiveSpreads, data).spreads or []

    async def get_test_spreads(self) -> list[Opportunity]:
        """Get opportunities from the fallback feed (bare list body)."""
        data = await self._request("GET", ENDPOINT_SPREADS_FALLBACK)
        if data is None:
            return []
        try:
            return _OPPORTUNITY_LIST.validate_python(data)
        except ValidationError as e:
            raise ApiClientError(f"Malformed fallback spreads response: {e}") from e

    async def get_liquidity(self, key: OpportunityKey) -> LiquidityAnalysis:
        """
        Get depth and slippage analysis for one opportunity.

        Args:
            key: Opportunity identity.

        Returns:
            Liquidity analysis for both legs.
        """
        endpoint = ENDPOINT_LIQUIDITY.format(pair=key.path_pair)
        params = {"buy_exchange": key.buy_exchange, "sell_exchange": key.sell_exchange}
        data = await self._request("GET", endpoint, params=params)
        return self._parse(LiquidityAnalysis, data)

    # =========================================================================
    # Trading
    # =========================================================================

    async def get_trading_status(self) -> TradingStatus:
        """Get trading module status."""
        data = await self._request("GET", ENDPOINT_TRADING_STATUS)
        return self._parse(TradingStatus, data)

    async def execute_trade(self, request: TradeRequest) -> TradeResult:
        """Submit a manual trade. Not idempotent."""
        data = await self._request(
            "POST", ENDPOINT_TRADING_EXECUTE, json=request.model_dump(mode="json")
        )
        return self._parse(TradeResult, data)

    async def get_simulation_stats(self) -> SimulationStats:
        """Get simulated trading statistics."""
        data = await self._request("GET", ENDPOINT_SIMULATION_STATS)
        return self._parse(SimulationStats, data)

    async def get_exchanges(self) -> list[ExchangeConnection]:
        """Get exchange connectivity."""
        data = await self._request("GET", ENDPOINT_EXCHANGES)
        return self._parse(ExchangeList, data).exchanges

    # =========================================================================
    # Auto-trader
    # =========================================================================

    async def get_auto_status(self) -> AutoTraderStatus:
        """Get auto-trader status."""
        data = await self._request("GET", ENDPOINT_AUTO_STATUS)
        return self._parse(AutoTraderStatus, data)

    async def send_auto_command(self, command: AutoTraderCommand) -> None:
        """Request an auto-trader lifecycle transition."""
        await self._request("POST", ENDPOINT_AUTO_COMMAND.format(command=command.value))

    async def update_risk_settings(self, settings: RiskSettings) -> None:
        """Replace the auto-trader risk policy."""
        await self._request("PUT", ENDPOINT_AUTO_RISK_SETTINGS, json=settings.to_payload())

    # =========================================================================
    # Display Settings
    # =========================================================================

    async def get_settings(self) -> DisplaySettings:
        """Get display settings."""
        data = await self._request("GET", ENDPOINT_SETTINGS)
        return self._parse(DisplaySettings, data or {})

    async def set_min_threshold(self, value: float) -> None:
        """Commit the lower spread threshold."""
        await self._request("PUT", ENDPOINT_MIN_THRESHOLD, json={"threshold": value})

    async def set_max_threshold(self, value: float) -> None:
        """Commit the upper spread threshold."""
        await self._request("PUT", ENDPOINT_MAX_THRESHOLD, json={"threshold": value})

    async def add_to_blacklist(self, coin: str) -> set[str]:
        """
        Blacklist a coin.

        Returns:
            The authoritative blacklist after the edit.
        """
        data = await self._request("POST", ENDPOINT_BLACKLIST.format(coin=coin.upper()))
        return self._parse(BlacklistResponse, data).blacklist

    async def remove_from_blacklist(self, coin: str) -> set[str]:
        """
        Remove a coin from the blacklist.

        Returns:
            The authoritative blacklist after the edit.
        """
        data = await self._request("DELETE", ENDPOINT_BLACKLIST.format(coin=coin.upper()))
        return self._parse(BlacklistResponse, data).blacklist

    # =========================================================================
    # Credentials
    # =========================================================================

    async def get_configured_exchanges(self) -> list[str]:
        """Get exchanges with stored API credentials."""
        data = await self._request("GET", ENDPOINT_API_KEYS)
        return self._parse(ConfiguredExchanges, data or {}).exchanges

    async def save_api_keys(self, credentials: ApiCredentials) -> None:
        """Store exchange API credentials. The backend never echoes them."""
        await self._request("POST", ENDPOINT_API_KEYS, json=credentials.to_payload())

    async def delete_api_keys(self, exchange: str) -> None:
        """Delete stored credentials for an exchange."""
        await self._request("DELETE", ENDPOINT_API_KEYS_EXCHANGE.format(exchange=exchange))

    async def __aenter__(self) -> "DashboardClient":
        """Async context manager entry."""
        await self._get_session()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()
