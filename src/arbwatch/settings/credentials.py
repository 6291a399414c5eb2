"""
Exchange API credential management.

Secrets are wrapped in `SecretStr` from the moment they are submitted and
are not retained after the request; only the list of exchanges that have
stored credentials is kept locally.
"""

import logging

from pydantic import SecretStr

from arbwatch.api.client import ApiClientError, DashboardClient, error_detail
from arbwatch.api.models import ApiCredentials
from arbwatch.config.constants import SUPPORTED_EXCHANGES
from arbwatch.core.types import CommandResult
from arbwatch.telemetry.notices import NoticeBoard


logger = logging.getLogger(__name__)


class CredentialManager:
    """Tracks which exchanges have credentials and submits new ones."""

    def __init__(self, client: DashboardClient, notices: NoticeBoard) -> None:
        self._client = client
        self._notices = notices
        self._configured: frozenset[str] = frozenset()
        self._active = True

    async def refresh(self) -> bool:
        """Reload the configured exchange list; the previous list is kept on failure."""
        try:
            exchanges = await self._client.get_configured_exchanges()
        except ApiClientError as e:
            logger.error(f"Failed to fetch configured exchanges: {e}")
            return False

        if not self._active:
            return False
        self._configured = frozenset(exchanges)
        return True

    async def save(self, exchange: str, api_key: str, api_secret: str) -> CommandResult:
        """
        Store credentials for an exchange.

        Args:
            exchange: Exchange name.
            api_key: API key as entered.
            api_secret: API secret as entered.

        Returns:
            Result of the submission. Empty fields are rejected locally.
        """
        exchange = exchange.strip().lower()
        if not exchange or not api_key.strip() or not api_secret.strip():
            self._notices.error("Exchange, API key and secret are required")
            return CommandResult(False, "Missing credential fields")

        if exchange not in SUPPORTED_EXCHANGES:
            logger.warning(f"Saving credentials for unlisted exchange {exchange}")

        credentials = ApiCredentials(
            exchange=exchange,
            api_key=SecretStr(api_key.strip()),
            api_secret=SecretStr(api_secret.strip()),
        )
        try:
            await self._client.save_api_keys(credentials)
        except ApiClientError as e:
            message = f"Failed to save {exchange} API keys"
            logger.warning(f"{message}: {e}")
            self._notices.error(message)
            return CommandResult(False, error_detail(e, message))

        self._notices.success(f"{exchange} API keys saved")
        await self.refresh()
        return CommandResult(True)

    async def delete(self, exchange: str) -> CommandResult:
        """Delete stored credentials for an exchange."""
        try:
            await self._client.delete_api_keys(exchange)
        except ApiClientError as e:
            message = f"Failed to delete {exchange} API keys"
            logger.warning(f"{message}: {e}")
            self._notices.error(message)
            return CommandResult(False, error_detail(e, message))

        self._notices.success(f"{exchange} API keys deleted")
        await self.refresh()
        return CommandResult(True)

    def close(self) -> None:
        self._active = False

    @property
    def configured(self) -> frozenset[str]:
        """Exchanges with stored credentials."""
        return self._configured

    def is_configured(self, exchange: str) -> bool:
        return exchange in self._configured
