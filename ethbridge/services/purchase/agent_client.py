"""
Remote agent client.

Triggers the OpenServ.ai agent webhook with a purchase payload. The client
is disabled when no API key is configured.
"""

from typing import Any

import aiohttp
from loguru import logger

from ethbridge.config.settings import Settings
from ethbridge.utils.exceptions import AgentWebhookError, ConfigError


class AgentClient:
    """
    HTTP client for the remote purchase agent.
    """

    def __init__(self, settings: Settings) -> None:
        """
        Initialize agent client.

        Args:
            settings: Application settings with OPENSERV_* values
        """
        self.api_key = settings.openserv_api_key
        self.agent_id = settings.openserv_agent_id
        self.base_url = settings.openserv_base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=settings.http_timeout_seconds)
        self._session: aiohttp.ClientSession | None = None

        if self.enabled:
            logger.info("OpenServ.ai agent client initialized")

    @property
    def enabled(self) -> bool:
        """Whether the remote agent is configured."""
        return bool(self.api_key)

    @property
    def webhook_url(self) -> str:
        """Agent webhook endpoint."""
        return f"{self.base_url}/agent/{self.agent_id}/webhook"

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()

    async def trigger(self, payload: dict[str, Any]) -> Any:
        """
        POST the payload to the agent webhook.

        Args:
            payload: JSON body

        Returns:
            Decoded JSON response

        Raises:
            ConfigError: If the agent is not fully configured
            AgentWebhookError: On a non-2xx response
            aiohttp.ClientError: On transport or decode failure
        """
        if not self.enabled or not self.agent_id:
            raise ConfigError("OPENSERV_API_KEY and OPENSERV_AGENT_ID are required")

        session = await self._get_session()
        async with session.post(
            self.webhook_url,
            json=payload,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
            },
        ) as response:
            if not 200 <= response.status < 300:
                body = await response.text()
                raise AgentWebhookError(response.status, body)
            return await response.json(content_type=None)
