"""
ETH price feed.

Fetches the current ETH price in INR from CoinGecko. Every call is a fresh
request: prices are never cached and failed requests are not retried.
"""

import asyncio
from decimal import Decimal, InvalidOperation

import aiohttp
from loguru import logger

from ethbridge.utils.exceptions import PriceFetchError


class PriceFeed:
    """
    Client for the public ETH/INR price API.
    """

    def __init__(self, url: str, timeout_seconds: float) -> None:
        """
        Initialize price feed.

        Args:
            url: Price endpoint returning {"ethereum": {"inr": <price>}}
            timeout_seconds: Total request timeout
        """
        self.url = url
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()

    async def get_eth_price_in_inr(self) -> Decimal:
        """
        Get current ETH price in INR.

        Returns:
            Positive price

        Raises:
            PriceFetchError: On network, HTTP or parse failure
        """
        try:
            session = await self._get_session()
            async with session.get(
                self.url, headers={"Accept": "application/json"}
            ) as response:
                if response.status != 200:
                    raise PriceFetchError(
                        f"Price feed returned HTTP {response.status}"
                    )
                data = await response.json(content_type=None)
            price = Decimal(str(data["ethereum"]["inr"]))
        except PriceFetchError:
            logger.error(f"Failed to fetch ETH price from {self.url}")
            raise
        except (
            aiohttp.ClientError,
            asyncio.TimeoutError,
            KeyError,
            TypeError,
            ValueError,
            InvalidOperation,
        ) as e:
            logger.error(f"Failed to fetch ETH price: {e}")
            raise PriceFetchError("Unable to fetch current ETH price") from e

        if not price.is_finite() or price <= 0:
            raise PriceFetchError(f"Price feed returned non-positive price: {price}")

        return price
