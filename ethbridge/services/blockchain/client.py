"""
Web3 client factory.

Builds the async Ethereum client from settings. An absent RPC endpoint is
not an error: the caller receives None and chain features stay disabled.
"""

import aiohttp
from loguru import logger
from web3 import AsyncHTTPProvider, AsyncWeb3

from ethbridge.config.settings import Settings


def create_web3(settings: Settings) -> AsyncWeb3 | None:
    """
    Create AsyncWeb3 client for the configured RPC endpoint.

    Args:
        settings: Application settings

    Returns:
        AsyncWeb3 instance or None when no endpoint is configured
    """
    rpc_url = settings.resolved_rpc_url
    if not rpc_url:
        return None

    try:
        provider = AsyncHTTPProvider(
            rpc_url,
            request_kwargs={
                "timeout": aiohttp.ClientTimeout(total=settings.http_timeout_seconds)
            },
        )
        w3 = AsyncWeb3(provider)
    except (ValueError, TypeError) as e:
        logger.error(f"Failed to initialize Web3: {e}")
        return None

    logger.info("Web3 initialized for Ethereum network")
    return w3
