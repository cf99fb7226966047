"""
Service wiring.

Builds every runtime dependency from one Settings object and releases them
on shutdown.
"""

from dataclasses import dataclass

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ethbridge.config.database import create_engine, create_session_maker
from ethbridge.config.settings import Settings
from ethbridge.services.blockchain import create_web3
from ethbridge.services.price_feed import PriceFeed
from ethbridge.services.purchase import AgentClient, PurchaseWorkflowService
from ethbridge.services.wallet_service import CryptoWalletService


@dataclass
class Services:
    """Runtime dependencies of the application."""

    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    wallet_service: CryptoWalletService
    agent_client: AgentClient
    purchase_workflow: PurchaseWorkflowService

    async def close(self) -> None:
        """Handle graceful shutdown."""
        logger.info("Graceful shutdown initiated...")
        await self.wallet_service.close()
        await self.agent_client.close()
        await self.engine.dispose()
        logger.info("Database connections closed")


def build_services(
    settings: Settings,
    engine: AsyncEngine | None = None,
) -> Services:
    """
    Initialize all services.

    Args:
        settings: Application settings
        engine: Existing engine (created from settings when omitted)

    Returns:
        Services container
    """
    if engine is None:
        engine = create_engine(settings)
    session_factory = create_session_maker(engine)

    web3 = create_web3(settings)
    price_feed = PriceFeed(settings.price_feed_url, settings.http_timeout_seconds)
    wallet_service = CryptoWalletService(
        settings, session_factory, web3, price_feed
    )
    agent_client = AgentClient(settings)
    purchase_workflow = PurchaseWorkflowService(
        session_factory, wallet_service, agent_client
    )

    logger.info("Services initialized successfully")
    return Services(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        wallet_service=wallet_service,
        agent_client=agent_client,
        purchase_workflow=purchase_workflow,
    )
