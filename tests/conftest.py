"""Pytest configuration and shared fixtures for all tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from ethbridge.config.database import create_session_maker
from ethbridge.models import Base, User
from ethbridge.services.price_feed import PriceFeed
from ethbridge.services.purchase import AgentClient, PurchaseWorkflowService
from ethbridge.services.wallet_service import CryptoWalletService
from tests.helpers import (
    ETH_PRICE,
    SERVER_ADDRESS,
    SERVER_PRIVATE_KEY,
    USER_WALLET,
    make_settings,
)


@pytest.fixture
def settings():
    """Settings without chain or agent credentials."""
    return make_settings()


@pytest.fixture
def server_settings():
    """Settings with a consistent server wallet."""
    return make_settings(
        eth_rpc_url="http://localhost:8545",
        eth_server_wallet_address=SERVER_ADDRESS,
        eth_server_private_key=SERVER_PRIVATE_KEY,
    )


@pytest.fixture
def mock_price_feed():
    """Price feed returning a fixed ETH price."""
    feed = AsyncMock(spec=PriceFeed)
    feed.get_eth_price_in_inr = AsyncMock(return_value=ETH_PRICE)
    feed.close = AsyncMock()
    return feed


@pytest.fixture
def mock_web3():
    """Mock AsyncWeb3 with a funded balance lookup."""
    web3 = MagicMock()
    web3.eth.get_balance = AsyncMock(return_value=10**18)
    return web3


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Session factory bound to the test engine."""
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def users(session_factory):
    """
    Seed users.

    User 1 has a wallet, user 2 has none.
    """
    async with session_factory() as session:
        session.add_all(
            [
                User(id=1, eth_wallet_address=USER_WALLET),
                User(id=2, eth_wallet_address=None),
            ]
        )
        await session.commit()


@pytest.fixture
def wallet_service(settings, session_factory, mock_price_feed):
    """Wallet service without a chain client."""
    return CryptoWalletService(settings, session_factory, None, mock_price_feed)


@pytest.fixture
def agent_client(settings):
    """Agent client with no API key configured."""
    return AgentClient(settings)


@pytest.fixture
def workflow(session_factory, wallet_service, agent_client):
    """Purchase workflow executing locally."""
    return PurchaseWorkflowService(session_factory, wallet_service, agent_client)


