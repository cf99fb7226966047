"""Shared test constants and helpers."""

from decimal import Decimal

from eth_account import Account

from ethbridge.config.settings import Settings
from ethbridge.models import User

# Test-only key; never funded
SERVER_PRIVATE_KEY = "0x" + "11" * 32
SERVER_ADDRESS = Account.from_key(SERVER_PRIVATE_KEY).address

USER_WALLET = "0x" + "ab" * 20
OTHER_WALLET = "0x" + "cd" * 20

ETH_PRICE = Decimal("200000")

SIM_HASH_PATTERN = r"^sim_\d+_[0-9a-z]{9}$"


def make_settings(**overrides) -> Settings:
    """Settings isolated from the process environment and .env."""
    values = {
        "database_url": "sqlite+aiosqlite:///:memory:",
        "eth_rpc_url": None,
        "infura_project_id": None,
        "eth_server_wallet_address": None,
        "eth_server_private_key": None,
        "openserv_api_key": None,
        "openserv_agent_id": None,
        "webhook_secret": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


async def fetch_user(session_factory, user_id: int) -> User | None:
    """Load a user in a fresh session."""
    async with session_factory() as session:
        return await session.get(User, user_id)
