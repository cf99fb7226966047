"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
Missing chain or agent credentials disable the corresponding features
instead of failing at startup.
"""

import re
from functools import lru_cache

from eth_utils import is_address
from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ethbridge.config.constants import (
    COINGECKO_ETH_INR_URL,
    DEFAULT_ETH_TRANSFER_GAS,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_TX_RECEIPT_TIMEOUT_SECONDS,
    INFURA_MAINNET_URL,
    OPENSERV_BASE_URL,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "postgresql+asyncpg://postgres@localhost/ethbridge"
    database_echo: bool = False

    # Ethereum RPC (either a full URL or an Infura project id)
    eth_rpc_url: str | None = None
    infura_project_id: str | None = None

    # Custodial server wallet
    eth_server_wallet_address: str | None = None
    eth_server_private_key: str | None = None
    eth_transfer_gas_limit: int = Field(
        default=DEFAULT_ETH_TRANSFER_GAS, gt=0,
        description="Gas limit for a plain value transfer"
    )
    tx_receipt_timeout_seconds: int = Field(
        default=DEFAULT_TX_RECEIPT_TIMEOUT_SECONDS, gt=0,
        description="How long to wait for a transfer receipt"
    )

    # Price feed
    price_feed_url: str = COINGECKO_ETH_INR_URL
    http_timeout_seconds: float = Field(
        default=DEFAULT_HTTP_TIMEOUT_SECONDS, gt=0,
        description="Total timeout for outbound HTTP calls"
    )

    # Remote agent (OpenServ.ai)
    openserv_api_key: str | None = None
    openserv_agent_id: str | None = None
    openserv_base_url: str = OPENSERV_BASE_URL

    # Shared secret for inbound webhook signatures
    webhook_secret: str | None = None

    # HTTP server
    http_host: str = "0.0.0.0"
    http_port: int = Field(default=8080, ge=1, le=65535)

    # Application
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("eth_server_wallet_address")
    @classmethod
    def validate_server_wallet(cls, v: str | None) -> str | None:
        """Reject a malformed server wallet address."""
        if not v:
            return None
        if not is_address(v):
            raise ValueError(
                "ETH_SERVER_WALLET_ADDRESS must be a 0x-prefixed 20-byte hex address"
            )
        return v

    @field_validator("eth_server_private_key")
    @classmethod
    def validate_private_key(cls, v: str | None) -> str | None:
        """Reject a malformed server private key."""
        if not v:
            return None
        if not re.fullmatch(r"(0x)?[0-9a-fA-F]{64}", v):
            raise ValueError("ETH_SERVER_PRIVATE_KEY must be 64 hex characters")
        return v

    @model_validator(mode="after")
    def warn_disabled_features(self) -> "Settings":
        """Log which optional integrations are disabled."""
        if not self.resolved_rpc_url:
            logger.warning(
                "ETH_RPC_URL or INFURA_PROJECT_ID not configured. "
                "Crypto features disabled."
            )
        if not self.openserv_api_key:
            logger.warning(
                "OPENSERV_API_KEY not configured. "
                "Purchases will be executed locally."
            )
        return self

    @property
    def resolved_rpc_url(self) -> str | None:
        """RPC endpoint, falling back to Infura when only a project id is set."""
        if self.eth_rpc_url:
            return self.eth_rpc_url
        if self.infura_project_id:
            return f"{INFURA_MAINNET_URL}/{self.infura_project_id}"
        return None


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings instance built from the environment
    """
    return Settings()
