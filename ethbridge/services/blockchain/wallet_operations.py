"""
Wallet operations for the custodial server wallet.

This module handles:
- Server account loading from the configured private key
- Address validation and checksumming
"""

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import is_address, to_checksum_address
from loguru import logger

from ethbridge.config.settings import Settings
from ethbridge.utils.exceptions import ConfigError, InvalidAddressError
from ethbridge.utils.security import mask_address


def validate_address(address: str | None) -> str:
    """
    Validate and checksum a wallet address.

    Args:
        address: Wallet address to validate

    Returns:
        Checksummed address

    Raises:
        InvalidAddressError: If the address is malformed
    """
    if not address or not isinstance(address, str):
        raise InvalidAddressError("Invalid Ethereum wallet address")
    try:
        if not is_address(address):
            raise InvalidAddressError(
                f"Invalid Ethereum wallet address: {mask_address(address)}"
            )
        return to_checksum_address(address)
    except (ValueError, TypeError) as e:
        raise InvalidAddressError(f"Invalid Ethereum wallet address: {e}") from e


class WalletManager:
    """
    Holds the custodial server wallet credentials.
    """

    def __init__(self, settings: Settings) -> None:
        """
        Initialize wallet manager.

        Args:
            settings: Application settings containing wallet configuration
        """
        self.wallet_address = (
            to_checksum_address(settings.eth_server_wallet_address)
            if settings.eth_server_wallet_address
            else None
        )
        self._private_key = settings.eth_server_private_key

    @property
    def configured(self) -> bool:
        """Whether both the server address and key are present."""
        return bool(self.wallet_address and self._private_key)

    def get_account(self) -> LocalAccount:
        """
        Load the server account for signing.

        Returns:
            Local account derived from the private key

        Raises:
            ConfigError: If credentials are missing or inconsistent
        """
        if not self.configured:
            raise ConfigError("Server wallet not configured")

        account = Account.from_key(self._private_key)
        if account.address != self.wallet_address:
            logger.error(
                f"Server private key does not match wallet "
                f"{mask_address(self.wallet_address)}"
            )
            raise ConfigError(
                "ETH_SERVER_PRIVATE_KEY does not belong to ETH_SERVER_WALLET_ADDRESS"
            )
        return account
