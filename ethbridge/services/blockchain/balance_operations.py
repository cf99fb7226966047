"""
Balance operations.

Native ETH balance lookups, converted from wei.
"""

from decimal import Decimal

from loguru import logger
from web3 import AsyncWeb3
from web3.exceptions import Web3Exception

from ethbridge.utils.security import mask_address


class BalanceManager:
    """
    Reads native balances from the chain.
    """

    def __init__(self, web3: AsyncWeb3) -> None:
        """
        Initialize balance manager.

        Args:
            web3: AsyncWeb3 instance
        """
        self.web3 = web3

    async def get_native_balance(self, address: str) -> Decimal:
        """
        Get ETH balance for a checksummed address.

        Args:
            address: Wallet address to check

        Returns:
            ETH balance

        Raises:
            Web3Exception: On RPC failure
        """
        try:
            wei = await self.web3.eth.get_balance(address)
        except (Web3Exception, OSError) as e:
            logger.error(f"Get ETH balance failed for {mask_address(address)}: {e}")
            raise
        return Decimal(AsyncWeb3.from_wei(wei, "ether"))
