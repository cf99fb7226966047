"""
Transfer sender.

Builds, signs and broadcasts a plain ETH value transfer, then waits for
its receipt. There is no retry: the caller decides what a failure means.
"""

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal

from eth_account.signers.local import LocalAccount
from loguru import logger
from web3 import AsyncWeb3
from web3.exceptions import TimeExhausted, Web3Exception

from ethbridge.config.constants import WEI_PER_ETH
from ethbridge.utils.exceptions import TransferError
from ethbridge.utils.security import mask_address, mask_tx_hash


@dataclass
class TransferReceipt:
    """Confirmed transfer data."""

    tx_hash: str
    gas_used: int
    block_number: int | None


def eth_to_wei(amount_eth: Decimal) -> int:
    """Convert ETH to wei, truncating below 1 wei."""
    return int((Decimal(str(amount_eth)) * WEI_PER_ETH).to_integral_value(ROUND_DOWN))


class TransferSender:
    """
    Sends native ETH from the server account.
    """

    def __init__(
        self,
        web3: AsyncWeb3,
        gas_limit: int,
        receipt_timeout: int,
    ) -> None:
        """
        Initialize transfer sender.

        Args:
            web3: AsyncWeb3 instance
            gas_limit: Gas limit for a value transfer
            receipt_timeout: Seconds to wait for the receipt
        """
        self.web3 = web3
        self.gas_limit = gas_limit
        self.receipt_timeout = receipt_timeout

    async def send_value(
        self,
        account: LocalAccount,
        to_address: str,
        amount_eth: Decimal,
    ) -> TransferReceipt:
        """
        Sign and broadcast a value transfer and wait for it to be mined.

        Args:
            account: Signing account
            to_address: Checksummed recipient address
            amount_eth: Amount in ETH

        Returns:
            TransferReceipt of the mined transaction

        Raises:
            TransferError: On signing, broadcast, timeout or revert
        """
        value = eth_to_wei(amount_eth)

        try:
            gas_price = await self.web3.eth.gas_price
            nonce = await self.web3.eth.get_transaction_count(account.address)
            chain_id = await self.web3.eth.chain_id

            tx = {
                "from": account.address,
                "to": to_address,
                "value": value,
                "gas": self.gas_limit,
                "gasPrice": gas_price,
                "nonce": nonce,
                "chainId": chain_id,
            }

            logger.info(
                f"Sending {amount_eth} ETH to {mask_address(to_address)} "
                f"(nonce={nonce}, gasPrice={gas_price})"
            )

            signed = account.sign_transaction(tx)
            raw_hash = await self.web3.eth.send_raw_transaction(signed.raw_transaction)
            tx_hash = AsyncWeb3.to_hex(raw_hash)

            receipt = await self.web3.eth.wait_for_transaction_receipt(
                raw_hash, timeout=self.receipt_timeout
            )
        except TimeExhausted as e:
            raise TransferError(f"Transfer not mined in {self.receipt_timeout}s") from e
        except (Web3Exception, OSError, ValueError) as e:
            raise TransferError(f"Transfer failed: {e}") from e

        if receipt["status"] != 1:
            raise TransferError(f"Transfer {mask_tx_hash(tx_hash)} reverted")

        logger.success(f"Transfer mined: {mask_tx_hash(tx_hash)}")
        return TransferReceipt(
            tx_hash=tx_hash,
            gas_used=int(receipt["gasUsed"]),
            block_number=receipt.get("blockNumber"),
        )
