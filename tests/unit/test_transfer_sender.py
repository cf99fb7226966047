"""
Unit tests for TransferSender.

Uses a real local account for signing and a fake eth namespace for RPC.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_account import Account
from eth_utils import to_checksum_address
from web3.exceptions import TimeExhausted

from ethbridge.services.blockchain import TransferSender, eth_to_wei
from ethbridge.utils.exceptions import TransferError
from tests.helpers import SERVER_PRIVATE_KEY, USER_WALLET


RAW_HASH = bytes.fromhex("ab" * 32)
DESTINATION = to_checksum_address(USER_WALLET)


class FakeEth:
    """Minimal async eth namespace."""

    def __init__(self, receipt):
        self.get_transaction_count = AsyncMock(return_value=3)
        self.send_raw_transaction = AsyncMock(return_value=RAW_HASH)
        self.wait_for_transaction_receipt = AsyncMock(return_value=receipt)

    @property
    async def gas_price(self):
        return 10**9

    @property
    async def chain_id(self):
        return 1


def _sender(receipt=None) -> TransferSender:
    web3 = MagicMock()
    web3.eth = FakeEth(receipt or {"status": 1, "gasUsed": 21000, "blockNumber": 42})
    return TransferSender(web3, gas_limit=21000, receipt_timeout=30)


class TestEthToWei:
    """Test ETH to wei conversion."""

    def test_whole_and_fractional(self):
        """Conversion is exact for 18 decimals."""
        assert eth_to_wei(Decimal("1")) == 10**18
        assert eth_to_wei(Decimal("0.00025")) == 250_000_000_000_000


class TestSendValue:
    """Test value transfers."""

    @pytest.mark.asyncio
    async def test_success(self):
        """Mined transfer returns its hash and gas."""
        sender = _sender()
        account = Account.from_key(SERVER_PRIVATE_KEY)

        receipt = await sender.send_value(account, DESTINATION, Decimal("0.00025"))

        assert receipt.tx_hash == "0x" + "ab" * 32
        assert receipt.gas_used == 21000
        assert receipt.block_number == 42
        sender.web3.eth.send_raw_transaction.assert_awaited_once()
        sender.web3.eth.wait_for_transaction_receipt.assert_awaited_once_with(
            RAW_HASH, timeout=30
        )

    @pytest.mark.asyncio
    async def test_reverted(self):
        """Receipt status 0 is a failure."""
        sender = _sender({"status": 0, "gasUsed": 21000, "blockNumber": 42})
        account = Account.from_key(SERVER_PRIVATE_KEY)

        with pytest.raises(TransferError):
            await sender.send_value(account, DESTINATION, Decimal("0.00025"))

    @pytest.mark.asyncio
    async def test_receipt_timeout(self):
        """Receipt timeout is reported as TransferError."""
        sender = _sender()
        sender.web3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted(
            "not mined"
        )
        account = Account.from_key(SERVER_PRIVATE_KEY)

        with pytest.raises(TransferError):
            await sender.send_value(account, DESTINATION, Decimal("0.00025"))
