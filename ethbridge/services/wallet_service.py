"""
Crypto wallet service.

All direct interaction with the chain client and the price feed:
- ETH/INR price and INR to ETH conversion
- Server wallet balance and value transfers
- Reconciliation of a user's stored ETH balance with the chain
- User wallet address management
"""

import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from web3 import AsyncWeb3

from ethbridge.config.constants import (
    DEFAULT_HISTORY_LIMIT,
    ETH_QUANTUM,
    INR_QUANTUM,
    MAX_HISTORY_LIMIT,
    SIMULATED_HASH_PREFIX,
    SIMULATED_HASH_SUFFIX_LENGTH,
)
from ethbridge.config.settings import Settings
from ethbridge.models.crypto_transaction import CryptoTransaction
from ethbridge.repositories import CryptoTransactionRepository, UserRepository
from ethbridge.services.base_service import BaseService
from ethbridge.services.blockchain import (
    BalanceManager,
    TransferSender,
    WalletManager,
    validate_address,
)
from ethbridge.services.price_feed import PriceFeed
from ethbridge.utils.datetime_utils import epoch_millis
from ethbridge.utils.exceptions import (
    InsufficientFundsError,
    MissingWalletError,
    NotInitializedError,
    PriceFetchError,
    UserNotFoundError,
)
from ethbridge.utils.security import mask_address, mask_tx_hash


_BASE36 = string.digits + string.ascii_lowercase


@dataclass(frozen=True)
class EthQuote:
    """INR to ETH conversion at a fetched price."""

    eth_amount: Decimal
    eth_price: Decimal
    inr_amount: Decimal


@dataclass(frozen=True)
class RealTransfer:
    """Transfer that was broadcast and mined."""

    transaction_hash: str
    eth_amount: Decimal
    eth_price: Decimal
    inr_amount: Decimal
    gas_used: int | None = None

    simulated = False


@dataclass(frozen=True)
class SimulatedTransfer:
    """Recorded purchase whose real transfer could not be made."""

    transaction_hash: str
    eth_amount: Decimal
    eth_price: Decimal
    inr_amount: Decimal
    reason: str

    simulated = True


TransferOutcome = RealTransfer | SimulatedTransfer


@dataclass(frozen=True)
class BalanceSync:
    """Result of reconciling a stored balance with the chain."""

    eth_balance: Decimal
    eth_balance_inr: Decimal
    eth_price: Decimal


@dataclass(frozen=True)
class UserCryptoDetails:
    """Stored crypto state of a user."""

    wallet_address: str | None
    eth_balance: Decimal
    eth_balance_inr: Decimal
    last_sync: datetime | None


@dataclass(frozen=True)
class TransactionPage:
    """Page of a user's crypto transactions."""

    transactions: list[CryptoTransaction]
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        """Whether another page may exist."""
        return len(self.transactions) == self.limit


def simulated_tx_hash() -> str:
    """
    Build a synthetic transaction hash.

    Format: sim_<epoch milliseconds>_<9 base-36 characters>

    Returns:
        Synthetic hash
    """
    suffix = "".join(
        secrets.choice(_BASE36) for _ in range(SIMULATED_HASH_SUFFIX_LENGTH)
    )
    return f"{SIMULATED_HASH_PREFIX}{epoch_millis()}_{suffix}"


class CryptoWalletService(BaseService):
    """
    Wallet service over the chain client, price feed and user rows.

    The chain client is optional: without one, every chain operation raises
    NotInitializedError while price lookups keep working.
    """

    def __init__(
        self,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        web3: AsyncWeb3 | None,
        price_feed: PriceFeed,
    ) -> None:
        """
        Initialize wallet service.

        Args:
            settings: Application settings
            session_factory: Async session factory
            web3: AsyncWeb3 client, or None when RPC is not configured
            price_feed: ETH/INR price client
        """
        super().__init__(session_factory)
        self.web3 = web3
        self.price_feed = price_feed
        self.wallet = WalletManager(settings)

        self._balances: BalanceManager | None = None
        self._sender: TransferSender | None = None
        if web3 is not None:
            self._balances = BalanceManager(web3)
            self._sender = TransferSender(
                web3,
                gas_limit=settings.eth_transfer_gas_limit,
                receipt_timeout=settings.tx_receipt_timeout_seconds,
            )

    @property
    def initialized(self) -> bool:
        """Whether the chain client is configured."""
        return self.web3 is not None

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise NotInitializedError("Web3 not initialized")

    async def get_eth_price_in_inr(self) -> Decimal:
        """
        Get current ETH price in INR.

        Returns:
            ETH price

        Raises:
            PriceFetchError: If the price cannot be fetched
        """
        return await self.price_feed.get_eth_price_in_inr()

    async def get_wallet_balance(self, wallet_address: str) -> Decimal:
        """
        Get on-chain ETH balance of a wallet.

        Args:
            wallet_address: Wallet address

        Returns:
            Balance in ETH

        Raises:
            NotInitializedError: If the chain client is not configured
            InvalidAddressError: If the address is malformed
        """
        self._require_initialized()
        address = validate_address(wallet_address)
        return await self._balances.get_native_balance(address)

    async def calculate_eth_from_inr(self, amount_inr: Decimal) -> EthQuote:
        """
        Convert INR to ETH at the current price.

        Args:
            amount_inr: Amount in INR

        Returns:
            EthQuote with the ETH amount rounded to 8 decimal places

        Raises:
            PriceFetchError: If the price is unavailable or zero
        """
        amount_inr = Decimal(str(amount_inr))
        eth_price = await self.get_eth_price_in_inr()
        if eth_price <= 0:
            raise PriceFetchError(f"Invalid ETH price: {eth_price}")

        eth_amount = (amount_inr / eth_price).quantize(
            ETH_QUANTUM, rounding=ROUND_HALF_UP
        )
        return EthQuote(
            eth_amount=eth_amount,
            eth_price=eth_price,
            inr_amount=amount_inr,
        )

    async def purchase_eth(
        self,
        destination_address: str,
        amount_inr: Decimal,
        quote: EthQuote | None = None,
    ) -> RealTransfer:
        """
        Send ETH worth amount_inr from the server wallet to a user wallet.

        Args:
            destination_address: User wallet address
            amount_inr: Amount in INR
            quote: Precomputed conversion (fetched when omitted)

        Returns:
            RealTransfer of the mined transaction

        Raises:
            NotInitializedError: If the chain client is not configured
            ConfigError: If server wallet credentials are absent
            InvalidAddressError: If the destination is malformed
            InsufficientFundsError: If the server wallet balance is too low
            TransferError: If the transfer fails
        """
        self._require_initialized()
        account = self.wallet.get_account()
        destination = validate_address(destination_address)

        if quote is None:
            quote = await self.calculate_eth_from_inr(amount_inr)

        server_balance = await self._balances.get_native_balance(
            self.wallet.wallet_address
        )
        if server_balance < quote.eth_amount:
            self.logger.warning(
                f"Server wallet balance {server_balance} ETH is below "
                f"requested {quote.eth_amount} ETH"
            )
            raise InsufficientFundsError("Insufficient ETH in server wallet")

        receipt = await self._sender.send_value(
            account, destination, quote.eth_amount
        )
        return RealTransfer(
            transaction_hash=receipt.tx_hash,
            eth_amount=quote.eth_amount,
            eth_price=quote.eth_price,
            inr_amount=quote.inr_amount,
            gas_used=receipt.gas_used,
        )

    async def purchase_or_simulate(
        self, destination_address: str, quote: EthQuote
    ) -> TransferOutcome:
        """
        Attempt a real transfer, degrading to a simulated purchase.

        Any failure of the real transfer is reported as a SimulatedTransfer
        carrying a synthetic hash and the failure reason, so downstream
        accounting can still proceed.

        Args:
            destination_address: User wallet address
            quote: Conversion to execute

        Returns:
            RealTransfer or SimulatedTransfer
        """
        try:
            return await self.purchase_eth(
                destination_address, quote.inr_amount, quote=quote
            )
        except Exception as e:
            reason = f"{type(e).__name__}: {e}"
            self.logger.warning(
                f"Actual ETH purchase to {mask_address(destination_address)} "
                f"failed, recording simulated purchase ({reason})"
            )
            return SimulatedTransfer(
                transaction_hash=simulated_tx_hash(),
                eth_amount=quote.eth_amount,
                eth_price=quote.eth_price,
                inr_amount=quote.inr_amount,
                reason=reason,
            )

    async def update_user_eth_balance(
        self, user_id: int, wallet_address: str
    ) -> BalanceSync:
        """
        Overwrite a user's stored ETH balance with the live chain value.

        Args:
            user_id: User ID
            wallet_address: Wallet to read

        Returns:
            BalanceSync with the stored values

        Raises:
            NotInitializedError: If the chain client is not configured
            PriceFetchError: If the price is unavailable
            UserNotFoundError: If the user does not exist
        """
        eth_balance = (await self.get_wallet_balance(wallet_address)).quantize(
            ETH_QUANTUM, rounding=ROUND_HALF_UP
        )
        eth_price = await self.get_eth_price_in_inr()
        eth_balance_inr = (eth_balance * eth_price).quantize(
            INR_QUANTUM, rounding=ROUND_HALF_UP
        )

        async with self.transaction("update_user_eth_balance") as session:
            stored = await UserRepository(session).overwrite_eth_balance(
                user_id, eth_balance, eth_balance_inr
            )
            if stored is None:
                raise UserNotFoundError(f"User {user_id} not found")

        self.logger.info(
            f"Synced ETH balance for user {user_id}: {stored[0]} ETH "
            f"(₹{stored[1]})"
        )
        return BalanceSync(
            eth_balance=stored[0],
            eth_balance_inr=stored[1],
            eth_price=eth_price,
        )

    async def set_user_wallet_address(
        self, user_id: int, wallet_address: str
    ) -> str:
        """
        Validate and store a user's ETH wallet address.

        Args:
            user_id: User ID
            wallet_address: Wallet address

        Returns:
            Stored checksummed address

        Raises:
            InvalidAddressError: If the address is malformed
            UserNotFoundError: If the user does not exist
        """
        address = validate_address(wallet_address)

        async with self.transaction("set_user_wallet_address") as session:
            stored = await UserRepository(session).set_wallet_address(
                user_id, address
            )
            if stored is None:
                raise UserNotFoundError(f"User {user_id} not found")

        self.logger.info(f"User {user_id} wallet set to {mask_address(stored)}")
        return stored

    async def get_user_crypto_details(self, user_id: int) -> UserCryptoDetails:
        """
        Get a user's stored wallet and balances.

        Args:
            user_id: User ID

        Returns:
            UserCryptoDetails

        Raises:
            UserNotFoundError: If the user does not exist
        """
        async with self.read_session() as session:
            user = await UserRepository(session).get_by_id(user_id)
            if user is None:
                raise UserNotFoundError(f"User {user_id} not found")
            return UserCryptoDetails(
                wallet_address=user.eth_wallet_address,
                eth_balance=Decimal(user.eth_balance or 0),
                eth_balance_inr=Decimal(user.eth_balance_inr or 0),
                last_sync=user.last_eth_sync,
            )

    async def sync_user_balance(self, user_id: int) -> BalanceSync:
        """
        Reconcile the stored balance of a user's configured wallet.

        Raises:
            MissingWalletError: If the user has no wallet configured
        """
        details = await self.get_user_crypto_details(user_id)
        if not details.wallet_address:
            raise MissingWalletError("No Ethereum wallet address configured")
        return await self.update_user_eth_balance(user_id, details.wallet_address)

    async def list_transactions(
        self,
        user_id: int,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
    ) -> TransactionPage:
        """
        Get a page of the user's crypto transactions, newest first.

        Args:
            user_id: User ID
            limit: Page size, capped at MAX_HISTORY_LIMIT
            offset: Rows to skip

        Returns:
            TransactionPage
        """
        limit = min(max(limit, 1), MAX_HISTORY_LIMIT)
        offset = max(offset, 0)
        async with self.read_session() as session:
            rows = await CryptoTransactionRepository(session).list_for_user(
                user_id, limit=limit, offset=offset
            )
        return TransactionPage(transactions=rows, limit=limit, offset=offset)

    async def close(self) -> None:
        """Release HTTP resources."""
        await self.price_feed.close()


def describe_outcome(outcome: TransferOutcome) -> str:
    """Short log description of a transfer outcome."""
    kind = "simulated" if outcome.simulated else "real"
    return f"{kind} transfer {mask_tx_hash(outcome.transaction_hash)}"


__all__ = [
    "BalanceSync",
    "CryptoWalletService",
    "EthQuote",
    "RealTransfer",
    "SimulatedTransfer",
    "TransactionPage",
    "TransferOutcome",
    "UserCryptoDetails",
    "describe_outcome",
    "simulated_tx_hash",
]
