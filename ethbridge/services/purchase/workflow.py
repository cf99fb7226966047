"""
UPI Lite to ETH purchase workflow.

Turns an increase of a user's UPI Lite balance into an ETH purchase:
- Remote agent first, when configured
- Local execution as fallback (transfer or simulation, balance increment
  and transaction record in one database transaction)
- Asynchronous agent callbacks that overwrite stored balances
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ethbridge.models.enums import CallbackStatus, TransactionStatus, TransactionType
from ethbridge.repositories import CryptoTransactionRepository, UserRepository
from ethbridge.services.base_service import BaseService, log_operation
from ethbridge.services.purchase.agent_client import AgentClient
from ethbridge.services.purchase.models import (
    AgentAcceptance,
    AgentCallback,
    CallbackResult,
    PurchasePayload,
    PurchaseResult,
)
from ethbridge.services.wallet_service import CryptoWalletService, describe_outcome
from ethbridge.utils.datetime_utils import to_utc, utc_now
from ethbridge.utils.exceptions import MissingWalletError, UserNotFoundError
from ethbridge.utils.security import mask_address


class PurchaseWorkflowService(BaseService):
    """
    Purchase workflow orchestrator.

    The wallet service owns all chain and price access; this service owns
    the decision flow and the database writes around it.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        wallet_service: CryptoWalletService,
        agent_client: AgentClient,
    ) -> None:
        """
        Initialize purchase workflow.

        Args:
            session_factory: Async session factory
            wallet_service: Wallet service
            agent_client: Remote agent client
        """
        super().__init__(session_factory)
        self.wallet_service = wallet_service
        self.agent_client = agent_client

    async def on_balance_change(
        self,
        user_id: int,
        previous_balance: Decimal,
        new_balance: Decimal,
    ) -> PurchaseResult | AgentAcceptance | None:
        """
        React to a UPI Lite balance change.

        Only increases start a purchase. Users without a wallet address are
        skipped with a warning.

        Args:
            user_id: User ID
            previous_balance: Balance before the change (INR)
            new_balance: Balance after the change (INR)

        Returns:
            PurchaseResult for a local execution, AgentAcceptance when the
            remote agent took the request, None when skipped

        Raises:
            UserNotFoundError: If the user does not exist
        """
        previous_balance = Decimal(str(previous_balance))
        new_balance = Decimal(str(new_balance))
        amount_inr = new_balance - previous_balance

        if amount_inr <= 0:
            self.logger.debug(
                f"Balance of user {user_id} did not increase "
                f"({previous_balance} -> {new_balance}), skipping"
            )
            return None

        async with self.read_session() as session:
            exists, wallet_address = await UserRepository(
                session
            ).get_wallet_address(user_id)

        if not exists:
            raise UserNotFoundError(f"User {user_id} not found")

        if not wallet_address:
            self.logger.warning(
                f"User {user_id} has no ETH wallet address, "
                f"skipping purchase of ₹{amount_inr}"
            )
            return None

        payload = PurchasePayload(
            user_id=user_id,
            amount_inr=amount_inr,
            wallet_address=wallet_address,
            previous_balance=previous_balance,
            new_balance=new_balance,
        )
        self.logger.info(
            f"UPI Lite balance of user {user_id} increased by ₹{amount_inr}, "
            f"starting ETH purchase"
        )
        return await self.dispatch(payload)

    async def dispatch(
        self, payload: PurchasePayload
    ) -> PurchaseResult | AgentAcceptance:
        """
        Hand the payload to the remote agent, or execute it locally.

        Any failure of the agent call falls back to local execution.

        Args:
            payload: Purchase payload

        Returns:
            AgentAcceptance or PurchaseResult
        """
        if self.agent_client.enabled:
            try:
                response = await self.agent_client.trigger(payload.to_json())
            except Exception as e:
                self.logger.error(
                    f"Agent trigger failed for user {payload.user_id}: {e}; "
                    f"executing locally"
                )
            else:
                self.logger.info(
                    f"Agent accepted purchase for user {payload.user_id}"
                )
                return AgentAcceptance(payload=payload, response=response)

        return await self.execute_locally(payload)

    @log_operation
    async def execute_locally(self, payload: PurchasePayload) -> PurchaseResult:
        """
        Execute a purchase in one database transaction.

        The user row is locked for the duration, so concurrent purchases for
        the same user are serialized. Any failure rolls back every write.

        Args:
            payload: Purchase payload

        Returns:
            PurchaseResult

        Raises:
            MissingWalletError: If the payload has no wallet address
            UserNotFoundError: If the user does not exist
            PriceFetchError: If the price is unavailable
        """
        async with self.transaction("execute_locally") as session:
            if not payload.wallet_address:
                raise MissingWalletError("No Ethereum wallet address configured")

            users = UserRepository(session)
            user = await users.get_by_id(payload.user_id, for_update=True)
            if user is None:
                raise UserNotFoundError(f"User {payload.user_id} not found")

            quote = await self.wallet_service.calculate_eth_from_inr(
                payload.amount_inr
            )
            outcome = await self.wallet_service.purchase_or_simulate(
                payload.wallet_address, quote
            )

            balances = await users.increment_eth_balance(
                payload.user_id, outcome.eth_amount, payload.amount_inr
            )
            if balances is None:
                raise UserNotFoundError(f"User {payload.user_id} not found")

            await CryptoTransactionRepository(session).create(
                user_id=payload.user_id,
                transaction_type=TransactionType.PURCHASE,
                amount_inr=payload.amount_inr,
                amount_eth=outcome.eth_amount,
                eth_price=outcome.eth_price,
                tx_hash=outcome.transaction_hash,
                status=TransactionStatus.COMPLETED,
                is_simulated=outcome.simulated,
                error_message=outcome.reason if outcome.simulated else None,
                completed_at=utc_now(),
            )

        self.logger.success(
            f"Purchased {outcome.eth_amount} ETH for ₹{payload.amount_inr} "
            f"to {mask_address(payload.wallet_address)} "
            f"({describe_outcome(outcome)})"
        )
        return PurchaseResult(
            success=True,
            user_id=payload.user_id,
            amount_inr=payload.amount_inr,
            eth_amount=outcome.eth_amount,
            eth_price=outcome.eth_price,
            transaction_hash=outcome.transaction_hash,
            simulated=outcome.simulated,
            new_eth_balance=balances[0],
            new_eth_balance_inr=balances[1],
            gas_used=None if outcome.simulated else outcome.gas_used,
        )

    async def purchase_for_user(
        self, user_id: int, amount_inr: Decimal
    ) -> PurchaseResult:
        """
        Manually purchase ETH for a user through local execution.

        Args:
            user_id: User ID
            amount_inr: Amount in INR

        Returns:
            PurchaseResult

        Raises:
            ValueError: If the amount is not positive
            MissingWalletError: If the user has no wallet address
            UserNotFoundError: If the user does not exist
        """
        amount_inr = Decimal(str(amount_inr))
        if amount_inr <= 0:
            raise ValueError("Amount must be positive")

        details = await self.wallet_service.get_user_crypto_details(user_id)
        if not details.wallet_address:
            raise MissingWalletError("No Ethereum wallet address configured")

        payload = PurchasePayload(
            user_id=user_id,
            amount_inr=amount_inr,
            wallet_address=details.wallet_address,
            previous_balance=Decimal("0"),
            new_balance=amount_inr,
        )
        return await self.execute_locally(payload)

    async def handle_webhook_callback(
        self, data: Mapping[str, Any]
    ) -> dict[str, Any]:
        """
        Apply a completion callback from the remote agent.

        A completed callback with results overwrites the stored balances.
        When the callback carries a timestamp, it is only applied if the
        stored balance was not synced after that time.

        Args:
            data: Callback body

        Returns:
            Acknowledgement dict

        Raises:
            pydantic.ValidationError: If the body is malformed
            UserNotFoundError: If a completed callback names an unknown user
        """
        callback = AgentCallback.model_validate(data)

        if callback.status == CallbackStatus.COMPLETED and callback.result:
            if callback.user_id is None:
                raise ValueError("userId is required for a completed callback")
            return await self._apply_completed(
                callback, CallbackResult.model_validate(callback.result)
            )

        if callback.status == CallbackStatus.FAILED:
            self.logger.error(
                f"Agent purchase failed for user {callback.user_id}: "
                f"{callback.error}"
            )
            return {"success": False, "error": callback.error}

        return {"success": True, "status": callback.status}

    async def _apply_completed(
        self, callback: AgentCallback, result: CallbackResult
    ) -> dict[str, Any]:
        not_newer_than = (
            to_utc(callback.timestamp) if callback.timestamp is not None else None
        )

        async with self.transaction("handle_webhook_callback") as session:
            users = UserRepository(session)
            stored = await users.overwrite_eth_balance(
                callback.user_id,
                result.new_eth_balance,
                result.new_eth_balance_inr,
                not_newer_than=not_newer_than,
            )
            if stored is None:
                exists, _ = await users.get_wallet_address(callback.user_id)
                if not exists:
                    raise UserNotFoundError(f"User {callback.user_id} not found")

        if stored is None:
            self.logger.warning(
                f"Ignoring stale agent callback for user {callback.user_id} "
                f"from {callback.timestamp}"
            )
            return {
                "success": False,
                "stale": True,
                "message": "Balance was synced after the callback timestamp",
            }

        self.logger.info(
            f"Agent purchase completed for user {callback.user_id}: "
            f"{stored[0]} ETH (₹{stored[1]})"
        )
        return {"success": True, "message": "Balance updated successfully"}
