"""
Integration tests for PurchaseWorkflowService.

Runs against an in-memory SQLite database; chain and price access are
mocked.
"""

import re
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest
import pytest_asyncio
from pydantic import ValidationError
from sqlalchemy import select, update

from ethbridge.models import CryptoTransaction, User
from ethbridge.repositories import CryptoTransactionRepository
from ethbridge.services.purchase import (
    AgentAcceptance,
    AgentClient,
    PurchasePayload,
    PurchaseResult,
    PurchaseWorkflowService,
)
from ethbridge.services.wallet_service import RealTransfer
from ethbridge.utils.datetime_utils import to_utc, utc_now
from ethbridge.utils.exceptions import (
    AgentWebhookError,
    MissingWalletError,
    PriceFetchError,
    UserNotFoundError,
)
from tests.helpers import SIM_HASH_PATTERN, USER_WALLET, fetch_user, make_settings


FUNDED_SYNC_AT = datetime(2026, 10, 1, 12, 0, tzinfo=UTC)


async def _count_transactions(session_factory, **filters) -> int:
    async with session_factory() as session:
        return await CryptoTransactionRepository(session).count(**filters)


async def _transactions(session_factory) -> list[CryptoTransaction]:
    async with session_factory() as session:
        result = await session.execute(select(CryptoTransaction))
        return list(result.scalars().all())


@pytest_asyncio.fixture
async def funded_user(session_factory, users):
    """User 1 with a non-zero stored balance and sync time."""
    async with session_factory() as session:
        await session.execute(
            update(User)
            .where(User.id == 1)
            .values(
                eth_balance=Decimal("0.5"),
                eth_balance_inr=Decimal("100000"),
                last_eth_sync=FUNDED_SYNC_AT,
            )
        )
        await session.commit()


@pytest.fixture
def enabled_agent():
    """Agent client with credentials and a mocked trigger."""
    client = AgentClient(
        make_settings(openserv_api_key="sk_test", openserv_agent_id="agent-42")
    )
    client.trigger = AsyncMock(return_value={"accepted": True})
    return client


class TestOnBalanceChange:
    """Test balance change handling."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "previous, new",
        [(Decimal("100"), Decimal("100")), (Decimal("150"), Decimal("100"))],
    )
    async def test_no_increase_is_skipped(
        self, workflow, session_factory, mock_price_feed, users, previous, new
    ):
        """Equal or lower balance starts nothing."""
        result = await workflow.on_balance_change(1, previous, new)

        assert result is None
        mock_price_feed.get_eth_price_in_inr.assert_not_awaited()
        assert await _count_transactions(session_factory) == 0

    @pytest.mark.asyncio
    async def test_no_increase_does_not_touch_database(self, wallet_service, agent_client):
        """Decreases are rejected before any session is leased."""
        session_factory = AsyncMock()
        workflow = PurchaseWorkflowService(session_factory, wallet_service, agent_client)

        assert await workflow.on_balance_change(1, Decimal("10"), Decimal("5")) is None
        session_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_user_without_wallet_is_skipped(
        self, workflow, session_factory, mock_price_feed, users
    ):
        """Users without a wallet are skipped with no writes."""
        result = await workflow.on_balance_change(2, Decimal("100"), Decimal("150"))

        assert result is None
        mock_price_feed.get_eth_price_in_inr.assert_not_awaited()
        assert await _count_transactions(session_factory) == 0

    @pytest.mark.asyncio
    async def test_unknown_user(self, workflow, users):
        """Unknown users raise UserNotFoundError."""
        with pytest.raises(UserNotFoundError):
            await workflow.on_balance_change(999, Decimal("100"), Decimal("150"))

    @pytest.mark.asyncio
    async def test_increase_executes_purchase(self, workflow, session_factory, users):
        """100 -> 150 INR at 200000 INR/ETH buys 0.00025 ETH."""
        result = await workflow.on_balance_change(1, Decimal("100"), Decimal("150"))

        assert isinstance(result, PurchaseResult)
        assert result.success is True
        assert result.amount_inr == Decimal("50")
        assert result.eth_amount == Decimal("0.00025")
        assert result.eth_price == Decimal("200000")
        assert result.workflow == "upi_lite_to_eth"

        rows = await _transactions(session_factory)
        assert len(rows) == 1
        assert rows[0].user_id == 1
        assert rows[0].transaction_type == "purchase"
        assert rows[0].amount_inr == Decimal("50")
        assert rows[0].amount_eth == Decimal("0.00025")
        assert rows[0].status == "completed"
        assert rows[0].completed_at is not None

        user = await fetch_user(session_factory, 1)
        assert user.eth_balance == Decimal("0.00025")
        assert user.eth_balance_inr == Decimal("50")
        assert user.last_eth_sync is not None

    @pytest.mark.asyncio
    async def test_simulated_purchase_is_recorded(self, workflow, session_factory, users):
        """Without a chain client the purchase is simulated and still logged."""
        result = await workflow.on_balance_change(1, Decimal("0"), Decimal("50"))

        assert result.simulated is True
        assert re.match(SIM_HASH_PATTERN, result.transaction_hash)

        rows = await _transactions(session_factory)
        assert rows[0].tx_hash == result.transaction_hash
        assert rows[0].is_simulated is True
        assert "NotInitializedError" in rows[0].error_message
        assert await _count_transactions(session_factory, is_simulated=True) == 1

    @pytest.mark.asyncio
    async def test_real_transfer_is_recorded(
        self, workflow, wallet_service, session_factory, users
    ):
        """Real transfers keep their chain hash."""
        tx_hash = "0x" + "ab" * 32
        wallet_service.purchase_eth = AsyncMock(
            return_value=RealTransfer(
                transaction_hash=tx_hash,
                eth_amount=Decimal("0.00025000"),
                eth_price=Decimal("200000"),
                inr_amount=Decimal("50"),
                gas_used=21000,
            )
        )

        result = await workflow.on_balance_change(1, Decimal("100"), Decimal("150"))

        assert result.simulated is False
        assert result.transaction_hash == tx_hash
        assert result.gas_used == 21000
        rows = await _transactions(session_factory)
        assert rows[0].is_simulated is False
        assert rows[0].error_message is None

    @pytest.mark.asyncio
    async def test_balances_accumulate(self, workflow, session_factory, users):
        """Consecutive purchases add up."""
        await workflow.on_balance_change(1, Decimal("0"), Decimal("50"))
        result = await workflow.on_balance_change(1, Decimal("50"), Decimal("150"))

        assert result.new_eth_balance == Decimal("0.00075")
        assert result.new_eth_balance_inr == Decimal("150")
        assert await _count_transactions(session_factory) == 2


class TestDispatch:
    """Test remote agent dispatch and fallback."""

    @pytest.mark.asyncio
    async def test_agent_accepts(
        self, session_factory, wallet_service, enabled_agent, users
    ):
        """Accepted payloads are not executed locally."""
        workflow = PurchaseWorkflowService(session_factory, wallet_service, enabled_agent)

        result = await workflow.on_balance_change(1, Decimal("100"), Decimal("150"))

        assert isinstance(result, AgentAcceptance)
        assert result.response == {"accepted": True}
        sent = enabled_agent.trigger.await_args.args[0]
        assert sent["userId"] == 1
        assert sent["amountINR"] == 50
        assert sent["walletAddress"] == USER_WALLET
        assert sent["previousBalance"] == 100
        assert sent["newBalance"] == 150
        assert await _count_transactions(session_factory) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            AgentWebhookError(500, "boom"),
            aiohttp.ClientError("connection reset"),
            RuntimeError("session closed"),
        ],
    )
    async def test_agent_failure_falls_back(
        self, session_factory, wallet_service, enabled_agent, users, error
    ):
        """Agent failures execute the purchase locally."""
        enabled_agent.trigger.side_effect = error
        workflow = PurchaseWorkflowService(session_factory, wallet_service, enabled_agent)

        result = await workflow.on_balance_change(1, Decimal("100"), Decimal("150"))

        assert isinstance(result, PurchaseResult)
        assert await _count_transactions(session_factory) == 1


class TestExecuteLocally:
    """Test atomicity of local execution."""

    @pytest.mark.asyncio
    async def test_missing_wallet(self, workflow, session_factory, funded_user):
        """Payload without a wallet fails and leaves the row untouched."""
        payload = PurchasePayload(
            user_id=1,
            amount_inr=Decimal("50"),
            wallet_address=None,
            previous_balance=Decimal("0"),
            new_balance=Decimal("50"),
        )

        with pytest.raises(MissingWalletError):
            await workflow.execute_locally(payload)

        assert await _count_transactions(session_factory) == 0
        user = await fetch_user(session_factory, 1)
        assert user.eth_balance == Decimal("0.5")
        assert user.eth_balance_inr == Decimal("100000")
        assert to_utc(user.last_eth_sync) == FUNDED_SYNC_AT

    @pytest.mark.asyncio
    async def test_price_failure_leaves_balance(
        self, workflow, session_factory, mock_price_feed, users
    ):
        """Price failure aborts with balances unchanged."""
        mock_price_feed.get_eth_price_in_inr.side_effect = PriceFetchError("down")

        with pytest.raises(PriceFetchError):
            await workflow.on_balance_change(1, Decimal("100"), Decimal("150"))

        user = await fetch_user(session_factory, 1)
        assert user.eth_balance == Decimal("0")
        assert await _count_transactions(session_factory) == 0

    @pytest.mark.asyncio
    async def test_insert_failure_rolls_back_increment(
        self, workflow, session_factory, users
    ):
        """A failed log insert also undoes the balance increment."""
        with patch.object(
            CryptoTransactionRepository,
            "create",
            AsyncMock(side_effect=RuntimeError("insert failed")),
        ):
            with pytest.raises(RuntimeError):
                await workflow.on_balance_change(1, Decimal("100"), Decimal("150"))

        user = await fetch_user(session_factory, 1)
        assert user.eth_balance == Decimal("0")
        assert user.eth_balance_inr == Decimal("0")
        assert user.last_eth_sync is None


class TestPurchaseForUser:
    """Test manual purchases."""

    @pytest.mark.asyncio
    async def test_manual_purchase(self, workflow, session_factory, users):
        """Manual purchase runs locally for the given amount."""
        result = await workflow.purchase_for_user(1, Decimal("100"))

        assert result.amount_inr == Decimal("100")
        assert result.eth_amount == Decimal("0.0005")
        assert await _count_transactions(session_factory) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5")])
    async def test_non_positive_amount(self, workflow, users, amount):
        """Amounts must be positive."""
        with pytest.raises(ValueError):
            await workflow.purchase_for_user(1, amount)

    @pytest.mark.asyncio
    async def test_missing_wallet(self, workflow, users):
        """Users without a wallet cannot buy."""
        with pytest.raises(MissingWalletError):
            await workflow.purchase_for_user(2, Decimal("100"))


class TestHandleWebhookCallback:
    """Test agent callbacks."""

    @pytest.mark.asyncio
    async def test_completed_overwrites_balances(self, workflow, session_factory, users):
        """Completed callback replaces stored balances exactly."""
        await workflow.on_balance_change(1, Decimal("0"), Decimal("50"))

        result = await workflow.handle_webhook_callback(
            {
                "userId": 1,
                "status": "completed",
                "result": {"newEthBalance": "1.5", "newEthBalanceInr": "300000"},
            }
        )

        assert result["success"] is True
        assert "message" in result
        user = await fetch_user(session_factory, 1)
        assert user.eth_balance == Decimal("1.5")
        assert user.eth_balance_inr == Decimal("300000")

    @pytest.mark.asyncio
    async def test_failed_status(self, workflow, session_factory, users):
        """Failed callback reports the error without writes."""
        result = await workflow.handle_webhook_callback(
            {"userId": 1, "status": "failed", "error": "agent exploded"}
        )

        assert result == {"success": False, "error": "agent exploded"}
        user = await fetch_user(session_factory, 1)
        assert user.last_eth_sync is None

    @pytest.mark.asyncio
    async def test_other_status_is_echoed(self, workflow, users):
        """Unknown statuses are acknowledged."""
        result = await workflow.handle_webhook_callback(
            {"userId": 1, "status": "processing"}
        )

        assert result == {"success": True, "status": "processing"}

    @pytest.mark.asyncio
    async def test_stale_callback_is_ignored(self, workflow, session_factory, users):
        """Callbacks older than the last sync do not overwrite balances."""
        await workflow.on_balance_change(1, Decimal("0"), Decimal("50"))
        stale = (utc_now() - timedelta(hours=1)).isoformat()

        result = await workflow.handle_webhook_callback(
            {
                "userId": 1,
                "status": "completed",
                "result": {"newEthBalance": "9", "newEthBalanceInr": "9"},
                "timestamp": stale,
            }
        )

        assert result["success"] is False
        assert result["stale"] is True
        user = await fetch_user(session_factory, 1)
        assert user.eth_balance == Decimal("0.00025")

    @pytest.mark.asyncio
    async def test_fresh_callback_is_applied(self, workflow, session_factory, users):
        """Callbacks newer than the last sync are applied."""
        await workflow.on_balance_change(1, Decimal("0"), Decimal("50"))
        fresh = (utc_now() + timedelta(minutes=5)).isoformat()

        result = await workflow.handle_webhook_callback(
            {
                "userId": 1,
                "status": "completed",
                "result": {"newEthBalance": "2", "newEthBalanceInr": "400000"},
                "timestamp": fresh,
            }
        )

        assert result["success"] is True
        user = await fetch_user(session_factory, 1)
        assert user.eth_balance == Decimal("2")

    @pytest.mark.asyncio
    async def test_completed_for_unknown_user(self, workflow, users):
        """Completed callback for a missing user raises."""
        with pytest.raises(UserNotFoundError):
            await workflow.handle_webhook_callback(
                {
                    "userId": 999,
                    "status": "completed",
                    "result": {"newEthBalance": "1", "newEthBalanceInr": "1"},
                }
            )

    @pytest.mark.asyncio
    async def test_malformed_callback(self, workflow, users):
        """Malformed bodies fail validation."""
        with pytest.raises(ValidationError):
            await workflow.handle_webhook_callback(
                {"userId": "not-a-number", "status": "completed"}
            )

    @pytest.mark.asyncio
    async def test_completed_without_full_result(self, workflow, users):
        """Completed callbacks must carry both balances."""
        with pytest.raises(ValidationError):
            await workflow.handle_webhook_callback(
                {
                    "userId": 1,
                    "status": "completed",
                    "result": {"newEthBalance": "1"},
                }
            )

    @pytest.mark.asyncio
    async def test_processing_with_partial_result(self, workflow, session_factory, users):
        """In-progress callbacks may carry an arbitrary result."""
        result = await workflow.handle_webhook_callback(
            {"userId": 1, "status": "processing", "result": {"progress": 50}}
        )

        assert result == {"success": True, "status": "processing"}
        user = await fetch_user(session_factory, 1)
        assert user.last_eth_sync is None

    @pytest.mark.asyncio
    async def test_failed_with_partial_result(self, workflow, users):
        """Failed callbacks may carry an incomplete result."""
        result = await workflow.handle_webhook_callback(
            {
                "userId": 1,
                "status": "failed",
                "error": "insufficient liquidity",
                "result": {"txHash": None},
            }
        )

        assert result == {"success": False, "error": "insufficient liquidity"}

    @pytest.mark.asyncio
    async def test_callbacks_applied_in_timestamp_order(
        self, workflow, session_factory, users
    ):
        """A later callback wins over an earlier one, both sent in the past."""
        now = utc_now()
        first = now - timedelta(seconds=2)
        second = now - timedelta(seconds=1)

        def completed(balance: str, at):
            return {
                "userId": 1,
                "status": "completed",
                "result": {"newEthBalance": balance, "newEthBalanceInr": "1000"},
                "timestamp": at.isoformat(),
            }

        assert (await workflow.handle_webhook_callback(completed("1", first)))[
            "success"
        ] is True
        assert (await workflow.handle_webhook_callback(completed("2", second)))[
            "success"
        ] is True

        user = await fetch_user(session_factory, 1)
        assert user.eth_balance == Decimal("2")
        assert to_utc(user.last_eth_sync) == second

        replayed = await workflow.handle_webhook_callback(completed("1", first))
        assert replayed["stale"] is True
        user = await fetch_user(session_factory, 1)
        assert user.eth_balance == Decimal("2")
