"""
Purchase workflow data types.

PurchasePayload travels to the remote agent or to local execution;
PurchaseResult is what a local execution returns; AgentCallback validates
the asynchronous completion sent back by the agent.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ethbridge.config.constants import WORKFLOW_NAME
from ethbridge.utils.datetime_utils import utc_now


def _json_number(value: Decimal) -> int | float:
    """Render a Decimal as a JSON number."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


@dataclass(frozen=True)
class PurchasePayload:
    """In-flight purchase request built from a balance change."""

    user_id: int
    amount_inr: Decimal
    wallet_address: str | None
    previous_balance: Decimal
    new_balance: Decimal
    timestamp: datetime = field(default_factory=utc_now)

    def to_json(self) -> dict[str, Any]:
        """Wire form sent to the remote agent."""
        return {
            "userId": self.user_id,
            "amountINR": _json_number(self.amount_inr),
            "walletAddress": self.wallet_address,
            "previousBalance": _json_number(self.previous_balance),
            "newBalance": _json_number(self.new_balance),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class PurchaseResult:
    """Outcome of a locally executed purchase."""

    success: bool
    user_id: int
    amount_inr: Decimal
    eth_amount: Decimal
    eth_price: Decimal
    transaction_hash: str
    simulated: bool
    new_eth_balance: Decimal
    new_eth_balance_inr: Decimal
    gas_used: int | None = None
    workflow: str = WORKFLOW_NAME
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class AgentAcceptance:
    """Remote agent accepted the payload; completion arrives by callback."""

    payload: PurchasePayload
    response: Any


class CallbackResult(BaseModel):
    """Balances reported by the agent on completion."""

    model_config = ConfigDict(populate_by_name=True)

    new_eth_balance: Decimal = Field(alias="newEthBalance")
    new_eth_balance_inr: Decimal = Field(alias="newEthBalanceInr")


class AgentCallback(BaseModel):
    """Callback body posted by the remote agent."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: int | None = Field(default=None, alias="userId")
    status: str | None = None
    # Shape depends on status; only completed results are validated
    result: Any = None
    error: Any = None
    # Time the agent's balances refer to; enables the stale-update guard
    timestamp: datetime | None = None
