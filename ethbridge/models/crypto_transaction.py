"""
Crypto transaction model.

Append-only log of ETH purchases, one row per completed workflow run.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ethbridge.models.base import Base
from ethbridge.models.enums import TransactionStatus, TransactionType
from ethbridge.models.types import EthAmountType, InrAmountType

if TYPE_CHECKING:
    from ethbridge.models.user import User


class CryptoTransaction(Base):
    """Logged ETH purchase (real or simulated transfer)."""

    __tablename__ = "crypto_transactions"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    transaction_type: Mapped[str] = mapped_column(
        String(20), default=TransactionType.PURCHASE, nullable=False
    )

    # Amounts
    amount_inr: Mapped[Decimal] = mapped_column(InrAmountType, nullable=False)
    amount_eth: Mapped[Decimal] = mapped_column(EthAmountType, nullable=False)
    eth_price: Mapped[Decimal] = mapped_column(
        InrAmountType, nullable=False, comment="ETH price in INR at execution"
    )

    # Chain hash (0x + 64 hex) or synthetic sim_ hash
    tx_hash: Mapped[str | None] = mapped_column(
        String(66), nullable=True, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), default=TransactionStatus.PENDING, nullable=False, index=True
    )
    is_simulated: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    user: Mapped["User"] = relationship(back_populates="crypto_transactions")

    def __repr__(self) -> str:
        return (
            f"<CryptoTransaction(id={self.id}, user_id={self.user_id}, "
            f"amount_eth={self.amount_eth}, status={self.status})>"
        )
