"""
User model.

Only the crypto-related columns of the account record are mapped here; the
rows themselves are created by the account subsystem.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ethbridge.models.base import Base
from ethbridge.models.types import EthAmountType, InrAmountType

if TYPE_CHECKING:
    from ethbridge.models.crypto_transaction import CryptoTransaction


class User(Base):
    """User account with its ETH wallet and balances."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # User's own Ethereum wallet (destination of purchases)
    eth_wallet_address: Mapped[str | None] = mapped_column(
        String(42), nullable=True, index=True
    )

    # Cumulative balances
    eth_balance: Mapped[Decimal] = mapped_column(
        EthAmountType, default=Decimal("0"), nullable=False
    )
    eth_balance_inr: Mapped[Decimal] = mapped_column(
        InrAmountType, default=Decimal("0"), nullable=False
    )

    last_eth_sync: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    crypto_transactions: Mapped[list["CryptoTransaction"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, eth_balance={self.eth_balance})>"
