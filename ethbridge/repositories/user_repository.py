"""
User repository.

Data access layer for the crypto columns of the User model.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ethbridge.models.user import User
from ethbridge.repositories.base import BaseRepository
from ethbridge.utils.datetime_utils import utc_now


class UserRepository(BaseRepository[User]):
    """User repository with balance-specific statements."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_wallet_address(self, user_id: int) -> tuple[bool, str | None]:
        """
        Get the user's ETH wallet address.

        Args:
            user_id: User ID

        Returns:
            Tuple of (user exists, wallet address or None)
        """
        stmt = select(User.eth_wallet_address).where(User.id == user_id)
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return False, None
        return True, row.eth_wallet_address

    async def increment_eth_balance(
        self,
        user_id: int,
        eth_amount: Decimal,
        inr_amount: Decimal,
    ) -> tuple[Decimal, Decimal] | None:
        """
        Add to the cumulative ETH and INR balances.

        The addition happens in SQL so concurrent increments never overwrite
        each other.

        Args:
            user_id: User ID
            eth_amount: ETH to add
            inr_amount: INR equivalent to add

        Returns:
            New (eth_balance, eth_balance_inr) or None if user not found
        """
        now = utc_now()
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                eth_balance=func.coalesce(User.eth_balance, 0) + eth_amount,
                eth_balance_inr=func.coalesce(User.eth_balance_inr, 0) + inr_amount,
                last_eth_sync=now,
                updated_at=now,
            )
            .returning(User.eth_balance, User.eth_balance_inr)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        return Decimal(row.eth_balance), Decimal(row.eth_balance_inr)

    async def overwrite_eth_balance(
        self,
        user_id: int,
        eth_balance: Decimal,
        eth_balance_inr: Decimal,
        not_newer_than: datetime | None = None,
    ) -> tuple[Decimal, Decimal] | None:
        """
        Replace the stored ETH and INR balances.

        Args:
            user_id: User ID
            eth_balance: New ETH balance
            eth_balance_inr: New INR equivalent
            not_newer_than: Only apply if the last sync is not after this time;
                also recorded as the new sync time

        Returns:
            Stored (eth_balance, eth_balance_inr) or None if nothing was updated
        """
        now = utc_now()
        synced_at = not_newer_than if not_newer_than is not None else now
        stmt = update(User).where(User.id == user_id)
        if not_newer_than is not None:
            stmt = stmt.where(
                or_(
                    User.last_eth_sync.is_(None),
                    User.last_eth_sync <= not_newer_than,
                )
            )
        stmt = (
            stmt.values(
                eth_balance=eth_balance,
                eth_balance_inr=eth_balance_inr,
                last_eth_sync=synced_at,
                updated_at=now,
            )
            .returning(User.eth_balance, User.eth_balance_inr)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        return Decimal(row.eth_balance), Decimal(row.eth_balance_inr)

    async def set_wallet_address(
        self, user_id: int, wallet_address: str
    ) -> str | None:
        """
        Store the user's ETH wallet address.

        Args:
            user_id: User ID
            wallet_address: Validated wallet address

        Returns:
            Stored address or None if user not found
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(eth_wallet_address=wallet_address, updated_at=utc_now())
            .returning(User.eth_wallet_address)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
