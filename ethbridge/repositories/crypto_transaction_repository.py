"""
Crypto transaction repository.

Data access layer for the purchase log.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ethbridge.models.crypto_transaction import CryptoTransaction
from ethbridge.repositories.base import BaseRepository


class CryptoTransactionRepository(BaseRepository[CryptoTransaction]):
    """Crypto transaction repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize crypto transaction repository."""
        super().__init__(CryptoTransaction, session)

    async def list_for_user(
        self, user_id: int, limit: int, offset: int = 0
    ) -> list[CryptoTransaction]:
        """
        Get user's transactions, newest first.

        Args:
            user_id: User ID
            limit: Max number of results
            offset: Number of results to skip

        Returns:
            List of transactions
        """
        stmt = (
            select(CryptoTransaction)
            .where(CryptoTransaction.user_id == user_id)
            .order_by(
                CryptoTransaction.created_at.desc(),
                CryptoTransaction.id.desc(),
            )
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
