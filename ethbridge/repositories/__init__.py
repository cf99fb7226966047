"""
Repositories.

Data access layer over the async session.
"""

from ethbridge.repositories.crypto_transaction_repository import (
    CryptoTransactionRepository,
)
from ethbridge.repositories.user_repository import UserRepository


__all__ = [
    "CryptoTransactionRepository",
    "UserRepository",
]
