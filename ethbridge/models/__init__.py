"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from ethbridge.models.base import Base
from ethbridge.models.crypto_transaction import CryptoTransaction
from ethbridge.models.enums import CallbackStatus, TransactionStatus, TransactionType
from ethbridge.models.user import User


__all__ = [
    "Base",
    "CallbackStatus",
    "CryptoTransaction",
    "TransactionStatus",
    "TransactionType",
    "User",
]
