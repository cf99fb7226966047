"""
Model enumerations.
"""

from enum import StrEnum


class TransactionType(StrEnum):
    """Crypto transaction types."""

    PURCHASE = "purchase"


class TransactionStatus(StrEnum):
    """Crypto transaction statuses."""

    PENDING = "pending"
    COMPLETED = "completed"


class CallbackStatus(StrEnum):
    """Statuses reported by the remote agent callback."""

    COMPLETED = "completed"
    FAILED = "failed"
