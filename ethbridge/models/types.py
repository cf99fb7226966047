"""
Standard type definitions for database models.

Provides consistent types for monetary fields across all models.
"""

from sqlalchemy import DECIMAL

# ETH amounts and balances
# Precision: 18 digits total, 8 after decimal point
EthAmountType = DECIMAL(18, 8)

# INR amounts and prices
# Precision: 15 digits total, 2 after decimal point
InrAmountType = DECIMAL(15, 2)
