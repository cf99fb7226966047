"""
Blockchain module.

Components used by the wallet service:
- client.py - AsyncWeb3 factory
- wallet_operations.py - server wallet credentials and address validation
- balance_operations.py - native balance queries
- transfer_sender.py - value transfer signing and broadcast
"""

from .balance_operations import BalanceManager
from .client import create_web3
from .transfer_sender import TransferReceipt, TransferSender, eth_to_wei
from .wallet_operations import WalletManager, validate_address


__all__ = [
    "BalanceManager",
    "TransferReceipt",
    "TransferSender",
    "WalletManager",
    "create_web3",
    "eth_to_wei",
    "validate_address",
]
