"""
Log masking for wallet addresses and transaction hashes.
"""

from ethbridge.config.constants import SIMULATED_HASH_PREFIX


def _mask(value: str | None, head: int, tail: int) -> str:
    """Keep `head` leading and `tail` trailing characters of a value."""
    if not value or len(value) <= head + tail:
        return "***"
    return f"{value[:head]}...{value[-tail:]}"


def mask_address(address: str | None) -> str:
    """
    Mask an ETH wallet address: 0x1234...5678

    Examples:
        >>> mask_address("0x1234567890abcdef1234567890abcdef12345678")
        '0x1234...5678'
        >>> mask_address(None)
        '***'
    """
    return _mask(address, 6, 4)


def mask_tx_hash(tx_hash: str | None) -> str:
    """
    Mask a transfer hash for logging.

    Simulated hashes never reach the chain and are logged in full, so they
    can be matched against crypto_transactions rows.

    Examples:
        >>> mask_tx_hash("0x" + "ab" * 32)
        '0xabababab...ababab'
        >>> mask_tx_hash("sim_1760745600000_k3x9q2m7a")
        'sim_1760745600000_k3x9q2m7a'
    """
    if tx_hash and tx_hash.startswith(SIMULATED_HASH_PREFIX):
        return tx_hash
    return _mask(tx_hash, 10, 6)
