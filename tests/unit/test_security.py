"""
Unit tests for log masking helpers.
"""

from ethbridge.utils.security import mask_address, mask_tx_hash


def test_mask_address():
    """Addresses keep prefix and suffix only."""
    assert mask_address("0x1234567890abcdef1234567890abcdef12345678") == "0x1234...5678"
    assert mask_address(None) == "***"
    assert mask_address("0x12345678") == "***"


def test_mask_chain_hash():
    """Chain hashes keep prefix and suffix only."""
    tx_hash = "0x" + "1234567890abcdef" * 4

    assert mask_tx_hash(tx_hash) == "0x12345678...abcdef"
    assert mask_tx_hash(None) == "***"


def test_simulated_hash_is_not_masked():
    """Synthetic hashes are logged whole."""
    assert mask_tx_hash("sim_1760745600000_k3x9q2m7a") == "sim_1760745600000_k3x9q2m7a"
