"""
Payment integrity helpers.

Checksums are computed over a canonical JSON form so that a client and the
server produce the same digest for the same logical payload.
"""

import hashlib
import hmac
import json
from typing import Any


def canonical_json(data: Any) -> str:
    """
    Serialize data with sorted keys and compact separators.

    Args:
        data: JSON-serializable value

    Returns:
        Canonical JSON string
    """
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def compute_checksum(data: Any) -> str:
    """
    Compute SHA-256 checksum of a payload.

    Args:
        data: JSON-serializable payload

    Returns:
        Hex digest, independent of key insertion order

    Examples:
        >>> compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})
        True
    """
    return hashlib.sha256(canonical_json(data).encode("utf-8")).hexdigest()


def sign_payload(payload: str | bytes, secret: str) -> str:
    """
    Compute HMAC-SHA256 hex signature for a raw payload.

    Args:
        payload: Raw request body
        secret: Shared secret

    Returns:
        Hex signature
    """
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_signature(
    payload: str | bytes,
    signature: Any,
    secret: str | None,
) -> bool:
    """
    Verify HMAC-SHA256 signature of a raw payload.

    Never raises: a missing secret, a missing or malformed signature and a
    signature of the wrong length all yield False.

    Args:
        payload: Raw request body
        signature: Hex signature supplied by the sender
        secret: Shared secret, None when not configured

    Returns:
        True only if the signature matches
    """
    if not secret:
        return False
    if not isinstance(signature, str) or not signature:
        return False

    try:
        supplied = signature.encode("ascii")
    except UnicodeEncodeError:
        return False

    expected = sign_payload(payload, secret).encode("ascii")
    # compare_digest on bytes returns False for unequal lengths
    return hmac.compare_digest(supplied, expected)
