"""
Exception types.

Defines the error taxonomy shared by the wallet service and the purchase
workflow.
"""


class EthBridgeError(Exception):
    """Base class for all bridge errors."""
    pass


class ConfigError(EthBridgeError):
    """Raised when a required secret or endpoint is not configured."""
    pass


class NotInitializedError(EthBridgeError):
    """Raised when the chain client was never configured."""
    pass


class InvalidAddressError(EthBridgeError):
    """Raised when a wallet address has an invalid format."""
    pass


class InsufficientFundsError(EthBridgeError):
    """Raised when the server wallet cannot cover a transfer."""
    pass


class PriceFetchError(EthBridgeError):
    """Raised when the ETH price cannot be fetched or parsed."""
    pass


class MissingWalletError(EthBridgeError):
    """Raised when a purchase is attempted without a destination wallet."""
    pass


class UserNotFoundError(EthBridgeError):
    """Raised when the referenced user row does not exist."""
    pass


class TransferError(EthBridgeError):
    """Raised when signing, broadcasting or confirming a transfer fails."""
    pass


class AgentWebhookError(EthBridgeError):
    """Raised when the remote agent webhook returns a non-2xx response."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"Agent webhook failed with HTTP {status}: {body}")
        self.status = status
        self.body = body


# Errors caused by the caller's input rather than by the service itself
CLIENT_ERRORS = (
    InvalidAddressError,
    MissingWalletError,
    UserNotFoundError,
)


def is_client_error(exc: Exception) -> bool:
    """
    Check if exception was caused by bad caller input.

    Args:
        exc: Exception to check

    Returns:
        True if the error should be reported as a 4xx response
    """
    return isinstance(exc, CLIENT_ERRORS)
