"""UPI Lite to ETH purchase bridge."""

__version__ = "0.1.0"
