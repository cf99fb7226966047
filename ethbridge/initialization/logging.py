"""
Logging setup.

Configures loguru with a rotating file sink next to stderr.
"""

import sys

from loguru import logger


def setup_logging(level: str = "INFO") -> None:
    """Configure logger with file rotation."""
    logger.remove()
    logger.add(sys.stderr, level=level)
    logger.add(
        "logs/ethbridge.log",
        rotation="1 day",
        retention="7 days",
        level=level,
        encoding="utf-8",
    )

    logger.info("Starting ETH bridge...")
