"""
Base service class.

Provides common functionality for all service classes including session
leasing, logging and transaction helpers.
"""

import functools
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


# Type variable for generic decorator return types
T = TypeVar("T")


class BaseService:
    """
    Base service class.

    Provides common functionality for all service classes:
    - Session leasing from the session factory
    - Logging with bound service context
    - Transaction helpers
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """
        Initialize base service.

        Args:
            session_factory: Async session factory
        """
        self.session_factory = session_factory
        self.logger = logger.bind(service=self.__class__.__name__)

    @asynccontextmanager
    async def transaction(self, name: str) -> AsyncIterator[AsyncSession]:
        """
        Lease a session and run the block in one transaction.

        Commits on success, rolls back on exception. The session is
        released on every exit path.

        Usage:
            async with self.transaction("execute_locally") as session:
                ...

        Args:
            name: Operation name used in failure logs

        Yields:
            Session with an open transaction
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                await session.rollback()
                self.logger.error(f"Transaction failed in {name}: {e}")
                raise

    @asynccontextmanager
    async def read_session(self) -> AsyncIterator[AsyncSession]:
        """
        Lease a session for read-only queries.

        Yields:
            Async session
        """
        async with self.session_factory() as session:
            yield session


def log_operation(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to log method entry/exit with timing.

    Logs:
    - Method entry
    - Method exit with duration
    - Exceptions if any

    Args:
        func: Async method to wrap

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        start_time = time.time()

        self.logger.debug(f"Starting {func.__name__}")

        try:
            result = await func(self, *args, **kwargs)
        except Exception as e:
            duration = time.time() - start_time
            self.logger.error(
                f"Failed {func.__name__} after {duration:.3f}s: "
                f"{type(e).__name__}: {e}"
            )
            raise

        duration = time.time() - start_time
        self.logger.info(f"Completed {func.__name__} in {duration:.3f}s")
        return result

    return wrapper
