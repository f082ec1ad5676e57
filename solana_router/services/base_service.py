"""
Base service class for Solana router services.

This module provides a base class for all services in the router,
with common functionality for fallbacks, bounded concurrency and
timing logs.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, List, Optional, TypeVar

T = TypeVar('T')


class BaseService:
    """
    Base service class with common functionality.

    This class provides:
    - Fallback values for best-effort operations
    - Bounded concurrent fan-out
    - Logging
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the base service.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    async def execute_with_fallback(
        self,
        coro: Awaitable[T],
        fallback_value: Any = None,
        error_message: str = "Operation failed"
    ) -> Any:
        """
        Await a best-effort coroutine, returning a fallback value on failure.

        Args:
            coro: The coroutine to await
            fallback_value: Value returned if the coroutine raises
            error_message: Message logged on failure

        Returns:
            The coroutine's result or the fallback value
        """
        try:
            return await coro
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.warning(f"{error_message}: {e}")
            return fallback_value

    async def gather_with_concurrency(
        self,
        concurrency_limit: int,
        *tasks: Awaitable[Any]
    ) -> List[Any]:
        """
        Execute tasks with a concurrency limit.

        Args:
            concurrency_limit: Maximum number of tasks to run concurrently
            tasks: Tasks to execute

        Returns:
            List of results from the tasks, in submission order
        """
        semaphore = asyncio.Semaphore(max(1, concurrency_limit))

        async def _wrapped_task(task):
            async with semaphore:
                return await task

        return await asyncio.gather(
            *[_wrapped_task(task) for task in tasks],
            return_exceptions=False
        )

    def log_timing(self, operation_name: str) -> "TimingContextManager":
        """
        Create a context manager to log timing information.

        Args:
            operation_name: Name of the operation

        Returns:
            Timing context manager
        """
        return TimingContextManager(operation_name, self.logger)


class TimingContextManager:
    """Async context manager to log timing information."""

    def __init__(self, operation_name: str, logger: logging.Logger):
        self.operation_name = operation_name
        self.logger = logger
        self.start_time = 0.0

    async def __aenter__(self) -> "TimingContextManager":
        self.start_time = time.perf_counter()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        elapsed = time.perf_counter() - self.start_time
        if exc_val is not None:
            self.logger.error(f"{self.operation_name} failed after {elapsed:.2f}s: {exc_val}")
        else:
            self.logger.debug(f"{self.operation_name} completed in {elapsed:.2f}s")
