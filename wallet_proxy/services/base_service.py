"""
Base service class for wallet proxy services.

This module provides a base class for all services in the wallet proxy,
with common functionality for fallbacks, bounded concurrency, and timing logs.
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
    - Fallback values for failed sub-operations
    - Bounded concurrency for fan-out calls
    - Timing logs
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
        fallback_value: T,
        error_message: str = "Operation failed"
    ) -> T:
        """
        Await a coroutine, substituting a fallback value if it raises.

        Cancellation is not intercepted.

        Args:
            coro: The coroutine to await
            fallback_value: Value returned when the coroutine fails
            error_message: Message logged on failure

        Returns:
            The coroutine result or the fallback value
        """
        try:
            return await coro
        except Exception as e:
            self.logger.warning(f"{error_message}: {str(e)}")
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
            List of results from the tasks, in order
        """
        semaphore = asyncio.Semaphore(max(1, concurrency_limit))

        async def _wrapped_task(task):
            async with semaphore:
                return await task

        return await asyncio.gather(*[_wrapped_task(task) for task in tasks])

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
    """Async context manager that logs how long an operation took."""

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
            self.logger.error(
                f"{self.operation_name} failed after {elapsed:.2f}s: {str(exc_val)}"
            )
        else:
            self.logger.debug(f"{self.operation_name} completed in {elapsed:.2f}s")
