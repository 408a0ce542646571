"""Retry policy for outbound network calls.

Every call to an external provider goes through :func:`call_with_policy` so
timeouts, backoff and the retryable/non-retryable split live in one place.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from wallet_proxy.utils.errors import is_retryable

T = TypeVar('T')

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry settings for one upstream.

    Attributes:
        max_attempts: Total attempts including the first one
        base_delay: Delay before the first retry, doubled on each further retry
        jitter: Upper bound of the random delay added to each backoff
        timeout: Per-attempt timeout in seconds
    """

    max_attempts: int = 2
    base_delay: float = 0.25
    jitter: float = 0.25
    timeout: float = 3.0

    def backoff(self, attempt: int) -> float:
        """Delay to wait after the given failed attempt (1-based)."""
        return self.base_delay * (2 ** (attempt - 1)) + random.uniform(0, self.jitter)


async def call_with_policy(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    operation_name: str = "operation",
    log: Optional[logging.Logger] = None
) -> T:
    """
    Await ``operation()`` under a retry policy.

    Retryable failures (timeouts, network errors, 429 and 5xx) are retried
    until ``policy.max_attempts`` is reached; any other exception is raised
    immediately.

    Args:
        operation: Zero-argument coroutine factory to execute
        policy: Retry policy to apply
        operation_name: Name used in log messages
        log: Optional logger instance

    Returns:
        Result of the operation

    Raises:
        The last exception raised by the operation
    """
    log = log or logger
    attempts = max(1, policy.max_attempts)

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if attempt >= attempts or not is_retryable(e):
                raise
            delay = policy.backoff(attempt)
            log.warning(
                f"{operation_name} failed (attempt {attempt}/{attempts}), "
                f"retrying in {delay:.2f}s: {str(e)}"
            )
            await asyncio.sleep(delay)

    # Unreachable: the loop either returns or raises
    raise RuntimeError(f"{operation_name} exhausted retries without a result")
