"""
Bounded retries with exponential backoff for asynchronous operations.

Delays are awaited with ``asyncio.sleep`` so that waiting never blocks other
work on the same event loop.
"""

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, List, Tuple, Type, TypeVar, Union

from ..utils.constants import DEFAULT_BASE_DELAY
from ..utils.errors import AggregateRetryError, InvalidArgumentError, TransientProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")

ExceptionTypes = Union[Type[BaseException], Tuple[Type[BaseException], ...]]


def backoff_delays(retries: int, base_delay: float = DEFAULT_BASE_DELAY) -> List[float]:
    """
    Get the delays awaited before each retry.

    Args:
        retries: Maximum number of retries.
        base_delay: Delay before the first retry, in seconds.

    Returns:
        ``[base, 2*base, 4*base, ...]`` with one entry per retry.
    """
    return [base_delay * (1 << attempt) for attempt in range(retries)]


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    retries: int,
    transient: ExceptionTypes = (TransientProviderError,),
    base_delay: float = DEFAULT_BASE_DELAY,
) -> T:
    """
    Execute an asynchronous operation, retrying on transient failures.

    Args:
        operation: Zero-argument factory returning a fresh awaitable per attempt.
        retries: Maximum number of retries (total attempts = retries + 1).
        transient: Exception type(s) that are retry-eligible. Any other
            exception propagates immediately.
        base_delay: Delay before the first retry, in seconds; doubles per retry.

    Returns:
        The result of the first successful attempt.

    Raises:
        InvalidArgumentError: If ``retries`` is negative.
        AggregateRetryError: If every attempt failed with a transient error.
    """
    if operation is None:
        raise InvalidArgumentError("operation")
    if retries < 0:
        raise InvalidArgumentError("retries", "retries must be non-negative")

    delays = backoff_delays(retries, base_delay)
    causes: List[BaseException] = []

    for attempt in range(retries + 1):
        try:
            return await operation()
        except transient as e:
            causes.append(e)
            if attempt == retries:
                break
            delay = delays[attempt]
            logger.warning(
                "Attempt %d/%d failed (%s), retrying in %.2fs",
                attempt + 1,
                retries + 1,
                e,
                delay,
            )
            await asyncio.sleep(delay)

    logger.error("All %d attempts failed", len(causes))
    raise AggregateRetryError(causes)


def with_retry(
    retries: int,
    transient: ExceptionTypes = (TransientProviderError,),
    base_delay: float = DEFAULT_BASE_DELAY,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorate a coroutine function so every call goes through :func:`retry_async`."""

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            return await retry_async(
                lambda: func(*args, **kwargs), retries, transient, base_delay
            )

        return wrapper

    return decorator
