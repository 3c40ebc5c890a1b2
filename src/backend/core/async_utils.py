"""
Async utilities for remote calls.

Usage:
    from core.async_utils import retry_on_transport, gather_settled

    rows = await retry_on_transport(lambda: source.select(query), attempts=2)
    outcomes = await gather_settled([update(a), update(b)])
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, TypeVar, Union

from core.exceptions import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Exponential backoff: base * 2**attempt, capped at max_delay."""
    return min(base_delay * (2 ** attempt), max_delay)


async def retry_on_transport(
    call: Callable[[], Awaitable[T]],
    attempts: int = 2,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    operation: str = "remote call",
) -> T:
    """
    Await call(), retrying only on TransportError.

    Remote rejections (RemoteError) are never retried.

    Args:
        call: Zero-argument factory returning a fresh awaitable per attempt
        attempts: Retries after the first try
        base_delay: Seconds before the first retry
        max_delay: Upper bound for any single delay
        operation: Label for log lines

    Returns:
        The call's result

    Raises:
        TransportError: When every attempt failed to reach the remote
    """
    attempt = 0
    while True:
        try:
            return await call()
        except TransportError as exc:
            if attempt >= attempts:
                raise
            delay = backoff_delay(attempt, base_delay, max_delay)
            logger.info(
                f"Retrying {operation} in {delay:.2f}s "
                f"(attempt {attempt + 1}/{attempts}): {exc}"
            )
            await asyncio.sleep(delay)
            attempt += 1


async def gather_settled(awaitables: List[Awaitable[Any]]) -> List[Union[Any, BaseException]]:
    """
    Run awaitables concurrently and wait for all of them.

    Returns results in input order; a failed awaitable yields its exception
    instead of cancelling the rest.
    """
    return await asyncio.gather(*awaitables, return_exceptions=True)
