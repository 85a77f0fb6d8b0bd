"""Async utility functions and the exception taxonomy.

This module provides:
- Custom exceptions for error handling
- Timeout wrappers for async operations
- Bounded concurrent gathering that preserves input order

Recoverable failures (a rejected stack line, an undecodable sourcemap)
are raised here and caught by the component that owns the fallback.
A FileReadError always propagates to the caller of the resolution.
"""

from __future__ import annotations

import asyncio
import builtins
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

import structlog

log = structlog.get_logger()

T = TypeVar("T")
R = TypeVar("R")


# =============================================================================
# Custom Exceptions
# =============================================================================


class RekindleError(Exception):
    """Base exception for all rekindle errors."""


class StackParseError(RekindleError):
    """A stack line or frame record did not match the expected grammar."""


class SourceMapDecodeError(RekindleError):
    """A sourcemap payload could not be decoded."""


class FileReadError(RekindleError):
    """Reading a file failed for a reason other than it being absent.

    Attributes:
        path: The path that could not be read.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class PathTraversalError(RekindleError):
    """A served URL pointed outside the public assets root."""


class TimeoutError(RekindleError):
    """Operation timed out."""


# =============================================================================
# Timeout Utilities
# =============================================================================


async def with_timeout(
    coro: Awaitable[T],
    timeout: float,
    error_message: str | None = None,
) -> T:
    """Execute an awaitable with a timeout.

    Args:
        coro: The coroutine to execute.
        timeout: Timeout in seconds.
        error_message: Custom error message for timeout.

    Returns:
        The result of the coroutine.

    Raises:
        TimeoutError: If the operation times out.
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except builtins.TimeoutError as e:
        msg = error_message or f"Operation timed out after {timeout}s"
        log.warning("operation_timeout", timeout=timeout)
        raise TimeoutError(msg) from e


# =============================================================================
# Bounded Concurrency
# =============================================================================


async def gather_bounded(
    func: Callable[[T], Awaitable[R]],
    items: Iterable[T],
    limit: int,
) -> list[R]:
    """Run ``func`` over ``items`` concurrently, at most ``limit`` at a time.

    Results are returned in the order of ``items``. The first exception
    raised by any call propagates after the remaining calls are cancelled.

    Args:
        func: Coroutine function applied to each item.
        items: Inputs, in the order results should be returned.
        limit: Maximum number of calls in flight.

    Returns:
        List of results, one per item.

    Raises:
        ValueError: If limit is less than 1.
    """
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")

    semaphore = asyncio.Semaphore(limit)

    async def run(item: T) -> R:
        async with semaphore:
            return await func(item)

    tasks = [asyncio.ensure_future(run(item)) for item in items]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
