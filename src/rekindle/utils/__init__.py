"""Utility functions and helpers.

This module provides various utilities for rekindle:
- async_helpers: Exception taxonomy, timeouts, bounded gathering
- logging: Structured logging configuration
"""

from rekindle.utils.async_helpers import (
    FileReadError,
    PathTraversalError,
    RekindleError,
    SourceMapDecodeError,
    StackParseError,
    TimeoutError,
    gather_bounded,
    with_timeout,
)
from rekindle.utils.logging import (
    LogEventNames,
    LogFormat,
    LogLevel,
    bind_context,
    clear_context,
    configure_from,
    configure_logging,
    unbind_context,
)

__all__ = [
    # Errors
    "FileReadError",
    "PathTraversalError",
    "RekindleError",
    "SourceMapDecodeError",
    "StackParseError",
    "TimeoutError",
    # Async
    "gather_bounded",
    "with_timeout",
    # Logging
    "LogEventNames",
    "LogFormat",
    "LogLevel",
    "bind_context",
    "clear_context",
    "configure_from",
    "configure_logging",
    "unbind_context",
]
