"""Building the overlay report for one error."""

from __future__ import annotations

import platform
from collections.abc import Mapping
from typing import Any

import structlog

from rekindle._version import __version__
from rekindle.config.schema import RekindleConfig
from rekindle.core.resolver import TraceResolver
from rekindle.models.report import ErrorPayload, MetaItem, TraceReport
from rekindle.utils.async_helpers import with_timeout
from rekindle.utils.logging import LogEventNames, bind_context, unbind_context

log = structlog.get_logger()

PYTHON_DOCS = "https://docs.python.org/3/"
REKINDLE_DOCS = "https://pypi.org/project/rekindle/"


def build_meta(config: RekindleConfig) -> dict[str, MetaItem]:
    """Versions and docs links shown in the overlay header."""
    meta = {
        "Python": MetaItem(version=platform.python_version(), docs=PYTHON_DOCS),
        "rekindle": MetaItem(version=__version__, docs=REKINDLE_DOCS),
    }
    for name, item in config.meta.items():
        meta[name] = MetaItem(version=item.version, docs=item.docs)
    return meta


async def build_report(
    error: ErrorPayload | Mapping[str, Any],
    resolver: TraceResolver | None = None,
    config: RekindleConfig | None = None,
) -> TraceReport:
    """Resolve an error's stack into the report the overlay renders.

    Args:
        error: The error, or its decoded transport mapping
        resolver: Resolver to use; keeping one around reuses its file cache
        config: Configuration; defaults to the resolver's

    Returns:
        TraceReport with meta information and resolved frames

    Raises:
        ValueError: If a mapping payload has no stack
        TimeoutError: If resolution exceeds ``runtime.resolution_timeout``
        FileReadError: If a file exists but cannot be read
    """
    if not isinstance(error, ErrorPayload):
        error = ErrorPayload.from_mapping(error)

    if resolver is None:
        resolver = TraceResolver(config)
    config = config or resolver.config

    bind_context(error_name=error.name)
    try:
        trace = await with_timeout(
            resolver.resolve(error.stack),
            config.runtime.resolution_timeout,
            f"Resolving the stack of {error.name} timed out",
        )
    finally:
        unbind_context("error_name")

    report = TraceReport(meta=build_meta(config), trace=tuple(trace))
    log.info(LogEventNames.REPORT_BUILT, error_name=error.name, frames_count=len(report.trace))
    return report
