"""Data models and transfer objects."""

from .frame import ANONYMOUS, Frame, RawFrame
from .report import ErrorPayload, MetaItem, TraceReport
from .sourcemap import MappingSegment, ResolvedEntry, SourceMap

__all__ = [
    # Frame models
    "ANONYMOUS",
    "RawFrame",
    "Frame",
    # Sourcemap models
    "MappingSegment",
    "ResolvedEntry",
    "SourceMap",
    # Report models
    "ErrorPayload",
    "MetaItem",
    "TraceReport",
]
