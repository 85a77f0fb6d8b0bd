"""Core business logic components.

This module exports the main business logic classes:
- TraceResolver: Resolves stack traces into frames with snippets
- StackParser: Parses JavaScript stack traces
- SourceMapLocator: Finds and decodes a bundle's sourcemap
- FileCache: Memoized file reads
- build_report: Meta plus resolved trace for one error
"""

from rekindle.core.file_cache import FileCache
from rekindle.core.mappings import decode_mappings, encode_mappings, find_entry
from rekindle.core.report import build_meta, build_report
from rekindle.core.resolver import FrameTarget, TargetKind, TraceResolver
from rekindle.core.snippet import Snippet, extract
from rekindle.core.sourcemap_locator import SourceMapLocator
from rekindle.core.stack_parser import StackParser

__all__ = [
    "FileCache",
    "FrameTarget",
    "Snippet",
    "SourceMapLocator",
    "StackParser",
    "TargetKind",
    "TraceResolver",
    "build_meta",
    "build_report",
    "decode_mappings",
    "encode_mappings",
    "extract",
    "find_entry",
]
