"""Resolution of parsed stack frames to original source with snippets.

This module implements the TraceResolver class, the per-frame pipeline
behind the overlay. For every frame it:
- Classifies the location once (served bundle, local file, or none)
- Fetches the file through the shared FileCache
- Maps the position through the file's sourcemap, if it has one
- Cuts a snippet of the original (or, failing that, generated) source

Line numbers: stack traces are 1-based while sourcemap mappings are
0-based. Positions are converted on the way into ``find_entry`` and back
on the way out, and every snippet is cut around the 1-based line, so
``Frame.current_index`` is ``line - 1 - start`` whichever path produced
the frame.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlsplit

import structlog

from rekindle.config.schema import RekindleConfig
from rekindle.core.file_cache import FileCache
from rekindle.core.mappings import find_entry
from rekindle.core.paths import is_web_url, normalize_local_path, public_path
from rekindle.core.snippet import extract
from rekindle.core.sourcemap_locator import SourceMapLocator
from rekindle.core.stack_parser import StackParser
from rekindle.models.frame import Frame, RawFrame
from rekindle.models.sourcemap import SourceMap
from rekindle.utils.async_helpers import PathTraversalError, gather_bounded
from rekindle.utils.logging import LogEventNames

log = structlog.get_logger()


class TargetKind(StrEnum):
    """Where a frame's code has to be fetched from."""

    BUNDLE = "bundle"  # http(s) URL of a file under the public root
    LOCAL = "local"  # filesystem path
    EMPTY = "empty"  # no location to fetch


@dataclass(frozen=True)
class FrameTarget:
    """A raw frame together with the file its code lives in."""

    kind: TargetKind
    raw: RawFrame
    path: Path | None = None
    display_file: str = ""


class TraceResolver:
    """Resolves stack traces into display-ready frames.

    The resolver owns the FileCache, so files read while resolving one
    trace are reused for the next. Frames are resolved concurrently, at
    most ``runtime.max_concurrent`` at a time, and returned in stack order.

    Example:
        resolver = TraceResolver(config)
        frames = await resolver.resolve(error.stack)
    """

    def __init__(
        self,
        config: RekindleConfig | None = None,
        cache: FileCache | None = None,
        parser: StackParser | None = None,
    ) -> None:
        """Initialize the TraceResolver.

        Args:
            config: Configuration (defaults from the environment if None)
            cache: File cache to share; a new one is created if None
            parser: Stack parser; a new one is created if None
        """
        self._config = config or RekindleConfig()
        self._cache = cache or FileCache()
        self._parser = parser or StackParser()
        self._locator = SourceMapLocator(self._cache)
        self._handlers: dict[TargetKind, Callable[[FrameTarget], Awaitable[Frame]]] = {
            TargetKind.BUNDLE: self._resolve_bundle,
            TargetKind.LOCAL: self._resolve_local,
            TargetKind.EMPTY: self._resolve_empty,
        }

    @property
    def cache(self) -> FileCache:
        """The file cache shared by all resolutions."""
        return self._cache

    @property
    def config(self) -> RekindleConfig:
        return self._config

    async def resolve(self, stack: str) -> list[Frame]:
        """Parse and resolve a raw stack trace.

        Args:
            stack: Stack text; its first line (the error message) is skipped

        Returns:
            Resolved frames in stack order

        Raises:
            FileReadError: If a file exists but cannot be read
        """
        return await self.resolve_frames(self._parser.parse(stack))

    async def resolve_records(self, records: Iterable[Any]) -> list[Frame]:
        """Resolve frames given as structured records instead of text."""
        return await self.resolve_frames(self._parser.parse_records(records))

    async def resolve_frames(self, raw_frames: Sequence[RawFrame]) -> list[Frame]:
        """Resolve already parsed frames concurrently, keeping their order."""
        log.info(LogEventNames.TRACE_RESOLVING, frames_count=len(raw_frames))

        frames = await gather_bounded(
            self.resolve_frame,
            raw_frames,
            self._config.runtime.max_concurrent,
        )

        log.info(
            LogEventNames.TRACE_RESOLVED,
            frames_count=len(frames),
            snippets_count=sum(1 for frame in frames if frame.code),
        )
        return frames

    async def resolve_frame(self, raw: RawFrame) -> Frame:
        """Resolve a single frame."""
        target = self.classify(raw)
        return await self._handlers[target.kind](target)

    def classify(self, raw: RawFrame) -> FrameTarget:
        """Decide once where a frame's code comes from."""
        if not raw.file or raw.line is None:
            return FrameTarget(TargetKind.EMPTY, raw)

        if is_web_url(raw.file):
            try:
                path: Path | None = public_path(self._config.public_root, raw.file)
            except PathTraversalError as e:
                log.warning(LogEventNames.FRAME_UNRESOLVED, file=raw.file, error=str(e))
                path = None
            return FrameTarget(TargetKind.BUNDLE, raw, path, raw.file)

        local = normalize_local_path(raw.file)
        return FrameTarget(TargetKind.LOCAL, raw, self._config.working_root / local, local)

    async def _resolve_empty(self, target: FrameTarget) -> Frame:
        return Frame.unresolved(target.raw)

    async def _resolve_bundle(self, target: FrameTarget) -> Frame:
        return await self._resolve_file(target, public_root=self._config.public_root)

    async def _resolve_local(self, target: FrameTarget) -> Frame:
        return await self._resolve_file(target, public_root=None)

    async def _resolve_file(self, target: FrameTarget, public_root: Path | None) -> Frame:
        """Fetch the frame's file and resolve through its sourcemap, if any."""
        raw = target.raw
        path = target.path

        text = await self._cache.get_text(path) if path is not None else None
        if path is None or text is None or raw.line is None:
            log.debug(LogEventNames.FRAME_UNRESOLVED, file=raw.file, kind=target.kind.value)
            return Frame.unresolved(raw)

        source_map = await self._locator.locate(text, path, public_root)
        if source_map is not None:
            frame = await self._resolve_mapped(raw, path, source_map)
            if frame is not None:
                return frame

        return self._snippet_frame(raw, target.display_file, text, raw.line, raw.column)

    async def _resolve_mapped(
        self,
        raw: RawFrame,
        bundle_path: Path,
        source_map: SourceMap,
    ) -> Frame | None:
        """Map the frame to its original source.

        Returns:
            Frame at the original location, or None if the sourcemap has
            no mapping at or before the generated position
        """
        entry = find_entry(source_map, (raw.line or 1) - 1, (raw.column or 1) - 1)
        if entry is None:
            log.debug(LogEventNames.SOURCEMAP_NO_ENTRY, file=raw.file, line=raw.line)
            return None

        line = entry.original_line + 1
        column = entry.original_column + 1

        content = source_map.content_for(entry.source_index)
        if content is None:
            original_path = self._original_path(bundle_path, entry.original_source)
            if original_path is not None:
                content = await self._cache.get_text(original_path)

        if content is None:
            log.debug(LogEventNames.ORIGINAL_SOURCE_MISSING, source=entry.original_source)
            return Frame(
                name=raw.name,
                file=entry.original_source,
                line=line,
                column=column,
                anonymous=raw.anonymous,
            )

        return self._snippet_frame(raw, entry.original_source, content, line, column)

    @staticmethod
    def _original_path(bundle_path: Path, source: str) -> Path | None:
        """Filesystem path of an original source, relative to its bundle."""
        parts = urlsplit(source)
        if parts.scheme == "file":
            return Path(unquote(parts.path))
        if parts.scheme:
            return None
        return bundle_path.parent / unquote(parts.path)

    def _snippet_frame(
        self,
        raw: RawFrame,
        file: str,
        text: str,
        line: int,
        column: int | None,
    ) -> Frame:
        snippet = extract(text, line, radius=self._config.snippet.context_lines)
        code = snippet.code if snippet.start <= line - 1 < snippet.end else ""

        return Frame(
            name=raw.name,
            file=file,
            line=line,
            column=column,
            code=code,
            start=snippet.start,
            end=snippet.end,
            anonymous=raw.anonymous,
        )
