"""Data models for decoded sourcemaps."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from rekindle.utils.async_helpers import SourceMapDecodeError


@dataclass(frozen=True)
class MappingSegment:
    """One decoded mapping, with absolute 0-based positions."""

    generated_column: int
    source_index: int
    original_line: int
    original_column: int
    name_index: int | None = None


@dataclass(frozen=True)
class ResolvedEntry:
    """Original position of a generated location (0-based line/column)."""

    original_source: str
    original_line: int
    original_column: int
    source_index: int
    name: str | None = None


def _string_list(payload: Mapping[str, Any], key: str, allow_none: bool = False) -> tuple[Any, ...]:
    value = payload.get(key, [])
    if value is None:
        value = []
    if not isinstance(value, list):
        raise SourceMapDecodeError(f"'{key}' must be a list")
    for item in value:
        if isinstance(item, str) or (allow_none and item is None):
            continue
        raise SourceMapDecodeError(f"'{key}' contains a non-string entry: {item!r}")
    return tuple(value)


@dataclass(frozen=True)
class SourceMap:
    """A decoded version 3 sourcemap.

    ``sources_content`` is always as long as ``sources``; entries the map
    does not embed are None.
    """

    version: int
    sources: tuple[str, ...]
    mappings: str
    sources_content: tuple[str | None, ...] = ()
    names: tuple[str, ...] = ()
    source_root: str = ""
    file: str | None = None
    lines: tuple[tuple[MappingSegment, ...], ...] = field(default=(), repr=False, compare=False)

    @classmethod
    def from_payload(cls, payload: Any) -> SourceMap:
        """Validate a parsed JSON payload and decode its mappings.

        Args:
            payload: Result of ``json.loads`` on the sourcemap text

        Returns:
            SourceMap with decoded ``lines``

        Raises:
            SourceMapDecodeError: If a required field is missing or invalid
        """
        from rekindle.core.mappings import decode_mappings

        if not isinstance(payload, Mapping):
            raise SourceMapDecodeError("Sourcemap payload must be a JSON object")

        version = payload.get("version")
        if isinstance(version, bool) or not isinstance(version, int):
            raise SourceMapDecodeError(f"Missing or invalid 'version': {version!r}")
        if version != 3:
            raise SourceMapDecodeError(f"Unsupported sourcemap version {version}")

        if "sources" not in payload:
            raise SourceMapDecodeError("Missing 'sources'")
        mappings = payload.get("mappings")
        if not isinstance(mappings, str):
            raise SourceMapDecodeError("Missing or invalid 'mappings'")

        sources = _string_list(payload, "sources")
        names = _string_list(payload, "names")
        contents = _string_list(payload, "sourcesContent", allow_none=True)
        contents = (contents + (None,) * len(sources))[: len(sources)]

        source_root = payload.get("sourceRoot") or ""
        if not isinstance(source_root, str):
            raise SourceMapDecodeError("'sourceRoot' must be a string")
        file = payload.get("file")
        if file is not None and not isinstance(file, str):
            raise SourceMapDecodeError("'file' must be a string")

        return cls(
            version=version,
            sources=sources,
            mappings=mappings,
            sources_content=contents,
            names=names,
            source_root=source_root,
            file=file,
            lines=decode_mappings(mappings, source_count=len(sources), name_count=len(names)),
        )

    def source_path(self, index: int) -> str:
        """Source identifier at ``index`` with ``sourceRoot`` applied."""
        source = self.sources[index]
        if not self.source_root or "://" in source or source.startswith("/"):
            return source
        return f"{self.source_root.rstrip('/')}/{source}"

    def content_for(self, index: int) -> str | None:
        """Embedded source text for ``index``, if the map carries it."""
        if 0 <= index < len(self.sources_content):
            return self.sources_content[index]
        return None
