"""Locating and decoding the sourcemap referenced by a bundle.

A bundle points at its sourcemap with a trailing comment:

    //# sourceMappingURL=data:application/json;base64,eyJ2ZXJzaW9uIjozLC...
    //# sourceMappingURL=index.js.map

Only the last such comment counts. A reference that cannot be decoded is
logged and treated as no sourcemap at all, so the frame falls back to
the generated location.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from pathlib import Path
from urllib.parse import unquote, unquote_to_bytes, urlsplit

import structlog

from rekindle.core.file_cache import FileCache
from rekindle.core.paths import WEB_SCHEMES, join_under
from rekindle.models.sourcemap import SourceMap
from rekindle.utils.async_helpers import PathTraversalError, SourceMapDecodeError
from rekindle.utils.logging import LogEventNames

log = structlog.get_logger()

# Prefix some servers put in front of JSON to defeat XSSI
XSSI_PREFIX = ")]}'"


def decode_payload(raw: str | bytes) -> SourceMap:
    """Parse sourcemap JSON text into a SourceMap.

    Raises:
        SourceMapDecodeError: If the text is not valid sourcemap JSON
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SourceMapDecodeError(f"Sourcemap is not UTF-8: {e}") from e

    if raw.startswith(XSSI_PREFIX):
        raw = raw.split("\n", 1)[1] if "\n" in raw else ""

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SourceMapDecodeError(f"Sourcemap is not valid JSON: {e}") from e

    return SourceMap.from_payload(payload)


def decode_base64(data: str) -> bytes:
    """Decode base64 in either the standard or the URL-safe alphabet.

    Padding is optional.

    Raises:
        SourceMapDecodeError: If ``data`` is not base64
    """
    normalized = data.strip().replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    try:
        return base64.b64decode(normalized, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SourceMapDecodeError(f"Invalid base64 sourcemap payload: {e}") from e


class SourceMapLocator:
    """Finds, fetches and decodes the sourcemap of a bundle.

    Example:
        locator = SourceMapLocator(cache)
        source_map = await locator.locate(text, Path("/app/public/build/index.js"))
    """

    MARKER_PATTERN = re.compile(r"//[#@][ \t]*sourceMappingURL=(?P<url>[^\s'\"]*)")
    DATA_URL_PATTERN = re.compile(
        r"^data:(?P<mime>[^,;]*)(?P<params>(?:;[^,;]*)*),(?P<data>.*)$",
        re.DOTALL,
    )

    def __init__(self, cache: FileCache) -> None:
        """Initialize the locator.

        Args:
            cache: File cache used to fetch external sourcemaps
        """
        self._cache = cache

    def find_reference(self, bundle_text: str) -> str | None:
        """Return the URL of the last sourcemap comment, if any."""
        reference = None
        for match in self.MARKER_PATTERN.finditer(bundle_text):
            reference = match.group("url")
        return reference

    async def locate(
        self,
        bundle_text: str,
        bundle_path: Path,
        public_root: Path | None = None,
    ) -> SourceMap | None:
        """Find and decode the sourcemap referenced by a bundle.

        Args:
            bundle_text: Text of the bundle
            bundle_path: Where the bundle lives; relative references
                resolve against its directory
            public_root: Root for root-relative and ``http(s)`` references

        Returns:
            Decoded SourceMap, or None if there is no usable sourcemap

        Raises:
            FileReadError: If an external sourcemap exists but cannot be read
        """
        reference = self.find_reference(bundle_text)
        if reference is None:
            log.debug(LogEventNames.SOURCEMAP_NOT_FOUND, bundle=str(bundle_path))
            return None

        try:
            if reference.startswith("data:"):
                source_map = self.decode_inline(reference)
            else:
                source_map = await self.load_external(reference, bundle_path, public_root)
        except (SourceMapDecodeError, PathTraversalError) as e:
            log.warning(
                LogEventNames.SOURCEMAP_DECODE_FAILED,
                bundle=str(bundle_path),
                inline=reference.startswith("data:"),
                error=str(e),
            )
            return None

        log.debug(
            LogEventNames.SOURCEMAP_DECODED,
            bundle=str(bundle_path),
            sources_count=len(source_map.sources),
        )
        return source_map

    def decode_inline(self, reference: str) -> SourceMap:
        """Decode a ``data:`` URL sourcemap.

        Raises:
            SourceMapDecodeError: If the URL or its payload is invalid
        """
        match = self.DATA_URL_PATTERN.match(reference)
        if match is None:
            raise SourceMapDecodeError("Malformed data URL")

        params = [p.strip().lower() for p in match.group("params").split(";") if p.strip()]
        if "base64" in params:
            raw = decode_base64(match.group("data"))
        else:
            raw = unquote_to_bytes(match.group("data"))

        return decode_payload(raw)

    async def load_external(
        self,
        reference: str,
        bundle_path: Path,
        public_root: Path | None = None,
    ) -> SourceMap:
        """Fetch and decode a sourcemap file.

        Raises:
            SourceMapDecodeError: If the file is missing or invalid
            PathTraversalError: If a served reference escapes ``public_root``
            FileReadError: If the file exists but cannot be read
        """
        path = self.resolve_reference(reference, bundle_path, public_root)
        content = await self._cache.get(path)
        if content is None:
            raise SourceMapDecodeError(f"Sourcemap file not found: {path}")
        return decode_payload(content)

    def resolve_reference(
        self,
        reference: str,
        bundle_path: Path,
        public_root: Path | None = None,
    ) -> Path:
        """Turn a sourcemap URL into a filesystem path.

        Raises:
            SourceMapDecodeError: If the reference is empty or cannot be
                mapped to a file
            PathTraversalError: If a served reference escapes ``public_root``
        """
        if not reference:
            raise SourceMapDecodeError("Empty sourcemap reference")

        parts = urlsplit(reference)

        if parts.scheme in WEB_SCHEMES:
            if public_root is None:
                raise SourceMapDecodeError(f"No public root to serve {reference} from")
            return join_under(public_root, parts.path)

        if parts.scheme == "file":
            return Path(unquote(parts.path))

        if parts.scheme:
            raise SourceMapDecodeError(f"Unsupported sourcemap URL scheme: {parts.scheme}")

        path = unquote(parts.path)
        if path.startswith("/") and public_root is not None:
            return join_under(public_root, path)

        return bundle_path.parent / path
