"""Path handling for frame locations and sourcemap references."""

from __future__ import annotations

import os
import re
from pathlib import Path
from urllib.parse import unquote, urlsplit

from rekindle.utils.async_helpers import PathTraversalError

# Longest trailing run that looks like a path, optionally with an uppercase
# drive letter. Scheme prefixes ("file://", "node:") fall outside it.
LOCAL_PATH_PATTERN = re.compile(r"^.*?((?:[A-Z]:)?(?:[/\\]?[A-Za-z0-9_.@-]+)+)$")

WEB_SCHEMES = ("http", "https")


def is_web_url(location: str) -> bool:
    """Check if a frame location is a served bundle URL."""
    return urlsplit(location).scheme in WEB_SCHEMES


def normalize_local_path(location: str) -> str:
    """Strip runtime prefix noise from a filesystem frame location.

    Example:
        normalize_local_path("file:///app/src/x.js")  # "/app/src/x.js"
    """
    match = LOCAL_PATH_PATTERN.match(location)
    if match is None:
        return location
    return match.group(1)


def join_under(root: Path, url_path: str) -> Path:
    """Join a URL path onto ``root`` without escaping it.

    Args:
        root: Directory the URL path is served from
        url_path: Path component of a URL (percent-encoded or not)

    Returns:
        Absolute path inside ``root``

    Raises:
        PathTraversalError: If the result would lie outside ``root``
    """
    relative = os.path.normpath(unquote(url_path).lstrip("/\\") or ".")
    base = root.resolve()
    full_path = (base / relative).resolve()

    try:
        full_path.relative_to(base)
    except ValueError:
        raise PathTraversalError(f"Path traversal detected: {url_path}") from None

    return full_path


def public_path(public_root: Path, url: str) -> Path:
    """Map a served URL onto the file under the public assets root."""
    return join_under(public_root, urlsplit(url).path)
