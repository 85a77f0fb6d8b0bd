"""Shared test fixtures for rekindle."""

from __future__ import annotations

import base64
import json
from pathlib import Path
from typing import Any

import pytest

from rekindle.config.schema import PathsConfig, RekindleConfig
from rekindle.core.file_cache import FileCache


def numbered_lines(count: int, prefix: str = "line") -> str:
    """Text of ``count`` lines reading ``line 1`` .. ``line N``."""
    return "\n".join(f"{prefix} {number}" for number in range(1, count + 1))


def sourcemap_payload(
    sources: list[str],
    mappings: str,
    sources_content: list[str | None] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build a version 3 sourcemap payload."""
    payload: dict[str, Any] = {
        "version": 3,
        "sources": sources,
        "names": [],
        "mappings": mappings,
    }
    if sources_content is not None:
        payload["sourcesContent"] = sources_content
    payload.update(extra)
    return payload


def inline_sourcemap_comment(payload: dict[str, Any], urlsafe: bool = True) -> str:
    """``//# sourceMappingURL=`` comment embedding ``payload`` as base64."""
    raw = json.dumps(payload).encode()
    encoded = base64.urlsafe_b64encode(raw) if urlsafe else base64.b64encode(raw)
    return "//# sourceMappingURL=data:application/json;base64," + encoded.decode()


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A working directory with an empty ``public`` folder."""
    (tmp_path / "public").mkdir()
    return tmp_path


@pytest.fixture
def config(project_dir: Path) -> RekindleConfig:
    """Configuration rooted at ``project_dir``."""
    return RekindleConfig(paths=PathsConfig(working_dir=project_dir, public_dir=Path("public")))


@pytest.fixture
def cache() -> FileCache:
    """A fresh file cache."""
    return FileCache()
