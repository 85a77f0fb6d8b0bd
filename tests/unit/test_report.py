"""Tests for building overlay reports."""

from __future__ import annotations

import asyncio
import platform
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import numbered_lines

from rekindle._version import __version__
from rekindle.config.schema import MetaItemConfig, PathsConfig, RekindleConfig, RuntimeConfig
from rekindle.core.report import PYTHON_DOCS, build_meta, build_report
from rekindle.core.resolver import TraceResolver
from rekindle.models.report import ErrorPayload
from rekindle.utils.async_helpers import TimeoutError


class TestBuildMeta:
    """Tests for the meta section."""

    def test_default_entries(self) -> None:
        """Test Python and rekindle are always listed."""
        meta = build_meta(RekindleConfig())
        assert meta["Python"].version == platform.python_version()
        assert meta["Python"].docs == PYTHON_DOCS
        assert meta["rekindle"].version == __version__

    def test_configured_entries(self) -> None:
        """Test extra components come from configuration."""
        config = RekindleConfig(
            meta={"Webpack": MetaItemConfig(version="5.90.0", docs="https://webpack.js.org/")}
        )
        meta = build_meta(config)
        assert meta["Webpack"].version == "5.90.0"
        assert meta["Webpack"].docs == "https://webpack.js.org/"


class TestBuildReport:
    """Tests for build_report."""

    async def test_report_from_mapping(self, config: RekindleConfig, project_dir: Path) -> None:
        """Test a transport mapping resolves into meta and trace."""
        path = project_dir / "app.js"
        path.write_text(numbered_lines(30))

        report = await build_report(
            {
                "name": "TypeError",
                "message": "boom",
                "stack": f"TypeError: boom\n    at foo ({path}:12:3)",
            },
            config=config,
        )
        data = report.to_dict()

        assert set(data) == {"meta", "trace"}
        assert "Python" in data["meta"]
        assert len(data["trace"]) == 1
        assert data["trace"][0]["name"] == "foo"
        assert data["trace"][0]["start"] == 2
        assert data["trace"][0]["end"] == 22

    async def test_reuses_resolver_cache(self, config: RekindleConfig, project_dir: Path) -> None:
        """Test reports built with one resolver share its file cache."""
        path = project_dir / "app.js"
        path.write_text(numbered_lines(5))
        resolver = TraceResolver(config)
        error = ErrorPayload(name="Error", message="", stack=f"Error\n    at f ({path}:1:1)")

        await build_report(error, resolver)
        await build_report(error, resolver)

        assert resolver.cache.read_count == 1

    async def test_missing_stack(self) -> None:
        """Test a payload without a stack is rejected."""
        with pytest.raises(ValueError, match="stack"):
            await build_report({"name": "Error", "message": "x"})

    async def test_empty_trace(self, config: RekindleConfig) -> None:
        """Test an error without frames gives an empty trace."""
        report = await build_report({"stack": "Error: boom"}, config=config)
        assert report.trace == ()
        assert "rekindle" in report.meta

    async def test_timeout(self, project_dir: Path) -> None:
        """Test slow resolution raises TimeoutError."""
        config = RekindleConfig(
            paths=PathsConfig(working_dir=project_dir),
            runtime=RuntimeConfig(resolution_timeout=0.01),
        )

        async def slow_resolve(stack: str) -> list[object]:
            await asyncio.sleep(1)
            return []

        resolver = MagicMock(spec=TraceResolver)
        resolver.resolve = AsyncMock(side_effect=slow_resolve)

        with pytest.raises(TimeoutError, match="TypeError"):
            await build_report(
                ErrorPayload(name="TypeError", message="", stack="TypeError"),
                resolver,
                config,
            )
