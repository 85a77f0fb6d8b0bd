"""Tests for frame, sourcemap and report models."""

from dataclasses import FrozenInstanceError

import pytest

from rekindle.models.frame import ANONYMOUS, Frame, RawFrame
from rekindle.models.report import ErrorPayload, MetaItem, TraceReport
from rekindle.models.sourcemap import SourceMap
from rekindle.utils.async_helpers import SourceMapDecodeError, StackParseError


class TestRawFrame:
    """Tests for the RawFrame factory."""

    def test_create_defaults_name(self) -> None:
        """Test a missing name becomes the anonymous marker."""
        frame = RawFrame.create(file="/a.js", line=1, column=1)
        assert frame.name == ANONYMOUS
        assert frame.anonymous is True

    def test_create_strips_whitespace(self) -> None:
        """Test surrounding whitespace is removed."""
        frame = RawFrame.create(name=" foo ", file=" /a.js ", line="3", column=None)
        assert frame == RawFrame(name="foo", file="/a.js", line=3, column=None)

    def test_create_requires_line_with_file(self) -> None:
        """Test a file without a line number is rejected."""
        with pytest.raises(StackParseError, match="no line number"):
            RawFrame.create(name="foo", file="/a.js")

    def test_create_without_location(self) -> None:
        """Test a frame with neither file nor line is allowed."""
        frame = RawFrame.create(name="foo")
        assert frame.file == ""
        assert frame.line is None

    @pytest.mark.parametrize("line", [0, -3, "1.5", 2.0, True])
    def test_create_rejects_bad_lines(self, line: object) -> None:
        """Test invalid line values raise instead of being coerced."""
        with pytest.raises(StackParseError):
            RawFrame.create(name="foo", file="/a.js", line=line)

    def test_frozen(self) -> None:
        """Test frames cannot be modified."""
        frame = RawFrame.create(name="foo")
        with pytest.raises(FrozenInstanceError):
            frame.name = "bar"  # type: ignore[misc]


class TestFrame:
    """Tests for the display frame."""

    def test_unresolved_keeps_location(self) -> None:
        """Test an unresolved frame has no snippet but keeps its location."""
        raw = RawFrame(name="foo", file="/a.js", line=4, column=2)
        frame = Frame.unresolved(raw)
        assert (frame.name, frame.file, frame.line, frame.column) == ("foo", "/a.js", 4, 2)
        assert frame.code == ""
        assert frame.start is None
        assert frame.end is None

    def test_current_index(self) -> None:
        """Test the frame's own line is located inside the window."""
        frame = Frame(name="f", file="x.js", line=12, column=1, code="...", start=2, end=22)
        assert frame.current_index == 9

    def test_current_index_without_window(self) -> None:
        """Test no index when no snippet was extracted."""
        assert Frame(name="f", file="x.js", line=12, column=1).current_index is None

    def test_current_index_outside_window(self) -> None:
        """Test no index when the line lies outside the window."""
        frame = Frame(name="f", file="x.js", line=40, column=1, start=0, end=20)
        assert frame.current_index is None

    def test_to_dict(self) -> None:
        """Test serialization to the transport mapping."""
        frame = Frame(name="f", file="x.js", line=3, column=1, code="a\nb", start=0, end=2)
        assert frame.to_dict() == {
            "name": "f",
            "file": "x.js",
            "line": 3,
            "column": 1,
            "code": "a\nb",
            "start": 0,
            "end": 2,
            "anonymous": False,
        }


class TestSourceMapPayload:
    """Tests for SourceMap.from_payload."""

    def test_valid_payload(self) -> None:
        """Test a complete payload decodes."""
        source_map = SourceMap.from_payload(
            {
                "version": 3,
                "file": "out.js",
                "sources": ["a.ts", "b.ts"],
                "sourcesContent": ["const a = 1;"],
                "names": ["a"],
                "mappings": "AAAA",
            }
        )
        assert source_map.sources == ("a.ts", "b.ts")
        assert source_map.sources_content == ("const a = 1;", None)
        assert source_map.content_for(0) == "const a = 1;"
        assert source_map.content_for(1) is None
        assert source_map.content_for(5) is None
        assert len(source_map.lines) == 1

    def test_null_sources_content_entries(self) -> None:
        """Test null entries in sourcesContent are kept as None."""
        source_map = SourceMap.from_payload(
            {"version": 3, "sources": ["a.ts"], "sourcesContent": [None], "mappings": ""}
        )
        assert source_map.sources_content == (None,)

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {"sources": ["a.ts"], "mappings": ""},
            {"version": 2, "sources": ["a.ts"], "mappings": ""},
            {"version": "3", "sources": ["a.ts"], "mappings": ""},
            {"version": 3, "mappings": ""},
            {"version": 3, "sources": ["a.ts"]},
            {"version": 3, "sources": "a.ts", "mappings": ""},
            {"version": 3, "sources": [1], "mappings": ""},
            {"version": 3, "sources": ["a.ts"], "mappings": "!!"},
            {"version": 3, "sources": ["a.ts"], "mappings": "", "sourceRoot": 5},
        ],
    )
    def test_invalid_payload(self, payload: object) -> None:
        """Test invalid payloads raise SourceMapDecodeError."""
        with pytest.raises(SourceMapDecodeError):
            SourceMap.from_payload(payload)

    def test_source_path_leaves_absolute_sources(self) -> None:
        """Test sourceRoot is not applied to absolute or URL sources."""
        source_map = SourceMap.from_payload(
            {
                "version": 3,
                "sources": ["/abs/a.ts", "webpack://app/b.ts", "c.ts"],
                "sourceRoot": "/root",
                "mappings": "",
            }
        )
        assert source_map.source_path(0) == "/abs/a.ts"
        assert source_map.source_path(1) == "webpack://app/b.ts"
        assert source_map.source_path(2) == "/root/c.ts"


class TestReportModels:
    """Tests for payload and report models."""

    def test_error_payload_from_mapping(self) -> None:
        """Test building a payload from a request body."""
        payload = ErrorPayload.from_mapping(
            {"name": "TypeError", "message": "boom", "stack": "TypeError: boom"}
        )
        assert payload == ErrorPayload(name="TypeError", message="boom", stack="TypeError: boom")

    def test_error_payload_defaults(self) -> None:
        """Test name and message default when absent."""
        payload = ErrorPayload.from_mapping({"stack": "Error"})
        assert payload.name == "Error"
        assert payload.message == ""

    def test_error_payload_requires_stack(self) -> None:
        """Test a payload without a stack is rejected."""
        with pytest.raises(ValueError, match="stack"):
            ErrorPayload.from_mapping({"name": "Error", "message": "x"})

    def test_trace_report_to_dict(self) -> None:
        """Test the report serializes meta and trace."""
        report = TraceReport(
            meta={"Python": MetaItem(version="3.12.1", docs="https://docs.python.org/3/")},
            trace=(Frame(name="f", file="", line=None, column=None),),
        )
        data = report.to_dict()
        assert data["meta"] == {
            "Python": {"version": "3.12.1", "docs": "https://docs.python.org/3/"}
        }
        assert data["trace"][0]["name"] == "f"
        assert data["trace"][0]["start"] is None
