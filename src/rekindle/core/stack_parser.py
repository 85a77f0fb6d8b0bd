"""Parser for JavaScript (V8-style) stack traces.

This module implements the StackParser class that turns the ``stack``
text of a JavaScript error into RawFrame objects. It supports:
- Named frames: ``at name (file:line:column)``
- Frames without a location: ``at name (<anonymous>)``
- Nameless frames: ``at file:line:column``
- Already structured frame records (``functionName``, ``fileName``, ...)

Lines that match none of the forms are dropped; one odd line never
discards the rest of the trace.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from rekindle.models.frame import RawFrame
from rekindle.utils.async_helpers import StackParseError
from rekindle.utils.logging import LogEventNames

log = structlog.get_logger()


class StackParser:
    """Parser for JavaScript stack traces.

    Example:
        parser = StackParser()
        for frame in parser.parse(error.stack):
            print(frame.name, frame.file, frame.line)
    """

    FRAME_PATTERN = re.compile(
        r"^\s*at (?P<name>[^(]+?) \("
        r"(?:(?P<anonymous><anonymous>)|(?P<file>.+):(?P<line>\d+):(?P<column>\d+))"
        r"\)\s*$"
    )
    LOCATION_ONLY_PATTERN = re.compile(
        r"^\s*at (?P<file>[^()]+?):(?P<line>\d+):(?P<column>\d+)\s*$"
    )

    # Field names used by structured frame records, with snake_case aliases
    RECORD_FIELDS = {
        "name": ("functionName", "function_name", "name"),
        "file": ("fileName", "file_name", "file"),
        "line": ("lineNumber", "line_number", "line"),
        "column": ("columnNumber", "column_number", "column"),
    }

    def parse(self, stack: str) -> list[RawFrame]:
        """Parse every frame line of a stack trace.

        The first line holds the error's own name and message and is
        skipped.

        Args:
            stack: Full stack text

        Returns:
            Frames in the order they appear in the trace
        """
        if not stack:
            return []

        frames: list[RawFrame] = []
        lines = stack.splitlines()[1:]

        for number, line in enumerate(lines, start=2):
            if not line.strip():
                continue
            try:
                frames.append(self.parse_line(line))
            except StackParseError as e:
                log.debug(LogEventNames.STACK_LINE_REJECTED, line_number=number, reason=str(e))

        log.debug(LogEventNames.STACK_PARSED, frames_count=len(frames), lines_count=len(lines))
        return frames

    def parse_line(self, line: str) -> RawFrame:
        """Parse a single stack line.

        Args:
            line: One line of the stack, e.g. ``"    at foo (/app/x.js:1:2)"``

        Returns:
            RawFrame for the line

        Raises:
            StackParseError: If the line is not a frame line
        """
        match = self.FRAME_PATTERN.match(line)
        if match:
            if match.group("anonymous"):
                return RawFrame.create(name=match.group("name"))
            return RawFrame.create(
                name=match.group("name"),
                file=match.group("file"),
                line=match.group("line"),
                column=match.group("column"),
            )

        match = self.LOCATION_ONLY_PATTERN.match(line)
        if match:
            return RawFrame.create(
                file=match.group("file"),
                line=match.group("line"),
                column=match.group("column"),
            )

        raise StackParseError(f"Not a stack frame line: {line.strip()!r}")

    def parse_records(self, records: Iterable[Any]) -> list[RawFrame]:
        """Build frames from structured records instead of text.

        Some runtimes hand over frames already split into fields. Records
        failing validation are dropped like unparseable text lines.

        Args:
            records: Mappings with function/file/line/column fields

        Returns:
            Frames in record order
        """
        frames: list[RawFrame] = []

        for index, record in enumerate(records):
            try:
                frames.append(self.parse_record(record))
            except StackParseError as e:
                log.debug(LogEventNames.FRAME_RECORD_REJECTED, index=index, reason=str(e))

        return frames

    def parse_record(self, record: Any) -> RawFrame:
        """Build one frame from a structured record.

        Raises:
            StackParseError: If the record is not a mapping or has invalid fields
        """
        if not isinstance(record, Mapping):
            raise StackParseError(f"Frame record must be a mapping, got {type(record).__name__}")

        values: dict[str, Any] = {}
        for field_name, keys in self.RECORD_FIELDS.items():
            values[field_name] = next((record[key] for key in keys if key in record), None)

        return RawFrame.create(**values)
