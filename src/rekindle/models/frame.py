"""Data models for stack frames."""

from dataclasses import dataclass
from typing import Any

from rekindle.utils.async_helpers import StackParseError

ANONYMOUS = "<anonymous>"


def _position(value: Any, field_name: str) -> int | None:
    """Validate a 1-based line or column value."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise StackParseError(f"{field_name} must be an integer, got {value!r}")
    if isinstance(value, str):
        if not value.isdigit():
            raise StackParseError(f"{field_name} must be numeric, got {value!r}")
        value = int(value)
    if not isinstance(value, int):
        raise StackParseError(f"{field_name} must be an integer, got {type(value).__name__}")
    if value < 1:
        raise StackParseError(f"{field_name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class RawFrame:
    """A stack frame as parsed from the runtime's output, before resolution."""

    name: str
    file: str
    line: int | None = None
    column: int | None = None
    anonymous: bool = False

    @classmethod
    def create(
        cls,
        name: Any = None,
        file: Any = None,
        line: Any = None,
        column: Any = None,
    ) -> "RawFrame":
        """Build a frame from loosely typed values, rejecting invalid ones.

        Raises:
            StackParseError: If any value has the wrong type or range
        """
        if name is not None and not isinstance(name, str):
            raise StackParseError(f"name must be a string, got {type(name).__name__}")
        if file is not None and not isinstance(file, str):
            raise StackParseError(f"file must be a string, got {type(file).__name__}")

        name = (name or "").strip()
        file = (file or "").strip()
        line_number = _position(line, "line")
        column_number = _position(column, "column")

        if file and line_number is None:
            raise StackParseError(f"Frame for {file} has no line number")

        return cls(
            name=name or ANONYMOUS,
            file=file,
            line=line_number,
            column=column_number,
            anonymous=not name,
        )


@dataclass(frozen=True)
class Frame:
    """A display-ready frame with its source snippet.

    ``start``/``end`` bound the snippet as a half-open, 0-based range of
    lines in the text it was cut from. ``line``/``column`` are 1-based.
    """

    name: str
    file: str
    line: int | None
    column: int | None
    code: str = ""
    start: int | None = None
    end: int | None = None
    anonymous: bool = False

    @classmethod
    def unresolved(cls, raw: RawFrame) -> "Frame":
        """Frame that keeps the raw location and carries no snippet."""
        return cls(
            name=raw.name,
            file=raw.file,
            line=raw.line,
            column=raw.column,
            anonymous=raw.anonymous,
        )

    @property
    def current_index(self) -> int | None:
        """0-based index of the frame's own line within ``code``."""
        if self.start is None or self.end is None or self.line is None:
            return None
        index = self.line - 1 - self.start
        if 0 <= index < self.end - self.start:
            return index
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return {
            "name": self.name,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "code": self.code,
            "start": self.start,
            "end": self.end,
            "anonymous": self.anonymous,
        }
