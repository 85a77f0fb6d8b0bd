"""Base64 VLQ codec for sourcemap mappings and position lookup.

The mappings table is a ``;``-separated list of generated lines, each a
``,``-separated list of segments. A segment holds 1, 4 or 5 VLQ values:
generated column, source index, original line, original column and an
optional name index. Every value is a delta. The generated column delta
restarts at each line; the other four carry across the whole table.

All positions handled here are 0-based.
"""

from __future__ import annotations

import bisect
from collections.abc import Sequence
from operator import attrgetter
from typing import TYPE_CHECKING

from rekindle.models.sourcemap import MappingSegment, ResolvedEntry
from rekindle.utils.async_helpers import SourceMapDecodeError

if TYPE_CHECKING:
    from rekindle.models.sourcemap import SourceMap

BASE64_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_CHAR_VALUES = {char: index for index, char in enumerate(BASE64_ALPHABET)}

VLQ_SHIFT = 5
VLQ_CONTINUATION = 1 << VLQ_SHIFT
VLQ_MASK = VLQ_CONTINUATION - 1

_generated_column = attrgetter("generated_column")


def decode_vlq(text: str) -> list[int]:
    """Decode a run of Base64 VLQ digits into signed integers.

    Raises:
        SourceMapDecodeError: On a character outside the alphabet or a
            value cut off mid-digit
    """
    values: list[int] = []
    value = 0
    shift = 0

    for char in text:
        digit = _CHAR_VALUES.get(char)
        if digit is None:
            raise SourceMapDecodeError(f"Invalid VLQ character {char!r} in {text!r}")

        value += (digit & VLQ_MASK) << shift
        if digit & VLQ_CONTINUATION:
            shift += VLQ_SHIFT
            continue

        negative = value & 1
        value >>= 1
        values.append(-value if negative else value)
        value = 0
        shift = 0

    if shift:
        raise SourceMapDecodeError(f"Truncated VLQ value in {text!r}")

    return values


def encode_vlq(value: int) -> str:
    """Encode one signed integer as Base64 VLQ."""
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    chars: list[str] = []
    while True:
        digit = vlq & VLQ_MASK
        vlq >>= VLQ_SHIFT
        if vlq:
            digit |= VLQ_CONTINUATION
        chars.append(BASE64_ALPHABET[digit])
        if not vlq:
            return "".join(chars)


def decode_mappings(
    mappings: str,
    source_count: int | None = None,
    name_count: int | None = None,
) -> tuple[tuple[MappingSegment, ...], ...]:
    """Decode a mappings table into absolute segments, one tuple per line.

    Segments that only carry a generated column advance the column but
    are not kept, since they map to no original position.

    Args:
        mappings: Encoded mappings string
        source_count: Number of sources, to bounds-check source indexes
        name_count: Number of names, to bounds-check name indexes

    Returns:
        Tuple of lines; each line's segments sorted by generated column

    Raises:
        SourceMapDecodeError: If the table is malformed
    """
    lines: list[tuple[MappingSegment, ...]] = []
    source_index = 0
    original_line = 0
    original_column = 0
    name_index = 0

    for line_number, line_text in enumerate(mappings.split(";")):
        generated_column = 0
        segments: list[MappingSegment] = []

        for segment_text in line_text.split(","):
            if not segment_text:
                continue

            fields = decode_vlq(segment_text)
            if len(fields) not in (1, 4, 5):
                raise SourceMapDecodeError(
                    f"Segment {segment_text!r} on line {line_number} has {len(fields)} fields"
                )

            generated_column += fields[0]
            if generated_column < 0:
                raise SourceMapDecodeError(f"Negative generated column on line {line_number}")
            if len(fields) == 1:
                continue

            source_index += fields[1]
            original_line += fields[2]
            original_column += fields[3]
            if min(source_index, original_line, original_column) < 0:
                raise SourceMapDecodeError(f"Negative original position on line {line_number}")
            if source_count is not None and source_index >= source_count:
                raise SourceMapDecodeError(
                    f"Source index {source_index} out of range on line {line_number}"
                )

            segment_name: int | None = None
            if len(fields) == 5:
                name_index += fields[4]
                if name_index < 0 or (name_count is not None and name_index >= name_count):
                    raise SourceMapDecodeError(
                        f"Name index {name_index} out of range on line {line_number}"
                    )
                segment_name = name_index

            segments.append(
                MappingSegment(
                    generated_column=generated_column,
                    source_index=source_index,
                    original_line=original_line,
                    original_column=original_column,
                    name_index=segment_name,
                )
            )

        segments.sort(key=_generated_column)
        lines.append(tuple(segments))

    return tuple(lines)


def encode_mappings(lines: Sequence[Sequence[Sequence[int]]]) -> str:
    """Encode absolute segments into a mappings table.

    Each segment is ``(generated_column, source_index, original_line,
    original_column[, name_index])`` in absolute 0-based terms; a
    ``MappingSegment`` also works once converted with ``astuple``.
    """
    previous = [0, 0, 0, 0]
    encoded_lines: list[str] = []

    for segments in lines:
        generated_column = 0
        encoded: list[str] = []
        for segment in segments:
            values = [v for v in segment if v is not None]
            if len(values) not in (1, 4, 5):
                raise ValueError(f"Segment must have 1, 4 or 5 fields, got {len(values)}")

            parts = [encode_vlq(values[0] - generated_column)]
            generated_column = values[0]
            for position, value in enumerate(values[1:]):
                parts.append(encode_vlq(value - previous[position]))
                previous[position] = value
            encoded.append("".join(parts))
        encoded_lines.append(",".join(encoded))

    return ";".join(encoded_lines)


def find_entry(
    source_map: SourceMap,
    generated_line: int,
    generated_column: int,
) -> ResolvedEntry | None:
    """Map a generated position to its original position.

    Picks the last segment on ``generated_line`` starting at or before
    ``generated_column``. When the line has no segments, or the column
    precedes all of them, the first segment of the nearest preceding
    line with segments is used instead.

    Args:
        source_map: Decoded sourcemap
        generated_line: 0-based line in the generated file
        generated_column: 0-based column in the generated file

    Returns:
        ResolvedEntry, or None if no segment precedes the position
    """
    if generated_line < 0 or generated_column < 0:
        return None

    lines = source_map.lines
    segment: MappingSegment | None = None

    if generated_line < len(lines):
        segments = lines[generated_line]
        index = bisect.bisect_right(segments, generated_column, key=_generated_column)
        if index:
            segment = segments[index - 1]

    if segment is None:
        for previous_line in range(min(generated_line, len(lines)) - 1, -1, -1):
            if lines[previous_line]:
                segment = lines[previous_line][0]
                break

    if segment is None:
        return None

    name = None
    if segment.name_index is not None and segment.name_index < len(source_map.names):
        name = source_map.names[segment.name_index]

    return ResolvedEntry(
        original_source=source_map.source_path(segment.source_index),
        original_line=segment.original_line,
        original_column=segment.original_column,
        source_index=segment.source_index,
        name=name,
    )
