"""Tests for snippet extraction."""

import pytest
from conftest import numbered_lines

from rekindle.core.snippet import Snippet, extract


class TestExtract:
    """Tests for the extract function."""

    def test_window_inside_file(self) -> None:
        """Test a window well inside the file."""
        snippet = extract(numbered_lines(30), 12)
        assert (snippet.start, snippet.end) == (2, 22)
        assert snippet.code.splitlines()[0] == "line 3"
        assert snippet.code.splitlines()[-1] == "line 22"
        assert snippet.code.splitlines()[12 - 1 - snippet.start] == "line 12"

    def test_window_clamped_at_start(self) -> None:
        """Test the window never starts before the first line."""
        snippet = extract(numbered_lines(30), 3)
        assert (snippet.start, snippet.end) == (0, 13)

    def test_window_clamped_at_end(self) -> None:
        """Test the window never ends after the last line."""
        snippet = extract(numbered_lines(15), 12)
        assert (snippet.start, snippet.end) == (2, 15)
        assert snippet.code.splitlines()[-1] == "line 15"

    def test_line_past_end(self) -> None:
        """Test a target far past the end gives an empty window."""
        snippet = extract(numbered_lines(5), 40)
        assert snippet == Snippet("", 5, 5)

    def test_empty_text(self) -> None:
        """Test empty text has a single empty line."""
        assert extract("", 1) == Snippet("", 0, 1)

    def test_custom_radius(self) -> None:
        """Test a smaller radius narrows the window."""
        snippet = extract(numbered_lines(30), 12, radius=2)
        assert (snippet.start, snippet.end) == (10, 14)
        assert snippet.code == "line 11\nline 12\nline 13\nline 14"

    def test_bytes_input(self) -> None:
        """Test bytes are decoded as UTF-8."""
        assert extract(b"caf\xc3\xa9\nb", 1).code == "café\nb"

    def test_keeps_carriage_returns(self) -> None:
        """Test only newlines split lines."""
        assert extract("a\r\nb", 1).code == "a\r\nb"

    @pytest.mark.parametrize("target", [0, 1, 5, 10, 11, 20, 29, 30, 31, 100])
    def test_bounds_and_slice(self, target: int) -> None:
        """Test bounds hold and the code equals the joined slice."""
        text = numbered_lines(30)
        lines = text.split("\n")

        snippet = extract(text, target)

        assert 0 <= snippet.start <= snippet.end <= len(lines)
        assert snippet.code == "\n".join(lines[snippet.start : snippet.end])
        assert extract(text, target) == snippet
