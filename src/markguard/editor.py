"""
Host editor adapters.

The pipeline reads the text to transform from an editor and writes the result
back through it. Reads and writes are synchronous and happen once per operation,
around the whole pipeline.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

__all__ = ["Editor", "FileEditor", "MemoryEditor"]

logger = logging.getLogger(__name__)


class Editor(ABC):
    """The host editor contract."""

    @abstractmethod
    def get_full_text(self) -> str:
        """Return the whole document."""
        raise NotImplementedError

    @abstractmethod
    def get_selection(self) -> str:
        """Return the selected text, or an empty string when nothing is selected."""
        raise NotImplementedError

    @abstractmethod
    def set_full_text(self, text: str) -> None:
        """Replace the whole document."""
        raise NotImplementedError

    @abstractmethod
    def replace_selection(self, text: str) -> None:
        """Replace the selected text."""
        raise NotImplementedError


class MemoryEditor(Editor):
    """An in-memory document with an optional character-offset selection."""

    def __init__(self, text: str, selection: tuple[int, int] | None = None) -> None:
        """
        Initialize the editor.

        Args:
            text: The document.
            selection: Optional ``(start, end)`` character offsets of the selection.

        """
        if selection is not None:
            start, end = selection
            if not 0 <= start <= end <= len(text):
                msg = f"Selection {selection} is outside the document (length {len(text)})."
                raise ValueError(msg)
        self.text = text
        self.selection = selection
        self.writes = 0

    def get_full_text(self) -> str:
        return self.text

    def get_selection(self) -> str:
        if self.selection is None:
            return ""
        start, end = self.selection
        return self.text[start:end]

    def set_full_text(self, text: str) -> None:
        self.text = text
        self.selection = None
        self.writes += 1

    def replace_selection(self, text: str) -> None:
        if self.selection is None:
            msg = "There is no selection to replace."
            raise ValueError(msg)
        start, end = self.selection
        self.text = self.text[:start] + text + self.text[end:]
        self.selection = (start, start + len(text))
        self.writes += 1


def _detect_newline(file_path: Path) -> str | None:
    """Detect the newline character of a file."""
    try:
        with file_path.open(encoding="utf-8", newline="") as f:
            f.readline()
            if isinstance(f.newlines, tuple):
                return f.newlines[0]
            return f.newlines
    except (OSError, IndexError):
        return None


class FileEditor(Editor):
    """
    A Markdown file on disk, with an optional line-range selection.

    The file is read once with universal newlines and written back with the
    newline style it had. The selection is a 1-based, inclusive line range.
    """

    def __init__(self, path: Path, line_range: tuple[int, int] | None = None, *, output_path: Path | None = None) -> None:
        """
        Initialize the editor.

        Args:
            path: The file to read.
            line_range: Optional 1-based inclusive ``(first, last)`` lines forming the selection.
            output_path: Where to write the result. Defaults to `path` (in place).

        """
        self.path = Path(path)
        self.output_path = Path(output_path) if output_path else self.path
        self.newline = _detect_newline(self.path)
        self._text = self.path.read_text("utf-8")
        self.line_range = line_range
        if line_range is not None:
            first, last = line_range
            if first < 1 or last < first:
                msg = f"Invalid line range {first}:{last}."
                raise ValueError(msg)

    def _split(self) -> tuple[list[str], int, int]:
        lines = self._text.split("\n")
        if self.line_range is None:
            return lines, 0, 0
        first, last = self.line_range
        return lines, min(first - 1, len(lines)), min(last, len(lines))

    def get_full_text(self) -> str:
        return self._text

    def get_selection(self) -> str:
        if self.line_range is None:
            return ""
        lines, start, end = self._split()
        return "\n".join(lines[start:end])

    def set_full_text(self, text: str) -> None:
        self._text = text
        self._write()

    def replace_selection(self, text: str) -> None:
        if self.line_range is None:
            msg = "There is no selection to replace."
            raise ValueError(msg)
        lines, start, end = self._split()
        self._text = "\n".join([*lines[:start], text, *lines[end:]])
        self._write()

    def _write(self) -> None:
        if self.output_path.parent.is_file():
            msg = f"Output directory {self.output_path.parent} exists as a file."
            raise OSError(msg)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_text(self._text, "utf-8", newline=self.newline)
        logger.info("Successfully wrote modified content to %s", self.output_path)
