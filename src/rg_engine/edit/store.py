"""File store interface used to write edits back to result files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


class EditRangeError(ValueError):
    """Raised when an edit position falls outside a file's content."""


class FileStore(Protocol):
    """Host-provided access to file buffers."""

    def is_open(self, path: Path) -> bool: ...

    def open(self, path: Path) -> None: ...

    def read(self, path: Path) -> str: ...

    def apply(self, path: Path, offset: int, delete_length: int, insert_text: str) -> None: ...

    def save(self, path: Path) -> None: ...

    def close(self, path: Path) -> None: ...


@dataclass(slots=True)
class _Buffer:
    text: str
    modified: bool = False


class DiskFileStore:
    """In-memory buffers over UTF-8 files on disk, preserving line endings."""

    def __init__(self) -> None:
        self._buffers: dict[Path, _Buffer] = {}

    def open_paths(self) -> tuple[Path, ...]:
        return tuple(sorted(self._buffers))

    def is_open(self, path: Path) -> bool:
        return _normalize(path) in self._buffers

    def open(self, path: Path) -> None:
        """Load a file into a buffer; opening an open file is a no-op."""
        key = _normalize(path)
        if key in self._buffers:
            return
        with key.open("r", encoding="utf-8", newline="") as handle:
            self._buffers[key] = _Buffer(text=handle.read())

    def read(self, path: Path) -> str:
        return self._buffer(path).text

    def is_modified(self, path: Path) -> bool:
        return self._buffer(path).modified

    def apply(self, path: Path, offset: int, delete_length: int, insert_text: str) -> None:
        """Delete delete_length characters at offset, then insert insert_text there."""
        buffer = self._buffer(path)
        if offset < 0 or delete_length < 0 or offset + delete_length > len(buffer.text):
            raise EditRangeError(
                f"Edit at offset {offset} deleting {delete_length} characters is outside "
                f"{path} ({len(buffer.text)} characters)."
            )
        buffer.text = buffer.text[:offset] + insert_text + buffer.text[offset + delete_length :]
        buffer.modified = True

    def save(self, path: Path) -> None:
        """Write a modified buffer back to disk."""
        key = _normalize(path)
        buffer = self._buffer(key)
        if not buffer.modified:
            return
        with key.open("w", encoding="utf-8", newline="") as handle:
            handle.write(buffer.text)
        buffer.modified = False

    def close(self, path: Path) -> None:
        """Forget a buffer without saving it."""
        self._buffers.pop(_normalize(path), None)

    def _buffer(self, path: Path) -> _Buffer:
        key = _normalize(path)
        buffer = self._buffers.get(key)
        if buffer is None:
            raise KeyError(f"File is not open: {path}")
        return buffer


def _normalize(path: Path) -> Path:
    return Path(path).resolve()


def line_column_to_offset(text: str, line_number: int, column: int, length: int = 0) -> int:
    """Convert a 1-based line and 0-based column to a character offset.

    Lines are counted by ``\\n`` only, the way the search process counts them.
    The range ``column .. column + length`` must stay within the line, excluding
    its terminator.
    """
    if line_number < 1 or column < 0 or length < 0:
        raise EditRangeError(
            f"Invalid position line={line_number} column={column} length={length}."
        )
    offset = 0
    for _ in range(line_number - 1):
        newline = text.find("\n", offset)
        if newline == -1:
            raise EditRangeError(f"Line {line_number} is past the end of the file.")
        offset = newline + 1
    line_end = text.find("\n", offset)
    if line_end == -1:
        line_end = len(text)
    elif line_end > offset and text[line_end - 1] == "\r":
        line_end -= 1
    if offset + column + length > line_end:
        raise EditRangeError(
            f"Column {column} with length {length} is past the end of line {line_number} "
            f"({line_end - offset} characters)."
        )
    return offset + column
