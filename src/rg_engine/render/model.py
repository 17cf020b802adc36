"""File-grouped render model built from result records in arrival order."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Final

from rg_engine.parsing.models import (
    ContextLine,
    Diagnostic,
    MatchLine,
    MatchSpan,
    ResultLine,
    Separator,
)

LINE_NUMBER_WIDTH: Final[int] = 4
MIN_SEPARATOR_WIDTH: Final[int] = 2
TRUNCATION_MARKER: Final[str] = " [...]"


class RowKind(StrEnum):
    """Kinds of rows a view draws."""

    HEADING = "heading"
    MATCH = "match"
    CONTEXT = "context"
    SEPARATOR = "separator"
    DIAGNOSTIC = "diagnostic"


@dataclass(slots=True, frozen=True)
class RenderedRow:
    """One drawable row of the result view."""

    kind: RowKind
    text: str
    filename: str | None = None
    line_number: int | None = None
    gutter: str = ""
    spans: tuple[MatchSpan, ...] = ()
    truncated: bool = False


def format_gutter(line_number: int) -> str:
    """Return the fixed-width line-number gutter for a result row."""
    return f"{line_number:>{LINE_NUMBER_WIDTH}} "


def render_text(row: RenderedRow) -> str:
    """Compose the full display text of a row."""
    text = row.gutter + row.text
    if row.truncated:
        text += TRUNCATION_MARKER
    return text


class RenderModel:
    """Groups result records under file headings and tracks navigation state."""

    def __init__(self) -> None:
        self._rows: list[RenderedRow] = []
        self._cursor: str | None = None
        self._match_count = 0
        self._file_index: dict[str, int] = {}
        self._hidden: set[str] = set()
        self._last_gutter_width = LINE_NUMBER_WIDTH + 1

    def clear(self) -> None:
        """Drop every row and reset counters, cursor and visibility."""
        self._rows.clear()
        self._cursor = None
        self._match_count = 0
        self._file_index.clear()
        self._hidden.clear()
        self._last_gutter_width = LINE_NUMBER_WIDTH + 1

    @property
    def rows(self) -> tuple[RenderedRow, ...]:
        return tuple(self._rows)

    @property
    def match_count(self) -> int:
        return self._match_count

    @property
    def current_file(self) -> str | None:
        return self._cursor

    @property
    def file_index(self) -> dict[str, int]:
        """Return filename to first heading row, in first-seen order."""
        return dict(self._file_index)

    def __len__(self) -> int:
        return len(self._rows)

    def row(self, index: int) -> RenderedRow:
        """Return the row at index, raising IndexError when out of range."""
        if index < 0:
            raise IndexError(f"Row index must be >= 0, got {index}.")
        return self._rows[index]

    def extend(self, records: list[ResultLine]) -> None:
        """Append records in order."""
        for record in records:
            self.append(record)

    def append(self, record: ResultLine) -> None:
        """Append one record, emitting a file heading when the file changes."""
        if isinstance(record, Diagnostic):
            self._rows.append(RenderedRow(kind=RowKind.DIAGNOSTIC, text=record.text))
            self._cursor = None
            return
        if isinstance(record, Separator):
            width = max(MIN_SEPARATOR_WIDTH, self._last_gutter_width - 1)
            self._rows.append(RenderedRow(kind=RowKind.SEPARATOR, text="-" * width))
            return

        if record.filename != self._cursor:
            self._file_index.setdefault(record.filename, len(self._rows))
            self._rows.append(
                RenderedRow(kind=RowKind.HEADING, text=record.filename, filename=record.filename)
            )
            self._cursor = record.filename

        gutter = format_gutter(record.line_number)
        self._last_gutter_width = len(gutter)
        if isinstance(record, MatchLine):
            self._match_count += 1
            self._rows.append(
                RenderedRow(
                    kind=RowKind.MATCH,
                    text=record.content,
                    filename=record.filename,
                    line_number=record.line_number,
                    gutter=gutter,
                    spans=record.spans,
                    truncated=record.truncated,
                )
            )
            return
        if isinstance(record, ContextLine):
            self._rows.append(
                RenderedRow(
                    kind=RowKind.CONTEXT,
                    text=record.content,
                    filename=record.filename,
                    line_number=record.line_number,
                    gutter=gutter,
                    truncated=record.truncated,
                )
            )

    def is_hidden(self, filename: str) -> bool:
        return filename in self._hidden

    def toggle_file(self, filename: str) -> bool:
        """Flip visibility of one file's results; return True when now hidden."""
        if filename not in self._file_index:
            raise KeyError(f"No results for file: {filename}")
        if filename in self._hidden:
            self._hidden.discard(filename)
            return False
        self._hidden.add(filename)
        return True

    def toggle_all(self) -> bool:
        """Show every file if any is hidden, else hide all; return True when now hidden."""
        if self._hidden:
            self._hidden.clear()
            return False
        self._hidden.update(self._file_index)
        return bool(self._hidden)

    def is_row_visible(self, index: int) -> bool:
        row = self.row(index)
        if row.kind is RowKind.HEADING or row.filename is None:
            return True
        return row.filename not in self._hidden

    def visible_rows(self) -> list[RenderedRow]:
        """Return rows a view should draw, skipping hidden file blocks."""
        return [row for index, row in enumerate(self._rows) if self.is_row_visible(index)]

    def location_at(self, index: int) -> tuple[str, int | None] | None:
        """Return (filename, line_number) for visiting a row, or None."""
        row = self.row(index)
        if row.filename is None:
            return None
        return row.filename, row.line_number

    def next_match_row(self, index: int) -> int | None:
        return self._scan(index, step=1, kind=RowKind.MATCH)

    def previous_match_row(self, index: int) -> int | None:
        return self._scan(index, step=-1, kind=RowKind.MATCH)

    def next_file_row(self, index: int) -> int | None:
        return self._scan(index, step=1, kind=RowKind.HEADING)

    def previous_file_row(self, index: int) -> int | None:
        return self._scan(index, step=-1, kind=RowKind.HEADING)

    def replace_content(self, index: int, content: str) -> RenderedRow:
        """Replace a result row's content after an in-place edit."""
        row = self.row(index)
        if row.line_number is None:
            raise ValueError(f"Row {index} is not a result row.")
        updated = replace(row, text=content, spans=(), truncated=False)
        self._rows[index] = updated
        return updated

    def _scan(self, index: int, step: int, kind: RowKind) -> int | None:
        position = index + step
        while 0 <= position < len(self._rows):
            if self._rows[position].kind is kind and self.is_row_visible(position):
                return position
            position += step
        return None
