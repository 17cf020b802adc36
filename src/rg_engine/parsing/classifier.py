"""Incremental line splitting and classification of chunked process output."""

from __future__ import annotations

from typing import Final

from rg_engine.parsing.decoder import MAX_LINE_LENGTH, decode_line
from rg_engine.parsing.models import Diagnostic, ResultLine, Separator

SEPARATOR_TOKEN: Final[str] = "--"
WARNING_PREFIX: Final[str] = "WARNING:"
ESCAPE_MARKER: Final[str] = "\x1b["


class LineClassifier:
    """Turns arbitrarily chunked output into ordered result records.

    The unterminated tail of each chunk is held back until the next call, so the
    records produced never depend on where chunk boundaries fall.
    """

    def __init__(self, max_line_length: int = MAX_LINE_LENGTH) -> None:
        self._pending = ""
        self._max_line_length = max_line_length

    @property
    def pending(self) -> str:
        """Return the held-back partial line."""
        return self._pending

    def reset(self) -> None:
        """Discard any held-back partial line."""
        self._pending = ""

    def feed(self, chunk: str, end_of_stream: bool = False) -> list[ResultLine]:
        """Classify every complete line available after appending chunk."""
        lines = (self._pending + chunk).split("\n")
        if end_of_stream:
            self._pending = ""
        else:
            self._pending = lines.pop()
        records: list[ResultLine] = []
        for line in lines:
            record = self.classify(line.removesuffix("\r"))
            if record is not None:
                records.append(record)
        return records

    def classify(self, line: str) -> ResultLine | None:
        """Classify one complete line; blank lines yield None."""
        if not line.strip():
            return None
        if line == SEPARATOR_TOKEN:
            return Separator()
        if ESCAPE_MARKER not in line or line.startswith(WARNING_PREFIX):
            return Diagnostic(text=line)
        return decode_line(line, max_length=self._max_line_length)
