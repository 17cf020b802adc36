"""Decode one colour-coded result line into a typed record.

The search process wraps the filename, the line number and every matched run in
SGR escape sequences. Filenames and content may contain ``:`` themselves, so the
escape sequences are the only reliable field delimiters.
"""

from __future__ import annotations

import re
from typing import Final

from rg_engine.parsing.models import ContextLine, Diagnostic, MatchLine, MatchSpan, ResultLine

MAX_LINE_LENGTH: Final[int] = 1000

SGR_PATTERN: Final[re.Pattern[str]] = re.compile(r"\x1b\[[0-9;]*m")
FILENAME_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?:\x1b\[0m)?\x1b\[35m(?P<filename>[^\x1b]+)(?=\x1b\[)"
)
LINE_NUMBER_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?:\x1b\[0m)?[:-](?:\x1b\[0m)?\x1b\[32m(?P<line_number>\d+)\x1b\[0m(?P<delimiter>[:-])"
)
HIGHLIGHT_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?:\x1b\[0m)?\x1b\[[0-9;]+m\x1b\[[0-9;]+m(?P<text>.*?)\x1b\[0m"
)


def strip_sgr(text: str) -> str:
    """Remove every SGR escape sequence from text."""
    return SGR_PATTERN.sub("", text)


def decode_line(line: str, max_length: int = MAX_LINE_LENGTH) -> ResultLine:
    """Decode a coded line, degrading to Diagnostic when markers are missing."""
    filename_match = FILENAME_PATTERN.match(line)
    if filename_match is None:
        return Diagnostic(text=strip_sgr(line))
    line_match = LINE_NUMBER_PATTERN.match(line, filename_match.end())
    if line_match is None:
        return Diagnostic(text=strip_sgr(line))

    filename = filename_match.group("filename")
    if filename.startswith("./"):
        filename = filename[2:]
    line_number = int(line_match.group("line_number"))
    content, spans = splice_highlights(line[line_match.end() :])

    truncated = len(content) > max_length
    if truncated:
        content = content[:max_length]
        spans = [span for span in spans if span.end <= max_length]

    if line_match.group("delimiter") == "-":
        return ContextLine(
            filename=filename,
            line_number=line_number,
            content=content,
            truncated=truncated,
        )
    return MatchLine(
        filename=filename,
        line_number=line_number,
        content=content,
        spans=tuple(spans),
        truncated=truncated,
    )


def splice_highlights(raw: str) -> tuple[str, list[MatchSpan]]:
    """Strip colour codes from raw content, returning plain text and highlight spans."""
    parts: list[str] = []
    spans: list[MatchSpan] = []
    length = 0
    cursor = 0
    for match in HIGHLIGHT_PATTERN.finditer(raw):
        plain = strip_sgr(raw[cursor : match.start()])
        parts.append(plain)
        length += len(plain)
        text = strip_sgr(match.group("text"))
        if text:
            spans.append(MatchSpan(start=length, end=length + len(text)))
            parts.append(text)
            length += len(text)
        cursor = match.end()
    parts.append(strip_sgr(raw[cursor:]))
    return "".join(parts), spans
