"""Typed records produced from search process output."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class MatchSpan:
    """Half-open character range of highlighted text within a line's content."""

    start: int
    end: int


@dataclass(slots=True, frozen=True)
class MatchLine:
    """One matching line reported by the search process."""

    filename: str
    line_number: int
    content: str
    spans: tuple[MatchSpan, ...] = ()
    truncated: bool = False


@dataclass(slots=True, frozen=True)
class ContextLine:
    """One context line surrounding a match."""

    filename: str
    line_number: int
    content: str
    truncated: bool = False


@dataclass(slots=True, frozen=True)
class Separator:
    """Divider between non-adjacent context blocks."""


@dataclass(slots=True, frozen=True)
class Diagnostic:
    """Non-result text emitted by the process (warnings, errors)."""

    text: str


ResultLine = MatchLine | ContextLine | Separator | Diagnostic
