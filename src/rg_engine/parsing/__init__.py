"""Output stream parsing: line classification and highlight decoding."""

from .classifier import SEPARATOR_TOKEN, WARNING_PREFIX, LineClassifier
from .decoder import MAX_LINE_LENGTH, decode_line, splice_highlights, strip_sgr
from .models import ContextLine, Diagnostic, MatchLine, MatchSpan, ResultLine, Separator

__all__ = [
    "ContextLine",
    "Diagnostic",
    "LineClassifier",
    "MAX_LINE_LENGTH",
    "MatchLine",
    "MatchSpan",
    "ResultLine",
    "SEPARATOR_TOKEN",
    "Separator",
    "WARNING_PREFIX",
    "decode_line",
    "splice_highlights",
    "strip_sgr",
]
