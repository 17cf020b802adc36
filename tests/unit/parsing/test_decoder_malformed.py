from __future__ import annotations

from rg_engine.parsing import Diagnostic, LineClassifier, decode_line

RESET = "\x1b[0m"


def test_missing_line_number_degrades_to_diagnostic() -> None:
    line = f"{RESET}\x1b[35msrc/app.py{RESET}:no line number here"

    assert decode_line(line) == Diagnostic(text="src/app.py:no line number here")


def test_missing_filename_marker_degrades_to_diagnostic() -> None:
    line = f"{RESET}\x1b[32m12{RESET}:content"

    assert decode_line(line) == Diagnostic(text="12:content")


def test_classifier_treats_plain_text_as_diagnostic() -> None:
    records = LineClassifier().feed("rg: regex parse error:\n    (unclosed\n", end_of_stream=True)

    assert records == [
        Diagnostic(text="rg: regex parse error:"),
        Diagnostic(text="    (unclosed"),
    ]


def test_classifier_never_raises_on_garbage() -> None:
    garbage = "\x1b[\x1b[35m\x1b[0m::\x1b[32mabc\x1b[0m:\n\x1b[35m\n"

    records = LineClassifier().feed(garbage, end_of_stream=True)

    assert all(isinstance(record, Diagnostic) for record in records)
    assert len(records) == 2
