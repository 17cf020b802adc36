from __future__ import annotations

from rg_engine.parsing import (
    ContextLine,
    Diagnostic,
    LineClassifier,
    MatchLine,
    MatchSpan,
    Separator,
)

RESET = "\x1b[0m"


def _coded(filename: str, line_number: int, content: str, delimiter: str = ":") -> str:
    coded = content.replace("[[", RESET + "\x1b[1m\x1b[31m").replace("]]", RESET)
    return (
        f"{RESET}\x1b[35m{filename}{RESET}{delimiter}"
        f"{RESET}\x1b[32m{line_number}{RESET}{delimiter}{coded}"
    )


STREAM = "\n".join(
    [
        _coded("./src/app.py", 3, "import [[os]]"),
        _coded("./src/app.py", 4, "print(os.getcwd())", delimiter="-"),
        "--",
        _coded("./src/app.py", 10, "[[os]].[[os]]"),
        "",
        "rg: ./locked: Permission denied (os error 13)",
        _coded("./README.md", 1, "Uses [[os]] heavily"),
    ]
)


def _feed_in_chunks(text: str, size: int) -> list[object]:
    classifier = LineClassifier()
    chunks = [text[index : index + size] for index in range(0, len(text), size)]
    records: list[object] = []
    for position, chunk in enumerate(chunks):
        records.extend(classifier.feed(chunk, end_of_stream=position == len(chunks) - 1))
    return records


def test_whole_stream_yields_expected_records() -> None:
    records = LineClassifier().feed(STREAM, end_of_stream=True)

    assert records == [
        MatchLine("src/app.py", 3, "import os", (MatchSpan(7, 9),)),
        ContextLine("src/app.py", 4, "print(os.getcwd())"),
        Separator(),
        MatchLine("src/app.py", 10, "os.os", (MatchSpan(0, 2), MatchSpan(3, 5))),
        Diagnostic("rg: ./locked: Permission denied (os error 13)"),
        MatchLine("README.md", 1, "Uses os heavily", (MatchSpan(5, 7),)),
    ]


def test_chunk_boundaries_do_not_change_records() -> None:
    expected = LineClassifier().feed(STREAM, end_of_stream=True)

    for size in (1, 2, 3, 5, 7, 11, 64, len(STREAM)):
        assert _feed_in_chunks(STREAM, size) == expected, size


def test_unterminated_tail_is_held_until_end_of_stream() -> None:
    classifier = LineClassifier()

    first = classifier.feed(_coded("a.txt", 1, "x[[y]]"))

    assert first == []
    assert classifier.pending != ""
    final = classifier.feed("", end_of_stream=True)
    assert final == [MatchLine("a.txt", 1, "xy", (MatchSpan(1, 2),))]
    assert classifier.pending == ""


def test_terminated_line_is_classified_without_end_of_stream() -> None:
    classifier = LineClassifier()

    records = classifier.feed(_coded("a.txt", 2, "[[hit]]") + "\n")

    assert records == [MatchLine("a.txt", 2, "hit", (MatchSpan(0, 3),))]
    assert classifier.pending == ""


def test_blank_lines_and_carriage_returns_are_dropped() -> None:
    classifier = LineClassifier()

    records = classifier.feed("\n\r\n   \n--\r\n", end_of_stream=True)

    assert records == [Separator()]


def test_warning_prefix_is_diagnostic_even_with_colour_codes() -> None:
    warning = f"WARNING: stopped searching binary file {RESET}\x1b[35mdata.bin{RESET} after match"

    records = LineClassifier().feed(warning + "\n")

    assert records == [Diagnostic(warning)]


def test_reset_discards_pending_fragment() -> None:
    classifier = LineClassifier()
    classifier.feed("partial line without newline")

    classifier.reset()

    assert classifier.feed("", end_of_stream=True) == []
