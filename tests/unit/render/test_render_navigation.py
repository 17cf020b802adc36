from __future__ import annotations

import pytest

from rg_engine.parsing import ContextLine, Diagnostic, MatchLine, MatchSpan
from rg_engine.render import RenderModel


@pytest.fixture
def model() -> RenderModel:
    rendered = RenderModel()
    rendered.extend(
        [
            MatchLine("a.py", 1, "alpha"),  # rows 0 heading, 1
            ContextLine("a.py", 2, "beta"),  # row 2
            MatchLine("a.py", 3, "gamma"),  # row 3
            MatchLine("b.py", 4, "delta", (MatchSpan(0, 5),)),  # rows 4 heading, 5
            Diagnostic("rg: warning"),  # row 6
        ]
    )
    return rendered


def test_next_and_previous_match(model: RenderModel) -> None:
    assert model.next_match_row(0) == 1
    assert model.next_match_row(1) == 3
    assert model.next_match_row(3) == 5
    assert model.next_match_row(5) is None
    assert model.previous_match_row(5) == 3
    assert model.previous_match_row(1) is None


def test_next_and_previous_file(model: RenderModel) -> None:
    assert model.next_file_row(0) == 4
    assert model.next_file_row(4) is None
    assert model.previous_file_row(6) == 4
    assert model.previous_file_row(3) == 0


def test_navigation_skips_hidden_files(model: RenderModel) -> None:
    model.toggle_file("a.py")

    assert model.next_match_row(0) == 5
    assert model.previous_match_row(5) is None
    assert model.next_file_row(0) == 4


def test_location_at_result_and_heading_rows(model: RenderModel) -> None:
    assert model.location_at(3) == ("a.py", 3)
    assert model.location_at(2) == ("a.py", 2)
    assert model.location_at(4) == ("b.py", None)
    assert model.location_at(6) is None


def test_replace_content_updates_row_and_clears_spans(model: RenderModel) -> None:
    updated = model.replace_content(5, "DELTA!")

    assert updated.text == "DELTA!"
    assert updated.spans == ()
    assert model.row(5) == updated
    assert model.row(5).line_number == 4


def test_replace_content_rejects_non_result_rows(model: RenderModel) -> None:
    with pytest.raises(ValueError, match="not a result row"):
        model.replace_content(0, "nope")
