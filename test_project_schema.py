from __future__ import annotations

from project_schema import ProjectDraft, coerce_number


def test_coerce_number_takes_first_numeric_token():
    assert coerce_number("30 sec") == 30
    assert coerce_number("$1,500 per year") == 1500
    assert coerce_number("12.5%") == 12.5
    assert coerce_number(" 7 ") == 7
    assert coerce_number("-3.5 pts") == -3.5
    assert coerce_number(".5") == 0.5
    assert coerce_number("1e3") == 1000
    assert coerce_number("approx. 40 seconds") == 40


def test_coerce_number_unreadable_values():
    for value in (None, True, "", "n/a", "abc", "-", ".", "see notes", float("nan"), "1e999"):
        assert coerce_number(value) == 0.0, repr(value)


def test_draft_from_row_with_unit_suffixes():
    draft = ProjectDraft.from_row(
        {"name": "Widget", "team": "Sales", "ahtImpact": "30 sec", "costSaving": "$1,500 per year"}
    )
    assert draft.ahtImpact == 30
    assert draft.costSaving == 1500
