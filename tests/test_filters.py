"""Tests for history search and filtering."""

from __future__ import annotations

from datetime import date

import pytest
from moonlight import filters, models
from moonlight.errors import ValidationError

TODAY = date(2026, 10, 19)


def _expense(amount: float, category: str, day: str, note: str = "") -> models.ExpenseRecord:
    return models.new_expense(amount, category, day, note=note)


EXPENSES = [
    _expense(18, "餐饮", "2026-10-19", "Coffee run"),
    _expense(6, "交通", "2026-10-12", "地铁"),
    _expense(45, "餐饮", "2026-10-11", "晚饭"),
    _expense(120, "购物", "2026-09-30", "网购衣服"),
]


def test_search_is_case_insensitive_on_note() -> None:
    result = filters.filter_expenses(EXPENSES, search_term="coffee", today=TODAY)
    assert result == [EXPENSES[0]]


def test_search_matches_category() -> None:
    result = filters.filter_expenses(EXPENSES, search_term="餐饮", today=TODAY)
    assert [e["note"] for e in result] == ["Coffee run", "晚饭"]


def test_no_filters_returns_everything_newest_first() -> None:
    result = filters.filter_expenses(EXPENSES, today=TODAY)
    assert [e["date"] for e in result] == ["2026-10-19", "2026-10-12", "2026-10-11", "2026-09-30"]


def test_category_filter_is_exact() -> None:
    assert filters.filter_expenses(EXPENSES, category="购物", today=TODAY) == [EXPENSES[3]]
    assert filters.filter_expenses(EXPENSES, category="购", today=TODAY) == []


@pytest.mark.parametrize(
    ("window", "expected"),
    [
        (filters.DateWindow.TODAY, ["2026-10-19"]),
        (filters.DateWindow.WEEK, ["2026-10-19", "2026-10-12"]),
        (filters.DateWindow.MONTH, ["2026-10-19", "2026-10-12", "2026-10-11"]),
        ("month", ["2026-10-19", "2026-10-12", "2026-10-11"]),
        (None, ["2026-10-19", "2026-10-12", "2026-10-11", "2026-09-30"]),
    ],
)
def test_date_windows(window, expected: list[str]) -> None:
    result = filters.filter_expenses(EXPENSES, date_window=window, today=TODAY)
    assert [e["date"] for e in result] == expected


def test_filters_combine_and_can_match_nothing() -> None:
    result = filters.filter_expenses(
        EXPENSES,
        search_term="晚饭",
        category="餐饮",
        date_window=filters.DateWindow.WEEK,
        today=TODAY,
    )
    assert result == []


def test_equal_dates_keep_collection_order() -> None:
    first = _expense(1, "餐饮", "2026-10-05", "早餐")
    second = _expense(2, "餐饮", "2026-10-05", "午餐")
    third = _expense(3, "餐饮", "2026-10-06", "晚餐")
    result = filters.filter_expenses([first, second, third], today=TODAY)
    assert result == [third, first, second]


def test_unknown_window_is_rejected() -> None:
    with pytest.raises(ValidationError):
        filters.filter_expenses(EXPENSES, date_window="fortnight", today=TODAY)
