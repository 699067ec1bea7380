"""Tests for mood/expense correlation."""

from __future__ import annotations

import pytest
from moonlight import correlate, models


def _expense(amount: float, day: str, mood: str | None, category: str = "餐饮") -> models.ExpenseRecord:
    return models.new_expense(amount, category, day, mood=mood)


EXPENSES = [
    _expense(10, "2026-10-01", "happy"),
    _expense(100, "2026-10-02", "sad"),
    _expense(30, "2026-10-03", "happy"),
    _expense(70, "2026-10-04", None),
    _expense(500, "2026-09-20", "angry"),
]


def test_mood_expense_stats_per_mood() -> None:
    stats = correlate.mood_expense_stats(EXPENSES, "2026-10")

    assert list(stats) == ["happy", "sad"]
    assert stats["happy"] == {
        "count": 2,
        "total_amount": 40.0,
        "avg_amount": 20.0,
        "avg_score": 5.0,
    }
    assert stats["sad"]["avg_amount"] == pytest.approx(100.0)
    assert stats["sad"]["avg_score"] == 1.0


def test_mood_expense_stats_without_month_counts_everything_tagged() -> None:
    stats = correlate.mood_expense_stats(EXPENSES)
    assert set(stats) == {"happy", "sad", "angry"}
    assert sum(entry["count"] for entry in stats.values()) == 4


def test_empty_inputs_give_empty_mapping() -> None:
    assert correlate.mood_expense_stats([]) == {}
    assert correlate.mood_expense_stats([_expense(12, "2026-10-01", None)]) == {}
    assert correlate.correlate_moods([], "2026-10") == {"stats": {}, "by_avg_amount": [], "by_count": []}


def test_correlate_moods_rankings() -> None:
    correlation = correlate.correlate_moods(EXPENSES, "2026-10")

    assert correlation["by_avg_amount"] == ["sad", "happy"]
    assert correlation["by_count"] == ["happy", "sad"]


def test_average_wellbeing() -> None:
    assert correlate.average_wellbeing(EXPENSES, "2026-10") == pytest.approx((5 + 1 + 5) / 3)
    assert correlate.average_wellbeing([], "2026-10") is None
