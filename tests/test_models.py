"""Tests for record constructors and the mood table."""

from __future__ import annotations

from datetime import date, datetime

import pytest
from moonlight import models, moods
from moonlight.errors import ValidationError


def test_new_expense_normalises_input() -> None:
    record = models.new_expense(
        "12.50",
        " 餐饮 ",
        date(2026, 10, 19),
        note=" 午餐 ",
        mood="calm",
        mood_note="还不错",
        now=datetime(2026, 10, 19, 12, 30),
    )

    assert record["amount"] == 12.5
    assert record["category"] == "餐饮"
    assert record["date"] == "2026-10-19"
    assert record["note"] == "午餐"
    assert record["mood"] == "calm"
    assert record["mood_note"] == "还不错"
    assert record["created_at"] == "2026-10-19T12:30:00"
    assert record["images"] == []


def test_mood_note_dropped_without_mood() -> None:
    record = models.new_expense(5, "交通", "2026-10-19", mood="", mood_note="ignored")
    assert record["mood"] is None
    assert record["mood_note"] == ""


@pytest.mark.parametrize(
    "kwargs",
    [
        {"amount": None, "category": "餐饮", "expense_date": "2026-10-19"},
        {"amount": -3, "category": "餐饮", "expense_date": "2026-10-19"},
        {"amount": float("nan"), "category": "餐饮", "expense_date": "2026-10-19"},
        {"amount": True, "category": "餐饮", "expense_date": "2026-10-19"},
        {"amount": 3, "category": "", "expense_date": "2026-10-19"},
        {"amount": 3, "category": "餐饮", "expense_date": ""},
        {"amount": 3, "category": "餐饮", "expense_date": "19/10/2026"},
    ],
)
def test_new_expense_rejects_invalid_input(kwargs) -> None:
    with pytest.raises(ValidationError):
        models.new_expense(**kwargs)


def test_unknown_mood_rejected() -> None:
    with pytest.raises(ValidationError):
        models.new_expense(3, "餐饮", "2026-10-19", mood="bored")


def test_ids_are_unique() -> None:
    ids = {models.new_expense(1, "餐饮", "2026-10-19")["id"] for _ in range(500)}
    assert len(ids) == 500


def test_new_budget_validation() -> None:
    budget = models.new_budget("餐饮", "800")
    assert budget["amount"] == 800.0
    with pytest.raises(ValidationError):
        models.new_budget("餐饮", 0)


def test_remove_pending_image() -> None:
    first = models.new_image("a.png", "data:image/png;base64,AA")
    second = models.new_image("b.png", "data:image/png;base64,BB")
    assert models.remove_image([first, second], first["id"]) == [second]
    with pytest.raises(ValidationError):
        models.new_image("empty.png", "")


def test_mood_table() -> None:
    assert [info.score for info in moods.MOODS.values()] == [5, 4, 3, 2, 1, 0]
    assert moods.mood_name("worried") == "担心"
    assert moods.mood_glyph("angry") == "😠"
    assert moods.mood_score("unknown") == 3
    assert moods.mood_name(None) == "未知"


@pytest.mark.parametrize(("score", "band"), [(4.5, "positive"), (4.0, "positive"), (2.0, "neutral"), (1.9, "negative")])
def test_wellbeing_band(score: float, band: str) -> None:
    assert moods.wellbeing_band(score) == band


def test_migrate_legacy_moods_reports_unapplied_entries() -> None:
    expenses = [
        models.new_expense(10, "餐饮", "2026-10-01"),
        models.new_expense(20, "购物", "2026-10-01", mood="angry"),
    ]
    legacy: list[models.MoodEntry] = [
        {"id": "a", "mood": "sad", "note": "", "date": "2026-10-01", "created_at": ""},
        {"id": "b", "mood": "calm", "note": "散步", "date": "2026-10-01", "created_at": ""},
        {"id": "c", "mood": "happy", "note": "", "date": "2026-10-07", "created_at": ""},
    ]

    migrated, changed, unapplied = models.migrate_legacy_moods(expenses, legacy)

    assert changed == 1
    assert migrated[0]["mood"] == "calm"
    assert migrated[0]["mood_note"] == "散步"
    assert migrated[1]["mood"] == "angry"
    assert [entry["id"] for entry in unapplied] == ["a", "c"]


def test_normalise_expense_revalidates() -> None:
    with pytest.raises(ValidationError):
        models.normalise_expense({"amount": 10, "category": "餐饮", "date": "2026-13-45"})
    with pytest.raises(ValidationError):
        models.normalise_expense({"amount": 10, "category": "餐饮", "date": "2026-10-01", "images": [1]})

    record = models.normalise_expense({"amount": "7", "category": "交通", "date": "2026-10-02", "moodNote": "x"})
    assert record["amount"] == 7.0
    assert record["mood_note"] == "x"
    assert record["images"] == []
