"""Tests for the record store and its key-value backends."""

from __future__ import annotations

import json
from datetime import date

import pytest
from moonlight import filters, models, store
from moonlight.errors import PersistenceError, ValidationError


class FailingBackend(store.MemoryKeyValueStore):
    def set(self, key: str, text: str) -> None:
        raise PersistenceError(f"disk full while writing {key}")


def _filled(backend: store.KeyValueStore) -> store.RecordStore:
    records = store.RecordStore(backend).load()
    image = models.new_image("receipt.png", "data:image/png;base64,AAAA")
    records.add_expense(32.5, "餐饮", "2026-10-18", note="午餐", images=[image], mood="happy", mood_note="发工资了")
    records.add_expense("12", "交通", "2026-10-19")
    records.upsert_budget("餐饮", 1500)
    return records


def test_absent_keys_load_as_empty() -> None:
    records = store.RecordStore(store.MemoryKeyValueStore()).load()
    assert records.expenses == []
    assert records.budgets == []


def test_round_trip_in_memory() -> None:
    backend = store.MemoryKeyValueStore()
    original = _filled(backend)

    reloaded = store.RecordStore(backend).load()
    assert reloaded.expenses == original.expenses
    assert reloaded.budgets == original.budgets
    assert reloaded.expenses[0]["images"][0]["name"] == "receipt.png"
    assert reloaded.expenses[0]["mood"] == "happy"
    assert reloaded.expenses[1]["mood"] is None


def test_round_trip_json_files(tmp_path) -> None:
    original = _filled(store.JsonFileStore(tmp_path))

    assert (tmp_path / "expenses.json").exists()
    assert (tmp_path / "budgets.json").exists()
    assert "午餐" in (tmp_path / "expenses.json").read_text(encoding="utf-8")

    reloaded = store.RecordStore(store.JsonFileStore(tmp_path)).load()
    assert reloaded.expenses == original.expenses
    assert reloaded.budgets == original.budgets


@pytest.mark.parametrize(
    "text",
    [
        "{not json",
        '{"id": 1}',
        "[1, 2]",
        '[{"amount": "lots"}]',
        '[{"amount": 10, "category": "餐饮", "date": "2026-13-45"}]',
        '[{"amount": 10, "category": "餐饮", "date": ""}]',
        '[{"amount": -3, "category": "餐饮", "date": "2026-10-01"}]',
        '[{"amount": 10, "category": "  ", "date": "2026-10-01"}]',
        '[{"amount": 10, "category": "餐饮", "date": "2026-10-01", "images": ["raw"]}]',
    ],
)
def test_malformed_state_raises(text: str) -> None:
    backend = store.MemoryKeyValueStore({"expenses": text})
    with pytest.raises(PersistenceError):
        store.RecordStore(backend).load()


def test_upsert_budget_updates_in_place() -> None:
    records = store.RecordStore(store.MemoryKeyValueStore()).load()
    first, created = records.upsert_budget("餐饮", 1000)
    assert created

    updated, created = records.upsert_budget("餐饮", 1200)
    assert not created
    assert len(records.budgets) == 1
    assert updated["id"] == first["id"]
    assert records.budgets[0]["amount"] == 1200.0
    assert json.loads(records.backend.get("budgets"))[0]["amount"] == 1200.0


@pytest.mark.parametrize(
    ("amount", "category", "day"),
    [(0, "餐饮", "2026-10-01"), ("abc", "餐饮", "2026-10-01"), (10, "  ", "2026-10-01"), (10, "餐饮", "2026-02-30")],
)
def test_invalid_expense_leaves_state_unchanged(amount, category, day) -> None:
    backend = store.MemoryKeyValueStore()
    records = store.RecordStore(backend).load()
    with pytest.raises(ValidationError):
        records.add_expense(amount, category, day)
    assert records.expenses == []
    assert backend.get("expenses") is None


def test_failed_write_rolls_back() -> None:
    records = store.RecordStore(FailingBackend()).load()
    with pytest.raises(PersistenceError):
        records.add_expense(10, "餐饮", "2026-10-01")
    with pytest.raises(PersistenceError):
        records.upsert_budget("餐饮", 100)
    assert records.expenses == []
    assert records.budgets == []


def test_snapshots_are_copies() -> None:
    records = _filled(store.MemoryKeyValueStore())
    snapshot = records.expenses
    snapshot.clear()
    assert len(records.expenses) == 2


def test_legacy_moods_migrate_onto_expenses() -> None:
    backend = store.MemoryKeyValueStore(
        {
            "expenses": json.dumps(
                [
                    {"id": 1, "amount": 20, "category": "餐饮", "date": "2026-10-01", "note": "", "timestamp": "2026-10-01T12:00:00"},
                    {"id": 2, "amount": 30, "category": "购物", "date": "2026-10-02", "note": ""},
                ]
            ),
            "moods": json.dumps(
                [
                    {"id": 3, "mood": "sad", "note": "", "date": "2026-10-01"},
                    {"id": 4, "mood": "calm", "note": "散步", "date": "2026-10-01"},
                ]
            ),
        }
    )
    records = store.RecordStore(backend).load()

    assert records.expenses[0]["mood"] == "calm"
    assert records.expenses[0]["mood_note"] == "散步"
    assert records.expenses[0]["created_at"] == "2026-10-01T12:00:00"
    assert records.expenses[1]["mood"] is None
    assert json.loads(backend.get("moods")) == [{"id": 3, "mood": "sad", "note": "", "date": "2026-10-01"}]
    assert json.loads(backend.get("expenses"))[0]["mood"] == "calm"


def test_clear_collection() -> None:
    records = _filled(store.MemoryKeyValueStore())
    records.clear("expenses")
    assert records.expenses == []
    assert records.budgets
    with pytest.raises(ValidationError):
        records.clear("moods")  # type: ignore[arg-type]


def test_categories_first_seen() -> None:
    records = _filled(store.MemoryKeyValueStore())
    records.upsert_budget("娱乐", 300)
    assert records.categories() == ["餐饮", "交通", "娱乐"]


def test_malformed_budget_raises() -> None:
    backend = store.MemoryKeyValueStore({"budgets": '[{"category": "餐饮", "amount": 0}]'})
    with pytest.raises(PersistenceError):
        store.RecordStore(backend).load()


def test_loaded_records_filter_cleanly() -> None:
    backend = store.MemoryKeyValueStore(
        {"expenses": json.dumps([{"id": "a", "amount": "18", "category": " 餐饮 ", "date": "2026-10-18T09:30:00"}])}
    )
    records = store.RecordStore(backend).load()

    assert records.expenses[0]["date"] == "2026-10-18"
    assert records.expenses[0]["category"] == "餐饮"
    matches = filters.filter_expenses(records.expenses, date_window="week", today=date(2026, 10, 19))
    assert [expense["id"] for expense in matches] == ["a"]


def test_unmatched_legacy_moods_are_kept() -> None:
    orphan = {"id": "m1", "mood": "sad", "note": "", "date": "2026-10-05"}
    backend = store.MemoryKeyValueStore({"expenses": "[]", "moods": json.dumps([orphan])})
    store.RecordStore(backend).load()

    assert json.loads(backend.get("moods")) == [orphan]
    assert backend.get("expenses") == "[]"


def test_partial_legacy_migration_keeps_leftovers() -> None:
    applied = {"id": "m1", "mood": "happy", "note": "", "date": "2026-10-01"}
    orphan = {"id": "m2", "mood": "worried", "note": "考试", "date": "2026-10-09"}
    backend = store.MemoryKeyValueStore(
        {
            "expenses": json.dumps([{"id": "e1", "amount": 5, "category": "餐饮", "date": "2026-10-01"}]),
            "moods": json.dumps([applied, orphan]),
        }
    )
    records = store.RecordStore(backend).load()

    assert records.expenses[0]["mood"] == "happy"
    assert json.loads(backend.get("moods")) == [orphan]

    # a second load finds nothing more to apply and leaves the entry alone
    store.RecordStore(backend).load()
    assert json.loads(backend.get("moods")) == [orphan]
