"""Record shapes and validated constructors for expenses and budgets.

Records are plain dicts so the in-memory value and the persisted JSON are the
same shape. Constructors raise :class:`~moonlight.errors.ValidationError` and
never return a partially valid record.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Iterable, Mapping, TypedDict
from uuid import uuid4

from . import moods
from .errors import ValidationError


class ImageAttachment(TypedDict):
    id: str
    data: str
    name: str


class ExpenseRecord(TypedDict):
    id: str
    amount: float
    category: str
    date: str
    note: str
    images: list[ImageAttachment]
    mood: str | None
    mood_note: str
    created_at: str


class BudgetEntry(TypedDict):
    id: str
    category: str
    amount: float
    created_at: str


class MoodEntry(TypedDict):
    """Standalone mood entry kept by older data files; see :func:`migrate_legacy_moods`."""

    id: str
    mood: str
    note: str
    date: str
    created_at: str


def new_id() -> str:
    return uuid4().hex


def _timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).isoformat(timespec="seconds")


def parse_amount(value: Any, *, field: str = "amount") -> float:
    """Coerce ``value`` to a positive finite float."""

    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValidationError(f"{field} is required")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number, got {value!r}") from None
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    return amount


def parse_date(value: Any) -> date:
    """Return a calendar date from a ``date`` or an ISO ``YYYY-MM-DD`` string."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("date is required")
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        raise ValidationError(f"date must be YYYY-MM-DD, got {value!r}") from None


def _require_category(category: Any) -> str:
    if not isinstance(category, str) or not category.strip():
        raise ValidationError("category is required")
    return category.strip()


def new_image(name: str, data: str) -> ImageAttachment:
    if not data:
        raise ValidationError("image payload is empty")
    return {"id": new_id(), "data": data, "name": name or "image"}


def remove_image(images: Iterable[ImageAttachment], image_id: str) -> list[ImageAttachment]:
    """Drop a pending upload before the expense is submitted."""

    return [image for image in images if image["id"] != image_id]


def new_expense(
    amount: Any,
    category: Any,
    expense_date: Any,
    *,
    note: str = "",
    images: Iterable[ImageAttachment] = (),
    mood: str | None = None,
    mood_note: str = "",
    now: datetime | None = None,
) -> ExpenseRecord:
    """Validate user input and build a new :class:`ExpenseRecord`."""

    value = parse_amount(amount)
    label = _require_category(category)
    day = parse_date(expense_date)
    if mood is not None and mood != "" and not moods.is_mood(mood):
        raise ValidationError(f"unknown mood {mood!r}")
    mood_key = mood or None

    return {
        "id": new_id(),
        "amount": value,
        "category": label,
        "date": day.isoformat(),
        "note": (note or "").strip(),
        "images": list(images),
        "mood": mood_key,
        "mood_note": (mood_note or "").strip() if mood_key else "",
        "created_at": _timestamp(now),
    }


def new_budget(category: Any, amount: Any, *, now: datetime | None = None) -> BudgetEntry:
    return {
        "id": new_id(),
        "category": _require_category(category),
        "amount": parse_amount(amount),
        "created_at": _timestamp(now),
    }


def _normalise_image(raw: Any) -> ImageAttachment:
    if not isinstance(raw, Mapping):
        raise ValidationError(f"image must be an object, got {type(raw).__name__}")
    return {
        "id": str(raw.get("id") or new_id()),
        "data": str(raw.get("data", "")),
        "name": str(raw.get("name", "")),
    }


def normalise_expense(raw: Mapping[str, Any]) -> ExpenseRecord:
    """Re-validate a stored expense, filling optional fields and older key names.

    Raises :class:`~moonlight.errors.ValidationError` for the same amount,
    category and date rules that :func:`new_expense` enforces.
    """

    mood = raw.get("mood") or None
    return {
        "id": str(raw.get("id") or new_id()),
        "amount": parse_amount(raw.get("amount")),
        "category": _require_category(raw.get("category")),
        "date": parse_date(raw.get("date")).isoformat(),
        "note": str(raw.get("note") or ""),
        "images": [_normalise_image(image) for image in raw.get("images") or []],
        "mood": mood,
        "mood_note": str(raw.get("mood_note") or raw.get("moodNote") or ""),
        "created_at": str(raw.get("created_at") or raw.get("createdAt") or raw.get("timestamp") or ""),
    }


def normalise_budget(raw: Mapping[str, Any]) -> BudgetEntry:
    return {
        "id": str(raw.get("id") or new_id()),
        "category": _require_category(raw.get("category")),
        "amount": parse_amount(raw.get("amount")),
        "created_at": str(raw.get("created_at") or raw.get("createdAt") or raw.get("timestamp") or ""),
    }


def migrate_legacy_moods(
    expenses: Iterable[ExpenseRecord],
    legacy: Iterable[MoodEntry],
) -> tuple[list[ExpenseRecord], int, list[MoodEntry]]:
    """Fold standalone mood entries into same-day expenses that carry no mood.

    The latest legacy entry of a day wins. Returns the updated expenses, the
    number of records that received a mood, and the legacy entries that were
    not applied to any expense (earlier entries of a day, days without an
    untagged expense, unknown moods).
    """

    entries = list(legacy)
    by_day: dict[str, int] = {}
    for index, entry in enumerate(entries):
        if moods.is_mood(entry.get("mood")) and entry.get("date"):
            by_day[str(entry["date"])] = index

    applied: set[int] = set()
    migrated: list[ExpenseRecord] = []
    changed = 0
    for expense in expenses:
        index = by_day.get(expense["date"])
        if index is not None and not expense.get("mood"):
            source = entries[index]
            expense = {
                **expense,
                "mood": str(source["mood"]),
                "mood_note": str(source.get("note") or ""),
            }
            applied.add(index)
            changed += 1
        migrated.append(expense)

    unapplied = [entry for index, entry in enumerate(entries) if index not in applied]
    return migrated, changed, unapplied
