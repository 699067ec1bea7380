"""History search: text, category and relative date filters."""

from __future__ import annotations

from datetime import date, timedelta
from enum import Enum
from typing import Iterable

from . import utils
from .errors import ValidationError
from .models import ExpenseRecord, parse_date


class DateWindow(str, Enum):
    NONE = "none"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"

    @classmethod
    def coerce(cls, value: "DateWindow | str | None") -> "DateWindow":
        if value is None or value == "":
            return cls.NONE
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"unknown date window {value!r}") from None


def _in_window(day: date, window: DateWindow, today: date) -> bool:
    if window is DateWindow.TODAY:
        return day == today
    if window is DateWindow.WEEK:
        return day >= today - timedelta(days=7)
    if window is DateWindow.MONTH:
        return (day.year, day.month) == (today.year, today.month)
    return True


def filter_expenses(
    expenses: Iterable[ExpenseRecord],
    search_term: str = "",
    category: str | None = None,
    date_window: DateWindow | str | None = DateWindow.NONE,
    today: date | None = None,
) -> list[ExpenseRecord]:
    """Return matching expenses, newest ``date`` first.

    A blank search term or unset category matches everything. Records with
    equal dates keep their collection order.
    """

    term = (search_term or "").strip().lower()
    window = DateWindow.coerce(date_window)
    reference = today or utils.today()

    matches: list[ExpenseRecord] = []
    for expense in expenses:
        if term and term not in expense["note"].lower() and term not in expense["category"].lower():
            continue
        if category and expense["category"] != category:
            continue
        if window is not DateWindow.NONE and not _in_window(parse_date(expense["date"]), window, reference):
            continue
        matches.append(expense)

    matches.sort(key=lambda expense: expense["date"], reverse=True)
    return matches
