"""Shared utilities for the Moonlight Ledger project."""

from __future__ import annotations

import re
from datetime import date
from typing import Iterable, Mapping

import pandas as pd

from .errors import ValidationError

EXPENSE_COLUMNS = [
    "id",
    "amount",
    "category",
    "date",
    "note",
    "images",
    "mood",
    "mood_note",
    "created_at",
]

_YEAR_MONTH = re.compile(r"^\d{4}-\d{2}$")


def ensure_dataframe(expenses: Iterable[Mapping] | pd.DataFrame) -> pd.DataFrame:
    """Normalise expense records to a :class:`pandas.DataFrame`.

    The frame always has the expense columns plus a parsed ``day`` column, so
    callers can filter an empty collection without special cases.
    """

    if isinstance(expenses, pd.DataFrame):
        df = expenses.copy()
    else:
        df = pd.DataFrame(list(expenses))

    for column in EXPENSE_COLUMNS:
        if column not in df:
            df[column] = pd.Series(dtype="object")

    df["amount"] = df["amount"].astype(float)
    df["category"] = df["category"].astype(str)
    df["date"] = df["date"].astype(str)
    df["day"] = pd.to_datetime(df["date"], format="%Y-%m-%d", errors="coerce").dt.date
    return df


def format_currency(value: float, currency: str = "¥") -> str:
    """Return a human-readable currency string."""

    return f"{currency}{value:,.2f}"


def today() -> date:
    return date.today()


def month_key(day: date) -> str:
    return day.strftime("%Y-%m")


def check_year_month(value: str) -> str:
    if not isinstance(value, str) or not _YEAR_MONTH.match(value):
        raise ValidationError(f"month must be YYYY-MM, got {value!r}")
    return value
