"""Aggregation helpers: category totals, daily trends and budget utilisation."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Literal, Mapping, TypedDict

import pandas as pd

from . import utils
from .errors import ValidationError
from .models import BudgetEntry, ExpenseRecord

Severity = Literal["normal", "warning", "danger"]

WARNING_THRESHOLD = 80.0
DANGER_THRESHOLD = 100.0


class DailyTotal(TypedDict):
    date: str
    amount: float


class BudgetStatus(TypedDict):
    category: str
    amount: float
    used: float
    remaining: float
    overage: float
    utilization_percent: float
    severity: Severity


def _group_sum(df: pd.DataFrame) -> dict[str, float]:
    if df.empty:
        return {}
    totals = df.groupby("category", sort=False)["amount"].sum()
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return {str(category): float(value) for category, value in ranked}


def category_totals(expenses: Iterable[ExpenseRecord] | pd.DataFrame) -> dict[str, float]:
    """Sum amounts per category, largest first; ties keep first-seen order."""

    return _group_sum(utils.ensure_dataframe(expenses))


def daily_totals(
    expenses: Iterable[ExpenseRecord] | pd.DataFrame,
    window_days: int = 7,
    as_of: date | None = None,
) -> list[DailyTotal]:
    """Return ``window_days + 1`` zero-filled daily sums ending on ``as_of``."""

    if window_days < 0:
        raise ValidationError("window_days must not be negative")

    end = as_of or utils.today()
    start = end - timedelta(days=window_days)
    df = utils.ensure_dataframe(expenses)

    days = pd.date_range(start, end, freq="D").date
    in_window = df.loc[df["day"].notna()]
    in_window = in_window.loc[(in_window["day"] >= start) & (in_window["day"] <= end)]
    sums = in_window.groupby("day")["amount"].sum() if not in_window.empty else pd.Series(dtype=float)
    sums = sums.reindex(days, fill_value=0.0)

    return [
        {"date": day.isoformat(), "amount": float(value)}
        for day, value in sums.items()
    ]


def monthly_category_spend(
    expenses: Iterable[ExpenseRecord] | pd.DataFrame,
    year_month: str,
) -> dict[str, float]:
    """Category totals restricted to dates within ``YYYY-MM``."""

    prefix = utils.check_year_month(year_month)
    df = utils.ensure_dataframe(expenses)
    month = df.loc[df["date"].str.startswith(prefix, na=False)] if not df.empty else df
    return _group_sum(month)


def budget_status(budget: BudgetEntry | Mapping, monthly_spend: Mapping[str, float]) -> BudgetStatus:
    """Compare a monthly cap with what was spent in its category."""

    amount = float(budget["amount"])
    used = float(monthly_spend.get(budget["category"], 0.0))

    if amount > 0:
        utilization = min(used / amount * 100.0, 100.0)
    else:
        utilization = 100.0

    if utilization >= DANGER_THRESHOLD:
        severity: Severity = "danger"
    elif utilization >= WARNING_THRESHOLD:
        severity = "warning"
    else:
        severity = "normal"

    return {
        "category": str(budget["category"]),
        "amount": amount,
        "used": used,
        "remaining": max(amount - used, 0.0),
        "overage": max(used - amount, 0.0),
        "utilization_percent": utilization,
        "severity": severity,
    }


def budget_overview(
    budgets: Iterable[BudgetEntry],
    expenses: Iterable[ExpenseRecord] | pd.DataFrame,
    year_month: str | None = None,
) -> list[BudgetStatus]:
    month = year_month or utils.month_key(utils.today())
    spend = monthly_category_spend(expenses, month)
    return [budget_status(budget, spend) for budget in budgets]
