"""Mood and expense correlation."""

from __future__ import annotations

from typing import Iterable, TypedDict

import pandas as pd

from . import moods, utils
from .models import ExpenseRecord


class MoodStats(TypedDict):
    count: int
    total_amount: float
    avg_amount: float
    avg_score: float


class MoodCorrelation(TypedDict):
    stats: dict[str, MoodStats]
    by_avg_amount: list[str]
    by_count: list[str]


def _tagged(expenses: Iterable[ExpenseRecord] | pd.DataFrame, year_month: str | None) -> pd.DataFrame:
    df = utils.ensure_dataframe(expenses)
    if df.empty:
        return df
    df = df.loc[df["mood"].isin(list(moods.MOODS))]
    if year_month is not None:
        prefix = utils.check_year_month(year_month)
        df = df.loc[df["date"].str.startswith(prefix, na=False)]
    return df


def mood_expense_stats(
    expenses: Iterable[ExpenseRecord] | pd.DataFrame,
    year_month: str | None = None,
) -> dict[str, MoodStats]:
    """Per-mood count, total, average amount and wellbeing score.

    Only mood-tagged records count. Moods appear in first-seen order; an
    empty selection yields an empty mapping.
    """

    df = _tagged(expenses, year_month)
    if df.empty:
        return {}

    grouped = df.groupby("mood", sort=False)["amount"].agg(["count", "sum"])
    stats: dict[str, MoodStats] = {}
    for mood, row in grouped.iterrows():
        count = int(row["count"])
        total = float(row["sum"])
        stats[str(mood)] = {
            "count": count,
            "total_amount": total,
            "avg_amount": total / count,
            "avg_score": float(moods.mood_score(str(mood))),
        }
    return stats


def correlate_moods(
    expenses: Iterable[ExpenseRecord] | pd.DataFrame,
    year_month: str | None = None,
) -> MoodCorrelation:
    stats = mood_expense_stats(expenses, year_month)
    return {
        "stats": stats,
        "by_avg_amount": sorted(stats, key=lambda mood: stats[mood]["avg_amount"], reverse=True),
        "by_count": sorted(stats, key=lambda mood: stats[mood]["count"], reverse=True),
    }


def average_wellbeing(
    expenses: Iterable[ExpenseRecord] | pd.DataFrame,
    year_month: str | None = None,
) -> float | None:
    df = _tagged(expenses, year_month)
    if df.empty:
        return None
    return float(df["mood"].map(moods.mood_score).mean())
