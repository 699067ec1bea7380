"""Synthetic expense generation for demos, scripts and tests.

The generator produces a deterministic daily spending log with per-category
amount ranges, weekend bumps and a mood attached to most records, so that the
correlator and insight pipeline have something realistic to work with.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

import numpy as np

from .models import ExpenseRecord

DEFAULT_ROWS = 120
DEFAULT_DAYS = 60
DEFAULT_SEED = 7
MOOD_TAG_RATE = 0.75


@dataclass(frozen=True)
class CategoryProfile:
    """Static spending profile for a category."""

    name: str
    amount_range: tuple[float, float]
    weight: float
    notes: tuple[str, ...]


CATEGORIES = (
    CategoryProfile("餐饮", (12.0, 88.0), 0.34, ("午餐", "和同事聚餐", "Coffee run", "奶茶")),
    CategoryProfile("交通", (3.0, 45.0), 0.18, ("地铁", "打车回家", "共享单车")),
    CategoryProfile("购物", (29.0, 420.0), 0.16, ("网购衣服", "日用品", "新耳机")),
    CategoryProfile("娱乐", (25.0, 180.0), 0.12, ("电影票", "KTV", "游戏充值")),
    CategoryProfile("学习", (19.0, 260.0), 0.07, ("买书", "网课")),
    CategoryProfile("医疗", (15.0, 300.0), 0.05, ("药店", "体检")),
    CategoryProfile("其他", (5.0, 120.0), 0.08, ("快递", "礼物", "")),
)

# Moods skew spend: excited/sad days run larger baskets than calm ones.
MOOD_MULTIPLIERS = {
    "happy": 1.1,
    "excited": 1.45,
    "calm": 0.8,
    "worried": 0.95,
    "sad": 1.3,
    "angry": 1.2,
}
MOOD_WEIGHTS = (0.24, 0.14, 0.26, 0.14, 0.12, 0.10)


def generate_sample_expenses(
    rows: int = DEFAULT_ROWS,
    *,
    seed: int | None = DEFAULT_SEED,
    days: int = DEFAULT_DAYS,
    end: date | None = None,
) -> list[ExpenseRecord]:
    """Return ``rows`` expenses spread over the ``days`` ending on ``end``."""

    if rows <= 0:
        raise ValueError("rows must be positive")
    if days <= 0:
        raise ValueError("days must be positive")

    rng = np.random.default_rng(seed)
    last_day = end or date.today()
    weights = np.array([profile.weight for profile in CATEGORIES])
    weights = weights / weights.sum()
    mood_keys = list(MOOD_MULTIPLIERS)

    offsets = np.sort(rng.integers(0, days, size=rows))[::-1]
    expenses: list[ExpenseRecord] = []
    for index, offset in enumerate(offsets):
        day = last_day - timedelta(days=int(offset))
        profile = CATEGORIES[int(rng.choice(len(CATEGORIES), p=weights))]
        low, high = profile.amount_range
        amount = rng.uniform(low, high)
        if day.weekday() >= 5:
            amount *= 1.25

        mood: str | None = None
        if rng.random() < MOOD_TAG_RATE:
            mood = mood_keys[int(rng.choice(len(mood_keys), p=MOOD_WEIGHTS))]
            amount *= MOOD_MULTIPLIERS[mood]

        created = datetime.combine(day, time(hour=int(rng.integers(8, 23)), minute=int(rng.integers(0, 60))))
        expenses.append(
            {
                "id": f"demo{seed if seed is not None else 'x'}-{index:05d}",
                "amount": round(float(amount), 2),
                "category": profile.name,
                "date": day.isoformat(),
                "note": str(rng.choice(profile.notes)),
                "images": [],
                "mood": mood,
                "mood_note": "",
                "created_at": created.isoformat(timespec="seconds"),
            }
        )

    return expenses
