"""Static mood table shared by the correlator, insights and the UI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

WellbeingBand = Literal["positive", "neutral", "negative"]


@dataclass(frozen=True)
class MoodInfo:
    """Display metadata and wellbeing score for one mood label."""

    key: str
    name: str
    glyph: str
    score: int


MOODS: dict[str, MoodInfo] = {
    info.key: info
    for info in (
        MoodInfo("happy", "开心", "😊", 5),
        MoodInfo("excited", "兴奋", "🤩", 4),
        MoodInfo("calm", "平静", "😌", 3),
        MoodInfo("worried", "担心", "😰", 2),
        MoodInfo("sad", "难过", "😢", 1),
        MoodInfo("angry", "生气", "😠", 0),
    )
}

UNKNOWN_MOOD = MoodInfo("unknown", "未知", "😐", 3)


def is_mood(value: object) -> bool:
    return isinstance(value, str) and value in MOODS


def mood_info(key: str | None) -> MoodInfo:
    """Return the table entry for ``key`` or a neutral placeholder."""

    if key is None:
        return UNKNOWN_MOOD
    return MOODS.get(key, UNKNOWN_MOOD)


def mood_name(key: str | None) -> str:
    return mood_info(key).name


def mood_glyph(key: str | None) -> str:
    return mood_info(key).glyph


def mood_score(key: str | None) -> int:
    return mood_info(key).score


def wellbeing_band(avg_score: float) -> WellbeingBand:
    if avg_score >= 4:
        return "positive"
    if avg_score >= 2:
        return "neutral"
    return "negative"
