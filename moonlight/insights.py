"""Mood/spend insights from a remote language model, with a local fallback.

One invocation moves through ``BUILDING_PAYLOAD`` and ``AWAITING_REMOTE`` and
settles in ``INSIGHTS_READY`` (model text parsed into short observations) or
``FALLBACK_READY`` (two templated observations computed locally). A month
without mood-tagged spending short-circuits to a single static message and
never contacts the remote service.

Remote failures of any kind are logged and absorbed here; callers always get
an :class:`InsightResult`.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Iterable, Literal, TypedDict

import httpx
import openai
from openai import OpenAI

from . import config, correlate, moods, utils
from .errors import RemoteServiceError
from .models import ExpenseRecord

logger = logging.getLogger(__name__)

MAX_TOKENS = 1000
TEMPERATURE = 0.7
MAX_INSIGHTS = 5
MIN_INSIGHT_LENGTH = 10

NO_DATA_INSIGHT = "本月还没有心情记录，建议多记录心情来了解消费模式"

SYSTEM_PROMPT = (
    "你是一位温和、专业的个人理财顾问，擅长从消费记录与情绪数据中发现规律，"
    "并给出具体、可执行、不带评判的建议。"
)

_NUMBERED = re.compile(r"^\d+\.")
_SENTENCE_END = re.compile(r"[。！？]")


class InsightState(str, Enum):
    IDLE = "idle"
    BUILDING_PAYLOAD = "building_payload"
    AWAITING_REMOTE = "awaiting_remote"
    INSIGHTS_READY = "insights_ready"
    FALLBACK_READY = "fallback_ready"


class GroupStats(TypedDict):
    avg_amount: float
    total_amount: float
    count: int


class AnalysisPayload(TypedDict):
    mood_stats: dict[str, GroupStats]
    category_stats: dict[str, GroupStats]
    expense_count: int
    total_amount: float


@dataclass
class InsightResult:
    state: InsightState
    insights: list[str]
    source: Literal["empty", "ai", "fallback"]
    reason: str | None = None
    model: str | None = None

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"


def monthly_mood_expenses(
    expenses: Iterable[ExpenseRecord],
    today: date | None = None,
) -> list[ExpenseRecord]:
    """Mood-tagged expenses dated in the current calendar month."""

    prefix = utils.month_key(today or utils.today())
    return [
        expense
        for expense in expenses
        if moods.is_mood(expense.get("mood")) and expense["date"].startswith(prefix)
    ]


def _category_stats(expenses: list[ExpenseRecord]) -> dict[str, GroupStats]:
    df = utils.ensure_dataframe(expenses)
    if df.empty:
        return {}
    grouped = df.groupby("category", sort=False)["amount"].agg(["count", "sum"])
    grouped = grouped.sort_values("sum", ascending=False, kind="stable")
    return {
        str(category): {
            "avg_amount": float(row["sum"]) / int(row["count"]),
            "total_amount": float(row["sum"]),
            "count": int(row["count"]),
        }
        for category, row in grouped.iterrows()
    }


def build_analysis_payload(expenses: Iterable[ExpenseRecord]) -> AnalysisPayload:
    """Aggregate the records handed to the model into a compact payload."""

    records = list(expenses)
    mood_stats = correlate.mood_expense_stats(records)
    return {
        "mood_stats": {
            mood: {
                "avg_amount": stats["avg_amount"],
                "total_amount": stats["total_amount"],
                "count": stats["count"],
            }
            for mood, stats in mood_stats.items()
        },
        "category_stats": _category_stats(records),
        "expense_count": len(records),
        "total_amount": float(sum(float(record["amount"]) for record in records)),
    }


def _stats_lines(stats: dict[str, GroupStats], label: Any) -> str:
    if not stats:
        return "- 暂无"
    return "\n".join(
        f"- {label(key)}：{entry['count']}笔，合计¥{entry['total_amount']:.2f}，平均¥{entry['avg_amount']:.2f}"
        for key, entry in stats.items()
    )


def build_prompt(payload: AnalysisPayload) -> str:
    return f"""请根据用户本月带心情标记的消费数据，写出3到5条简短的个性化洞察。

本月共{payload['expense_count']}笔消费，合计¥{payload['total_amount']:.2f}。

按心情统计：
{_stats_lines(payload['mood_stats'], moods.mood_name)}

按类别统计：
{_stats_lines(payload['category_stats'], str)}

要求：
- 每条洞察单独成行，不要编号，不要标题；
- 每条不超过50个字，引用具体金额；
- 指出情绪与消费之间的关联，至少给出一条可执行的建议。
"""


def parse_insights(text: str) -> list[str]:
    """Split model output into at most five standalone observations."""

    lines = [line.strip() for line in text.splitlines()]
    insights = [
        line
        for line in lines
        if len(line) >= MIN_INSIGHT_LENGTH and not _NUMBERED.match(line)
    ]
    if not insights:
        sentences = (sentence.strip() for sentence in _SENTENCE_END.split(text))
        insights = [sentence for sentence in sentences if len(sentence) > MIN_INSIGHT_LENGTH]
    return insights[:MAX_INSIGHTS]


def fallback_insights(stats: dict[str, correlate.MoodStats]) -> list[str]:
    """Highest- and lowest-spending moods by average amount."""

    if not stats:
        return [NO_DATA_INSIGHT]
    ranked = sorted(stats.items(), key=lambda item: item[1]["avg_amount"], reverse=True)
    highest_mood, highest = ranked[0]
    lowest_mood, lowest = ranked[-1]
    return [
        f"{moods.mood_name(highest_mood)}时平均消费最高，达到¥{highest['avg_amount']:.2f}",
        f"{moods.mood_name(lowest_mood)}时消费最理性，平均¥{lowest['avg_amount']:.2f}",
    ]


class InsightClient:
    """Chat-completion client for an OpenAI-compatible endpoint (DeepSeek by default)."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str = config.DEFAULT_MODEL,
        base_url: str = config.DEFAULT_BASE_URL,
        max_retries: int = 2,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.model = model
        self._client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            max_retries=max_retries,
            http_client=http_client,
        )

    @classmethod
    def from_settings(cls, settings: config.Settings) -> "InsightClient":
        if not settings.has_api_key:
            raise RemoteServiceError("No API key configured for the insight service")
        return cls(
            settings.api_key or "",
            model=settings.model,
            base_url=settings.base_url,
            max_retries=settings.max_retries,
        )

    def complete(self, prompt: str) -> str:
        """Send one prompt and return the reply text of the first choice."""

        try:
            resp = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=MAX_TOKENS,
                temperature=TEMPERATURE,
            )
        except openai.APIStatusError as exc:
            raise RemoteServiceError(f"Insight service returned HTTP {exc.status_code}") from exc
        except (openai.APIError, ValueError) as exc:
            raise RemoteServiceError(f"Insight request failed: {type(exc).__name__}: {exc}") from exc

        try:
            content = resp.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError) as exc:
            raise RemoteServiceError("Malformed insight response body") from exc
        if not isinstance(content, str) or not content.strip():
            raise RemoteServiceError("Empty insight response")
        return content.strip()


def generate_insights(
    expenses: Iterable[ExpenseRecord],
    *,
    settings: config.Settings | None = None,
    client: InsightClient | None = None,
    today: date | None = None,
) -> InsightResult:
    """Produce insights for the current month's mood-tagged spending."""

    logger.debug("Insight state -> %s", InsightState.BUILDING_PAYLOAD.value)
    monthly = monthly_mood_expenses(expenses, today)
    if not monthly:
        return InsightResult(InsightState.IDLE, [NO_DATA_INSIGHT], "empty")

    settings = settings or config.load_settings()
    stats = correlate.mood_expense_stats(monthly)

    def _fallback(reason: str) -> InsightResult:
        return InsightResult(
            InsightState.FALLBACK_READY,
            fallback_insights(stats),
            "fallback",
            reason=reason,
            model=settings.model,
        )

    if not settings.features.ai_insights:
        return _fallback("AI insights are disabled")
    if not settings.has_api_key:
        logger.info("No DEEPSEEK_API_KEY configured; using local insights")
        return _fallback("DEEPSEEK_API_KEY not found in Streamlit secrets or environment")

    payload = build_analysis_payload(monthly)
    prompt = build_prompt(payload)
    logger.debug("Insight state -> %s (prompt %d chars)", InsightState.AWAITING_REMOTE.value, len(prompt))

    try:
        remote = client or InsightClient.from_settings(settings)
        insights = parse_insights(remote.complete(prompt))
        if not insights:
            raise RemoteServiceError("Insight response contained no usable lines")
    except RemoteServiceError as exc:
        logger.warning("Insight service unavailable, using fallback: %s", exc)
        return _fallback(str(exc))

    logger.info("Received %d insights from %s", len(insights), remote.model)
    return InsightResult(InsightState.INSIGHTS_READY, insights, "ai", model=remote.model)


async def generate_insights_async(
    expenses: Iterable[ExpenseRecord],
    **kwargs: Any,
) -> InsightResult:
    """Run :func:`generate_insights` in a worker thread."""

    return await asyncio.to_thread(generate_insights, list(expenses), **kwargs)


@dataclass
class InsightRequests:
    """Keep only the result of the most recent insight request.

    Each request takes an epoch from :meth:`begin`; a result that arrives
    after a newer request started is discarded by :meth:`accept`. Only
    callers that overlap requests, such as tasks awaiting
    :func:`generate_insights_async`, need it. A synchronous caller gets its
    result before it can start another request.
    """

    epoch: int = 0
    result: InsightResult | None = None

    def begin(self) -> int:
        self.epoch += 1
        return self.epoch

    def accept(self, epoch: int, result: InsightResult) -> bool:
        if epoch != self.epoch:
            logger.debug("Discarding stale insight result (epoch %d, current %d)", epoch, self.epoch)
            return False
        self.result = result
        return True
