"""Visualization utilities for Moonlight Ledger."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from . import moods

PALETTE = [
    "#667eea", "#764ba2", "#f093fb", "#f5576c",
    "#4facfe", "#00f2fe", "#43e97b", "#38f9d7",
]

SEVERITY_COLORS = {
    "normal": "#43e97b",
    "warning": "#f0ad4e",
    "danger": "#dc3545",
}


def _empty_figure(message: str) -> go.Figure:
    fig = go.Figure()
    fig.add_annotation(
        text=message,
        showarrow=False,
        x=0.5,
        y=0.5,
        xref="paper",
        yref="paper",
        font=dict(size=14, color="#6c757d"),
    )
    fig.update_layout(margin=dict(l=0, r=0, t=20, b=20))
    return fig


def plot_category_donut(totals: Mapping[str, float]) -> go.Figure:
    if not totals:
        return _empty_figure("还没有消费记录")

    df = pd.DataFrame({"category": list(totals), "amount": list(totals.values())})
    fig = px.pie(
        df,
        names="category",
        values="amount",
        hole=0.55,
        color_discrete_sequence=PALETTE,
    )
    fig.update_traces(textinfo="label+percent", hovertemplate="%{label}<br>¥%{value:,.2f}<extra></extra>")
    fig.update_layout(margin=dict(l=0, r=0, t=20, b=0), legend=dict(orientation="h"))
    return fig


def plot_daily_trend(points: Iterable[Mapping[str, object]]) -> go.Figure:
    data = list(points)
    if not data:
        return _empty_figure("没有趋势数据")

    df = pd.DataFrame(data)
    df["date"] = pd.to_datetime(df["date"])

    fig = go.Figure(
        go.Scatter(
            name="每日支出",
            x=df["date"],
            y=df["amount"],
            mode="lines+markers",
            fill="tozeroy",
            line=dict(color="#667eea", width=3, shape="spline"),
            marker=dict(size=7, color="#667eea", line=dict(color="#fff", width=2)),
        )
    )
    fig.update_layout(
        showlegend=False,
        margin=dict(l=0, r=0, t=20, b=0),
        yaxis=dict(rangemode="tozero", tickprefix="¥"),
        xaxis=dict(tickformat="%m/%d"),
    )
    return fig


def plot_mood_expense_bar(stats: Mapping[str, Mapping[str, float]]) -> go.Figure:
    """Average spend per mood."""

    if not stats:
        return _empty_figure("本月还没有带心情的消费")

    labels = [f"{moods.mood_glyph(key)} {moods.mood_name(key)}" for key in stats]
    values = [float(entry["avg_amount"]) for entry in stats.values()]
    fig = go.Figure(
        go.Bar(
            x=labels,
            y=values,
            marker_color=PALETTE[: len(labels)],
            hovertemplate="%{x}<br>平均 ¥%{y:,.2f}<extra></extra>",
        )
    )
    fig.update_layout(
        margin=dict(l=0, r=0, t=20, b=0),
        yaxis=dict(rangemode="tozero", tickprefix="¥", title="平均消费金额"),
    )
    return fig


def plot_budget_progress(statuses: Iterable[Mapping[str, object]]) -> go.Figure:
    data = list(statuses)
    if not data:
        return _empty_figure("还没有设置预算")

    df = pd.DataFrame(data)
    fig = go.Figure(
        go.Bar(
            x=df["utilization_percent"],
            y=df["category"],
            orientation="h",
            marker_color=[SEVERITY_COLORS.get(str(level), "#667eea") for level in df["severity"]],
            customdata=df[["used", "amount"]],
            hovertemplate="%{y}<br>已用 ¥%{customdata[0]:,.2f} / ¥%{customdata[1]:,.2f}<extra></extra>",
        )
    )
    fig.update_layout(
        margin=dict(l=0, r=0, t=20, b=0),
        xaxis=dict(range=[0, 100], ticksuffix="%"),
        yaxis=dict(autorange="reversed"),
    )
    return fig
