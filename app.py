"""Streamlit entry point for the Moonlight Ledger app."""

from __future__ import annotations

import base64
import json
from datetime import date

import pandas as pd
import streamlit as st
from moonlight import aggregate, config, correlate, filters, insights, models, moods, store, synth, utils, viz
from moonlight.errors import PersistenceError, ValidationError

DEFAULT_CATEGORIES = ["餐饮", "交通", "购物", "娱乐", "住房", "医疗", "学习", "其他"]
TREND_PERIODS = {"7天": 7, "30天": 30, "90天": 90}
DATE_WINDOW_LABELS = {
    "全部时间": filters.DateWindow.NONE,
    "今天": filters.DateWindow.TODAY,
    "最近7天": filters.DateWindow.WEEK,
    "本月": filters.DateWindow.MONTH,
}
BAND_LABELS = {"positive": "非常积极", "neutral": "比较稳定", "negative": "需要关注"}


def _record_store(settings: config.Settings) -> store.RecordStore:
    """Return the session's record store, loading it on first use."""

    if "record_store" not in st.session_state:
        backend = store.JsonFileStore(settings.data_dir)
        try:
            st.session_state["record_store"] = store.RecordStore(backend).load()
        except PersistenceError as exc:
            st.error(f"无法读取本地数据：{exc}")
            st.caption(f"请检查 {settings.data_dir} 下的 JSON 文件后刷新页面。")
            st.stop()
    return st.session_state["record_store"]


@st.cache_data(show_spinner=False, ttl=300)
def _cached_insights(
    records_json: str,
    month: str,
    settings_key: tuple,
    _settings: config.Settings,
) -> insights.InsightResult:
    # _settings is not hashed; settings_key stands in for it
    records = json.loads(records_json)
    return insights.generate_insights(records, settings=_settings, today=date.fromisoformat(f"{month}-01"))


def _encode_upload(upload) -> models.ImageAttachment:
    mime = upload.type or "image/png"
    payload = base64.b64encode(upload.getvalue()).decode("ascii")
    return models.new_image(upload.name, f"data:{mime};base64,{payload}")


def _render_add_tab(records: store.RecordStore, settings: config.Settings) -> None:
    st.subheader("记一笔")
    pending: list[models.ImageAttachment] = st.session_state.setdefault("pending_images", [])

    if settings.features.image_upload:
        uploads = st.file_uploader(
            "上传票据图片",
            type=["png", "jpg", "jpeg", "gif", "webp"],
            accept_multiple_files=True,
            key=f"uploads_{st.session_state.get('upload_generation', 0)}",
        )
        seen = st.session_state.setdefault("seen_uploads", set())
        for upload in uploads or []:
            marker = (upload.name, upload.size)
            if marker not in seen:
                seen.add(marker)
                pending.append(_encode_upload(upload))

        if pending:
            columns = st.columns(min(len(pending), 4))
            for index, image in enumerate(list(pending)):
                with columns[index % len(columns)]:
                    st.image(image["data"], caption=image["name"], use_container_width=True)
                    if st.button("移除", key=f"remove_{image['id']}"):
                        st.session_state["pending_images"] = models.remove_image(pending, image["id"])
                        st.rerun()

    known = list(dict.fromkeys([*DEFAULT_CATEGORIES, *records.categories()]))
    with st.form("expense_form", clear_on_submit=True):
        amount = st.number_input("金额 (¥)", min_value=0.0, step=1.0, format="%.2f")
        category = st.selectbox("类别", known)
        custom_category = st.text_input("自定义类别", placeholder="留空则使用上方类别")
        expense_date = st.date_input("日期", value=utils.today())
        note = st.text_input("备注")
        mood_key = None
        mood_note = ""
        if settings.features.mood_tracking:
            mood_choice = st.radio(
                "此刻的心情",
                ["", *moods.MOODS],
                format_func=lambda key: "不记录" if not key else f"{moods.mood_glyph(key)} {moods.mood_name(key)}",
                horizontal=True,
            )
            mood_key = mood_choice or None
            mood_note = st.text_area("心情备注", height=80)
        submitted = st.form_submit_button("记账", type="primary")

    if submitted:
        try:
            records.add_expense(
                amount,
                custom_category or category,
                expense_date,
                note=note,
                images=pending,
                mood=mood_key,
                mood_note=mood_note,
            )
        except ValidationError as exc:
            st.error(f"请填写完整信息：{exc}")
            return
        except PersistenceError as exc:
            st.error(f"保存失败：{exc}")
            return
        st.session_state["pending_images"] = []
        st.session_state["seen_uploads"] = set()
        st.session_state["upload_generation"] = st.session_state.get("upload_generation", 0) + 1
        st.success("记账成功！")


def _render_insights(expenses: list[models.ExpenseRecord], settings: config.Settings) -> None:
    today = utils.today()
    monthly = insights.monthly_mood_expenses(expenses, today)
    records_json = json.dumps(monthly, ensure_ascii=False, sort_keys=True)

    with st.spinner("正在生成心情消费洞察…"):
        current = _cached_insights(
            records_json,
            utils.month_key(today),
            settings.insight_cache_key,
            settings,
        )

    badge = {"ai": "[AI]", "fallback": "[本地]", "empty": ""}[current.source]
    st.markdown(f"### 心情消费洞察 {badge}")
    if current.is_fallback and current.reason:
        st.caption(f"未使用 AI：{current.reason}")
    for line in current.insights:
        st.info(line)


def _render_stats_tab(records: store.RecordStore, settings: config.Settings) -> None:
    expenses = records.expenses
    left, right = st.columns(2, gap="large")
    totals = aggregate.category_totals(expenses)
    with left:
        st.markdown("### 类别分布")
        st.plotly_chart(viz.plot_category_donut(totals), use_container_width=True, config={"displayModeBar": False})
    with right:
        st.markdown("### 类别合计")
        if totals:
            table = pd.DataFrame({"类别": list(totals), "金额": [utils.format_currency(v) for v in totals.values()]})
            st.table(table.set_index("类别"))
        else:
            st.caption("还没有消费记录。")

    if not settings.features.mood_tracking:
        return

    month = utils.month_key(utils.today())
    correlation = correlate.correlate_moods(expenses, month)
    mood_left, mood_right = st.columns(2, gap="large")
    with mood_left:
        st.markdown("### 心情统计")
        if not correlation["stats"]:
            st.caption("还没有心情记录，快去记录你的心情吧！")
        for key in correlation["by_count"]:
            entry = correlation["stats"][key]
            band = moods.wellbeing_band(entry["avg_score"])
            st.markdown(
                f"{moods.mood_glyph(key)} **{moods.mood_name(key)}** · {entry['count']}次"
                f" ({entry['avg_score']:.1f}分, {BAND_LABELS[band]})"
            )
        overall = correlate.average_wellbeing(expenses, month)
        if overall is not None:
            st.caption(f"本月平均心情分 {overall:.1f}：{BAND_LABELS[moods.wellbeing_band(overall)]}")
    with mood_right:
        st.markdown("### 心情与平均消费")
        st.plotly_chart(
            viz.plot_mood_expense_bar(correlation["stats"]),
            use_container_width=True,
            config={"displayModeBar": False},
        )

    _render_insights(expenses, settings)


def _render_trend_tab(records: store.RecordStore) -> None:
    period = st.radio("时间范围", list(TREND_PERIODS), horizontal=True)
    points = aggregate.daily_totals(records.expenses, TREND_PERIODS[period])
    st.plotly_chart(viz.plot_daily_trend(points), use_container_width=True, config={"displayModeBar": False})
    total = sum(point["amount"] for point in points)
    st.caption(f"期间合计 {utils.format_currency(total)}，日均 {utils.format_currency(total / len(points))}")


def _render_budget_tab(records: store.RecordStore) -> None:
    with st.form("budget_form", clear_on_submit=True):
        category = st.selectbox("类别", list(dict.fromkeys([*DEFAULT_CATEGORIES, *records.categories()])))
        amount = st.number_input("每月预算 (¥)", min_value=0.0, step=50.0, format="%.2f")
        submitted = st.form_submit_button("设置预算", type="primary")
    if submitted:
        try:
            _, created = records.upsert_budget(category, amount)
        except ValidationError as exc:
            st.error(f"请填写完整信息：{exc}")
        except PersistenceError as exc:
            st.error(f"保存失败：{exc}")
        else:
            st.success("预算设置成功！" if created else "预算已更新！")

    statuses = aggregate.budget_overview(records.budgets, records.expenses)
    if not statuses:
        st.caption("还没有设置预算，快来设置你的预算吧！")
        return

    st.plotly_chart(viz.plot_budget_progress(statuses), use_container_width=True, config={"displayModeBar": False})
    for status in statuses:
        detail = (
            f"超支 {utils.format_currency(status['overage'])}"
            if status["overage"] > 0
            else f"剩余 {utils.format_currency(status['remaining'])}"
        )
        st.markdown(
            f"**{status['category']}** · 预算 {utils.format_currency(status['amount'])} · "
            f"已用 {utils.format_currency(status['used'])} · {detail}"
        )
        st.progress(int(status["utilization_percent"]))


def _render_history_tab(records: store.RecordStore) -> None:
    search_col, category_col, date_col = st.columns([2, 1, 1])
    term = search_col.text_input("搜索备注或类别")
    category = category_col.selectbox("类别", ["全部类别", *records.categories()])
    window_label = date_col.selectbox("时间", list(DATE_WINDOW_LABELS))

    matches = filters.filter_expenses(
        records.expenses,
        search_term=term,
        category=None if category == "全部类别" else category,
        date_window=DATE_WINDOW_LABELS[window_label],
    )
    if not matches:
        st.markdown("#### 📝 暂无记录")
        st.caption("没有找到符合条件的消费记录，试试调整搜索条件或添加新的消费记录。")
        return

    st.caption(f"共 {len(matches)} 条记录")
    for expense in matches:
        mood_text = f" · {moods.mood_glyph(expense['mood'])} {moods.mood_name(expense['mood'])}" if expense["mood"] else ""
        with st.container(border=True):
            st.markdown(
                f"**{expense['category']}** · {utils.format_currency(expense['amount'])} · {expense['date']}{mood_text}"
            )
            if expense["note"]:
                st.caption(f"“{expense['note']}”")
            if expense["images"]:
                st.image([image["data"] for image in expense["images"]], width=96)


def main() -> None:
    """Render the Moonlight Ledger Streamlit application."""

    settings = config.load_settings()
    config.configure_logging(settings.log_level)

    st.set_page_config(page_title=config.APP_NAME, page_icon="🌙", layout="wide")
    st.title(f"🌙 {config.APP_NAME}")

    records = _record_store(settings)

    sidebar = st.sidebar
    sidebar.caption(f"v{config.VERSION} · 数据目录 {settings.data_dir}")
    if sidebar.button("载入示例数据", disabled=bool(records.expenses)):
        for expense in synth.generate_sample_expenses():
            records.add_expense(
                expense["amount"],
                expense["category"],
                expense["date"],
                note=expense["note"],
                mood=expense["mood"],
            )
        st.rerun()
    if sidebar.button("清空消费记录"):
        records.clear("expenses")
        st.rerun()

    tab_names = ["记账", "统计", "趋势", "预算", "历史"]
    if not settings.features.budget_management:
        tab_names.remove("预算")
    tabs = dict(zip(tab_names, st.tabs(tab_names)))

    with tabs["记账"]:
        _render_add_tab(records, settings)
    with tabs["统计"]:
        _render_stats_tab(records, settings)
    with tabs["趋势"]:
        _render_trend_tab(records)
    if "预算" in tabs:
        with tabs["预算"]:
            _render_budget_tab(records)
    with tabs["历史"]:
        _render_history_tab(records)


if __name__ == "__main__":
    main()
