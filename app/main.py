from datetime import date

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from tracker import aggregation as agg
from tracker.codec import export_filename
from tracker.config import get_settings
from tracker.domain import CURRENCIES, INCOME_TYPES, LOCALES, THEMES
from tracker.functional import Either, build_expense, build_goal, build_income
from tracker.log import configure_logging
from tracker.services import DashboardService, FinanceTracker
from tracker.storage import JsonFileStorage

settings = get_settings()

st.set_page_config(page_title="Finance Tracker", layout="wide")

if "tracker" not in st.session_state:
    configure_logging(settings.log_level, settings.log_json)
    st.session_state.tracker = FinanceTracker(JsonFileStorage(settings.storage_path))

tracker: FinanceTracker = st.session_state.tracker
prefs = tracker.preferences
dashboard = DashboardService(tracker)
t = prefs.translate
money = prefs.format_currency

# host colour scheme drives the "system" theme
host_theme = st.context.theme.type
prefs.set_system_dark(host_theme == "dark")
chart_template = "plotly_dark" if prefs.effective_theme() == "dark" else "plotly_white"

align = "right" if prefs.is_rtl else "left"
st.markdown(
    "<style>.stMainBlockContainer, section[data-testid='stSidebar'] "
    f"{{direction: {prefs.direction}; text-align: {align};}}</style>",
    unsafe_allow_html=True,
)


def notify(result: Either, success_key: str = "") -> bool:
    if result.is_left():
        st.error(t(result.get_error()["message_key"]))
        return False
    if success_key:
        st.toast(t(success_key))
    return True


def category_label(name: str) -> str:
    key = f"categories.{name}"
    label = t(key)
    return name if label == key else label


def records_frame(records, columns) -> pd.DataFrame:
    rows = [r.to_dict() for r in agg.sort_by_date(records)]
    return pd.DataFrame(rows, columns=columns)


pages = {
    "dashboard": t("nav.dashboard"),
    "expenses": t("nav.expenses"),
    "income": t("nav.income"),
    "goals": t("nav.goals"),
    "settings": t("nav.settings"),
}
st.sidebar.title(t("dashboard.title"))
menu = st.sidebar.radio("Menu", list(pages), format_func=pages.get, label_visibility="collapsed")
if st.sidebar.button("🌓", key="btn_toggle_theme"):
    prefs.toggle_theme()
    st.rerun()

if menu == "dashboard":
    st.title(t("dashboard.title"))
    summary = dashboard.monthly_summary()

    k1, k2, k3, k4 = st.columns(4)
    with k1:
        st.metric(t("dashboard.totalIncome"), money(summary["income"]))
    with k2:
        st.metric(t("dashboard.totalExpenses"), money(summary["expenses"]))
    with k3:
        st.metric(t("dashboard.netSavings"), money(summary["net_savings"]))
    with k4:
        st.metric(t("dashboard.remainingBudget"), money(summary["remaining_budget"]))

    col_pie, col_flow = st.columns(2)
    with col_pie:
        st.subheader(t("dashboard.expensesByCategory"))
        if summary["by_category"]:
            df_cat = pd.DataFrame(
                [{"category": category_label(name), "amount": amount} for name, amount in summary["by_category"].items()]
            )
            fig_cat = px.pie(df_cat, values="amount", names="category", template=chart_template)
            st.plotly_chart(fig_cat, use_container_width=True)
        else:
            st.info(t("dashboard.noData"))

    with col_flow:
        st.subheader(t("dashboard.cashFlow"))
        flow = dashboard.trend(settings.trend_months)
        labels = [pd.Period(row["month"], freq="M").strftime("%b %y") for row in flow]
        fig_ts = go.Figure()
        fig_ts.add_trace(go.Bar(x=labels, y=[row["income"] for row in flow], name=t("nav.income")))
        fig_ts.add_trace(go.Bar(x=labels, y=[row["expenses"] for row in flow], name=t("nav.expenses")))
        fig_ts.update_layout(template=chart_template, margin=dict(t=30, b=10, l=10, r=10))
        st.plotly_chart(fig_ts, use_container_width=True)

    st.subheader(t("dashboard.goalsOverview"))
    for card in dashboard.goal_cards():
        goal = card["goal"]
        st.caption(f"{goal.name}: {money(goal.saved_amount)} / {money(goal.target_amount)} ({card['progress']:.0f}%)")
        st.progress(card["bar"] / 100)

elif menu == "expenses":
    st.title(t("expenses.title"))
    categories = tracker.categories.all()

    with st.form("expense_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            amount = st.text_input(t("expenses.amount"), placeholder="0.00")
            on = st.date_input(t("expenses.date"), value=date.today())
        with col2:
            category = st.selectbox(t("expenses.category"), categories, format_func=category_label)
            recurring = st.checkbox(t("expenses.recurring"))
        description = st.text_input(t("expenses.description"))
        if st.form_submit_button(t("expenses.addExpense")):
            result = build_expense(amount, category, on, description, recurring, categories)
            if notify(result):
                tracker.expenses.add(result.get_or_else(None))
                st.rerun()

    f1, f2 = st.columns(2)
    with f1:
        filter_category = st.selectbox(t("common.filter"), ("all",) + categories,
                                       format_func=lambda c: t("common.all") if c == "all" else category_label(c))
    with f2:
        filter_month = st.text_input(t("common.month"), value=agg.current_month())

    predicates = [agg.by_month(filter_month)]
    if filter_category != "all":
        predicates.append(agg.by_category(filter_category))
    shown = agg.apply_filters(tracker.expenses.all(), *predicates)

    m1, m2 = st.columns(2)
    m1.metric(t("expenses.total"), money(agg.total(shown)))
    m2.metric(t("expenses.recurringTotal"), money(agg.recurring_total(shown)))

    if shown:
        df = records_frame(shown, ["id", "date", "category", "description", "amount", "recurring"])
        df["amount"] = df["amount"].map(money)
        st.dataframe(df.drop(columns=["id"]), use_container_width=True, hide_index=True)
        to_delete = st.selectbox(t("common.delete"), df["id"],
                                 format_func=lambda rid: tracker.expenses.find(rid).map(
                                     lambda e: f"{e.date} {e.description or e.category}").get_or_else(rid))
        if st.button(t("common.delete"), key="btn_delete_expense"):
            tracker.expenses.remove(to_delete)
            st.rerun()
    else:
        st.info(t("expenses.noExpenses"))

elif menu == "income":
    st.title(t("income.title"))

    with st.form("income_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            amount = st.text_input(t("income.amount"), placeholder="0.00")
            source = st.text_input(t("income.source"))
        with col2:
            income_type = st.selectbox(t("income.type"), INCOME_TYPES, format_func=lambda v: t(f"income.{v}"))
            on = st.date_input(t("income.date"), value=date.today())
        if st.form_submit_button(t("income.addIncome")):
            result = build_income(amount, source, income_type, on)
            if notify(result):
                tracker.income.add(result.get_or_else(None))
                st.rerun()

    month = agg.current_month()
    monthly = agg.filter_by_month(tracker.income.all(), month)
    by_type = agg.income_by_type(monthly, month)
    m1, m2, m3 = st.columns(3)
    m1.metric(t("income.totalIncome"), money(agg.total(monthly)))
    m2.metric(t("income.fixedIncome"), money(by_type["fixed"]))
    m3.metric(t("income.variableIncome"), money(by_type["variable"]))

    records = tracker.income.all()
    if records:
        df = records_frame(records, ["id", "date", "source", "type", "amount"])
        df["type"] = df["type"].map(lambda v: t(f"income.{v}"))
        df["amount"] = df["amount"].map(money)
        st.dataframe(df.drop(columns=["id"]), use_container_width=True, hide_index=True)
        to_delete = st.selectbox(t("common.delete"), df["id"],
                                 format_func=lambda rid: tracker.income.find(rid).map(
                                     lambda i: f"{i.date} {i.source}").get_or_else(rid))
        if st.button(t("common.delete"), key="btn_delete_income"):
            tracker.income.remove(to_delete)
            st.rerun()
    else:
        st.info(t("income.noIncome"))

elif menu == "goals":
    st.title(t("goals.title"))

    with st.form("goal_form", clear_on_submit=True):
        name = st.text_input(t("goals.goalName"))
        col1, col2, col3 = st.columns(3)
        with col1:
            target = st.text_input(t("goals.targetAmount"), placeholder="0.00")
        with col2:
            saved = st.text_input(t("goals.savedSoFar"), value="0")
        with col3:
            due = st.date_input(t("goals.dueDate"), value=date.today())
        if st.form_submit_button(t("common.save")):
            result = build_goal(name, target, due, saved)
            if notify(result):
                tracker.goals.add(result.get_or_else(None))
                st.rerun()

    cards = dashboard.goal_cards()
    if not cards:
        st.info(t("goals.noGoals"))
    cols = st.columns(3)
    for idx, card in enumerate(cards):
        goal = card["goal"]
        with cols[idx % 3]:
            st.subheader(("✅ " if card["complete"] else "🎯 ") + goal.name)
            st.caption(f"{t('goals.progress')}: {card['progress']:.0f}%")
            st.progress(card["bar"] / 100)
            st.write(f"{money(goal.saved_amount)} / {money(goal.target_amount)}")
            days = card["days_remaining"]
            if card["complete"]:
                st.success(t("goals.completed"))
            elif days > 0:
                st.caption(f"{days} {t('goals.daysLeft')}")
            else:
                st.warning(t("goals.overdue"))
            new_saved = st.number_input(t("goals.updateSaved"), min_value=0.0, value=float(goal.saved_amount),
                                        step=10.0, key=f"saved_{goal.id}")
            b1, b2 = st.columns(2)
            if b1.button(t("common.save"), key=f"btn_save_{goal.id}"):
                if notify(tracker.goals.update(goal.id, new_saved)):
                    st.rerun()
            if b2.button(t("common.delete"), key=f"btn_delete_{goal.id}"):
                tracker.goals.remove(goal.id)
                st.rerun()

elif menu == "settings":
    st.title(t("settings.title"))
    current = prefs.get()

    c1, c2, c3 = st.columns(3)
    with c1:
        locale = st.selectbox(t("settings.language"), LOCALES, index=LOCALES.index(current.locale),
                              format_func={"en": "English", "ar": "العربية"}.get)
    with c2:
        currency = st.selectbox(t("settings.currency"), CURRENCIES, index=CURRENCIES.index(current.currency))
    with c3:
        theme = st.selectbox(t("settings.theme"), THEMES, index=THEMES.index(current.theme),
                             format_func=lambda v: t(f"settings.{v}"))
    if (locale, currency, theme) != (current.locale, current.currency, current.theme):
        prefs.set_locale(locale)
        prefs.set_currency(currency)
        prefs.set_theme(theme)
        st.rerun()

    st.header(t("settings.manageCategories"))
    with st.form("category_form", clear_on_submit=True):
        new_category = st.text_input(t("settings.categoryName"))
        if st.form_submit_button(t("settings.addCategory")):
            if notify(tracker.categories.add(new_category), "messages.categoryAdded"):
                st.rerun()
    for category in tracker.categories.all():
        col_name, col_btn = st.columns([4, 1])
        col_name.write(category_label(category))
        if col_btn.button("🗑", key=f"btn_del_cat_{category}"):
            if notify(tracker.categories.remove(category), "messages.categoryDeleted"):
                st.rerun()

    st.header(t("settings.exportData"))
    st.download_button(
        "⬇ " + t("settings.exportData"),
        tracker.export_data(),
        file_name=export_filename(),
        mime="application/json",
    )
    uploaded = st.file_uploader(t("settings.importData"), type=["json"])
    if uploaded is not None and st.button("⬆ " + t("settings.importData"), key="btn_import"):
        if notify(tracker.import_data(uploaded.getvalue()), "messages.importSuccess"):
            st.rerun()
