# app.py
"""
Manager Performance Dashboard - Main Entry Point

Version: 2.0.0

Thin presentation layer: one PerformanceStore per browser session
(st.session_state), read access to its state and dispatch() as the only
mutation path.
"""

import asyncio
import logging

import pandas as pd
import streamlit as st

from utils.config import config
from utils.manager_performance import (
    ROLE_NAMES,
    AddActionPlan,
    AddManager,
    AddToRiskRegister,
    AIService,
    CompleteActionStep,
    ManagerRole,
    MarkAlertRead,
    NotFoundError,
    PerformanceStore,
    RefreshAlerts,
    RiskImpact,
    RiskLikelihood,
    RiskStatus,
    SetSelectedManager,
    SetTimePeriod,
    SetView,
    TimePeriod,
    UpdateKpiValue,
    UpdateRiskStatus,
    ValidationError,
    ViewMode,
    build_state_snapshot,
    manager_leaderboard,
    overall_score,
    rollup,
    score_of_kpi,
    score_of_pillar,
)
from utils.manager_performance.constants import KPI_UNITS, NO_DATA_LABEL, PERIOD_LABELS
from utils.manager_performance.period_aggregator import month_key, resolve_value

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ==================== PAGE CONFIGURATION ====================

APP_NAME = "Manager Performance"
APP_ICON = "📊"
APP_VERSION = "2.0.0"

st.set_page_config(
    page_title=f"{APP_NAME} Dashboard",
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

# ==================== INITIALIZATION ====================


def get_store() -> PerformanceStore:
    if 'performance_store' not in st.session_state:
        st.session_state.performance_store = PerformanceStore()
    return st.session_state.performance_store


def get_ai_service() -> AIService:
    if 'ai_service' not in st.session_state:
        st.session_state.ai_service = AIService()
    return st.session_state.ai_service


def run_command(store: PerformanceStore, command) -> bool:
    """Dispatch and surface errors the way each kind should be shown."""
    try:
        store.dispatch(command)
        return True
    except ValidationError as e:
        st.error(f"⚠️ {e}")
    except NotFoundError as e:
        st.toast(f"❌ {e}")
    return False


def fmt_score(score) -> str:
    return NO_DATA_LABEL if score is None else f"{score}%"


# ==================== SIDEBAR ====================

def render_sidebar(store: PerformanceStore):
    state = store.state

    with st.sidebar:
        st.markdown(f"### {APP_ICON} {APP_NAME}")

        views = [v.value for v in ViewMode]
        view = st.radio("View", views, index=views.index(state.current_view.value), horizontal=True)
        if view != state.current_view.value:
            run_command(store, SetView(view))
            st.rerun()

        periods = [p.value for p in TimePeriod]
        period = st.selectbox(
            "Time period", periods,
            index=periods.index(state.current_period.value),
            format_func=lambda p: PERIOD_LABELS[TimePeriod(p)],
        )
        if period != state.current_period.value:
            run_command(store, SetTimePeriod(period))
            st.rerun()

        if state.managers:
            ids = [m.id for m in state.managers]
            names = {m.id: f"{m.name} ({m.department})" for m in state.managers}
            current = state.selected_manager_id if state.selected_manager_id in ids else ids[0]
            selected = st.selectbox("Manager", ids, index=ids.index(current), format_func=names.get)
            if selected != state.selected_manager_id:
                run_command(store, SetSelectedManager(selected))
                st.rerun()

        unread = len(state.unread_alerts)
        st.caption(f"🔔 {unread} unread alert(s)")
        if unread and st.button("Mark all alerts read", use_container_width=True):
            run_command(store, MarkAlertRead(mark_all=True))
            st.rerun()

        st.markdown("---")
        with st.expander("➕ Add manager"):
            with st.form("add_manager_form", clear_on_submit=True):
                name = st.text_input("Name")
                department = st.text_input("Department")
                role = st.selectbox(
                    "Role", [r.value for r in ManagerRole],
                    format_func=lambda r: ROLE_NAMES[ManagerRole(r)],
                )
                if st.form_submit_button("Add", type="primary"):
                    if run_command(store, AddManager(name=name, department=department, role=role)):
                        st.success("✅ Manager added")


# ==================== MANAGER VIEW ====================

def render_manager_view(store: PerformanceStore):
    state = store.state
    manager = state.selected_manager
    if manager is None:
        st.info("Select a manager from the sidebar.")
        return

    period = state.current_period
    st.markdown(f"## {manager.name}")
    st.caption(f"{manager.department} · {ROLE_NAMES[manager.role]}")
    st.metric("Overall score", fmt_score(overall_score(manager, period)))

    for pillar in manager.pillars:
        with st.expander(f"{pillar.name} · weight {pillar.weight:g} · {fmt_score(score_of_pillar(pillar, period))}"):
            rows = [
                {
                    "KPI": kpi.name,
                    "Value": resolve_value(kpi, period),
                    "Target": kpi.target,
                    "Unit": KPI_UNITS.get(kpi.unit, kpi.unit),
                    "Score": fmt_score(score_of_kpi(kpi, period)),
                }
                for kpi in pillar.kpis
            ]
            st.dataframe(rows, use_container_width=True, hide_index=True)

            with st.form(f"kpi_form_{pillar.id}", clear_on_submit=True):
                kpi_ids = [k.id for k in pillar.kpis]
                kpi_names = {k.id: k.name for k in pillar.kpis}
                col1, col2, col3 = st.columns(3)
                kpi_id = col1.selectbox("KPI", kpi_ids, format_func=kpi_names.get)
                month = col2.date_input("Month")
                value = col3.number_input("Value", min_value=0.0, step=0.1)
                if st.form_submit_button("Record value"):
                    run_command(store, UpdateKpiValue(manager.id, pillar.id, kpi_id, month_key(month), value))
                    st.rerun()

    render_action_plans(store, manager)
    render_ai_summary(manager, period)


def render_action_plans(store: PerformanceStore, manager):
    st.markdown("### 🛠️ Action plans")
    for plan in reversed(manager.action_plans):
        status = "🟡 Open" if plan.is_open else "✅ Closed"
        with st.expander(f"{status} · {plan.original_recommendation}"):
            for index, step in enumerate(plan.steps):
                checked = st.checkbox(
                    step.text, value=step.is_completed, disabled=step.is_completed,
                    key=f"step_{plan.id}_{index}",
                )
                if checked and not step.is_completed:
                    run_command(store, CompleteActionStep(manager.id, plan.id, index))
                    st.rerun()

    with st.form(f"plan_form_{manager.id}", clear_on_submit=True):
        recommendation = st.text_input("Recommendation")
        steps = st.text_area("Steps (one per line)")
        if st.form_submit_button("Create plan"):
            step_list = [line for line in steps.splitlines() if line.strip()]
            if run_command(store, AddActionPlan(manager.id, recommendation, step_list)):
                st.rerun()


def render_ai_summary(manager, period):
    if not config.is_feature_enabled("AI_SUMMARY"):
        return
    if st.button("🤖 Generate meeting summary"):
        with st.spinner("Generating..."):
            result = asyncio.run(get_ai_service().generate_summary(manager, period))
        (st.warning if result.is_fallback else st.markdown)(result.summary)


# ==================== EXECUTIVE VIEW ====================

def render_executive_view(store: PerformanceStore):
    state = store.state
    period = state.current_period
    limit = config.get_app_setting("TOP_ALERTS_LIMIT", 5)
    summary = rollup(state.managers, period, state.alerts, top_n=limit)

    st.markdown("## 🏢 Executive overview")
    col1, col2, col3 = st.columns(3)
    col1.metric("Organisation score", fmt_score(summary.org_wide))
    col2.metric("Scored managers", summary.scored_managers)
    col3.metric("No data", summary.unscored_managers)

    if summary.per_department:
        st.markdown("### By department")
        st.bar_chart(pd.Series(summary.per_department, name="score"))

    st.markdown("### Leaderboard")
    st.dataframe(manager_leaderboard(state.managers, period, state.alerts), use_container_width=True, hide_index=True)

    st.markdown("### Top alerts")
    for alert in summary.top_alerts:
        col_msg, col_btn = st.columns([5, 1])
        marker = "" if alert.is_read else "🔴 "
        col_msg.markdown(f"{marker}**{alert.severity.value.upper()}** · {alert.message}")
        if not alert.is_read and col_btn.button("Read", key=f"read_{alert.id}"):
            run_command(store, MarkAlertRead(alert_id=alert.id))
            st.rerun()

    render_risk_register(store)

    if config.is_feature_enabled("AI_SUMMARY"):
        st.markdown("### 💬 Ask the assistant")
        question = st.text_input("Question")
        web = st.checkbox("Use web search")
        if st.button("Ask") and question.strip():
            with st.spinner("Thinking..."):
                answer = asyncio.run(
                    get_ai_service().ask_conversational(question, build_state_snapshot(state), web)
                )
            (st.warning if answer.is_fallback else st.markdown)(answer.text)
            for source in answer.sources:
                st.caption(f"[{source.title}]({source.uri})")


def render_risk_register(store: PerformanceStore):
    st.markdown("### ⚠️ Risk register")
    statuses = [s.value for s in RiskStatus]
    for risk in store.state.risk_register:
        col_msg, col_status = st.columns([4, 1])
        col_msg.markdown(
            f"**{risk.risk_title}** · {risk.category or 'General'} · "
            f"{risk.likelihood.value} / {risk.impact.value}"
        )
        col_msg.caption(f"{risk.risk_description} (source: {risk.source})")
        status = col_status.selectbox(
            "Status", statuses, index=statuses.index(risk.status.value),
            key=f"risk_status_{risk.id}", label_visibility="collapsed",
        )
        if status != risk.status.value:
            run_command(store, UpdateRiskStatus(risk.id, status))
            st.rerun()

    with st.form("risk_form", clear_on_submit=True):
        title = st.text_input("Risk title")
        description = st.text_area("Description")
        col1, col2, col3 = st.columns(3)
        category = col1.text_input("Category")
        likelihood = col2.selectbox("Likelihood", [r.value for r in RiskLikelihood])
        impact = col3.selectbox("Impact", [r.value for r in RiskImpact])
        source = st.text_input("Source", value="Executive review")
        if st.form_submit_button("Register risk"):
            if run_command(store, AddToRiskRegister(title, description, category, likelihood, impact, source)):
                st.rerun()


# ==================== MAIN ====================

def main():
    store = get_store()
    # Stale-plan alerts depend on the clock, not only on edits
    store.dispatch(RefreshAlerts())
    render_sidebar(store)

    if store.state.current_view == ViewMode.EXECUTIVE:
        render_executive_view(store)
    else:
        render_manager_view(store)

    st.caption(f"{APP_NAME} v{APP_VERSION}")


if __name__ == "__main__":
    main()
