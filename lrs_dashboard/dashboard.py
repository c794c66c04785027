"""
Learning Reports Dashboard
==========================

Streamlit overview page over the LRS reports API.

- Backend: /api/reports/* endpoints (lrs_api)
- Sections: overview metrics, verb breakdown, top performers, popular
  activities, daily trend
- Date range and list sizes come from the sidebar

Run:
  streamlit run lrs_dashboard/dashboard.py
"""

from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Optional

import pandas as pd
import requests
import streamlit as st

from lrs_api.config import LRS_API_URL, TOP_N_DEFAULT
from lrs_dashboard.frames import (
    activities_frame,
    detect_chart_type,
    overview_metrics,
    performers_frame,
    trends_frame,
    verb_frame,
)

# ============================================================================
# Configuration
# ============================================================================

st.set_page_config(
    page_title="Learning Analytics - Overview",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ============================================================================
# Helper Functions
# ============================================================================


def call_lrs_api(
    endpoint: str,
    params: Optional[Dict[str, Any]] = None,
    timeout: int = 60,
) -> Optional[Any]:
    """GET an LRS API endpoint and return the envelope's data field."""
    try:
        response = requests.get(f"{LRS_API_URL}{endpoint}", params=params, timeout=timeout)
        response.raise_for_status()
        return response.json().get("data")
    except requests.exceptions.RequestException as e:
        st.error(f"API Error: {str(e)}")
        return None


def render_chart(df: pd.DataFrame) -> None:
    chart_type, x_col, y_col = detect_chart_type(df)
    if chart_type == "none":
        return

    if chart_type == "line":
        data = df[y_col] if df.index.name == x_col else df.set_index(x_col)[y_col]
        st.line_chart(data)
    else:
        st.bar_chart(df.set_index(x_col)[y_col])


def _range_params(start: date, end: date) -> Dict[str, str]:
    return {
        "startDate": datetime.combine(start, time.min).isoformat(),
        "endDate": datetime.combine(end, time.max).isoformat(),
    }


# ============================================================================
# Dashboard Sections
# ============================================================================


def render_summary_cards(report: Dict[str, Any]):
    st.subheader("📌 Overview")

    metrics = overview_metrics(report)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Statements", f"{metrics['totalStatements']:,}")
    col2.metric("Learners", f"{metrics['totalActors']:,}")
    col3.metric("Activities", f"{metrics['totalActivities']:,}")
    col4.metric("Verbs", f"{metrics['totalVerbs']:,}")

    col5, col6, col7 = st.columns(3)
    col5.metric("Average Score", f"{metrics['overallAverageScore']:.1f}%")
    col6.metric("Completion Rate", f"{metrics['overallCompletionRate']:.1f}%")
    col7.metric("Success Rate", f"{metrics['overallSuccessRate']:.1f}%")


def render_table_section(title: str, df: pd.DataFrame, empty_message: str):
    st.markdown(f"#### {title}")
    if df.empty:
        st.info(empty_message)
        return

    render_chart(df)
    st.dataframe(df, use_container_width=True, hide_index=df.index.name is None)


def render_dashboard():
    st.title("📊 Learning Records - Overview")
    st.markdown(
        "Statistics computed by the LRS over all statements in the selected "
        "date range. Rankings cover the whole record store."
    )

    today = date.today()
    with st.sidebar:
        st.header("Filters")
        start = st.date_input("Start date", value=today - timedelta(days=30))
        end = st.date_input("End date", value=today)
        limit = st.slider("List size", min_value=1, max_value=50, value=TOP_N_DEFAULT)

    if start > end:
        st.warning("Start date must not be after end date.")
        return

    report = call_lrs_api("/api/reports/comprehensive", params=_range_params(start, end))
    if report is None:
        st.info("Comprehensive report could not be loaded.")
        return

    render_summary_cards(report)

    st.markdown("---")

    tab1, tab2, tab3, tab4 = st.tabs(["📈 Trend", "🔤 Verbs", "🏆 Learners", "📚 Activities"])

    with tab1:
        render_table_section(
            "Daily activity",
            trends_frame(report.get("dailyTrends")),
            "No dated statements in this range.",
        )
    with tab2:
        render_table_section(
            "Verb breakdown",
            verb_frame(report.get("verbBreakdown")),
            "No statements in this range.",
        )
    with tab3:
        performers = call_lrs_api("/api/reports/top-performers", params={"limit": limit})
        render_table_section(
            "Top performers (average score %)",
            performers_frame(performers),
            "No learners recorded yet.",
        )
    with tab4:
        activities = call_lrs_api("/api/reports/popular-activities", params={"limit": limit})
        render_table_section(
            "Most popular activities",
            activities_frame(activities),
            "No activities recorded yet.",
        )


if __name__ == "__main__":
    render_dashboard()
