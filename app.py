import logging
from contextlib import contextmanager
from typing import Dict, List, Optional

import altair as alt
import pandas as pd
import streamlit as st

from bloodsugar.charts import fasting_chart, main_chart, random_chart
from bloodsugar.config import CHART_VIEWS, REFERENCE_RANGES, DashboardConfig, load_config
from bloodsugar.dashboard import ERROR_HINT, NO_DATA_MESSAGE, DashboardData, LoadState, build_dashboard
from bloodsugar.models import GroupStats
from bloodsugar.normalize import readings_frame
from bloodsugar.stats import format_stat

alt.data_transformers.disable_max_rows()
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

LEVEL_COLORS = {"normal": "#10b981", "pre_diabetes": "#f59e0b", "diabetes": "#ef4444"}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.05rem;margin-bottom: 8px;}
        .stat-line {margin: 2px 0;color: #374151;}
        .stat-line b {color: #111827;}
        .swatch {display: inline-block;width: 14px;height: 14px;border-radius: 3px;margin-right: 8px;vertical-align: middle;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, color: str = "#111827"):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-title" style="color:{color};">{title}</div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def load_session_data(config: DashboardConfig) -> DashboardData:
    # One load per browser session; reruns (e.g. chart toggles) reuse it.
    if "dashboard_data" not in st.session_state:
        with st.spinner("Loading blood sugar data..."):
            st.session_state["dashboard_data"] = build_dashboard(config)
    return st.session_state["dashboard_data"]


# ---------- Renderers ----------
def render_error(data: DashboardData):
    st.error(f"**Error Loading Data**  \n{data.error}")
    st.caption(ERROR_HINT)


def render_no_data():
    st.warning(f"**No Data Found**  \n{NO_DATA_MESSAGE}")


def render_stat_card(title: str, stats: GroupStats, count_label: str, color: str):
    with card(title, color=color):
        lines = [
            ("Average", f"{format_stat(stats.average, decimals=1)} mg/dL"),
            ("Highest", f"{format_stat(stats.max)} mg/dL"),
            ("Lowest", f"{format_stat(stats.min)} mg/dL"),
            (count_label, str(stats.count)),
        ]
        st.markdown(
            "".join(f"<p class='stat-line'><b>{k}:</b> {v}</p>" for k, v in lines),
            unsafe_allow_html=True,
        )


def render_stat_cards(data: DashboardData):
    cols = st.columns(3)
    with cols[0]:
        render_stat_card("Overall Stats", data.stats.overall, "Total readings", "#374151")
    with cols[1]:
        render_stat_card("Fasting Levels", data.stats.fasting, "Readings", "#2563eb")
    with cols[2]:
        render_stat_card("Random Levels", data.stats.random, "Readings", "#16a34a")


def render_charts(frame: pd.DataFrame, view: str):
    with card("Blood Sugar Levels Over Time"):
        st.altair_chart(main_chart(frame, kind=view), use_container_width=True)

    cols = st.columns(2)
    with cols[0]:
        st.altair_chart(fasting_chart(frame), use_container_width=True)
    with cols[1]:
        st.altair_chart(random_chart(frame), use_container_width=True)


def _range_items(items: List[Dict[str, str]]) -> str:
    return "".join(
        f"<li><span class='swatch' style='background:{LEVEL_COLORS.get(i['level'], '#9ca3af')}'></span>{i['label']}: {i['range']}</li>"
        for i in items
    )


def render_reference_ranges():
    with card("Reference Ranges"):
        cols = st.columns(2)
        cols[0].markdown(
            f"<h4 style='color:#2563eb;'>Fasting Blood Sugar</h4><ul>{_range_items(REFERENCE_RANGES['fasting'])}</ul>",
            unsafe_allow_html=True,
        )
        cols[1].markdown(
            f"<h4 style='color:#16a34a;'>Random Blood Sugar</h4><ul>{_range_items(REFERENCE_RANGES['random'])}</ul>",
            unsafe_allow_html=True,
        )


def render_readings_table(frame: pd.DataFrame):
    with st.expander("All readings", expanded=False):
        table = frame.drop(columns=["position", "index"])
        st.dataframe(table, hide_index=True, use_container_width=True)
        st.download_button(
            "Export CSV",
            data=table.to_csv(index=False).encode("utf-8"),
            file_name="bloodsugar-readings.csv",
            mime="text/csv",
        )


def render_warnings(data: DashboardData, limit: Optional[int] = 5):
    if not data.warnings:
        return
    with st.expander(f"CSV parsing warnings ({len(data.warnings)})"):
        for w in data.warnings[:limit]:
            st.caption(f"{w.code}: {w.message}")


# ---------- UI setup ----------
st.set_page_config(page_title="Blood Sugar Analysis Dashboard", layout="wide")
inject_base_styles()

config = load_config()
data = load_session_data(config)

if data.state == LoadState.ERROR:
    render_error(data)
    st.stop()
if data.state == LoadState.NO_DATA:
    render_no_data()
    st.stop()

source_label = "Google Sheets" if data.source == "remote" else "local file"
st.title("Blood Sugar Analysis Dashboard")
st.caption(f"Tracking blood glucose levels ({len(data.readings)} readings loaded from {source_label})")

render_stat_cards(data)

view_label = st.radio(
    "Chart type",
    ["Line Chart", "Bar Chart"],
    index=CHART_VIEWS.index(config.chart_view),
    horizontal=True,
    label_visibility="collapsed",
)
view = "bar" if view_label == "Bar Chart" else "line"

frame = readings_frame(data.readings)
render_charts(frame, view)
render_reference_ranges()
render_readings_table(frame)
render_warnings(data)
