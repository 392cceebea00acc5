import asyncio
from contextlib import contextmanager

import pandas as pd
import streamlit as st

from econdash.charts import line_chart
from econdash.config import configure_logging, load_settings
from econdash.indicators import DEFAULT_SURFACES, MONTHLY_GROUP
from econdash.loader import FredSeriesLoader
from econdash.orchestrator import Dashboard, IndicatorChanged, Phase, RangeChanged
from econdash.ranges import RANGE_CHOICES, range_label
from econdash.sink import ChartStore
from econdash.slicing import ENTIRE_HISTORY, MONTHLY, QUARTERLY

SURFACE_TITLES = {
    "main": "Selected Indicator",
    "comparison": "Unemployment vs Fed Funds",
    "delinquency": "Loan Delinquency Rates",
}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_range(choice: str) -> str:
    if choice == ENTIRE_HISTORY:
        return "Max"
    months = int(choice)
    return f"{months // 12}Y" if months % 12 == 0 else f"{months}M"


def build_dashboard(ranges=None) -> Dashboard:
    settings = load_settings()
    configure_logging(settings.log_level)
    loader = FredSeriesLoader(settings.backend_base, timeout=settings.timeout)
    dashboard = Dashboard(
        loader,
        ChartStore(),
        keep={MONTHLY: settings.keep_monthly, QUARTERLY: settings.keep_quarterly},
        ranges=ranges,
    )

    async def _init():
        try:
            await dashboard.initialize()
        finally:
            await loader.aclose()

    try:
        asyncio.run(_init())
    except Exception:
        # Kept on dashboard.error and reported below.
        if dashboard.phase is not Phase.FAILED:
            raise
    return dashboard


def render_range_control(dashboard: Dashboard, surface: str):
    current = range_label(dashboard.ranges[surface])
    choice = st.radio(
        "Range",
        options=list(RANGE_CHOICES),
        index=list(RANGE_CHOICES).index(current) if current in RANGE_CHOICES else 0,
        format_func=format_range,
        horizontal=True,
        key=f"range_{surface}",
        label_visibility="collapsed",
    )
    if choice != current:
        dashboard.dispatch(RangeChanged(surface=surface, range=choice))


def render_surface(dashboard: Dashboard, store: ChartStore, surface: str):
    with card(SURFACE_TITLES.get(surface, surface)):
        if surface == "main":
            options = [ind.key for ind in MONTHLY_GROUP.indicators]
            names = {ind.key: ind.name for ind in MONTHLY_GROUP.indicators}
            key = st.selectbox(
                "Indicator",
                options=options,
                index=options.index(dashboard.current_indicator),
                format_func=lambda k: names[k],
                key="indicator_select",
            )
            if key != dashboard.current_indicator:
                dashboard.dispatch(IndicatorChanged(indicator=key))
        render_range_control(dashboard, surface)
        update = store[surface]
        st.caption(f"{len(update.labels)} points")
        st.altair_chart(line_chart(update), use_container_width=True)
        export_df: pd.DataFrame = store.table(surface)
        st.download_button(
            "Export CSV",
            data=export_df.to_csv(index=False).encode("utf-8"),
            file_name=f"{surface}.csv",
            mime="text/csv",
            key=f"export_{surface}",
        )


# ---------- UI setup ----------
st.set_page_config(page_title="Economic Dashboard", layout="wide")
inject_base_styles()
st.title("Economic Dashboard")
st.caption("Monthly macro indicators and quarterly loan delinquency rates from FRED.")

# One dashboard per browser session. Initial ranges may come from the URL, e.g. ?main=24&delinquency=60.
if "dashboard" not in st.session_state:
    with st.spinner("Loading FRED series..."):
        st.session_state["dashboard"] = build_dashboard(st.query_params.to_dict())
dashboard: Dashboard = st.session_state["dashboard"]

if dashboard.phase is not Phase.READY:
    st.error(f"Error initializing dashboard: {dashboard.error or dashboard.phase.value}")
    st.stop()

store: ChartStore = dashboard.sink  # type: ignore[assignment]
tabs = st.tabs([SURFACE_TITLES.get(s.name, s.name) for s in DEFAULT_SURFACES])
for tab, spec in zip(tabs, DEFAULT_SURFACES):
    with tab:
        render_surface(dashboard, store, spec.name)
