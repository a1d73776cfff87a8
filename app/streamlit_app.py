"""
Know Your Capital — Portfolio Projection Dashboard
==================================================

  1. Configure:  contribution, return, inflation and tax assumptions (sidebar)
  2. Plan:       extra deposits, withdrawals, loans and leverage (event editor)
  3. Review:     KPIs, nominal vs. real value chart, yearly table, downloads

The projection engine never sees UI state: every rerun parses the widgets into
fresh inputs, projects, and renders. A failed projection or a failed chart
leaves the last good result on screen.

Run: streamlit run app/streamlit_app.py   (or: know-your-capital)
"""

from __future__ import annotations

import hashlib
import json
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import altair as alt
import pandas as pd
import streamlit as st

# ---------------------------------------------------------------------------
# Make project root importable
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.config import DEFAULT_PARAMS, FinancialEvent, SimulationParams
from core.schema import EventType

from data_prep.loader import (
    drop_events_beyond,
    events_from_frame,
    events_to_frame,
    scenario_from_payload,
)

from engine.cashflow import annuity_payment
from engine.runner import YearlyData, project, projection_to_frame

from pm.metrics import ProjectionSummary, compute_summary
from pm.exporters import export_config, export_csv, export_text_report

logger = logging.getLogger(__name__)

LAST_GOOD_KEY = "last_good_projection"
SCENARIO_KEY = "loaded_scenario"
VERSION_KEY = "widget_version"


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------
def _fmt_money(val):
    """Format money with commas, no decimals."""
    return f"{val:,.0f}"


def _fmt_pct(val):
    """Format a percent value (already x100) with 1 decimal."""
    return f"{val:.1f}%"


def _guarded(title: str, render: Callable[..., None], *args) -> None:
    """Run one rendering section; a failure is shown in place of that section only."""
    try:
        render(*args)
    except Exception as e:
        logger.exception("Rendering %s failed", title)
        st.error(f"{title} could not be rendered: {e}")


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------
def _sidebar_params(defaults: SimulationParams, version: int) -> SimulationParams:
    sb = st.sidebar
    sb.header("Financial Freedom Goal")
    target = sb.number_input(
        "Target monthly income", min_value=0.0, max_value=20_000.0, step=100.0,
        value=float(defaults.target_monthly_income), key=f"target_{version}",
        help="Passive income you want the portfolio's yearly growth to cover.",
    )

    sb.header("General")
    start_year = sb.number_input(
        "Start year", min_value=2000, max_value=2100, step=1,
        value=int(defaults.start_year), key=f"start_{version}",
    )
    capital = sb.number_input(
        "Initial capital", min_value=0.0, step=500.0,
        value=float(defaults.initial_capital), key=f"capital_{version}",
    )
    monthly = sb.number_input(
        "Monthly contribution", min_value=0.0, step=50.0,
        value=float(defaults.monthly_contribution), key=f"monthly_{version}",
    )
    indexed = sb.checkbox(
        "Index contributions to inflation",
        value=defaults.adjust_contribution_for_inflation, key=f"indexed_{version}",
    )
    ret = sb.slider(
        "Annual return (%)", min_value=-10.0, max_value=30.0, step=0.5,
        value=float(defaults.annual_return_rate), key=f"return_{version}",
    )
    duration = sb.slider(
        "Duration (years)", min_value=1, max_value=50,
        value=int(defaults.duration_years), key=f"duration_{version}",
    )

    sb.header("Tax & Inflation")
    tax_on = sb.checkbox("Apply capital gains tax", value=defaults.is_tax_enabled, key=f"tax_on_{version}")
    tax_rate = sb.slider(
        "Tax rate (%)", min_value=0.0, max_value=50.0, step=0.5,
        value=float(defaults.tax_rate), disabled=not tax_on, key=f"tax_rate_{version}",
    )
    tax_real = sb.checkbox(
        "Tax only the real return", value=defaults.tax_adjusted_for_inflation,
        disabled=not tax_on, key=f"tax_real_{version}",
        help="Growth that only offsets inflation is not taxed.",
    )
    inflation = sb.slider(
        "Inflation (%)", min_value=0.0, max_value=20.0, step=0.1,
        value=float(defaults.inflation_rate), key=f"inflation_{version}",
    )

    return SimulationParams(
        start_year=int(start_year),
        initial_capital=float(capital),
        monthly_contribution=float(monthly),
        adjust_contribution_for_inflation=bool(indexed),
        annual_return_rate=float(ret),
        is_tax_enabled=bool(tax_on),
        tax_rate=float(tax_rate),
        tax_adjusted_for_inflation=bool(tax_real),
        duration_years=int(duration),
        inflation_rate=float(inflation),
        target_monthly_income=float(target),
    )


def _upload_token(raw: bytes) -> str:
    """Content hash of an uploaded file."""
    return hashlib.sha256(raw).hexdigest()


def _sidebar_upload() -> None:
    uploaded = st.sidebar.file_uploader("Load scenario (config.json)", type=["json"])
    if uploaded is None:
        return
    raw = uploaded.getvalue()
    token = _upload_token(raw)
    if st.session_state.get("uploaded_token") == token:
        return
    try:
        params, events = scenario_from_payload(json.loads(raw))
    except (ValueError, json.JSONDecodeError) as e:
        st.sidebar.error(f"Could not load scenario: {e}")
        return
    st.session_state["uploaded_token"] = token
    st.session_state[SCENARIO_KEY] = (params, events)
    st.session_state[VERSION_KEY] = st.session_state.get(VERSION_KEY, 0) + 1
    st.rerun()


def _event_editor(initial: Sequence[FinancialEvent], duration: int, version: int) -> Optional[List[FinancialEvent]]:
    st.markdown("#### Planned Events")
    st.caption(
        "Years are relative to the start year (1 = first year). Loans fire once and are "
        "repaid in fixed yearly installments: LOAN from the portfolio, LEVERAGE_LOAN from "
        "the monthly contribution."
    )
    edited = st.data_editor(
        events_to_frame(initial),
        key=f"events_{version}",
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        column_config={
            "id": st.column_config.TextColumn("Id"),
            "year": st.column_config.NumberColumn("Year", min_value=1, max_value=duration, step=1),
            "event_type": st.column_config.SelectboxColumn(
                "Type", options=[t.value for t in EventType], required=True,
            ),
            "amount": st.column_config.NumberColumn("Amount", min_value=0.0, step=100.0),
            "description": st.column_config.TextColumn("Description"),
            "is_recurring": st.column_config.CheckboxColumn("Recurring"),
            "recurring_end_year": st.column_config.NumberColumn("Until year", min_value=1, step=1),
            "loan_interest_rate": st.column_config.NumberColumn("Loan rate (%)", min_value=0.0, step=0.1),
            "loan_duration_years": st.column_config.NumberColumn("Loan years", min_value=1, max_value=30, step=1),
        },
    )
    try:
        events = events_from_frame(edited)
    except ValueError as e:
        st.error(f"Event table has an invalid row: {e}")
        return None

    kept = drop_events_beyond(events, duration)
    if len(kept) < len(events):
        st.warning(f"{len(events) - len(kept)} event(s) fall after year {duration} and were ignored.")
    return kept


def _loan_preview(events: Sequence[FinancialEvent]) -> None:
    rows = []
    for e in events:
        if not e.is_loan or not e.loan_duration_years or e.loan_duration_years <= 0:
            continue
        pmt = annuity_payment(e.amount, e.loan_interest_rate or 0.0, e.loan_duration_years)
        rows.append({
            "Event": e.id,
            "Type": e.event_type.value,
            "Yearly installment": _fmt_money(pmt),
            "Monthly equivalent": _fmt_money(pmt / 12),
            "Total repaid": _fmt_money(pmt * e.loan_duration_years),
        })
    if rows:
        st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------
def _run(params: SimulationParams, events: Sequence[FinancialEvent]) -> Optional[Tuple]:
    """Project and remember the result; on bad input fall back to the last good one."""
    try:
        rows = project(params, events)
    except ValueError as e:
        st.error(f"Simulation failed: {e}")
        last = st.session_state.get(LAST_GOOD_KEY)
        if last is not None:
            st.info("Showing the last valid projection.")
        return last
    result = (params, list(events), rows)
    st.session_state[LAST_GOOD_KEY] = result
    return result


def _display_summary(summary: ProjectionSummary) -> None:
    if summary.target_monthly_income > 0:
        if summary.target_reached is not None:
            st.success(
                f"Target of {_fmt_money(summary.target_monthly_income)}/month reached in "
                f"{summary.target_reached.label} (in {summary.target_reached.year} years): "
                f"{_fmt_money(summary.target_reached.net_growth / 12)}/month."
            )
        else:
            st.warning(
                f"Target not reached. Best: {_fmt_money(summary.max_monthly_income)}/month."
            )
        st.progress(int(round(summary.target_progress_pct or 0)))

    c = st.columns(3)
    c[0].metric("Nominal value", _fmt_money(summary.final_value))
    c[1].metric("Real value", _fmt_money(summary.final_real_value))
    c[2].metric("Net growth", _fmt_money(summary.total_growth), _fmt_pct(summary.roi_pct) + " ROI")
    c = st.columns(3)
    c[0].metric("Invested (net)", _fmt_money(summary.total_invested),
                f"withdrawn {_fmt_money(summary.total_withdrawn)}", delta_color="off")
    c[1].metric("Total tax", _fmt_money(summary.total_tax))
    c[2].metric("Inflation loss", _fmt_money(summary.inflation_loss))


def _plot_projection(df: pd.DataFrame, *, height=360) -> None:
    if len(df) == 0:
        st.info("No data to plot.")
        return
    stacked = df.melt(
        id_vars=["year", "label"],
        value_vars=["inflation_adjusted_value", "total_inflation_loss"],
        var_name="series", value_name="value",
    )
    stacked["series"] = stacked["series"].map({
        "inflation_adjusted_value": "Real value",
        "total_inflation_loss": "Inflation loss",
    })
    area = (
        alt.Chart(stacked).mark_area(opacity=0.7)
        .encode(
            x=alt.X("year:Q", title="Year"),
            y=alt.Y("value:Q", stack="zero", title="Value", axis=alt.Axis(format=",.0f")),
            color=alt.Color("series:N", title="Series"),
            tooltip=["label", "series", alt.Tooltip("value:Q", format=",.0f")],
        )
    )
    invested = (
        alt.Chart(df).mark_line(color="black", strokeDash=[4, 4])
        .encode(
            x="year:Q",
            y="total_invested:Q",
            tooltip=["label", alt.Tooltip("total_invested:Q", title="Invested", format=",.0f")],
        )
    )
    st.altair_chart((area + invested).properties(height=height), use_container_width=True)


def _display_downloads(params: SimulationParams, events: Sequence[FinancialEvent], rows: Sequence[YearlyData]) -> None:
    c = st.columns(3)
    name, blob = export_csv(rows)
    c[0].download_button("CSV", blob, file_name=name, mime="text/csv")
    name, blob = export_text_report(params, events, rows)
    c[1].download_button("Report (TXT)", blob, file_name=name, mime="text/plain")
    name, blob = export_config(params, events)
    c[2].download_button("Config (JSON)", blob, file_name=name, mime="application/json")


def render() -> None:
    st.set_page_config(page_title="Know Your Capital", layout="wide")
    st.title("Know Your Capital")
    st.caption("Deterministic portfolio projection with contributions, tax, inflation and debt.")

    _sidebar_upload()
    version = st.session_state.get(VERSION_KEY, 0)
    loaded_params, loaded_events = st.session_state.get(SCENARIO_KEY, (DEFAULT_PARAMS, []))

    params = _sidebar_params(loaded_params, version)
    events = _event_editor(loaded_events, params.duration_years, version)
    if events is None:
        result = st.session_state.get(LAST_GOOD_KEY)
    else:
        _guarded("Loan preview", _loan_preview, events)
        result = _run(params, events)

    if result is None:
        st.info("Adjust the inputs to produce a projection.")
        return

    params, events, rows = result
    st.divider()
    _guarded("Summary", lambda: _display_summary(compute_summary(rows, params.target_monthly_income)))
    df = projection_to_frame(rows)
    _guarded("Chart", _plot_projection, df)
    with st.expander("Yearly data"):
        st.dataframe(df, use_container_width=True, hide_index=True)
    _guarded("Downloads", _display_downloads, params, events, rows)


def main() -> None:
    """Console entry point: launch this page under ``streamlit run``."""
    from streamlit.web import cli as stcli

    sys.argv = ["streamlit", "run", str(Path(__file__).resolve())]
    sys.exit(stcli.main())


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    render()
