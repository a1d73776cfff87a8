# pm/exporters.py
from __future__ import annotations

import datetime as dt
import json
from dataclasses import asdict
from typing import List, Optional, Sequence, Tuple

from core.config import FinancialEvent, SimulationParams
from core.schema import CSV_COLUMNS, EventType
from engine.runner import YearlyData, projection_to_frame

from .metrics import compute_summary

FILE_PREFIX = "know_your_capital"

_EVENT_TITLES = {
    EventType.DEPOSIT: "EXTRA DEPOSIT",
    EventType.WITHDRAWAL: "WITHDRAWAL",
    EventType.LOAN: "LOAN (paid out)",
    EventType.LEVERAGE_LOAN: "LEVERAGE (reinvested)",
}


def _stamp(generated_on: Optional[dt.date]) -> dt.date:
    return generated_on or dt.date.today()


def _money(v: float) -> str:
    return f"{v:,.2f}"


def export_csv(
    rows: Sequence[YearlyData],
    *,
    generated_on: Optional[dt.date] = None,
) -> Tuple[str, bytes]:
    df = projection_to_frame(rows).loc[:, list(CSV_COLUMNS)]
    name = f"{FILE_PREFIX}_data_{_stamp(generated_on).isoformat()}.csv"
    return name, df.to_csv(index=False, float_format="%.2f").encode()


def _describe_event(e: FinancialEvent, start_year: int) -> List[str]:
    lines = [f"[Year {start_year + e.year}] {_EVENT_TITLES[e.event_type]}: {_money(e.amount)}"]
    if e.description:
        lines.append(f"  - Note: {e.description}")
    if e.event_type is EventType.LOAN:
        lines.append(
            f"  - Loan terms: {e.loan_interest_rate or 0}% over {e.loan_duration_years} years. "
            "Installments are withdrawn from the portfolio."
        )
    elif e.event_type is EventType.LEVERAGE_LOAN:
        lines.append(
            f"  - Leverage terms: {e.loan_interest_rate or 0}% over {e.loan_duration_years} years. "
            "Installments reduce the monthly contribution."
        )
    elif e.is_recurring:
        end = e.recurring_end_year
        until = f"until {start_year + end}" if end else "until the end of the projection"
        lines.append(f"  - Frequency: every year from {start_year + e.year} {until}")
    else:
        lines.append("  - Frequency: one-off")
    return lines


def render_text_report(
    params: SimulationParams,
    events: Sequence[FinancialEvent],
    rows: Sequence[YearlyData],
    *,
    generated_on: Optional[dt.date] = None,
) -> str:
    s = compute_summary(rows, params.target_monthly_income)
    end_year = params.start_year + params.duration_years
    out: List[str] = [
        "KNOW YOUR CAPITAL - SCENARIO REPORT",
        f"Generated on: {_stamp(generated_on).isoformat()}",
        "=" * 40,
        "",
        "1. GOALS AND PARAMETERS",
        "-" * 23,
        f"• Target monthly income: {_money(params.target_monthly_income)}",
    ]
    if s.target_reached is not None:
        out.append(
            f"• Target reached: year {s.target_reached.label} "
            f"(in {s.target_reached.year} years)"
        )
    else:
        out.append(f"• Target reached: not within the projection ({params.duration_years} years)")
    out += [
        "",
        f"• Start year: {params.start_year}",
        f"• Duration: {params.duration_years} years (ends {end_year})",
        f"• Initial capital: {_money(params.initial_capital)}",
        f"• Monthly contribution: {_money(params.monthly_contribution)}",
        "  - Indexed to inflation: "
        + ("YES (grows every year with inflation)" if params.adjust_contribution_for_inflation
           else "NO (fixed in nominal terms)"),
        f"• Expected gross annual return: {params.annual_return_rate}%",
        f"• Expected inflation: {params.inflation_rate}%",
        "• Tax: "
        + (f"ENABLED ({params.tax_rate}%)" if params.is_tax_enabled else "DISABLED (gross of tax)"),
    ]
    if params.is_tax_enabled:
        out.append(
            "  - Taxed on: "
            + ("REAL return (growth above inflation only)" if params.tax_adjusted_for_inflation
               else "NOMINAL return")
        )
    out += ["", "2. PLANNED EVENTS", "-" * 17]
    if not events:
        out.append("No extra deposits, withdrawals or loans planned.")
    else:
        for e in sorted(events, key=lambda ev: ev.year):
            out += _describe_event(e, params.start_year)

    out += [
        "",
        f"3. PROJECTION RESULTS (YEAR {end_year})",
        "-" * 40,
        f"• Final value (nominal): {_money(s.final_value)}",
        f"• Final value (real, net of inflation): {_money(s.final_real_value)}",
        f"• Total invested (net): {_money(s.total_invested)}",
        f"• Total growth: {_money(s.total_growth)} (ROI: {s.roi_pct:.2f}%)",
    ]
    if params.is_tax_enabled:
        out.append(f"• Total estimated tax: {_money(s.total_tax)}")
    out += [
        f"• Total withdrawn: {_money(s.total_withdrawn)}",
        "",
        "INFLATION IMPACT",
        f"• Purchasing power lost to inflation: -{_money(s.inflation_loss)}",
        "",
        "=" * 40,
        "NOTE: This projection assumes constant returns. Real markets are volatile.",
    ]
    return "\n".join(out)


def export_text_report(
    params: SimulationParams,
    events: Sequence[FinancialEvent],
    rows: Sequence[YearlyData],
    *,
    generated_on: Optional[dt.date] = None,
) -> Tuple[str, bytes]:
    text = render_text_report(params, events, rows, generated_on=generated_on)
    return f"{FILE_PREFIX}_report_{_stamp(generated_on).isoformat()}.txt", text.encode()


def export_config(
    params: SimulationParams,
    events: Sequence[FinancialEvent],
) -> Tuple[str, bytes]:
    """
    Export the current inputs as JSON.
    data_prep.scenario_from_payload reads the result back.
    """
    payload = {
        "params": asdict(params),
        "events": [{**asdict(e), "event_type": e.event_type.value} for e in events],
    }
    blob = json.dumps(payload, indent=2)
    return "config.json", blob.encode()
