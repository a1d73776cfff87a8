"""
Projection runner — folds one year at a time over the running state.

Fixed order within a year (each step sees the result of the previous one):
  1. growth on last year's capital, then tax on that growth
  2. leverage-loan installments due this year
  3. contribution (optionally inflation-indexed) net of those installments
  4. standard-loan installments, withdrawn from the portfolio
  5. planned events, in input order
  6. clamp capital at zero
  7. deflate the ending balance into start-year money

Pure function of its inputs: no I/O, no shared state between calls.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from typing import List, Sequence, Tuple

import pandas as pd

from core.config import FinancialEvent, SimulationParams
from core.schema import YEARLY_FIELDS, EventType
from core.utils import inflation_factor, round_money
from data_prep.validators import validate_inputs

from .cashflow import RunState, due_payments
from .events import apply_event, events_for_year

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class YearlyData:
    """One row of projection output. Monetary fields are rounded to cents."""
    year: int                     # 0 = start
    label: str                    # calendar year
    portfolio_value: float
    total_invested: float         # net of withdrawals; may go negative
    total_withdrawn: float
    yearly_profit: float          # gross growth, negative in a losing year
    yearly_tax: float
    yearly_real_tax: float        # tax in start-year money
    net_growth: float             # growth after tax
    inflation_adjusted_value: float
    total_inflation_loss: float


def _opening_snapshot(params: SimulationParams) -> YearlyData:
    capital = round_money(params.initial_capital)
    return YearlyData(
        year=0,
        label=str(params.start_year),
        portfolio_value=capital,
        total_invested=capital,
        total_withdrawn=0.0,
        yearly_profit=0.0,
        yearly_tax=0.0,
        yearly_real_tax=0.0,
        net_growth=0.0,
        inflation_adjusted_value=capital,
        total_inflation_loss=0.0,
    )


def _advance_year(
    state: RunState,
    params: SimulationParams,
    events: Sequence[FinancialEvent],
    year: int,
) -> Tuple[RunState, YearlyData]:
    factor = inflation_factor(params.inflation_rate, year)
    capital = state.capital

    # --- growth & tax ---
    gross_profit = capital * params.annual_return_rate / 100.0
    taxable = gross_profit
    if params.is_tax_enabled and params.tax_adjusted_for_inflation:
        # the share of growth that only keeps pace with inflation is not taxed
        taxable = max(0.0, gross_profit - capital * params.inflation_rate / 100.0)
    tax = taxable * params.tax_rate / 100.0 if params.is_tax_enabled and taxable > 0 else 0.0
    net_profit = gross_profit - tax
    capital += net_profit

    # --- contribution net of leverage debt service ---
    leverage_payments = due_payments(state.leverage_loans, year)
    contribution = params.monthly_contribution * 12
    if params.adjust_contribution_for_inflation:
        contribution *= factor
    total_invested = state.total_invested + contribution
    total_withdrawn = state.total_withdrawn

    net_to_portfolio = contribution - leverage_payments
    capital += net_to_portfolio
    if net_to_portfolio < 0:
        # installments larger than the contribution force a withdrawal
        total_withdrawn += -net_to_portfolio

    # --- standard debt service ---
    standard_payments = due_payments(state.standard_loans, year)
    capital -= standard_payments
    total_withdrawn += standard_payments

    state = replace(
        state,
        capital=capital,
        total_invested=total_invested,
        total_withdrawn=total_withdrawn,
    )

    # --- planned events ---
    for event in events_for_year(events, year, params.duration_years):
        state = apply_event(state, event, year=year, gross_contribution=contribution)

    if state.capital < 0:
        logger.debug("Year %d: capital %.2f clamped to zero", year, state.capital)
        state = replace(state, capital=0.0)
    state = state.without_repaid_loans(year)

    portfolio_value = round_money(state.capital)
    adjusted_value = round_money(state.capital / factor)
    row = YearlyData(
        year=year,
        label=str(params.start_year + year),
        portfolio_value=portfolio_value,
        total_invested=round_money(state.total_invested),
        total_withdrawn=round_money(state.total_withdrawn),
        yearly_profit=round_money(gross_profit),
        yearly_tax=round_money(tax),
        yearly_real_tax=round_money(tax / factor),
        net_growth=round_money(net_profit),
        inflation_adjusted_value=adjusted_value,
        total_inflation_loss=round_money(portfolio_value - adjusted_value),
    )
    return state, row


def project(
    params: SimulationParams,
    events: Sequence[FinancialEvent] = (),
) -> List[YearlyData]:
    """
    Project the portfolio year by year.

    Parameters
    ----------
    params : SimulationParams
        Run-wide assumptions (rates in percent)
    events : sequence of FinancialEvent
        Planned deposits, withdrawals and loans (``event_type`` as an EventType or
        its string value); applied in the given order
        when several fall in the same year

    Returns
    -------
    list of YearlyData, ``params.duration_years + 1`` rows, year 0 first.

    Raises
    ------
    ValueError
        On invalid input (see data_prep.validators); nothing is partially computed.
    """
    events = list(events)
    validate_inputs(params, events).raise_if_invalid()
    events = [replace(e, event_type=EventType(e.event_type)) for e in events]

    state = RunState(
        capital=params.initial_capital,
        total_invested=params.initial_capital,
        total_withdrawn=0.0,
    )
    rows = [_opening_snapshot(params)]
    for year in range(1, params.duration_years + 1):
        state, row = _advance_year(state, params, events, year)
        rows.append(row)

    logger.debug(
        "Projected %d years with %d events: final value %.2f",
        params.duration_years, len(events), rows[-1].portfolio_value,
    )
    return rows


def projection_to_frame(rows: Sequence[YearlyData]) -> pd.DataFrame:
    """One row per snapshot, columns in YEARLY_FIELDS order."""
    return pd.DataFrame([asdict(r) for r in rows], columns=list(YEARLY_FIELDS))
