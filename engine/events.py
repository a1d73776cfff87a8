"""
Planned-event selection and application for one projection year.

Selection:
  - LOAN / LEVERAGE_LOAN fire exactly once, in their own year (``is_recurring`` is ignored)
  - DEPOSIT / WITHDRAWAL fire in their year, or every year of
    [year, recurring_end_year or horizon] when recurring

Application follows input order; each kind has its own handler.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Dict, List, Sequence

from core.config import FinancialEvent
from core.schema import EventType

from .cashflow import ActiveLoan, RunState, annuity_payment

logger = logging.getLogger(__name__)


def is_active(event: FinancialEvent, year: int, duration_years: int) -> bool:
    if event.is_loan or not event.is_recurring:
        return event.year == year
    end = event.recurring_end_year or duration_years
    return event.year <= year <= end


def events_for_year(
    events: Sequence[FinancialEvent],
    year: int,
    duration_years: int,
) -> List[FinancialEvent]:
    return [e for e in events if is_active(e, year, duration_years)]


def _deposit(state: RunState, event: FinancialEvent, year: int, gross_contribution: float) -> RunState:
    return replace(
        state,
        capital=state.capital + event.amount,
        total_invested=state.total_invested + event.amount,
    )


def _withdrawal(state: RunState, event: FinancialEvent, year: int, gross_contribution: float) -> RunState:
    # withdrawals reduce the net invested basis, which may go negative
    return replace(
        state,
        capital=state.capital - event.amount,
        total_withdrawn=state.total_withdrawn + event.amount,
        total_invested=state.total_invested - event.amount,
    )


def _open_loan(event: FinancialEvent, year: int) -> ActiveLoan:
    years = event.loan_duration_years or 0
    payment = annuity_payment(event.amount, event.loan_interest_rate or 0.0, years)
    loan = ActiveLoan(end_year=year + years - 1, annual_payment=payment)
    logger.debug(
        "Year %d: %s %r of %.2f opened, %.2f/yr until year %d",
        year, event.event_type.value, event.id, event.amount, payment, loan.end_year,
    )
    return loan


def _loan(state: RunState, event: FinancialEvent, year: int, gross_contribution: float) -> RunState:
    # principal goes to the user, not the portfolio; first installment is due now
    loan = _open_loan(event, year)
    return replace(
        state,
        capital=state.capital - loan.annual_payment,
        total_withdrawn=state.total_withdrawn + loan.annual_payment,
        total_invested=state.total_invested + event.amount,
        standard_loans=state.standard_loans + (loan,),
    )


def _leverage_loan(state: RunState, event: FinancialEvent, year: int, gross_contribution: float) -> RunState:
    # principal is invested; the first installment comes out of this year's contribution
    loan = _open_loan(event, year)
    shortfall = max(0.0, loan.annual_payment - gross_contribution)
    return replace(
        state,
        capital=state.capital + event.amount - loan.annual_payment,
        total_withdrawn=state.total_withdrawn + shortfall,
        total_invested=state.total_invested + event.amount,
        leverage_loans=state.leverage_loans + (loan,),
    )


_Handler = Callable[[RunState, FinancialEvent, int, float], RunState]

_HANDLERS: Dict[EventType, _Handler] = {
    EventType.DEPOSIT: _deposit,
    EventType.WITHDRAWAL: _withdrawal,
    EventType.LOAN: _loan,
    EventType.LEVERAGE_LOAN: _leverage_loan,
}


def apply_event(
    state: RunState,
    event: FinancialEvent,
    *,
    year: int,
    gross_contribution: float,
) -> RunState:
    """Apply one event to the running state. ``gross_contribution`` is this year's contribution before debt service."""
    try:
        handler = _HANDLERS[event.event_type]
    except KeyError:
        raise ValueError(f"Unrecognized event type {event.event_type!r} on event {event.id!r}.") from None
    return handler(state, event, year, gross_contribution)
