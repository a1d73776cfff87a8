"""
Projection inputs.

All rates are expressed in percent (10.0 means 10%), all amounts in a single
currency. Years on events are relative to ``start_year`` (1 = first simulated year).
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Optional

from .schema import LOAN_TYPES, EventType


@dataclass(frozen=True)
class SimulationParams:
    start_year: int
    initial_capital: float = 0.0
    monthly_contribution: float = 0.0
    adjust_contribution_for_inflation: bool = False
    annual_return_rate: float = 0.0      # may be negative
    is_tax_enabled: bool = False
    tax_rate: float = 0.0
    tax_adjusted_for_inflation: bool = False  # tax only the growth above inflation
    duration_years: int = 1
    inflation_rate: float = 0.0
    target_monthly_income: float = 0.0   # reporting only, the engine ignores it


@dataclass(frozen=True)
class FinancialEvent:
    id: str
    year: int
    event_type: EventType
    amount: float
    description: str = ""
    is_recurring: bool = False
    recurring_end_year: Optional[int] = None  # inclusive; None runs to the horizon

    # loan / leverage loan only
    loan_interest_rate: Optional[float] = None
    loan_duration_years: Optional[int] = None

    @property
    def is_loan(self) -> bool:
        return self.event_type in LOAN_TYPES


DEFAULT_PARAMS = SimulationParams(
    start_year=dt.date.today().year,
    initial_capital=0.0,
    monthly_contribution=1000.0,
    adjust_contribution_for_inflation=True,
    annual_return_rate=10.0,
    is_tax_enabled=False,
    tax_rate=26.0,
    tax_adjusted_for_inflation=False,
    duration_years=50,
    inflation_rate=3.0,
    target_monthly_income=2000.0,
)
