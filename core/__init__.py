"""
Core package — schema definitions, configuration, and shared utilities.
No business logic lives here.
"""

from .schema import CSV_COLUMNS, LOAN_TYPES, YEARLY_FIELDS, EventType
from .config import DEFAULT_PARAMS, FinancialEvent, SimulationParams
from .utils import excel_round, inflation_factor, round_money

__all__ = [
    "CSV_COLUMNS",
    "LOAN_TYPES",
    "YEARLY_FIELDS",
    "EventType",
    "DEFAULT_PARAMS",
    "FinancialEvent",
    "SimulationParams",
    "excel_round",
    "inflation_factor",
    "round_money",
]
