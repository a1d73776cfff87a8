"""
Projection engine — deterministic yearly portfolio projection with contributions,
planned events, loans and leverage.
"""

from .cashflow import ActiveLoan, annuity_payment
from .events import events_for_year
from .runner import YearlyData, project, projection_to_frame

__all__ = [
    "ActiveLoan",
    "annuity_payment",
    "events_for_year",
    "YearlyData",
    "project",
    "projection_to_frame",
]
