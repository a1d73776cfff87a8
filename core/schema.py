from __future__ import annotations

from enum import Enum
from typing import FrozenSet, Tuple


class EventType(str, Enum):
    """Kinds of user-planned financial events."""

    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    LOAN = "LOAN"                    # cash paid out to the user, repaid from the portfolio
    LEVERAGE_LOAN = "LEVERAGE_LOAN"  # cash invested, repaid from the monthly contribution


# Loan kinds fire once and expand into a repayment schedule; never recurring.
LOAN_TYPES: FrozenSet[EventType] = frozenset({EventType.LOAN, EventType.LEVERAGE_LOAN})

# Every field of a yearly snapshot, in output order.
YEARLY_FIELDS: Tuple[str, ...] = (
    "year",
    "label",
    "portfolio_value",
    "total_invested",
    "total_withdrawn",
    "yearly_profit",
    "yearly_tax",
    "yearly_real_tax",
    "net_growth",
    "inflation_adjusted_value",
    "total_inflation_loss",
)

# Fixed CSV export schema. Downstream spreadsheets rely on this order.
CSV_COLUMNS: Tuple[str, ...] = (
    "year",
    "label",
    "portfolio_value",
    "total_invested",
    "total_withdrawn",
    "yearly_profit",
    "yearly_tax",
    "inflation_adjusted_value",
)
