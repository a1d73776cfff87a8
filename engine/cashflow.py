"""
Running balances and loan amortization.

Two independent loan pools are carried through a projection:
  - standard loans:  cash handed to the user, installments withdrawn from the portfolio
  - leverage loans:  cash invested in the portfolio, installments taken out of the
                     yearly contribution first (and out of the portfolio if it falls short)

A loan is a plain value (end year + fixed annual installment); pools are tuples
that are rebuilt, never mutated.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass, replace
from typing import Tuple


@dataclass(frozen=True)
class ActiveLoan:
    end_year: int          # last year an installment is due (inclusive)
    annual_payment: float


@dataclass(frozen=True)
class RunState:
    """Everything a projection carries from one year to the next."""
    capital: float
    total_invested: float
    total_withdrawn: float
    standard_loans: Tuple[ActiveLoan, ...] = ()
    leverage_loans: Tuple[ActiveLoan, ...] = ()

    def without_repaid_loans(self, year: int) -> "RunState":
        """Drop loans whose last installment fell in ``year`` or earlier."""
        return replace(
            self,
            standard_loans=tuple(l for l in self.standard_loans if l.end_year > year),
            leverage_loans=tuple(l for l in self.leverage_loans if l.end_year > year),
        )


def annuity_payment(amount: float, rate_pct: float, years: int) -> float:
    """Fixed annual installment (PMT) fully repaying ``amount`` over ``years``; linear at 0%."""
    if not isinstance(years, numbers.Integral) or isinstance(years, bool) or years <= 0:
        raise ValueError(f"Loan duration must be a positive whole number of years (got {years!r}).")
    rate = rate_pct / 100.0
    if abs(rate) < 1e-12:
        return float(amount) / years
    growth = (1 + rate) ** years
    return float(amount) * (rate * growth) / (growth - 1)


def due_payments(loans: Tuple[ActiveLoan, ...], year: int) -> float:
    """Sum of installments still due in ``year``."""
    return sum(l.annual_payment for l in loans if year <= l.end_year)
