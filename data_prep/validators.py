"""
Input validation for projection parameters and planned events.

Catches problems before they reach the engine:
- Horizons shorter than one year
- Negative balances, contributions or inflation
- NaN or infinite amounts and rates
- Loans without a whole, positive repayment term (the annuity formula divides by it)
- Unknown event kinds
"""

from __future__ import annotations

import logging
import math
import numbers
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Sequence

from core.config import FinancialEvent, SimulationParams
from core.schema import LOAN_TYPES, EventType

logger = logging.getLogger(__name__)

_NUMERIC_PARAMS = (
    "initial_capital",
    "monthly_contribution",
    "annual_return_rate",
    "inflation_rate",
    "tax_rate",
    "target_monthly_income",
)


@dataclass
class ValidationResult:
    """Collects all validation warnings/errors for one projection run."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        return ValidationResult(
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings,
        )

    def summary(self) -> str:
        lines = []
        if self.errors:
            lines.append(f"ERRORS ({len(self.errors)}):")
            for e in self.errors:
                lines.append(f"  ✗ {e}")
        if self.warnings:
            lines.append(f"WARNINGS ({len(self.warnings)}):")
            for w in self.warnings:
                lines.append(f"  ⚠ {w}")
        if not lines:
            lines.append("✓ All checks passed.")
        return "\n".join(lines)

    def raise_if_invalid(self) -> None:
        for w in self.warnings:
            logger.warning(w)
        if not self.is_valid:
            raise ValueError("Invalid projection input:\n" + self.summary())


def _is_whole(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def validate_params(params: SimulationParams) -> ValidationResult:
    result = ValidationResult()

    for name in _NUMERIC_PARAMS:
        value = getattr(params, name)
        if not math.isfinite(value):
            result.errors.append(f"{name} must be a finite number (got {value}).")

    if not _is_whole(params.duration_years):
        result.errors.append(
            f"duration_years must be a whole number of years (got {params.duration_years!r})."
        )
    elif params.duration_years < 1:
        result.errors.append(
            f"duration_years must be at least 1 (got {params.duration_years})."
        )
    if params.initial_capital < 0:
        result.errors.append(f"initial_capital is negative ({params.initial_capital}).")
    if params.monthly_contribution < 0:
        result.errors.append(
            f"monthly_contribution is negative ({params.monthly_contribution})."
        )
    if params.inflation_rate < 0:
        result.errors.append(f"inflation_rate is negative ({params.inflation_rate}%).")
    if math.isfinite(params.tax_rate) and not 0 <= params.tax_rate <= 100:
        result.errors.append(f"tax_rate must be within 0-100% (got {params.tax_rate}%).")
    if params.target_monthly_income < 0:
        result.errors.append(
            f"target_monthly_income is negative ({params.target_monthly_income})."
        )

    return result


def validate_events(
    events: Sequence[FinancialEvent],
    duration_years: int,
) -> ValidationResult:
    """
    Check every planned event.
    Errors are blocking; warnings flag events that are accepted but have no
    (or a reduced) effect on the projection.
    Plain strings naming an event type are accepted alongside EventType members.
    """
    result = ValidationResult()

    dup_ids = [i for i, n in Counter(e.id for e in events).items() if n > 1]
    if dup_ids:
        result.warnings.append(f"{len(dup_ids)} duplicate event ids found: {sorted(map(str, dup_ids))}.")

    for e in events:
        tag = f"Event {e.id!r}"

        try:
            event_type = EventType(e.event_type)
        except ValueError:
            allowed = ", ".join(t.value for t in EventType)
            result.errors.append(
                f"{tag} has unrecognized type {e.event_type!r}; expected one of: {allowed}."
            )
            continue

        if not math.isfinite(e.amount):
            result.errors.append(f"{tag} amount must be a finite number (got {e.amount}).")
        elif not e.amount > 0:
            result.errors.append(f"{tag} amount must be positive (got {e.amount}).")

        if not 1 <= e.year <= duration_years:
            result.warnings.append(
                f"{tag} is scheduled for year {e.year}, outside 1-{duration_years}; it never fires."
            )

        if event_type in LOAN_TYPES:
            n = e.loan_duration_years
            if not _is_whole(n) or n <= 0:
                result.errors.append(
                    f"{tag} needs a positive whole number of loan_duration_years (got {n!r})."
                )
            rate = e.loan_interest_rate
            if rate is None:
                result.warnings.append(f"{tag} has no interest rate; treated as 0%.")
            elif not math.isfinite(rate):
                result.errors.append(f"{tag} interest rate must be a finite number (got {rate}).")
            elif rate < 0:
                result.errors.append(f"{tag} has negative interest rate ({rate}%).")
            if e.is_recurring:
                result.warnings.append(f"{tag} is a loan marked recurring; it fires once.")
        elif e.is_recurring and e.recurring_end_year and e.recurring_end_year < e.year:
            result.warnings.append(
                f"{tag} recurs until year {e.recurring_end_year}, before its start year {e.year}; it never fires."
            )

    return result


def validate_inputs(
    params: SimulationParams,
    events: Sequence[FinancialEvent],
) -> ValidationResult:
    """Run all checks for one projection call."""
    return validate_params(params).merge(validate_events(events, params.duration_years))
