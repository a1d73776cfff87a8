"""
Projection summary: the headline numbers shown next to the chart.

Answers the questions a saver asks of a projection:
  Q1: "What will it be worth?"         → final nominal and real value
  Q2: "How much of that is growth?"    → total growth and ROI over net invested
  Q3: "What did tax and inflation eat?" → total tax, inflation loss
  Q4: "When can I live off it?"        → first year net growth covers the target income
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from engine.runner import YearlyData


@dataclass(frozen=True)
class ProjectionSummary:
    final_value: float
    final_real_value: float
    total_invested: float
    total_withdrawn: float
    total_growth: float           # final value - net invested
    roi_pct: float
    total_tax: float
    inflation_loss: float

    # passive income goal
    target_monthly_income: float
    target_reached: Optional[YearlyData]  # first year net growth / 12 >= target
    max_monthly_income: float
    target_progress_pct: Optional[float]  # None when no target is set

    @property
    def target_year_label(self) -> Optional[str]:
        return self.target_reached.label if self.target_reached is not None else None

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to a display-friendly table."""
        rows = [
            {"Metric": "Final Value (nominal)", "Value": f"{self.final_value:,.2f}"},
            {"Metric": "Final Value (real)", "Value": f"{self.final_real_value:,.2f}"},
            {"Metric": "Total Invested (net)", "Value": f"{self.total_invested:,.2f}"},
            {"Metric": "Total Withdrawn", "Value": f"{self.total_withdrawn:,.2f}"},
            {"Metric": "Total Growth", "Value": f"{self.total_growth:+,.2f}"},
            {"Metric": "ROI", "Value": f"{self.roi_pct:.2f}%"},
            {"Metric": "Total Tax", "Value": f"{self.total_tax:,.2f}"},
            {"Metric": "Inflation Loss", "Value": f"{self.inflation_loss:,.2f}"},
        ]
        if self.target_monthly_income > 0:
            reached = (
                f"{self.target_reached.label} (in {self.target_reached.year} years)"
                if self.target_reached is not None else "Not reached"
            )
            rows += [
                {"Metric": "Target Monthly Income", "Value": f"{self.target_monthly_income:,.2f}"},
                {"Metric": "Target Reached", "Value": reached},
                {"Metric": "Max Monthly Income", "Value": f"{self.max_monthly_income:,.2f}"},
                {"Metric": "Progress", "Value": f"{self.target_progress_pct:.0f}%"},
            ]
        return pd.DataFrame(rows)


def first_year_reaching(
    rows: Sequence[YearlyData],
    target_monthly_income: float,
) -> Optional[YearlyData]:
    """First simulated year (> 0) whose after-tax growth per month covers the target."""
    if target_monthly_income <= 0:
        return None
    for r in rows:
        if r.year > 0 and r.net_growth / 12 >= target_monthly_income:
            return r
    return None


def compute_summary(
    rows: Sequence[YearlyData],
    target_monthly_income: float = 0.0,
) -> ProjectionSummary:
    if len(rows) == 0:
        raise ValueError("No projection rows to summarize.")

    final = rows[-1]
    total_growth = final.portfolio_value - final.total_invested
    roi = total_growth / final.total_invested * 100 if final.total_invested > 0 else 0.0

    monthly_income = np.array([r.net_growth for r in rows], dtype=float) / 12
    max_monthly = float(monthly_income.max())
    progress = (
        min(max(max_monthly / target_monthly_income * 100, 0.0), 100.0)
        if target_monthly_income > 0 else None
    )

    return ProjectionSummary(
        final_value=final.portfolio_value,
        final_real_value=final.inflation_adjusted_value,
        total_invested=final.total_invested,
        total_withdrawn=final.total_withdrawn,
        total_growth=total_growth,
        roi_pct=float(roi),
        total_tax=float(sum(r.yearly_tax for r in rows)),
        inflation_loss=final.portfolio_value - final.inflation_adjusted_value,
        target_monthly_income=target_monthly_income,
        target_reached=first_year_reaching(rows, target_monthly_income),
        max_monthly_income=max_monthly,
        target_progress_pct=progress,
    )
