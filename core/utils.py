from __future__ import annotations

import numpy as np


def excel_round(x, decimals: int = 2):
    """Excel ROUND: half away from zero (vectorized)."""
    m = 10 ** decimals
    x = np.asarray(x, dtype=float)
    return np.sign(x) * (np.floor(np.abs(x) * m + 0.5) / m)


def round_money(x: float) -> float:
    """Scalar 2-decimal rounding for emitted monetary fields."""
    return float(excel_round(x, 2)) + 0.0  # + 0.0 folds -0.0 into 0.0


def inflation_factor(rate_pct: float, year: int) -> float:
    """Cumulative price multiplier from the start year, compounded yearly."""
    return (1.0 + rate_pct / 100.0) ** year
