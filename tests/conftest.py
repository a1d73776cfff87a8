import sys
from dataclasses import replace
from pathlib import Path

import pytest

# Make project root importable
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.config import FinancialEvent, SimulationParams  # noqa: E402
from core.schema import EventType  # noqa: E402

# Flat world: no growth, no inflation, no tax, no contribution.
FLAT_PARAMS = SimulationParams(
    start_year=2024,
    initial_capital=0.0,
    monthly_contribution=0.0,
    adjust_contribution_for_inflation=False,
    annual_return_rate=0.0,
    is_tax_enabled=False,
    tax_rate=0.0,
    tax_adjusted_for_inflation=False,
    duration_years=1,
    inflation_rate=0.0,
    target_monthly_income=0.0,
)


@pytest.fixture
def make_params():
    def _make(**overrides) -> SimulationParams:
        return replace(FLAT_PARAMS, **overrides)

    return _make


@pytest.fixture
def make_event():
    counter = {"n": 0}

    def _make(event_type: EventType, year: int, amount: float, **kwargs) -> FinancialEvent:
        counter["n"] += 1
        kwargs.setdefault("id", f"e{counter['n']}")
        return FinancialEvent(year=year, event_type=event_type, amount=amount, **kwargs)

    return _make
