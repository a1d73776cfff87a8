"""
Build typed projection inputs from loose records.

Sources are the dashboard's event editor (a DataFrame), exported scenario JSON,
and plain dicts. camelCase keys written by earlier exports are accepted.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from core.config import DEFAULT_PARAMS, FinancialEvent, SimulationParams
from core.schema import EventType

_KEY_ALIASES: Dict[str, str] = {
    # params
    "startYear": "start_year",
    "initialCapital": "initial_capital",
    "monthlyContribution": "monthly_contribution",
    "adjustContributionForInflation": "adjust_contribution_for_inflation",
    "annualReturnRate": "annual_return_rate",
    "isTaxEnabled": "is_tax_enabled",
    "taxRate": "tax_rate",
    "taxAdjustedForInflation": "tax_adjusted_for_inflation",
    "durationYears": "duration_years",
    "inflationRate": "inflation_rate",
    "targetMonthlyIncome": "target_monthly_income",
    # events
    "type": "event_type",
    "isRecurring": "is_recurring",
    "recurringEndYear": "recurring_end_year",
    "loanInterestRate": "loan_interest_rate",
    "loanDurationYears": "loan_duration_years",
}

# Column order of the event editor table
EVENT_COLUMNS: Tuple[str, ...] = tuple(f.name for f in fields(FinancialEvent))

_PARAM_FIELDS = {f.name for f in fields(SimulationParams)}
_BOOL_PARAMS = {
    "adjust_contribution_for_inflation",
    "is_tax_enabled",
    "tax_adjusted_for_inflation",
}
_INT_PARAMS = {"start_year", "duration_years"}


def _canonicalize(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {_KEY_ALIASES.get(k, k): v for k, v in record.items()}


def _blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _opt_float(value: Any) -> Optional[float]:
    return None if _blank(value) else float(value)


def _opt_int(value: Any) -> Optional[int]:
    return None if _blank(value) else int(value)


def _as_bool(value: Any) -> bool:
    if _blank(value):
        return False
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y"}
    return bool(value)


def parse_event_type(value: Any) -> EventType:
    if isinstance(value, EventType):
        return value
    try:
        return EventType(str(value).strip().upper())
    except ValueError:
        allowed = ", ".join(t.value for t in EventType)
        raise ValueError(f"Unrecognized event type {value!r}; expected one of: {allowed}.") from None


def event_from_record(record: Mapping[str, Any], *, default_id: str = "") -> FinancialEvent:
    r = _canonicalize(record)
    for key in ("year", "event_type", "amount"):
        if _blank(r.get(key)):
            raise ValueError(f"Event record is missing {key!r}: {dict(record)}")

    event_id = r.get("id")
    return FinancialEvent(
        id=default_id if _blank(event_id) else str(event_id),
        year=int(r["year"]),
        event_type=parse_event_type(r["event_type"]),
        amount=float(r["amount"]),
        description="" if _blank(r.get("description")) else str(r["description"]),
        is_recurring=_as_bool(r.get("is_recurring")),
        recurring_end_year=_opt_int(r.get("recurring_end_year")),
        loan_interest_rate=_opt_float(r.get("loan_interest_rate")),
        loan_duration_years=_opt_int(r.get("loan_duration_years")),
    )


def events_from_records(records: Iterable[Mapping[str, Any]]) -> List[FinancialEvent]:
    """Rows where every value is blank are skipped (empty editor rows)."""
    out: List[FinancialEvent] = []
    for i, rec in enumerate(records):
        if all(_blank(v) for v in rec.values()):
            continue
        out.append(event_from_record(rec, default_id=f"evt-{i + 1}"))
    return out


def events_from_frame(df: pd.DataFrame) -> List[FinancialEvent]:
    if df is None or df.empty:
        return []
    return events_from_records(df.to_dict("records"))


def events_to_frame(events: Sequence[FinancialEvent]) -> pd.DataFrame:
    rows = [
        {
            **{name: getattr(e, name) for name in EVENT_COLUMNS},
            "event_type": e.event_type.value,
        }
        for e in events
    ]
    return pd.DataFrame(rows, columns=list(EVENT_COLUMNS))


def params_from_record(
    record: Mapping[str, Any],
    *,
    defaults: SimulationParams = DEFAULT_PARAMS,
) -> SimulationParams:
    """Missing or blank keys fall back to ``defaults``; unknown keys are ignored."""
    r = _canonicalize(record)
    values: Dict[str, Any] = {}
    for name in _PARAM_FIELDS:
        raw = r.get(name)
        if _blank(raw):
            values[name] = getattr(defaults, name)
        elif name in _BOOL_PARAMS:
            values[name] = _as_bool(raw)
        elif name in _INT_PARAMS:
            values[name] = int(raw)
        else:
            values[name] = float(raw)
    return SimulationParams(**values)


def scenario_from_payload(
    payload: Mapping[str, Any],
) -> Tuple[SimulationParams, List[FinancialEvent]]:
    """Parse a ``{"params": {...}, "events": [...]}`` payload (see pm.exporters.export_config)."""
    if "params" not in payload:
        raise ValueError("Scenario payload has no 'params' section.")
    params = params_from_record(payload["params"])
    events = events_from_records(payload.get("events") or [])
    return params, events


def drop_events_beyond(
    events: Sequence[FinancialEvent],
    duration_years: int,
) -> List[FinancialEvent]:
    """Keep only events that start inside a (possibly shortened) horizon."""
    return [e for e in events if e.year <= duration_years]
