"""
Data preparation — parsing loose inputs into typed params/events, validation.
"""

from .loader import (
    EVENT_COLUMNS,
    drop_events_beyond,
    event_from_record,
    events_from_frame,
    events_from_records,
    events_to_frame,
    params_from_record,
    parse_event_type,
    scenario_from_payload,
)
from .validators import ValidationResult, validate_events, validate_inputs, validate_params

__all__ = [
    "EVENT_COLUMNS",
    "drop_events_beyond",
    "event_from_record",
    "events_from_frame",
    "events_from_records",
    "events_to_frame",
    "params_from_record",
    "parse_event_type",
    "scenario_from_payload",
    "ValidationResult",
    "validate_events",
    "validate_inputs",
    "validate_params",
]
