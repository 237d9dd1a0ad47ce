"""
Semantic test: conditional requirements are enforced at submission.

Invariant:
START_AT requires start time, date and time zone; GTD/GTT expiry requires
expiry time, date and time zone. Other modes require none of them.
"""

from __future__ import annotations

import pytest

from order_entry.core.config.entry_config import HARDCODED_DEFAULTS
from order_entry.core.events.sinks.null_event_bus import NullEventBus
from order_entry.core.validation.submission_gate import SubmissionGate


def test_start_at_requires_start_fields() -> None:
    gate = SubmissionGate(NullEventBus())

    decision = gate.validate_for_submission({**HARDCODED_DEFAULTS, "start_mode": "START_AT", "start_time": ""})

    assert set(decision.errors) == {"start_time", "start_date", "time_zone"}
    assert decision.errors["start_time"] == "Start time is required when Start Mode is 'Start At'"


@pytest.mark.parametrize("strategy", ["GTD", "GTT"])
def test_dated_expiry_requires_expiry_fields(strategy: str) -> None:
    gate = SubmissionGate(NullEventBus())

    decision = gate.validate_for_submission({**HARDCODED_DEFAULTS, "expiry_strategy": strategy})

    assert set(decision.errors) == {"expiry_time", "expiry_date", "expiry_time_zone"}


def test_complete_conditional_fields_pass() -> None:
    gate = SubmissionGate(NullEventBus())
    order = {
        **HARDCODED_DEFAULTS,
        "start_mode": "START_AT",
        "start_time": "09:30",
        "start_date": "2026-10-19",
        "time_zone": "Europe/London",
        "expiry_strategy": "GTD",
        "expiry_time": "17:00",
        "expiry_date": "2026-10-20",
        "expiry_time_zone": "Europe/London",
    }

    assert gate.validate_for_submission(order).valid
