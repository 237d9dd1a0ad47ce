"""
Semantic test: the replay entrypoint runs a scenario end to end.

Invariant:
Each step is applied in order with validation settled in between, and the
printed summary reflects the final snapshot, validation state and
submission decision. Unknown steps are refused.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from order_entry.core.events.sinks.null_event_bus import NullEventBus
from order_entry.runtime.replay_entrypoint import apply_step, main
from order_entry.session.order_session import OrderEntrySession


def _write(path: Path, scenario: dict) -> Path:
    path.write_text(json.dumps(scenario), encoding="utf-8")
    return path


def test_replay_prints_final_state(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    scenario = _write(
        tmp_path / "scenario.json",
        {
            "config": {"debounce_ms": 0},
            "remote_results": {"amount": {"ok": False, "type": "SOFT"}},
            "steps": [
                {"op": "reference_data", "data": {"accounts": ["ACC-1"], "currency_pairs": ["GBPUSD"]}},
                {"op": "ready"},
                {"op": "set_field", "field": "amount", "value": 5000000},
                {"op": "intent", "payload": {"side": "SELL"}, "source_app": "blotter"},
            ],
        },
    )
    events_out = tmp_path / "events.jsonl"

    main(["--scenario", str(scenario), "--events-out", str(events_out), "--log-level", "WARNING"])

    result = json.loads(capsys.readouterr().out)
    assert result["snapshot"]["amount"] == 5000000
    assert result["snapshot"]["side"] == "BUY"
    assert result["controller_state"] == "awaiting_confirmation"
    assert result["pending_intent"] == {"side": "SELL"}
    assert result["validation"]["amount"]["warning"] == "Check value"
    assert result["submission"] == {"valid": True, "errors": {}}

    event_types = [json.loads(line)["event_type"] for line in events_out.read_text(encoding="utf-8").splitlines()]
    assert "IntentPendingEvent" in event_types
    assert "ValidationAppliedEvent" in event_types


def test_replay_accept_and_interop_context(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    scenario = _write(
        tmp_path / "scenario.json",
        {
            "steps": [
                {"op": "set_field", "field": "amount", "value": 5000000},
                {"op": "intent", "context": {"id": {"ticker": "EUR/USD"}}, "source_app": "chart"},
                {"op": "ready"},
                {"op": "accept"},
            ],
        },
    )

    main(["--scenario", str(scenario), "--log-level", "WARNING"])

    result = json.loads(capsys.readouterr().out)
    assert result["snapshot"]["currency_pair"] == "EURUSD"
    assert result["snapshot"]["amount"] == 1000000.0
    assert result["controller_state"] == "ready"
    assert result["pending_intent"] is None


def test_unknown_step_is_refused() -> None:
    session = OrderEntrySession(NullEventBus())

    with pytest.raises(ValueError):
        apply_step(session, {"op": "teleport"})


def test_missing_scenario_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        main(["--scenario", str(tmp_path / "missing.json")])
