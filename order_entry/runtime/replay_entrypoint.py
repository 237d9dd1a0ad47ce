"""Replay a scripted order entry scenario against a session.

Scenario JSON:
    {
      "config": {...},                      # optional OrderEntryConfig
      "remote_results": {"amount": {"ok": false, "type": "SOFT"}},
      "steps": [
        {"op": "reference_data", "data": {"accounts": ["ACC-1"]}},
        {"op": "ready"},
        {"op": "set_field", "field": "amount", "value": 5000000},
        {"op": "intent", "payload": {"side": "SELL"}, "source_app": "blotter"},
        {"op": "accept"}
      ]
    }

The final snapshot, per-field validation state and submission decision are
printed as JSON.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any, Mapping

from order_entry.core.config.entry_config import OrderEntryConfig
from order_entry.core.events.event_bus import EventBus
from order_entry.core.events.sinks.file_recorder import FileRecorderSink
from order_entry.core.events.sinks.sink_logging import LoggingEventSink
from order_entry.session.order_session import OrderEntrySession

LOGGER = logging.getLogger(__name__)

STEP_OPS: frozenset[str] = frozenset(
    {
        "set_field",
        "intent",
        "ready",
        "not_ready",
        "accept",
        "reject",
        "preferences",
        "reference_data",
        "reset",
        "new_order",
    }
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_json(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    return json.loads(path.read_text(encoding="utf-8"))


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


class ScriptedRemoteValidator:
    """Remote validator answering from a fixed field -> result table."""

    def __init__(self, results: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._results = dict(results or {})
        self.calls: list[tuple[str, Any]] = []

    async def validate(self, field: str, value: Any, context: Mapping[str, Any]) -> Mapping[str, Any]:
        self.calls.append((field, value))
        return self._results.get(field, {"ok": True})


def apply_step(session: OrderEntrySession, step: Mapping[str, Any]) -> None:
    op = step.get("op")
    if op not in STEP_OPS:
        raise ValueError(f"Unknown scenario step: {op!r}")

    if op == "set_field":
        session.set_field_value(step["field"], step.get("value"))
    elif op == "intent":
        if "context" in step:
            session.receive_interop_context(step["context"], step.get("source_app"))
        else:
            session.receive_intent(step.get("payload", {}), step.get("source_app"))
    elif op == "ready":
        session.drain_queue_on_ready()
    elif op == "not_ready":
        session.mark_not_ready()
    elif op == "accept":
        session.accept_pending_intent()
    elif op == "reject":
        session.reject_pending_intent()
    elif op == "preferences":
        session.apply_preferences(step.get("data", {}))
    elif op == "reference_data":
        session.set_reference_data(step.get("data", {}))
    elif op == "reset":
        session.reset_session()
    elif op == "new_order":
        session.new_order()


async def replay(scenario: Mapping[str, Any], event_bus: EventBus) -> dict[str, Any]:
    """Run every step, settling validation after each one, and summarize the result."""
    config = OrderEntryConfig.from_json_obj(scenario.get("config", {}))
    session = OrderEntrySession(
        event_bus,
        config,
        remote_validator=ScriptedRemoteValidator(scenario.get("remote_results")),
    )

    for index, step in enumerate(scenario.get("steps", [])):
        LOGGER.debug("Step %d: %s", index, step.get("op"))
        apply_step(session, step)
        await session.drain_validation()

    decision = session.validate_for_submission()
    pending = session.pending_intent
    return {
        "snapshot": dict(session.get_canonical_state()),
        "validation": {
            field: dataclasses.asdict(state) for field, state in session.validation_snapshot().items()
        },
        "submission": {"valid": decision.valid, "errors": decision.errors},
        "controller_state": session.intents.state,
        "pending_intent": pending.payload if pending is not None else None,
        "global_error": session.global_error,
    }


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Replay an order entry scenario")

    parser.add_argument(
        "--scenario",
        type=Path,
        required=True,
        help="Path to the scenario JSON.",
    )

    parser.add_argument(
        "--events-out",
        type=Path,
        default=None,
        help="Optional JSONL file receiving every domain event.",
    )

    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ...).",
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    scenario = _load_json(args.scenario)

    event_bus = EventBus(sinks=[LoggingEventSink(logging.getLogger("order_entry.events"), level=logging.DEBUG)])
    if args.events_out is not None:
        event_bus.register(FileRecorderSink(args.events_out))

    try:
        result = asyncio.run(replay(scenario, event_bus))
    finally:
        event_bus.close()

    print(json.dumps(result, indent=2, sort_keys=True, default=str))


if __name__ == "__main__":
    main()
