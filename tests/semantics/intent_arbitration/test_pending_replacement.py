"""
Semantic test: only the newest pending intent is surfaced.

Invariant:
While awaiting confirmation, a newer intent replaces the pending one (the
older is discarded, never merged). A readiness drop keeps the pending
confirmation.
"""

from __future__ import annotations

import pytest

from order_entry.core.domain.intent_state_machine import (
    AWAITING_CONFIRMATION,
    is_valid_controller_transition,
    is_valid_status_transition,
)
from order_entry.core.events.events import IntentDiscardedEvent, IntentPendingEvent
from order_entry.core.events.event_bus import EventBus
from order_entry.core.events.sinks.null_event_bus import CollectingSink, NullEventBus
from order_entry.session.order_session import OrderEntrySession


def test_newer_intent_replaces_pending() -> None:
    sink = CollectingSink()
    session = OrderEntrySession(EventBus(sinks=[sink]))
    session.drain_queue_on_ready()
    session.set_field_value("amount", 500000)

    older = session.receive_intent({"side": "SELL"}, "a")
    newer = session.receive_intent({"order_type": "TWAP"}, "b")

    assert session.pending_intent is not None
    assert session.pending_intent.id == newer.id
    assert [e.intent_id for e in sink.of_type(IntentDiscardedEvent)] == [older.id]
    assert len(sink.of_type(IntentPendingEvent)) == 2

    session.accept_pending_intent()

    resolved = session.get_canonical_state()
    assert resolved["order_type"] == "TWAP"
    assert resolved["side"] == "BUY"


def test_pending_confirmation_survives_readiness_drop() -> None:
    session = OrderEntrySession(NullEventBus())
    session.drain_queue_on_ready()
    session.set_field_value("amount", 500000)
    session.receive_intent({"side": "SELL"}, "a")

    session.mark_not_ready()

    assert session.intents.state == AWAITING_CONFIRMATION
    assert session.pending_intent is not None


def test_direct_apply_bypasses_dirty_check_and_drops_pending() -> None:
    session = OrderEntrySession(NullEventBus())
    session.drain_queue_on_ready()
    session.set_field_value("amount", 500000)
    session.receive_intent({"side": "SELL"}, "a")

    applied = session.apply_external_intent({"order_type": "IOC"}, "b")

    assert applied.status == "applied"
    assert session.pending_intent is None
    assert session.get_canonical_state()["order_type"] == "IOC"
    assert session.get_canonical_state()["amount"] == 1_000_000.0


@pytest.mark.parametrize(
    ("prev_state", "next_state", "allowed"),
    [
        ("not_ready", "ready", True),
        ("not_ready", "awaiting_confirmation", False),
        ("ready", "awaiting_confirmation", True),
        ("awaiting_confirmation", "ready", True),
        ("awaiting_confirmation", "not_ready", False),
    ],
)
def test_controller_transition_table(prev_state: str, next_state: str, allowed: bool) -> None:
    assert is_valid_controller_transition(prev_state, next_state) is allowed


def test_terminal_intent_status_cannot_change() -> None:
    assert is_valid_status_transition("pending", "applied")
    assert not is_valid_status_transition("applied", "rejected")
    assert not is_valid_status_transition("rejected", "applied")
