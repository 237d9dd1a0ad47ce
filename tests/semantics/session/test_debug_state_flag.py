"""
Semantic test: the debug state accessor is gated by configuration.

Invariant:
debug_state raises unless debug_store_access is enabled, and when enabled
returns a detached copy that reflects layers, resolved values and sources.
"""

from __future__ import annotations

import pytest

from order_entry.core.config.entry_config import OrderEntryConfig
from order_entry.core.errors import DebugAccessDisabledError
from order_entry.core.events.sinks.null_event_bus import NullEventBus
from order_entry.session.order_session import OrderEntrySession


def test_debug_state_disabled_by_default() -> None:
    session = OrderEntrySession(NullEventBus())

    with pytest.raises(DebugAccessDisabledError):
        session.debug_state()


def test_debug_state_dump_when_enabled() -> None:
    session = OrderEntrySession(NullEventBus(), OrderEntryConfig(debug_store_access=True, session_id="ticket-1"))
    session.drain_queue_on_ready()
    session.apply_external_intent({"side": "SELL"}, "blotter")
    session.set_field_value("amount", 2_000_000)

    dump = session.debug_state()

    assert dump["session_id"] == "ticket-1"
    assert dump["layers"]["user_edit"] == {"amount": 2_000_000}
    assert dump["resolved"]["side"] == "SELL"
    assert dump["sources"]["side"] == "external_intent"
    assert dump["controller_state"] == "ready"

    dump["layers"]["user_edit"]["amount"] = 1
    assert session.get_canonical_state()["amount"] == 2_000_000
