"""
Semantic test: preferences and reference data feed the layered order.

Invariant:
Preferences replace the preference layer; the default account applies
only once it is known to reference data. Reference-data mismatches mark
the field and raise the generic global error, which clears when resolved
but never overrides a server-provided global error.
"""

from __future__ import annotations

from order_entry.core.domain.preferences import UserPreferences, preferences_to_layer
from order_entry.core.domain.types import PREFERENCE_LAYER, ReferenceData
from order_entry.core.events.sinks.null_event_bus import NullEventBus
from order_entry.core.validation.reference_data import GLOBAL_REF_DATA_ERROR
from order_entry.session.order_session import OrderEntrySession

REFERENCE = {
    "accounts": ["ACC-1"],
    "liquidity_pools": ["Hybrid", "Dark"],
    "currency_pairs": ["GBPUSD", "EURUSD"],
    "entitled_order_types": ["FLOAT", "TWAP", "IOC"],
}


def test_preference_mapping() -> None:
    prefs = UserPreferences(
        default_account="ACC-1",
        default_liquidity_pool="Dark",
        default_order_type="TWAP",
        default_time_in_force="GTD",
    )

    assert preferences_to_layer(prefs) == {
        "liquidity_pool": "Dark",
        "order_type": "TWAP",
        "expiry_strategy": "GTD",
    }
    assert preferences_to_layer(prefs, ReferenceData(**REFERENCE))["account"] == "ACC-1"
    assert "account" not in preferences_to_layer(prefs, ReferenceData(accounts=["ACC-2"]))


def test_default_account_applies_once_reference_data_arrives() -> None:
    session = OrderEntrySession(NullEventBus())
    session.apply_preferences({"default_account": "ACC-1", "default_liquidity_pool": "Dark"})

    assert "account" not in session.get_canonical_state()
    assert session.get_canonical_state()["liquidity_pool"] == "Dark"

    session.set_reference_data(REFERENCE)

    assert session.get_canonical_state()["account"] == "ACC-1"
    assert dict(session.get_layer(PREFERENCE_LAYER)) == {"account": "ACC-1", "liquidity_pool": "Dark"}


def test_reference_data_mismatch_sets_and_clears_global_error() -> None:
    session = OrderEntrySession(NullEventBus())
    session.set_reference_data({**REFERENCE, "currency_pairs": ["EURUSD"]})

    assert session.validation_state("currency_pair").ref_data_error == (
        "Currency pair not available for this order type"
    )
    assert session.global_error == GLOBAL_REF_DATA_ERROR
    assert not session.is_form_valid()

    session.set_field_value("currency_pair", "EURUSD")

    assert session.validation_state("currency_pair").ref_data_error is None
    assert session.global_error is None
    assert session.is_form_valid()


def test_server_global_error_is_not_overridden() -> None:
    session = OrderEntrySession(NullEventBus())
    session.set_global_error("Trading halted")

    session.set_reference_data({**REFERENCE, "liquidity_pools": ["Dark"]})

    assert session.validation_state("liquidity_pool").ref_data_error == "Liquidity pool not available"
    assert session.global_error == "Trading halted"


def test_applied_intent_is_checked_against_reference_data() -> None:
    session = OrderEntrySession(NullEventBus(), reference_data=ReferenceData(**REFERENCE))
    session.drain_queue_on_ready()

    session.receive_intent({"order_type": "POUNCE", "level": 1.25}, "blotter")

    assert session.validation_state("order_type").ref_data_error == "Order type not supported"
