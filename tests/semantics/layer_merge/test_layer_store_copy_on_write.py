"""
Semantic test: layer writes are copy-on-write and one value per key.

Invariant:
default/preference writes replace the layer, external_intent/user_edit
writes merge field-wise replacing the previous value of a key. Views
handed out earlier never change, and the default layer cannot be cleared.
"""

from __future__ import annotations

import pytest

from order_entry.core.domain.layers import LayerStore
from order_entry.core.domain.types import (
    DEFAULT_LAYER,
    EXTERNAL_INTENT_LAYER,
    PREFERENCE_LAYER,
    USER_EDIT_LAYER,
)
from order_entry.core.errors import LayerStoreError


def test_preference_write_replaces_layer() -> None:
    store = LayerStore({"side": "BUY"})
    store.set_layer(PREFERENCE_LAYER, {"liquidity_pool": "Dark", "account": "ACC-1"})
    store.set_layer(PREFERENCE_LAYER, {"liquidity_pool": "Lit"})

    assert dict(store.get_layer(PREFERENCE_LAYER)) == {"liquidity_pool": "Lit"}


def test_sparse_write_merges_and_replaces_per_key() -> None:
    store = LayerStore({"side": "BUY"})
    store.set_layer(USER_EDIT_LAYER, {"amount": 1.0, "side": "SELL"})
    store.set_layer(USER_EDIT_LAYER, {"amount": 2.0})

    assert dict(store.get_layer(USER_EDIT_LAYER)) == {"amount": 2.0, "side": "SELL"}


def test_earlier_view_is_not_affected_by_later_writes() -> None:
    store = LayerStore({"side": "BUY"})
    store.set_layer(EXTERNAL_INTENT_LAYER, {"side": "SELL"})
    before = store.get_layer(EXTERNAL_INTENT_LAYER)

    store.set_layer(EXTERNAL_INTENT_LAYER, {"amount": 9.0})
    store.clear_layer(EXTERNAL_INTENT_LAYER)

    assert dict(before) == {"side": "SELL"}
    with pytest.raises(TypeError):
        before["side"] = "BUY"  # type: ignore[index]


def test_clear_returns_cleared_keys() -> None:
    store = LayerStore({"side": "BUY"})
    store.set_layer(USER_EDIT_LAYER, {"amount": 1.0, "level": 1.1})

    assert store.clear_layer(USER_EDIT_LAYER) == frozenset({"amount", "level"})
    assert dict(store.get_layer(USER_EDIT_LAYER)) == {}


def test_default_layer_cannot_be_cleared() -> None:
    store = LayerStore({"side": "BUY"})

    with pytest.raises(LayerStoreError):
        store.clear_layer(DEFAULT_LAYER)


def test_unknown_layer_is_rejected() -> None:
    store = LayerStore({"side": "BUY"})

    with pytest.raises(LayerStoreError):
        store.set_layer("scratch", {"side": "SELL"})


def test_layers_are_listed_by_ascending_priority() -> None:
    store = LayerStore({"side": "BUY"})

    names = [name for _priority, name, _data in store.layers()]

    assert names == [DEFAULT_LAYER, PREFERENCE_LAYER, EXTERNAL_INTENT_LAYER, USER_EDIT_LAYER]
