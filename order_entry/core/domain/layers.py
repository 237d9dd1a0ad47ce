"""Layer storage for the four prioritized partial views of the order.

The store is pure storage: no validation, no merge logic and no side effects
on validation state. Every mutation is a copy-on-write replace of the layer
mapping, so views handed out earlier never change underneath their holder.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

from order_entry.core.domain.types import (
    DEFAULT_LAYER,
    LAYER_PRIORITY,
    REPLACE_ON_WRITE_LAYERS,
    OrderSnapshot,
)
from order_entry.core.errors import LayerStoreError

_EMPTY: Mapping[str, Any] = MappingProxyType({})


class LayerStore:
    """Holds one read-only mapping per layer name."""

    def __init__(self, defaults: Mapping[str, Any]) -> None:
        self._layers: dict[str, Mapping[str, Any]] = {name: _EMPTY for name in LAYER_PRIORITY}
        self._layers[DEFAULT_LAYER] = MappingProxyType(dict(defaults))

    @staticmethod
    def _check_name(name: str) -> None:
        if name not in LAYER_PRIORITY:
            raise LayerStoreError(f"Unknown layer: {name}")

    def set_layer(self, name: str, record: Mapping[str, Any]) -> None:
        """Write a record into a layer.

        default / preference: the record replaces the layer wholesale.
        external_intent / user_edit: field-wise merge, one value per key.
        """
        self._check_name(name)

        if name in REPLACE_ON_WRITE_LAYERS:
            self._layers[name] = MappingProxyType(dict(record))
            return

        merged = dict(self._layers[name])
        merged.update(record)
        self._layers[name] = MappingProxyType(merged)

    def get_layer(self, name: str) -> OrderSnapshot:
        """Return a read-only view of a layer."""
        self._check_name(name)
        return self._layers[name]

    def clear_layer(self, name: str) -> frozenset[str]:
        """Empty a sparse layer and return the keys it held.

        The default layer is immutable configuration and cannot be cleared.
        """
        self._check_name(name)
        if name == DEFAULT_LAYER:
            raise LayerStoreError("The default layer cannot be cleared")

        cleared = frozenset(self._layers[name].keys())
        self._layers[name] = _EMPTY
        return cleared

    def layers(self) -> list[tuple[int, str, Mapping[str, Any]]]:
        """Return (priority, name, data) tuples in ascending priority."""
        return sorted(
            ((LAYER_PRIORITY[name], name, data) for name, data in self._layers.items()),
            key=lambda item: item[0],
        )
