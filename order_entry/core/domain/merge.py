"""Merge resolver computing the canonical order from the layer store.

Resolution is a single generic loop over (priority, name, data) tuples in
ascending priority: start from a copy of the default layer and let every
higher layer overwrite the fields it defines. A None value in a sparse layer
means "no opinion" and never blanks out a lower layer's value; an explicit
user clear therefore falls through to the next lower layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

from order_entry.core.domain.types import (
    DEFAULT_LAYER,
    USER_EDIT_LAYER,
    OrderSnapshot,
    freeze_record,
)

if TYPE_CHECKING:
    from order_entry.core.domain.layers import LayerStore
    from order_entry.core.validation.state import ValidationStateStore


@dataclass(frozen=True, slots=True)
class ResolvedOrder:
    """Resolved values plus the layer each value came from (debugging aid)."""

    values: OrderSnapshot
    sources: Mapping[str, str]


def merge_layers(layers: list[tuple[int, str, Mapping[str, Any]]]) -> ResolvedOrder:
    """Merge layers by ascending priority. Later (higher) layers win ties."""
    merged: dict[str, Any] = {}
    sources: dict[str, str] = {}

    for _priority, name, data in sorted(layers, key=lambda item: item[0]):
        for key, value in data.items():
            if value is None and name != DEFAULT_LAYER:
                continue
            merged[key] = value
            sources[key] = name

    return ResolvedOrder(values=freeze_record(merged), sources=freeze_record(sources))


class MergeResolver:
    """Read-only view over the layer store and the validation state store."""

    def __init__(
        self,
        layer_store: LayerStore,
        validation_store: ValidationStateStore | None = None,
    ) -> None:
        self._layer_store = layer_store
        self._validation_store = validation_store

    def resolve(self) -> OrderSnapshot:
        """Return the canonical order snapshot."""
        return merge_layers(self._layer_store.layers()).values

    def resolve_with_sources(self) -> ResolvedOrder:
        return merge_layers(self._layer_store.layers())

    def is_dirty(self) -> bool:
        """True iff the user edit layer holds at least one defined value."""
        user_edit = self._layer_store.get_layer(USER_EDIT_LAYER)
        return any(value is not None for value in user_edit.values())

    def is_valid(self) -> bool:
        """True iff no field carries a blocking error."""
        if self._validation_store is None:
            return True
        return not self._validation_store.has_blocking_errors()
