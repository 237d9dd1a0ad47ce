from __future__ import annotations

from typing import Protocol

from order_entry.core.domain.types import ReferenceData


class ReferenceDataProvider(Protocol):
    """Read-only source of the current reference data."""

    def reference_data(self) -> ReferenceData | None:
        """Return the latest reference data, or None if not loaded yet."""


class StaticReferenceDataProvider:
    """Holds a reference data snapshot pushed by the caller."""

    def __init__(self, reference_data: ReferenceData | None = None) -> None:
        self._reference_data = reference_data

    def reference_data(self) -> ReferenceData | None:
        return self._reference_data

    def update(self, reference_data: ReferenceData | None) -> None:
        self._reference_data = reference_data
