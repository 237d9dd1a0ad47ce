"""Order submission protocol."""

from __future__ import annotations

from typing import Any, Mapping, Protocol

from order_entry.core.domain.types import SubmissionReceipt


class OrderSubmitter(Protocol):
    """Sends a validated order downstream, as a new order or an amendment."""

    async def submit(self, order: Mapping[str, Any]) -> SubmissionReceipt:
        """Create a new order from the resolved record and return the downstream receipt."""

    async def amend(self, order_id: str, order: Mapping[str, Any]) -> SubmissionReceipt:
        """Amend the existing order `order_id` with the resolved record."""
