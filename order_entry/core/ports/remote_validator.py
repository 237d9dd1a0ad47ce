"""Remote field validator protocol.

The orchestrator awaits exactly one call per dispatched field validation.
Implementations talk to whatever service performs server-side checks
(credit, pool limits, price sanity) and translate its answer into the
{ok, type?, message?} shape.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol

from order_entry.core.domain.types import RemoteValidationResult


class RemoteFieldValidator(Protocol):
    """Asynchronous single-field validation boundary."""

    async def validate(
        self,
        field: str,
        value: Any,
        context: Mapping[str, Any],
    ) -> RemoteValidationResult | Mapping[str, Any]:
        """Validate `value` for `field` given the resolved order `context`."""
