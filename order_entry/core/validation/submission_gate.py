"""Whole-order validation gate run before submission."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Mapping

from order_entry.core.events.events import SubmissionDecisionEvent
from order_entry.core.validation.reference_data import validate_reference_data
from order_entry.core.validation.schemas import (
    conditional_requirement_errors,
    schema_errors,
    schema_for,
)

if TYPE_CHECKING:
    from order_entry.core.events.event_bus import EventBus
    from order_entry.core.ports.reference_data import ReferenceDataProvider
    from order_entry.core.validation.state import ValidationStateStore


LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class SubmissionDecision:
    """Outcome of the submission gate.

    - valid: True iff errors is empty
    - errors: field -> first message; non-field errors under "_root"
    """

    valid: bool
    errors: dict[str, str] = field(default_factory=dict)


class SubmissionGate:
    """Structural, conditional and reference-data checks over a resolved order.

    Structural checks never look at per-field validation state. Blocking
    per-field errors still held in the state store (e.g. a remote hard error)
    are added afterwards for fields the structural checks did not report.
    """

    def __init__(
        self,
        event_bus: EventBus,
        *,
        reference_data_provider: ReferenceDataProvider | None = None,
        validation_store: ValidationStateStore | None = None,
        clock: Callable[[], int] = time.time_ns,
    ) -> None:
        self._event_bus = event_bus
        self._reference_data_provider = reference_data_provider
        self._validation_store = validation_store
        self._clock = clock

    def validate_for_submission(self, order: Mapping[str, Any]) -> SubmissionDecision:
        decision = SubmissionDecision(valid=True, errors=self._collect_errors(order))
        decision.valid = not decision.errors

        if decision.valid:
            LOGGER.debug("Submission gate passed")
        else:
            LOGGER.info("Submission gate rejected order: %s", decision.errors)

        self._event_bus.emit(
            SubmissionDecisionEvent(
                ts_ns_local=self._clock(),
                valid=decision.valid,
                errors=dict(decision.errors),
            )
        )
        return decision

    def _collect_errors(self, order: Mapping[str, Any]) -> dict[str, str]:
        order_type = order.get("order_type")
        if schema_for(order_type) is None:
            return {"order_type": f"Unknown order type: {order_type}"}

        errors = schema_errors(order)
        if errors:
            return errors

        errors.update(conditional_requirement_errors(order))

        if self._reference_data_provider is not None:
            ref_errors = validate_reference_data(order, self._reference_data_provider.reference_data())
            for key, message in ref_errors.items():
                errors.setdefault(key, message)

        if self._validation_store is not None:
            for key, message in self._validation_store.blocking_errors().items():
                errors.setdefault(key, message)

        return errors
