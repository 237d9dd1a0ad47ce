"""Order entry session.

One explicit session instance owns the layer store, the validation state and
the intent controller for a single order ticket, and is passed by reference
to every consumer. All mutations go through its methods; reads return
read-only snapshots.
"""

# pylint: disable=too-many-instance-attributes,too-many-public-methods
from __future__ import annotations

import dataclasses
import logging
import time
from typing import TYPE_CHECKING, Any, Callable, Mapping

from order_entry.core.config.entry_config import OrderEntryConfig
from order_entry.core.domain.edit_mode import (
    AMENDING,
    CREATING,
    VIEWING,
    EditMode,
    is_valid_edit_mode_transition,
)
from order_entry.core.domain.layers import LayerStore
from order_entry.core.domain.merge import MergeResolver, ResolvedOrder
from order_entry.core.domain.preferences import UserPreferences, preferences_to_layer
from order_entry.core.domain.types import (
    EXTERNAL_INTENT_LAYER,
    LAYER_PRIORITY,
    PREFERENCE_LAYER,
    USER_EDIT_LAYER,
    Intent,
    OrderSnapshot,
    ReferenceData,
    SubmissionReceipt,
)
from order_entry.core.errors import (
    AmendNotAllowedError,
    DebugAccessDisabledError,
    OrderEntryError,
    SubmissionInProgressError,
)
from order_entry.core.intents.intent_controller import IntentArrivalController
from order_entry.core.intents.intent_mapper import map_context_to_payload
from order_entry.core.ports.reference_data import StaticReferenceDataProvider
from order_entry.core.validation.orchestrator import ValidationOrchestrator
from order_entry.core.validation.reference_data import (
    AMEND_UNAVAILABLE_DATA_ERROR,
    GLOBAL_REF_DATA_ERROR,
    validate_reference_data,
)
from order_entry.core.validation.state import ValidationState, ValidationStateStore
from order_entry.core.validation.submission_gate import SubmissionDecision, SubmissionGate

if TYPE_CHECKING:
    from order_entry.core.events.event_bus import EventBus
    from order_entry.core.ports.order_submitter import OrderSubmitter
    from order_entry.core.ports.remote_validator import RemoteFieldValidator


LOGGER = logging.getLogger(__name__)

_UNSET: Any = object()


class OrderEntrySession:
    """Facade over the layered order state of one order ticket."""

    def __init__(
        self,
        event_bus: EventBus,
        config: OrderEntryConfig | None = None,
        *,
        remote_validator: RemoteFieldValidator | None = None,
        order_submitter: OrderSubmitter | None = None,
        reference_data: ReferenceData | None = None,
        clock: Callable[[], int] = time.time_ns,
    ) -> None:
        self.config = config or OrderEntryConfig()
        self._event_bus = event_bus
        self._submitter = order_submitter

        self._layers = LayerStore(self.config.defaults)
        self._validation = ValidationStateStore()
        self._resolver = MergeResolver(self._layers, self._validation)
        self._reference_data = StaticReferenceDataProvider(reference_data)

        self._orchestrator = ValidationOrchestrator(
            self._validation,
            remote_validator,
            self._resolver.resolve,
            event_bus,
            debounce_s=self.config.debounce_s,
            remote_timeout_s=self.config.remote_timeout_s,
            hard_error_default=self.config.hard_error_default,
            soft_warning_default=self.config.soft_warning_default,
            clock=clock,
        )
        self._intents = IntentArrivalController(
            self._layers,
            self._resolver,
            event_bus,
            on_user_edit_cleared=self._orchestrator.reset_fields,
            clock=clock,
        )
        self._gate = SubmissionGate(
            event_bus,
            reference_data_provider=self._reference_data,
            validation_store=self._validation,
            clock=clock,
        )

        self._preferences: UserPreferences | None = None
        self._global_error: str | None = None
        self._submitting = False
        self._edit_mode: EditMode = CREATING
        self.current_order_id: str | None = None

    # ---- Read-only views ----
    @property
    def intents(self) -> IntentArrivalController:
        return self._intents

    @property
    def pending_intent(self) -> Intent | None:
        return self._intents.pending_intent

    @property
    def global_error(self) -> str | None:
        return self._global_error

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    @property
    def edit_mode(self) -> EditMode:
        return self._edit_mode

    def get_canonical_state(self) -> OrderSnapshot:
        return self._resolver.resolve()

    def resolve_with_sources(self) -> ResolvedOrder:
        return self._resolver.resolve_with_sources()

    def get_layer(self, name: str) -> OrderSnapshot:
        return self._layers.get_layer(name)

    def validation_state(self, field: str) -> ValidationState:
        return self._validation.get(field)

    def validation_snapshot(self) -> Mapping[str, ValidationState]:
        return self._validation.snapshot()

    def is_dirty(self) -> bool:
        return self._resolver.is_dirty()

    def is_form_valid(self) -> bool:
        return self._resolver.is_valid()

    # ---- User edits ----
    def set_field_value(self, key: str, value: Any) -> None:
        """Record a user edit and schedule its validation.

        None clears the edit; the field then resolves from the lower layers
        and that resolved value is what gets validated.
        """
        self._layers.set_layer(USER_EDIT_LAYER, {key: value})
        LOGGER.debug("[%s] user_edit %s=%r", self.config.session_id, key, value)

        self.validate_ref_data()
        self._orchestrator.schedule_validation(key, self.get_canonical_state().get(key))

    async def validate_field(self, key: str, value: Any = _UNSET) -> ValidationState:
        """Validate a field now (local then remote). Defaults to its resolved value."""
        if value is _UNSET:
            value = self.get_canonical_state().get(key)
        return await self._orchestrator.validate_field(key, value)

    async def drain_validation(self) -> None:
        """Run pending debounced validations now and wait for in-flight ones."""
        await self._orchestrator.drain()

    # ---- External intents ----
    def _after_intent(self, intent: Intent | None) -> Intent | None:
        if intent is not None and intent.status == "applied":
            self.validate_ref_data()
        return intent

    def receive_intent(self, payload: Mapping[str, Any], source_app: str | None = None) -> Intent:
        """Dispatch an intent through the arrival state machine."""
        intent = self._intents.receive(payload, source_app)
        self._after_intent(intent)
        return intent

    def receive_interop_context(self, context: Mapping[str, Any], source_app: str | None = None) -> Intent:
        """Map an interop context to a payload and dispatch it as an intent."""
        return self.receive_intent(map_context_to_payload(context), source_app)

    def apply_external_intent(self, payload: Mapping[str, Any], source_app: str | None = None) -> Intent:
        intent = self._intents.apply_external_intent(payload, source_app)
        self._after_intent(intent)
        return intent

    def queue_external_intent(self, payload: Mapping[str, Any], source_app: str | None = None) -> Intent:
        return self._intents.queue_external_intent(payload, source_app)

    def drain_queue_on_ready(self) -> Intent | None:
        return self._after_intent(self._intents.drain_queue_on_ready())

    def mark_not_ready(self) -> None:
        self._intents.mark_not_ready()

    def accept_pending_intent(self) -> Intent | None:
        return self._after_intent(self._intents.accept_pending_intent())

    def reject_pending_intent(self) -> Intent | None:
        return self._intents.reject_pending_intent()

    # ---- Preferences / reference data ----
    def apply_preferences(self, preferences: UserPreferences | Mapping[str, Any]) -> None:
        if not isinstance(preferences, UserPreferences):
            preferences = UserPreferences.model_validate(preferences)
        self._preferences = preferences
        self._layers.set_layer(
            PREFERENCE_LAYER,
            preferences_to_layer(preferences, self._reference_data.reference_data()),
        )
        self.validate_ref_data()

    def set_reference_data(self, reference_data: ReferenceData | Mapping[str, Any]) -> None:
        if not isinstance(reference_data, ReferenceData):
            reference_data = ReferenceData.model_validate(reference_data)
        self._reference_data.update(reference_data)

        # The default account can only be resolved against reference data.
        if self._preferences is not None:
            self._layers.set_layer(PREFERENCE_LAYER, preferences_to_layer(self._preferences, reference_data))
        self.validate_ref_data()

    def validate_ref_data(self) -> dict[str, str]:
        """Re-check the resolved order against reference data and update the global error."""
        errors = validate_reference_data(self.get_canonical_state(), self._reference_data.reference_data())
        self._orchestrator.set_ref_data_errors(errors)

        if errors:
            if self._global_error is None:
                self._global_error = GLOBAL_REF_DATA_ERROR
        elif self._global_error == GLOBAL_REF_DATA_ERROR:
            self._global_error = None
        return errors

    def set_global_error(self, message: str | None) -> None:
        """Set a server-provided global error; it takes priority over the generic one."""
        self._global_error = message

    # ---- Submission ----
    def validate_for_submission(self, snapshot: Mapping[str, Any] | None = None) -> SubmissionDecision:
        if snapshot is None:
            snapshot = self.get_canonical_state()
        return self._gate.validate_for_submission(snapshot)

    def _set_edit_mode(self, mode: EditMode) -> None:
        if not is_valid_edit_mode_transition(self._edit_mode, mode):
            raise AmendNotAllowedError(f"Invalid edit mode transition: {self._edit_mode} -> {mode}")
        self._edit_mode = mode

    def amend_order(self) -> None:
        """Make the submitted order editable again.

        Refused while any reference-data error exists. User edits are kept.
        """
        if self.current_order_id is None:
            raise AmendNotAllowedError("No submitted order to amend")
        if self._validation.ref_data_errors():
            LOGGER.warning("[%s] Amend refused: reference data errors present", self.config.session_id)
            raise AmendNotAllowedError(AMEND_UNAVAILABLE_DATA_ERROR)
        self._set_edit_mode(AMENDING)
        LOGGER.info("[%s] Amending order_id=%s", self.config.session_id, self.current_order_id)

    async def submit(self) -> SubmissionReceipt:
        """Validate the whole order and hand it to the order submitter.

        In amend mode the order goes out as an amendment of current_order_id,
        otherwise as a new order. Gate errors are written into the per-field
        local errors. On success the user edits and validation state are
        cleared and the ticket moves to viewing.
        """
        if self._submitting:
            raise SubmissionInProgressError("A submission is already in progress")
        if self._submitter is None:
            raise OrderEntryError("No order submitter configured")

        amend_id = self.current_order_id if self._edit_mode == AMENDING else None

        self._submitting = True
        try:
            settled = await self._orchestrator.drain(self.config.submit_drain_timeout_s)
            if not settled:
                LOGGER.warning("[%s] Submitting with field validations still outstanding", self.config.session_id)

            order = self.get_canonical_state()
            decision = self.validate_for_submission(order)
            if not decision.valid:
                for key, message in decision.errors.items():
                    self._validation.update(key, local_error=message, is_pending=False)
                return SubmissionReceipt(success=False, failure_reason="Validation failed")

            try:
                if amend_id is not None:
                    receipt = await self._submitter.amend(amend_id, order)
                else:
                    receipt = await self._submitter.submit(order)
            except Exception:  # pylint: disable=broad-exception-caught
                LOGGER.exception("[%s] Order submission raised", self.config.session_id)
                if self.current_order_id is not None:
                    self._set_edit_mode(VIEWING)
                return SubmissionReceipt(success=False, failure_reason="Order submission failed")

            if not receipt.success:
                LOGGER.warning("[%s] Order submission failed: %s", self.config.session_id, receipt.failure_reason)
                if amend_id is not None:
                    self._set_edit_mode(VIEWING)
                return receipt

            # An amendment keeps the id of the order it amends.
            if amend_id is None:
                self.current_order_id = receipt.order_id
            self._set_edit_mode(VIEWING)
            self._layers.clear_layer(USER_EDIT_LAYER)
            self._orchestrator.reset_all()
            LOGGER.info(
                "[%s] Order %s: order_id=%s",
                self.config.session_id,
                "amended" if amend_id is not None else "submitted",
                self.current_order_id,
            )
            return receipt
        finally:
            self._submitting = False

    # ---- Reset ----
    def reset_session(self) -> None:
        """Clear user edits, all validation state and any pending intent."""
        self._layers.clear_layer(USER_EDIT_LAYER)
        self._orchestrator.reset_all()
        self._intents.clear_pending()
        if self._global_error == GLOBAL_REF_DATA_ERROR:
            self._global_error = None
        LOGGER.info("[%s] Session reset", self.config.session_id)

    def new_order(self) -> None:
        """Start a fresh ticket: also drops the applied intent, the current order id and amend mode."""
        self._layers.clear_layer(EXTERNAL_INTENT_LAYER)
        self.reset_session()
        self.current_order_id = None
        self._set_edit_mode(CREATING)

    # ---- Debug ----
    def debug_state(self) -> dict[str, Any]:
        """Read-only dump of the whole session state (behind a config flag)."""
        if not self.config.debug_store_access:
            raise DebugAccessDisabledError("debug_store_access is disabled in OrderEntryConfig")

        pending = self._intents.pending_intent
        queued = self._intents.queued_intent
        return {
            "session_id": self.config.session_id,
            "layers": {name: dict(self._layers.get_layer(name)) for name in LAYER_PRIORITY},
            "resolved": dict(self.get_canonical_state()),
            "sources": dict(self.resolve_with_sources().sources),
            "validation": {
                field: dataclasses.asdict(state) for field, state in self._validation.snapshot().items()
            },
            "controller_state": self._intents.state,
            "pending_intent_id": pending.id if pending is not None else None,
            "queued_intent_id": queued.id if queued is not None else None,
            "current_order_id": self.current_order_id,
            "edit_mode": self._edit_mode,
            "global_error": self._global_error,
        }
