"""Intent arrival controller.

Decides, for every externally sourced intent, whether to apply it now, queue
it until the consumer is ready, or hold it for user confirmation because the
user is in the middle of an edit.

Queue and pending slot are both last-write-wins: a newer intent discards the
older one, intents are never merged together.
"""

# pylint: disable=too-many-instance-attributes
from __future__ import annotations

import logging
import time
import uuid
from typing import TYPE_CHECKING, Any, Callable, Mapping

from order_entry.core.domain.intent_state_machine import (
    AWAITING_CONFIRMATION,
    NOT_READY,
    READY,
    is_terminal_status,
    is_valid_controller_transition,
    is_valid_status_transition,
)
from order_entry.core.domain.types import (
    EXTERNAL_INTENT_LAYER,
    USER_EDIT_LAYER,
    Intent,
    IntentStatus,
)
from order_entry.core.errors import IntentTransitionError
from order_entry.core.events.events import (
    ControllerTransitionEvent,
    IntentAppliedEvent,
    IntentDiscardedEvent,
    IntentPendingEvent,
    IntentQueuedEvent,
    IntentRejectedEvent,
)

if TYPE_CHECKING:
    from order_entry.core.domain.layers import LayerStore
    from order_entry.core.domain.merge import MergeResolver
    from order_entry.core.events.event_bus import EventBus


LOGGER = logging.getLogger(__name__)


def _new_intent_id() -> str:
    return uuid.uuid4().hex


class IntentArrivalController:
    """State machine over not_ready / ready / awaiting_confirmation."""

    def __init__(
        self,
        layer_store: LayerStore,
        resolver: MergeResolver,
        event_bus: EventBus,
        *,
        on_user_edit_cleared: Callable[[frozenset[str]], None] | None = None,
        clock: Callable[[], int] = time.time_ns,
        id_factory: Callable[[], str] = _new_intent_id,
    ) -> None:
        self._layer_store = layer_store
        self._resolver = resolver
        self._event_bus = event_bus
        self._on_user_edit_cleared = on_user_edit_cleared
        self._clock = clock
        self._id_factory = id_factory

        self._state: str = NOT_READY
        # Holds at most one intent: the latest one received while not ready.
        self._queued: Intent | None = None
        self._pending: Intent | None = None

        # Last intent that reached a terminal status (applied / rejected).
        self.last_intent: Intent | None = None

    # ---- Read-only views ----
    @property
    def state(self) -> str:
        return self._state

    @property
    def pending_intent(self) -> Intent | None:
        """Intent waiting for the user's accept/reject decision, if any."""
        return self._pending

    @property
    def has_pending_intent(self) -> bool:
        return self._pending is not None

    @property
    def queued_intent(self) -> Intent | None:
        return self._queued

    # ---- Helpers ----
    def new_intent(self, payload: Mapping[str, Any], source_app: str | None = None) -> Intent:
        return Intent(
            id=self._id_factory(),
            received_at_ns=self._clock(),
            # An empty source name means the sender is unknown.
            source_app=source_app or None,
            status="pending",
            payload=dict(payload),
        )

    def _set_state(self, next_state: str) -> None:
        prev_state = self._state
        if not is_valid_controller_transition(prev_state, next_state):
            raise IntentTransitionError(f"Invalid controller transition: {prev_state} -> {next_state}")
        if prev_state == next_state:
            return

        self._state = next_state
        self._event_bus.emit(
            ControllerTransitionEvent(
                ts_ns_local=self._clock(),
                prev_state=prev_state,
                next_state=next_state,
            )
        )

    @staticmethod
    def _with_status(intent: Intent, status: IntentStatus) -> Intent:
        if is_terminal_status(intent.status):
            raise IntentTransitionError(f"Intent {intent.id} is already {intent.status}")
        if not is_valid_status_transition(intent.status, status):
            raise IntentTransitionError(
                f"Invalid intent status transition for {intent.id}: {intent.status} -> {status}"
            )
        return intent.with_status(status)

    def _discard(self, old: Intent, new: Intent) -> None:
        LOGGER.debug("Intent %s superseded by %s", old.id, new.id)
        self._event_bus.emit(
            IntentDiscardedEvent(
                ts_ns_local=self._clock(),
                intent_id=old.id,
                superseded_by=new.id,
            )
        )

    # ---- Arrival paths ----
    def receive(self, payload: Mapping[str, Any], source_app: str | None = None) -> Intent:
        """Handle a freshly arrived intent according to the current state."""
        return self._handle(self.new_intent(payload, source_app))

    def _handle(self, intent: Intent) -> Intent:
        if self._state == NOT_READY:
            return self._enqueue(intent)
        if self._state == AWAITING_CONFIRMATION or self._resolver.is_dirty():
            return self._hold(intent)
        return self._apply(intent)

    def queue_external_intent(self, payload: Mapping[str, Any], source_app: str | None = None) -> Intent:
        """Queue an intent until the next drain, regardless of the current state."""
        return self._enqueue(self.new_intent(payload, source_app))

    def apply_external_intent(self, payload: Mapping[str, Any], source_app: str | None = None) -> Intent:
        """Apply an intent immediately, bypassing the dirty check."""
        return self._apply(self.new_intent(payload, source_app))

    def _enqueue(self, intent: Intent) -> Intent:
        if self._queued is not None:
            self._discard(self._queued, intent)
        self._queued = intent

        LOGGER.info("Intent %s queued until next drain", intent.id)
        self._event_bus.emit(
            IntentQueuedEvent(
                ts_ns_local=self._clock(),
                intent_id=intent.id,
                source_app=intent.source_app,
            )
        )
        return intent

    def _hold(self, intent: Intent) -> Intent:
        if self._pending is not None:
            self._discard(self._pending, intent)
        self._pending = intent
        self._set_state(AWAITING_CONFIRMATION)

        LOGGER.info("Intent %s held for confirmation (unsaved user edits)", intent.id)
        self._event_bus.emit(
            IntentPendingEvent(
                ts_ns_local=self._clock(),
                intent_id=intent.id,
                source_app=intent.source_app,
            )
        )
        return intent

    def _apply(self, intent: Intent) -> Intent:
        applied = self._with_status(intent, "applied")

        self._layer_store.set_layer(EXTERNAL_INTENT_LAYER, applied.payload)
        cleared = self._layer_store.clear_layer(USER_EDIT_LAYER)

        if self._pending is not None and self._pending.id != applied.id:
            self._discard(self._pending, applied)
        self._pending = None
        if self._state == AWAITING_CONFIRMATION:
            self._set_state(READY)

        self.last_intent = applied

        if cleared and self._on_user_edit_cleared is not None:
            self._on_user_edit_cleared(cleared)

        LOGGER.info(
            "Intent %s applied from %s: fields=%s",
            applied.id,
            applied.source_app or "unknown",
            sorted(applied.payload),
        )
        self._event_bus.emit(
            IntentAppliedEvent(
                ts_ns_local=self._clock(),
                intent_id=applied.id,
                source_app=applied.source_app,
                fields=tuple(sorted(applied.payload)),
                cleared_user_edits=tuple(sorted(cleared)),
            )
        )
        return applied

    # ---- Readiness ----
    def drain_queue_on_ready(self) -> Intent | None:
        """Become ready and handle the last queued intent as a fresh arrival.

        The queue is drained exactly once, in full; only its last element
        takes effect. Returns the handled intent, if any.
        """
        if self._state == NOT_READY:
            self._set_state(READY)

        latest = self._queued
        self._queued = None
        if latest is None:
            return None
        return self._handle(latest)

    def mark_not_ready(self) -> None:
        """Stop applying intents until the next drain. A pending confirmation is kept."""
        if self._state == READY:
            self._set_state(NOT_READY)

    # ---- Confirmation ----
    def accept_pending_intent(self) -> Intent | None:
        """Apply the pending intent exactly like the immediate-apply path."""
        pending = self._pending
        if pending is None:
            return None
        return self._apply(pending)

    def reject_pending_intent(self) -> Intent | None:
        """Discard the pending intent; layers stay untouched."""
        pending = self._pending
        if pending is None:
            return None

        rejected = self._with_status(pending, "rejected")
        self._pending = None
        self.last_intent = rejected
        self._set_state(READY)

        LOGGER.info("Intent %s rejected by user", rejected.id)
        self._event_bus.emit(
            IntentRejectedEvent(
                ts_ns_local=self._clock(),
                intent_id=rejected.id,
            )
        )
        return rejected

    def clear_pending(self) -> None:
        """Drop any pending intent without recording a decision."""
        if self._pending is None:
            return
        self._pending = None
        self._set_state(READY)
