"""
Domain event models.

These events represent immutable facts observed while an order is edited.
They are consumed by loggers, recorders, and monitoring pipelines.
"""
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class ControllerTransitionEvent:
    ts_ns_local: int
    prev_state: str
    next_state: str


@dataclass(slots=True)
class IntentQueuedEvent:
    ts_ns_local: int
    intent_id: str
    source_app: str | None


@dataclass(slots=True)
class IntentDiscardedEvent:
    """An intent superseded by a newer one (queue or pending slot)."""

    ts_ns_local: int
    intent_id: str
    superseded_by: str


@dataclass(slots=True)
class IntentAppliedEvent:
    ts_ns_local: int
    intent_id: str
    source_app: str | None

    fields: tuple[str, ...]
    cleared_user_edits: tuple[str, ...]


@dataclass(slots=True)
class IntentPendingEvent:
    ts_ns_local: int
    intent_id: str
    source_app: str | None


@dataclass(slots=True)
class IntentRejectedEvent:
    ts_ns_local: int
    intent_id: str


@dataclass(slots=True)
class ValidationAppliedEvent:
    ts_ns_local: int
    field: str
    sequence: int

    local_error: str | None
    remote_error: str | None
    warning: str | None


@dataclass(slots=True)
class StaleValidationDroppedEvent:
    ts_ns_local: int
    field: str

    stale_sequence: int
    live_sequence: int
    stage: str
    kind: str


@dataclass(slots=True)
class SubmissionDecisionEvent:
    ts_ns_local: int
    valid: bool

    errors: dict[str, str] = field(default_factory=dict)
