"""
Intent arrival state machine definitions.

This module defines the intent controller states, the intent statuses and
the allowed transitions between them. It is intentionally passive: the
controller consults it before every transition.
"""

from __future__ import annotations

NOT_READY = "not_ready"
READY = "ready"
AWAITING_CONFIRMATION = "awaiting_confirmation"

CONTROLLER_STATES: frozenset[str] = frozenset({NOT_READY, READY, AWAITING_CONFIRMATION})


# Allowed controller transitions.
#
# Key   : current state
# Value : set of allowed next states
#
# Notes:
# - Self transitions cover "intent queued while not ready" and
#   "pending intent replaced while awaiting confirmation".
# - A pending confirmation survives a readiness drop so the user's
#   decision is never silently lost.
CONTROLLER_ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    NOT_READY: frozenset(
        {
            NOT_READY,
            READY,
        }
    ),

    READY: frozenset(
        {
            READY,
            NOT_READY,
            AWAITING_CONFIRMATION,
        }
    ),

    AWAITING_CONFIRMATION: frozenset(
        {
            AWAITING_CONFIRMATION,
            READY,
        }
    ),
}


# Terminal intent statuses: once reached, the intent is considered handled.
INTENT_TERMINAL_STATUSES: frozenset[str] = frozenset({"applied", "rejected"})

INTENT_ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"applied", "rejected"}),
}


def is_valid_controller_transition(prev_state: str, next_state: str) -> bool:
    """Return True if the controller may move prev_state -> next_state."""
    allowed = CONTROLLER_ALLOWED_TRANSITIONS.get(prev_state)
    if allowed is None:
        return False
    return next_state in allowed


def is_terminal_status(status: str) -> bool:
    """Return True if the given intent status is terminal."""
    return status in INTENT_TERMINAL_STATUSES


def is_valid_status_transition(prev_status: str, next_status: str) -> bool:
    """Return True if the intent status transition prev -> next is allowed."""
    allowed = INTENT_ALLOWED_TRANSITIONS.get(prev_status)
    if allowed is None:
        return False
    return next_status in allowed
