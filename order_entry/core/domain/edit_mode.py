"""
Ticket edit mode definitions.

A ticket starts in CREATING, moves to VIEWING once an order exists
downstream, and to AMENDING while the user edits that order. Only a new
order returns the ticket to CREATING.
"""

from __future__ import annotations

from typing import Literal

EditMode = Literal["creating", "viewing", "amending"]

CREATING = "creating"
VIEWING = "viewing"
AMENDING = "amending"

EDIT_MODES: frozenset[str] = frozenset({CREATING, VIEWING, AMENDING})


# Allowed edit mode transitions.
#
# Key   : current mode
# Value : set of allowed next modes
EDIT_MODE_ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    CREATING: frozenset({CREATING, VIEWING}),
    VIEWING: frozenset({VIEWING, AMENDING, CREATING}),
    AMENDING: frozenset({AMENDING, VIEWING, CREATING}),
}


def is_valid_edit_mode_transition(prev_mode: str, next_mode: str) -> bool:
    """Return True if the ticket may move prev_mode -> next_mode."""
    allowed = EDIT_MODE_ALLOWED_TRANSITIONS.get(prev_mode)
    if allowed is None:
        return False
    return next_mode in allowed
