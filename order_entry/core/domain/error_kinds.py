"""Validation error taxonomy."""

from __future__ import annotations


class ErrorKind:
    """Canonical error kinds produced by the validation layers."""

    LOCAL_SCHEMA = "local_schema"
    REMOTE_HARD = "remote_hard"
    REMOTE_SOFT = "remote_soft"
    REFERENCE_DATA = "reference_data"

    # Not user visible: a superseded validation response.
    STALE_RESULT = "stale_result"


BLOCKING_ERROR_KINDS: frozenset[str] = frozenset(
    {
        ErrorKind.LOCAL_SCHEMA,
        ErrorKind.REMOTE_HARD,
        ErrorKind.REFERENCE_DATA,
    }
)


def is_blocking(kind: str) -> bool:
    """Return True if the error kind prevents order submission."""
    return kind in BLOCKING_ERROR_KINDS
