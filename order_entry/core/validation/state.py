"""Per-field validation state.

Each field maps to an immutable ValidationState. Updates replace the entry
(dataclasses.replace), never mutate it, so a state read by a caller stays
stable while newer validations advance the store.
"""

# pylint: disable=too-many-instance-attributes
from __future__ import annotations

from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Iterable, Mapping

from order_entry.core.domain.error_kinds import ErrorKind, is_blocking


@dataclass(frozen=True, slots=True)
class ValidationState:
    """Validation outcome and race-guard counter for one field."""

    local_error: str | None = None
    remote_error: str | None = None
    warning: str | None = None
    ref_data_error: str | None = None
    is_pending: bool = False
    # Strictly increasing per field; one increment per validation dispatch.
    sequence: int = 0

    def issues(self) -> list[tuple[str, str]]:
        """(ErrorKind, message) pairs currently set on the field."""
        out: list[tuple[str, str]] = []
        if self.local_error is not None:
            out.append((ErrorKind.LOCAL_SCHEMA, self.local_error))
        if self.remote_error is not None:
            out.append((ErrorKind.REMOTE_HARD, self.remote_error))
        if self.ref_data_error is not None:
            out.append((ErrorKind.REFERENCE_DATA, self.ref_data_error))
        if self.warning is not None:
            out.append((ErrorKind.REMOTE_SOFT, self.warning))
        return out

    def blocking_error(self) -> str | None:
        """Return the first blocking message (local, remote hard, reference data)."""
        for kind, message in self.issues():
            if is_blocking(kind):
                return message
        return None

    def has_blocking_error(self) -> bool:
        return self.blocking_error() is not None


_BLANK = ValidationState()


class ValidationStateStore:
    """Map of field key -> ValidationState with copy-on-write updates."""

    def __init__(self) -> None:
        self._states: dict[str, ValidationState] = {}

    def get(self, field: str) -> ValidationState:
        return self._states.get(field, _BLANK)

    def snapshot(self) -> Mapping[str, ValidationState]:
        """Read-only copy of all field states."""
        return MappingProxyType(dict(self._states))

    def update(self, field: str, **changes: object) -> ValidationState:
        new_state = replace(self.get(field), **changes)
        self._states[field] = new_state
        return new_state

    def next_sequence(self, field: str) -> int:
        """Allocate the next sequence number for a field."""
        return self.get(field).sequence + 1

    def is_current(self, field: str, sequence: int) -> bool:
        """Sequence guard: True if no newer dispatch superseded this one."""
        return self.get(field).sequence == sequence

    def invalidate(self, fields: Iterable[str]) -> None:
        """Clear field errors and bump sequences so in-flight responses become stale."""
        for field in fields:
            cur = self.get(field)
            self._states[field] = ValidationState(
                ref_data_error=cur.ref_data_error,
                sequence=cur.sequence + 1,
            )

    def invalidate_all(self) -> None:
        """Clear every error (reference data included) and invalidate in-flight work."""
        for field, cur in list(self._states.items()):
            self._states[field] = ValidationState(sequence=cur.sequence + 1)

    def replace_ref_data_errors(self, errors: Mapping[str, str]) -> None:
        """Replace the reference-data column across all fields."""
        for field in set(self._states) | set(errors):
            message = errors.get(field)
            if self.get(field).ref_data_error != message:
                self.update(field, ref_data_error=message)

    def ref_data_errors(self) -> dict[str, str]:
        return {
            field: state.ref_data_error
            for field, state in self._states.items()
            if state.ref_data_error is not None
        }

    def has_blocking_errors(self) -> bool:
        return any(state.has_blocking_error() for state in self._states.values())

    def blocking_errors(self) -> dict[str, str]:
        out: dict[str, str] = {}
        for field, state in self._states.items():
            message = state.blocking_error()
            if message is not None:
                out[field] = message
        return out
