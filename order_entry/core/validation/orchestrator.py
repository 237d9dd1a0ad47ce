"""Validation orchestrator.

Runs local then remote validation for one field at a time and writes the
outcome into the ValidationStateStore. Each dispatch allocates a new per-field
sequence number; a response is only applied if its sequence is still the
field's live sequence when it arrives, so out-of-order remote responses can
never overwrite the result of a newer edit.

Debounce coalesces rapid edits of the same field with an event-loop timer.
A newer edit only cancels the timer; a remote call that is already in flight
runs to completion and is dropped as stale.
"""

# pylint: disable=too-many-instance-attributes,too-many-arguments
from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping

from pydantic import ValidationError

from order_entry.core.domain.error_kinds import ErrorKind
from order_entry.core.domain.types import RemoteValidationResult
from order_entry.core.events.events import StaleValidationDroppedEvent, ValidationAppliedEvent
from order_entry.core.validation.schemas import LocalSchemaValidator

if TYPE_CHECKING:
    from order_entry.core.events.event_bus import EventBus
    from order_entry.core.ports.remote_validator import RemoteFieldValidator
    from order_entry.core.validation.state import ValidationState, ValidationStateStore


LOGGER = logging.getLogger(__name__)

LocalValidator = Callable[[str, Any, Mapping[str, Any]], "str | None"]
ContextProvider = Callable[[], Mapping[str, Any]]

DEFAULT_HARD_ERROR = "Invalid"
DEFAULT_SOFT_WARNING = "Check value"


def _coerce_result(raw: RemoteValidationResult | Mapping[str, Any]) -> RemoteValidationResult:
    if isinstance(raw, RemoteValidationResult):
        return raw
    return RemoteValidationResult.model_validate(raw)


class ValidationOrchestrator:
    """Per-field local + remote validation with a sequence race guard."""

    def __init__(
        self,
        states: ValidationStateStore,
        remote_validator: RemoteFieldValidator | None,
        context_provider: ContextProvider,
        event_bus: EventBus,
        *,
        local_validator: LocalValidator | None = None,
        debounce_s: float = 0.3,
        remote_timeout_s: float | None = None,
        hard_error_default: str = DEFAULT_HARD_ERROR,
        soft_warning_default: str = DEFAULT_SOFT_WARNING,
        clock: Callable[[], int] = time.time_ns,
    ) -> None:
        if debounce_s < 0:
            raise ValueError("debounce_s must be >= 0")

        self._states = states
        self._remote_validator = remote_validator
        self._context_provider = context_provider
        self._event_bus = event_bus
        self._local_validator = local_validator or LocalSchemaValidator().validate_field
        self._debounce_s = debounce_s
        self._remote_timeout_s = remote_timeout_s
        self._hard_error_default = hard_error_default
        self._soft_warning_default = soft_warning_default
        self._clock = clock

        self._timers: dict[str, tuple[asyncio.TimerHandle, Any]] = {}
        self._tasks: set[asyncio.Task[ValidationState]] = set()

    @property
    def states(self) -> ValidationStateStore:
        return self._states

    # ---------------------------------------------------------------------
    # Validation pipeline
    # ---------------------------------------------------------------------

    async def validate_field(self, field: str, value: Any) -> ValidationState:
        """Validate one field value now and return the field's resulting state."""
        sequence = self._states.next_sequence(field)
        self._states.update(
            field,
            sequence=sequence,
            is_pending=True,
            local_error=None,
            remote_error=None,
            warning=None,
        )

        context = dict(self._context_provider())
        context[field] = value

        local_error = self._run_local(field, value, context)
        if local_error is not None:
            if self._states.is_current(field, sequence):
                self._states.update(field, local_error=local_error, is_pending=False)
                self._emit_applied(field, sequence)
            else:
                self._drop_stale(field, sequence, stage="local")
            return self._states.get(field)

        remote_validator = self._remote_validator
        if remote_validator is None:
            self._states.update(field, is_pending=False)
            self._emit_applied(field, sequence)
            return self._states.get(field)

        try:
            result = _coerce_result(await self._call_remote(remote_validator, field, value, context))
        except asyncio.TimeoutError:
            LOGGER.warning("Remote validation of %s timed out (seq=%d)", field, sequence)
            return self._settle_without_result(field, sequence)
        except ValidationError:
            LOGGER.exception("Malformed remote validation payload for %s (seq=%d)", field, sequence)
            return self._settle_without_result(field, sequence)
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.exception("Remote validation of %s failed (seq=%d)", field, sequence)
            return self._settle_without_result(field, sequence)

        if not self._states.is_current(field, sequence):
            self._drop_stale(field, sequence)
            return self._states.get(field)

        if result.ok:
            self._states.update(field, remote_error=None, warning=None, is_pending=False)
        elif result.type == "HARD":
            self._states.update(
                field,
                remote_error=result.message or self._hard_error_default,
                is_pending=False,
            )
        else:
            self._states.update(
                field,
                warning=result.message or self._soft_warning_default,
                is_pending=False,
            )

        self._emit_applied(field, sequence)
        return self._states.get(field)

    def _run_local(self, field: str, value: Any, context: Mapping[str, Any]) -> str | None:
        try:
            return self._local_validator(field, value, context)
        except Exception:  # pylint: disable=broad-exception-caught
            # Treated as passed; the remote step still decides the outcome.
            LOGGER.exception("Local validation of %s raised; continuing with remote validation", field)
            return None

    async def _call_remote(
        self,
        remote_validator: RemoteFieldValidator,
        field: str,
        value: Any,
        context: Mapping[str, Any],
    ) -> Any:
        call = remote_validator.validate(field, value, context)
        if self._remote_timeout_s is None:
            return await call
        return await asyncio.wait_for(call, timeout=self._remote_timeout_s)

    def _settle_without_result(self, field: str, sequence: int) -> ValidationState:
        if not self._states.is_current(field, sequence):
            self._drop_stale(field, sequence)
            return self._states.get(field)
        self._states.update(field, is_pending=False)
        self._emit_applied(field, sequence)
        return self._states.get(field)

    def _drop_stale(self, field: str, sequence: int, stage: str = "remote") -> None:
        live = self._states.get(field).sequence
        LOGGER.debug("Dropping stale validation for %s: seq=%d live=%d", field, sequence, live)
        self._event_bus.emit(
            StaleValidationDroppedEvent(
                ts_ns_local=self._clock(),
                field=field,
                stale_sequence=sequence,
                live_sequence=live,
                stage=stage,
                kind=ErrorKind.STALE_RESULT,
            )
        )

    def _emit_applied(self, field: str, sequence: int) -> None:
        state = self._states.get(field)
        self._event_bus.emit(
            ValidationAppliedEvent(
                ts_ns_local=self._clock(),
                field=field,
                sequence=sequence,
                local_error=state.local_error,
                remote_error=state.remote_error,
                warning=state.warning,
            )
        )

    # ---------------------------------------------------------------------
    # Debounce
    # ---------------------------------------------------------------------

    def schedule_validation(self, field: str, value: Any) -> bool:
        """Debounce a validation of `field`. Returns False if no event loop is running."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            LOGGER.debug("No running event loop; validation of %s not scheduled", field)
            return False

        self._cancel_timer(field)
        if self._debounce_s == 0:
            self._start(loop, field, value)
            return True

        handle = loop.call_later(self._debounce_s, self._fire, field)
        self._timers[field] = (handle, value)
        return True

    def _fire(self, field: str) -> None:
        entry = self._timers.pop(field, None)
        if entry is None:
            return
        _handle, value = entry
        self._start(asyncio.get_running_loop(), field, value)

    def _start(self, loop: asyncio.AbstractEventLoop, field: str, value: Any) -> None:
        task = loop.create_task(self.validate_field(field, value))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _cancel_timer(self, field: str) -> None:
        entry = self._timers.pop(field, None)
        if entry is not None:
            entry[0].cancel()

    def has_outstanding_work(self) -> bool:
        return bool(self._timers or self._tasks)

    async def drain(self, timeout: float | None = None) -> bool:
        """Fire every debounced validation now and wait for all in-flight ones.

        With a timeout, stops waiting once it elapses and returns False; the
        outstanding validations keep running and settle (or go stale) later.
        """
        loop = asyncio.get_running_loop()
        for field in list(self._timers):
            handle, value = self._timers.pop(field)
            handle.cancel()
            self._start(loop, field, value)

        deadline = None if timeout is None else loop.time() + timeout
        while self._tasks:
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                LOGGER.warning("Stopped waiting for %d outstanding validation(s)", len(self._tasks))
                return False
            await asyncio.wait(list(self._tasks), timeout=remaining)
        return True

    # ---------------------------------------------------------------------
    # Reset / reference data
    # ---------------------------------------------------------------------

    def reset_fields(self, fields: Iterable[str]) -> None:
        """Clear error state of the given fields; their in-flight responses become stale."""
        fields = list(fields)
        for field in fields:
            self._cancel_timer(field)
        self._states.invalidate(fields)

    def reset_all(self) -> None:
        for field in list(self._timers):
            self._cancel_timer(field)
        self._states.invalidate_all()

    def set_ref_data_errors(self, errors: Mapping[str, str]) -> None:
        self._states.replace_ref_data_errors(errors)
