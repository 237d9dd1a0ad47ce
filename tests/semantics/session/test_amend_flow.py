"""
Semantic test: amend mode routes the order to the amend call of the submitter.

Invariant:
A ticket moves creating -> viewing on a successful submission. amend_order()
is refused while any reference-data error exists or no order was submitted.
In amend mode submit() amends current_order_id instead of creating a new
order, keeps that id, and returns the ticket to viewing whether the
amendment succeeds or is rejected.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from order_entry.core.config.entry_config import OrderEntryConfig
from order_entry.core.domain.edit_mode import AMENDING, CREATING, VIEWING
from order_entry.core.domain.types import ReferenceData, SubmissionReceipt
from order_entry.core.errors import AmendNotAllowedError
from order_entry.core.events.sinks.null_event_bus import NullEventBus
from order_entry.core.validation.reference_data import AMEND_UNAVAILABLE_DATA_ERROR
from order_entry.session.order_session import OrderEntrySession


def _submitter() -> AsyncMock:
    submitter = AsyncMock()
    submitter.submit.return_value = SubmissionReceipt(success=True, order_id="ORD-1")
    submitter.amend.return_value = SubmissionReceipt(success=True, order_id="ORD-1")
    return submitter


async def _submitted_session(submitter: AsyncMock, **kwargs) -> OrderEntrySession:
    session = OrderEntrySession(NullEventBus(), OrderEntryConfig(debounce_ms=0), order_submitter=submitter, **kwargs)
    assert session.edit_mode == CREATING
    receipt = await session.submit()
    assert receipt.success
    assert session.edit_mode == VIEWING
    return session


@pytest.mark.asyncio
async def test_amend_routes_to_amend_with_order_id() -> None:
    submitter = _submitter()
    session = await _submitted_session(submitter)

    session.amend_order()
    assert session.edit_mode == AMENDING

    session.set_field_value("amount", 3_000_000)
    receipt = await session.submit()

    assert receipt.success
    submitter.submit.assert_awaited_once()
    submitter.amend.assert_awaited_once()
    order_id, order = submitter.amend.await_args.args
    assert order_id == "ORD-1"
    assert order["amount"] == 3_000_000
    assert session.current_order_id == "ORD-1"
    assert session.edit_mode == VIEWING


@pytest.mark.asyncio
async def test_amend_keeps_existing_order_id() -> None:
    submitter = _submitter()
    submitter.amend.return_value = SubmissionReceipt(success=True, order_id="ORD-1-v2")
    session = await _submitted_session(submitter)

    session.amend_order()
    await session.submit()

    assert session.current_order_id == "ORD-1"


@pytest.mark.asyncio
async def test_rejected_amend_returns_to_viewing() -> None:
    submitter = _submitter()
    submitter.amend.return_value = SubmissionReceipt(success=False, failure_reason="Order filled")
    session = await _submitted_session(submitter)

    session.amend_order()
    session.set_field_value("amount", 3_000_000)
    receipt = await session.submit()

    assert receipt.failure_reason == "Order filled"
    assert session.edit_mode == VIEWING
    assert session.is_dirty()


@pytest.mark.asyncio
async def test_amend_refused_with_reference_data_errors() -> None:
    submitter = _submitter()
    session = await _submitted_session(submitter, reference_data=ReferenceData(accounts=["ACC-1"]))

    session.set_field_value("account", "ACC-9")
    assert session.validation_state("account").ref_data_error is not None

    with pytest.raises(AmendNotAllowedError, match=AMEND_UNAVAILABLE_DATA_ERROR):
        session.amend_order()
    assert session.edit_mode == VIEWING

    session.set_field_value("account", "ACC-1")
    session.amend_order()
    assert session.edit_mode == AMENDING


def test_amend_refused_without_submitted_order() -> None:
    session = OrderEntrySession(NullEventBus(), order_submitter=_submitter())

    with pytest.raises(AmendNotAllowedError):
        session.amend_order()
    assert session.edit_mode == CREATING


@pytest.mark.asyncio
async def test_new_order_leaves_amend_mode() -> None:
    submitter = _submitter()
    session = await _submitted_session(submitter)
    session.amend_order()

    session.new_order()

    assert session.edit_mode == CREATING
    assert session.current_order_id is None
    await session.submit()
    assert submitter.submit.await_count == 2
    submitter.amend.assert_not_awaited()
