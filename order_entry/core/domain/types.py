"""Core shared data models and schemas.

This module defines the canonical Pydantic models used across the order entry
core: layer identifiers, external intents, remote validation responses,
reference data and submission receipts. These types are treated as schema
definitions and intentionally prioritize structural clarity over minimal
class size.
"""

# pylint: disable=line-too-long,missing-class-docstring,missing-function-docstring
from __future__ import annotations

from types import MappingProxyType
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Layers
# ---------------------------------------------------------------------------


LayerName = Literal["default", "preference", "external_intent", "user_edit"]

DEFAULT_LAYER: LayerName = "default"
PREFERENCE_LAYER: LayerName = "preference"
EXTERNAL_INTENT_LAYER: LayerName = "external_intent"
USER_EDIT_LAYER: LayerName = "user_edit"

# Priority per layer, low -> high. Higher priority overrides lower.
LAYER_PRIORITY: dict[str, int] = {
    DEFAULT_LAYER: 1,
    PREFERENCE_LAYER: 2,
    EXTERNAL_INTENT_LAYER: 3,
    USER_EDIT_LAYER: 4,
}

# Layers replaced wholesale on write; the others merge field-wise.
REPLACE_ON_WRITE_LAYERS: frozenset[str] = frozenset({DEFAULT_LAYER, PREFERENCE_LAYER})

# Canonical, fully resolved order. Always handed out read-only.
OrderSnapshot = Mapping[str, Any]


def freeze_record(record: Mapping[str, Any]) -> OrderSnapshot:
    """Return a read-only shallow copy of a record."""
    return MappingProxyType(dict(record))


# ---------------------------------------------------------------------------
# Order vocabulary
# ---------------------------------------------------------------------------


Side = Literal["BUY", "SELL"]
ExpiryStrategy = Literal["GTC", "GTD", "GTT"]
StartMode = Literal["START_NOW", "START_AT"]
OrderType = Literal[
    "ADAPT",
    "AGGRESSIVE",
    "CALL_LEVEL",
    "FIXING",
    "FLOAT",
    "IOC",
    "LIQUIDITY_SEEKER",
    "PARTICIPATION",
    "PEG",
    "POUNCE",
    "STOP_LOSS",
    "TAKE_PROFIT",
    "TWAP",
]

ORDER_TYPES: tuple[str, ...] = (
    "ADAPT",
    "AGGRESSIVE",
    "CALL_LEVEL",
    "FIXING",
    "FLOAT",
    "IOC",
    "LIQUIDITY_SEEKER",
    "PARTICIPATION",
    "PEG",
    "POUNCE",
    "STOP_LOSS",
    "TAKE_PROFIT",
    "TWAP",
)

# Order types whose level (price) field is mandatory.
LEVEL_REQUIRED_ORDER_TYPES: frozenset[str] = frozenset(
    {
        "CALL_LEVEL",
        "POUNCE",
        "STOP_LOSS",
        "TAKE_PROFIT",
    }
)


# ---------------------------------------------------------------------------
# External intents
# ---------------------------------------------------------------------------


IntentStatus = Literal["pending", "applied", "rejected"]


class Intent(BaseModel):
    """
    Externally sourced proposal to populate some order fields.

    Notes:
    - payload is a sparse, open record keyed by field name.
    - status changes produce a new instance (see with_status); intents are never mutated.
    """

    id: str = Field(..., min_length=1, description="Unique intent identifier.")
    received_at_ns: int = Field(
        ...,
        gt=0,
        description="Local receipt timestamp in nanoseconds since Unix epoch.",
    )
    source_app: str | None = Field(
        default=None,
        min_length=1,
        description="Name of the application that raised the intent, if known.",
    )
    status: IntentStatus = Field("pending", description="Intent lifecycle status.")
    payload: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid", frozen=True)

    def with_status(self, status: IntentStatus) -> Intent:
        return self.model_copy(update={"status": status})


# ---------------------------------------------------------------------------
# Remote validation
# ---------------------------------------------------------------------------


RemoteSeverity = Literal["HARD", "SOFT"]


class RemoteValidationResult(BaseModel):
    ok: bool
    type: RemoteSeverity | None = None
    message: str | None = None

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def validate_type_for_failure(self) -> RemoteValidationResult:
        """A failed validation must state whether it is blocking (HARD) or advisory (SOFT)."""
        if not self.ok and self.type is None:
            raise ValueError("type is required when ok is false")
        return self


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


class ReferenceData(BaseModel):
    """Enumerations the order must be consistent with (entitlements, pools, instruments)."""

    accounts: list[str] = Field(default_factory=list)
    liquidity_pools: list[str] = Field(default_factory=list)
    currency_pairs: list[str] = Field(default_factory=list)
    entitled_order_types: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


class SubmissionReceipt(BaseModel):
    success: bool
    order_id: str | None = Field(default=None, min_length=1)
    failure_reason: str | None = None

    model_config = ConfigDict(extra="ignore")
