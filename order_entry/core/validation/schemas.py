"""Local (synchronous) order schemas.

One Pydantic model per order-type family; the schema map selects the model
from the order's current type. Field-level validation substitutes the
candidate value into the resolved order and keeps only the issue located at
that field, so errors elsewhere in the order never surface on it.
"""

# pylint: disable=line-too-long,missing-class-docstring
from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from order_entry.core.domain.types import (
    LEVEL_REQUIRED_ORDER_TYPES,
    ORDER_TYPES,
    ExpiryStrategy,
    OrderType,
    Side,
    StartMode,
)

NOTIONAL_MIN: float = 1.0
NOTIONAL_MAX: float = 100_000_000_000.0
MIN_VALID_PRICE: float = 0.00001

ROOT_ERROR_KEY = "_root"

# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class OrderEntrySchema(BaseModel):
    """Common fields for every order type. Unknown keys are carried through."""

    currency_pair: str = Field(..., min_length=1)
    side: Side
    order_type: OrderType
    amount: float = Field(..., ge=NOTIONAL_MIN, le=NOTIONAL_MAX)
    amount_currency: str | None = Field(default=None, min_length=1)

    level: float | None = Field(default=None, ge=MIN_VALID_PRICE)
    liquidity_pool: str | None = None
    account: str | None = None
    order_id: str | None = None
    iceberg: float | None = Field(default=None, ge=0)

    start_mode: StartMode | None = None
    start_time: str | None = None
    start_date: str | None = None
    time_zone: str | None = None

    expiry_strategy: ExpiryStrategy | None = None
    expiry_time: str | None = None
    expiry_date: str | None = None
    expiry_time_zone: str | None = None

    model_config = ConfigDict(extra="allow")


class LevelOrderEntrySchema(OrderEntrySchema):
    """Order types that execute at a level: the level is mandatory."""

    level: float = Field(..., ge=MIN_VALID_PRICE)


SCHEMA_MAP: dict[str, type[OrderEntrySchema]] = {
    order_type: (LevelOrderEntrySchema if order_type in LEVEL_REQUIRED_ORDER_TYPES else OrderEntrySchema)
    for order_type in ORDER_TYPES
}


def schema_for(order_type: object) -> type[OrderEntrySchema] | None:
    """Return the schema for an order type, or None if the type is unknown."""
    if not isinstance(order_type, str):
        return None
    return SCHEMA_MAP.get(order_type)


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


# (field, pydantic error type) -> user-facing message
_FIELD_MESSAGES: dict[tuple[str, str], str] = {
    ("currency_pair", "missing"): "Currency pair is required",
    ("currency_pair", "string_type"): "Currency pair is required",
    ("currency_pair", "string_too_short"): "Currency pair is required",
    ("side", "missing"): "Side must be BUY or SELL",
    ("side", "literal_error"): "Side must be BUY or SELL",
    ("order_type", "missing"): "Invalid order type",
    ("order_type", "literal_error"): "Invalid order type",
    ("amount", "missing"): "Amount is required",
    ("amount", "float_type"): "Amount must be a number",
    ("amount", "float_parsing"): "Amount must be a number",
    ("amount", "greater_than_equal"): "Minimum amount is 1",
    ("amount", "less_than_equal"): "Amount exceeds pool limit",
    ("amount_currency", "string_too_short"): "Currency is required",
    ("level", "missing"): "Level is required for this order type",
    ("level", "float_type"): "Price must be a number",
    ("level", "float_parsing"): "Price must be a number",
    ("level", "greater_than_equal"): "Price must be positive",
    ("iceberg", "greater_than_equal"): "Iceberg must not be negative",
    ("start_mode", "literal_error"): "Invalid start mode",
    ("expiry_strategy", "literal_error"): "Invalid expiry strategy",
}


def _message_for(error: Mapping[str, Any]) -> tuple[str, str]:
    loc = error.get("loc") or ()
    key = str(loc[0]) if loc else ROOT_ERROR_KEY
    message = _FIELD_MESSAGES.get((key, str(error.get("type"))), str(error.get("msg")))
    return key, message


def errors_from_validation_error(exc: ValidationError) -> dict[str, str]:
    """Convert a ValidationError into a field -> first message map."""
    errors: dict[str, str] = {}
    for error in exc.errors():
        key, message = _message_for(error)
        errors.setdefault(key, message)
    return errors


def schema_errors(values: Mapping[str, Any]) -> dict[str, str]:
    """Validate a full record against the schema of its order type.

    None means "no value", so a None required field reports as missing.
    """
    schema = schema_for(values.get("order_type")) or OrderEntrySchema
    record = {key: value for key, value in values.items() if value is not None}
    try:
        schema.model_validate(record)
    except ValidationError as exc:
        return errors_from_validation_error(exc)
    return {}


# ---------------------------------------------------------------------------
# Conditional requirements
# ---------------------------------------------------------------------------


def _blank(value: object) -> bool:
    return value is None or value == ""


def conditional_requirement_errors(values: Mapping[str, Any]) -> dict[str, str]:
    """Cross-field rules that depend on other fields' values."""
    errors: dict[str, str] = {}

    if values.get("start_mode") == "START_AT":
        if _blank(values.get("start_time")):
            errors["start_time"] = "Start time is required when Start Mode is 'Start At'"
        if _blank(values.get("start_date")):
            errors["start_date"] = "Start date is required when Start Mode is 'Start At'"
        if _blank(values.get("time_zone")):
            errors["time_zone"] = "Timezone is required when Start Mode is 'Start At'"

    if values.get("expiry_strategy") in ("GTD", "GTT"):
        if _blank(values.get("expiry_time")):
            errors["expiry_time"] = "Expiry time is required for GTD/GTT orders"
        if _blank(values.get("expiry_date")):
            errors["expiry_date"] = "Expiry date is required for GTD/GTT orders"
        if _blank(values.get("expiry_time_zone")):
            errors["expiry_time_zone"] = "Expiry timezone is required for GTD/GTT orders"

    return errors


# ---------------------------------------------------------------------------
# Field-level validator
# ---------------------------------------------------------------------------


class LocalSchemaValidator:
    """Synchronous single-field validation against the order-type schema."""

    def validate_field(self, field: str, value: Any, snapshot: Mapping[str, Any]) -> str | None:
        """Return the error message for `field`, or None if it is valid in context."""
        candidate = dict(snapshot)
        candidate[field] = value
        return schema_errors(candidate).get(field)
