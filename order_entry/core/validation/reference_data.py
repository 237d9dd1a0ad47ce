"""Reference-data consistency checks.

Checks the resolved order against the enumerations the server provided:
accounts, entitled order types, currency pairs and liquidity pools. A
category with no loaded values is not checked.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from order_entry.core.domain.types import ReferenceData

LOGGER = logging.getLogger(__name__)

GLOBAL_REF_DATA_ERROR = "Please contact support@example.com"
AMEND_UNAVAILABLE_DATA_ERROR = "Cannot amend order with unavailable data"

ACCOUNT_NOT_AVAILABLE = "Account not available"
ORDER_TYPE_NOT_SUPPORTED = "Order type not supported"
CURRENCY_PAIR_NOT_AVAILABLE = "Currency pair not available for this order type"
LIQUIDITY_POOL_NOT_AVAILABLE = "Liquidity pool not available"

# field -> (ReferenceData attribute, message)
_CHECKS: tuple[tuple[str, str, str], ...] = (
    ("account", "accounts", ACCOUNT_NOT_AVAILABLE),
    ("order_type", "entitled_order_types", ORDER_TYPE_NOT_SUPPORTED),
    ("currency_pair", "currency_pairs", CURRENCY_PAIR_NOT_AVAILABLE),
    ("liquidity_pool", "liquidity_pools", LIQUIDITY_POOL_NOT_AVAILABLE),
)


def validate_reference_data(
    values: Mapping[str, Any],
    reference_data: ReferenceData | None,
) -> dict[str, str]:
    """Return field -> message for every value missing from the reference data."""
    if reference_data is None:
        return {}

    errors: dict[str, str] = {}
    for field, attr, message in _CHECKS:
        value = values.get(field)
        if not value:
            continue
        allowed: list[str] = getattr(reference_data, attr)
        if allowed and value not in allowed:
            errors[field] = message

    if errors:
        LOGGER.info("Reference data mismatch: %s", errors)
    return errors
