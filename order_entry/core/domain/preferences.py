"""User preference snapshot and its mapping onto the preference layer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from order_entry.core.domain.types import ReferenceData


class UserPreferences(BaseModel):
    """Server-provided defaults for the current user.

    JSON example:
        {"default_account": "ACC-1", "default_liquidity_pool": "Hybrid"}
    """

    default_account: str | None = Field(default=None, min_length=1)
    default_liquidity_pool: str | None = Field(default=None, min_length=1)
    default_order_type: str | None = Field(default=None, min_length=1)
    default_time_in_force: str | None = Field(default=None, min_length=1)

    model_config = ConfigDict(extra="ignore")


def preferences_to_layer(
    prefs: UserPreferences,
    reference_data: ReferenceData | None = None,
) -> dict[str, Any]:
    """Translate a preference snapshot into preference-layer fields.

    The default account is only applied when it is a known account; without
    reference data it cannot be resolved and is left out.
    """
    layer: dict[str, Any] = {}

    if prefs.default_account is not None and reference_data is not None:
        if prefs.default_account in reference_data.accounts:
            layer["account"] = prefs.default_account

    if prefs.default_liquidity_pool is not None:
        layer["liquidity_pool"] = prefs.default_liquidity_pool

    if prefs.default_order_type is not None:
        layer["order_type"] = prefs.default_order_type

    if prefs.default_time_in_force is not None:
        layer["expiry_strategy"] = prefs.default_time_in_force

    return layer
