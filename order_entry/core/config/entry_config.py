"""Order entry session configuration model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Values a fresh order starts from.
HARDCODED_DEFAULTS: dict[str, Any] = {
    "currency_pair": "GBPUSD",
    "side": "BUY",
    "order_type": "FLOAT",
    "amount": 1_000_000.0,
    "amount_currency": "GBP",
    "liquidity_pool": "Hybrid",
    "start_mode": "START_NOW",
    "expiry_strategy": "GTC",
}

REQUIRED_DEFAULT_FIELDS: tuple[str, ...] = ("currency_pair", "side", "order_type", "amount")


class OrderEntryConfig(BaseModel):
    """Structured-only order entry configuration."""

    session_id: str = Field("order-entry", min_length=1)
    defaults: dict[str, Any] = Field(default_factory=lambda: dict(HARDCODED_DEFAULTS))

    debounce_ms: int = Field(300, ge=0)
    remote_timeout_ms: int | None = Field(default=None, gt=0)
    # Upper bound on waiting for outstanding field validations before the submission gate runs.
    submit_drain_timeout_ms: int = Field(2000, ge=0)

    hard_error_default: str = Field("Invalid", min_length=1)
    soft_warning_default: str = Field("Check value", min_length=1)

    # Exposes OrderEntrySession.debug_state(); off in production.
    debug_store_access: bool = False

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_json_obj(cls, config_obj: dict[str, Any]) -> OrderEntryConfig:
        """Create an OrderEntryConfig instance from a JSON-compatible object."""
        return cls.model_validate(config_obj)

    @model_validator(mode="after")
    def validate_consistency(self) -> OrderEntryConfig:
        """The default layer must be total for the required fields and hold no None."""
        missing = [name for name in REQUIRED_DEFAULT_FIELDS if name not in self.defaults]
        if missing:
            raise ValueError(f"defaults missing required fields: {missing}")
        blank = sorted(name for name, value in self.defaults.items() if value is None)
        if blank:
            raise ValueError(f"defaults must not contain None values: {blank}")
        return self

    @property
    def debounce_s(self) -> float:
        return self.debounce_ms / 1000.0

    @property
    def remote_timeout_s(self) -> float | None:
        if self.remote_timeout_ms is None:
            return None
        return self.remote_timeout_ms / 1000.0

    @property
    def submit_drain_timeout_s(self) -> float:
        return self.submit_drain_timeout_ms / 1000.0
