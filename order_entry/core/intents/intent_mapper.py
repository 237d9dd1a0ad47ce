"""Mapping of interop (FDC3-style) contexts onto order intent payloads.

Example:
    {"id": {"ticker": "GBP/USD"},
     "customData": {"amount": 2500000, "ccy": "GBP", "side": "SELL", "type": "TAKE_PROFIT"}}
    -> {"currency_pair": "GBPUSD", "amount": 2500000.0, "amount_currency": "GBP",
        "side": "SELL", "order_type": "TAKE_PROFIT"}
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

LOGGER = logging.getLogger(__name__)

_DEFAULT_AMOUNT_CCY = "USD"


def _as_float(raw: object, field: str) -> float | None:
    try:
        return float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        LOGGER.warning("Ignoring non-numeric %s in intent context: %r", field, raw)
        return None


def map_context_to_payload(context: Mapping[str, Any]) -> dict[str, Any]:
    """Map an interop context to a sparse order payload.

    Only recognised keys are mapped; falsy values are treated as absent.
    """
    payload: dict[str, Any] = {}

    instrument = context.get("id")
    if isinstance(instrument, Mapping) and instrument.get("ticker"):
        payload["currency_pair"] = str(instrument["ticker"]).replace("/", "")

    custom = context.get("customData")
    if not isinstance(custom, Mapping):
        return payload

    if custom.get("amount"):
        amount = _as_float(custom["amount"], "amount")
        if amount is not None:
            payload["amount"] = amount
            payload["amount_currency"] = custom.get("ccy") or _DEFAULT_AMOUNT_CCY

    if custom.get("side"):
        payload["side"] = str(custom["side"]).upper()

    if custom.get("type"):
        payload["order_type"] = str(custom["type"])

    if custom.get("level"):
        level = _as_float(custom["level"], "level")
        if level is not None:
            payload["level"] = level

    if custom.get("orderId"):
        payload["order_id"] = str(custom["orderId"])

    if custom.get("accountName"):
        payload["account"] = str(custom["accountName"])

    return payload
