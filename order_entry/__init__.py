"""Public API for the order_entry package.

Only symbols imported here are considered part of the stable,
supported external interface.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ----------------------------------------------------------------------
# Config API
# ----------------------------------------------------------------------
from order_entry.core.config.entry_config import HARDCODED_DEFAULTS, OrderEntryConfig

# ----------------------------------------------------------------------
# Domain Types
# ----------------------------------------------------------------------
from order_entry.core.domain.merge import ResolvedOrder
from order_entry.core.domain.preferences import UserPreferences
from order_entry.core.domain.types import (
    Intent,
    OrderSnapshot,
    ReferenceData,
    RemoteValidationResult,
    SubmissionReceipt,
)
from order_entry.core.errors import (
    AmendNotAllowedError,
    DebugAccessDisabledError,
    IntentTransitionError,
    LayerStoreError,
    OrderEntryError,
    SubmissionInProgressError,
)

# ----------------------------------------------------------------------
# Ports
# ----------------------------------------------------------------------
from order_entry.core.ports.order_submitter import OrderSubmitter
from order_entry.core.ports.reference_data import ReferenceDataProvider
from order_entry.core.ports.remote_validator import RemoteFieldValidator
from order_entry.core.validation.state import ValidationState
from order_entry.core.validation.submission_gate import SubmissionDecision

# ----------------------------------------------------------------------
# Session
# ----------------------------------------------------------------------
from order_entry.session.order_session import OrderEntrySession

# ----------------------------------------------------------------------
# Public API definition
# ----------------------------------------------------------------------

__all__ = [
    # Session
    "OrderEntrySession",

    # Config
    "OrderEntryConfig",
    "HARDCODED_DEFAULTS",

    # Domain API
    "Intent",
    "OrderSnapshot",
    "ResolvedOrder",
    "ReferenceData",
    "RemoteValidationResult",
    "SubmissionReceipt",
    "SubmissionDecision",
    "UserPreferences",
    "ValidationState",

    # Ports
    "OrderSubmitter",
    "ReferenceDataProvider",
    "RemoteFieldValidator",

    # Errors
    "OrderEntryError",
    "LayerStoreError",
    "IntentTransitionError",
    "DebugAccessDisabledError",
    "SubmissionInProgressError",
    "AmendNotAllowedError",

    # Version
    "__version__",
]

# ----------------------------------------------------------------------
# Package version
# ----------------------------------------------------------------------

try:
    __version__ = version("order-entry")
except PackageNotFoundError:
    __version__ = "0.0.0"
