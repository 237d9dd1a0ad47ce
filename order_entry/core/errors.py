"""Exception hierarchy for programming and configuration errors.

Validation outcomes are never raised. They are carried as values in
ValidationState and SubmissionDecision.
"""

from __future__ import annotations


class OrderEntryError(Exception):
    """Base class for all order entry errors."""


class LayerStoreError(OrderEntryError):
    """Raised for invalid layer names or forbidden layer mutations."""


class IntentTransitionError(OrderEntryError):
    """Raised when the intent controller is asked for a forbidden transition."""


class DebugAccessDisabledError(OrderEntryError):
    """Raised when the debug state accessor is used without the feature flag."""


class SubmissionInProgressError(OrderEntryError):
    """Raised when a submission is started while another one is running."""


class AmendNotAllowedError(OrderEntryError):
    """Raised when amend mode is requested for a ticket that cannot be amended."""
