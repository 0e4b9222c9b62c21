"""
Custom exceptions for the provider and delivery layers.

These exceptions let the delivery layer distinguish failure modes and pick
the recovery: retry the same provider, fall back to the next one, or give up.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from structured_inference.models.llm_models import ProviderFailure


class ProviderError(Exception):
    """
    Base exception for all provider errors.

    All provider-specific exceptions inherit from this to allow catching
    any provider-related error with a single except clause.
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransientProviderError(ProviderError):
    """
    Retrying the same provider may succeed.

    Rate limits (429), server errors (5xx), timeouts, network errors and
    malformed response envelopes.
    """
    pass


class PermanentProviderError(ProviderError):
    """
    Retrying the same provider cannot succeed.

    Authentication and request validation errors (401, 403, 400, 422),
    unknown model (404). The delivery layer skips to the next provider.
    """
    pass


class AllProvidersExhausted(ProviderError):
    """
    Raised when every provider in the order has failed.

    Attributes:
        causes: Per-provider final failures, in provider order
    """

    def __init__(self, causes: list["ProviderFailure"]):
        self.causes = causes
        summary = ", ".join(
            f"{c.provider_id}={c.kind.value}x{c.attempts}" for c in causes
        ) or "no providers"
        super().__init__(
            f"All providers exhausted ({summary})",
            details={"causes": [c.as_dict() for c in causes]},
        )

    @property
    def total_attempts(self) -> int:
        return sum(c.attempts for c in self.causes)


class DeliveryDeadlineExceeded(ProviderError):
    """
    Raised when the caller-supplied deadline passes during delivery.

    Checked at every suspension point (HTTP call, backoff sleep).
    """
    pass
