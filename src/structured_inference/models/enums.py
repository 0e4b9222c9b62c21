"""
Enumerations for the structured inference data models.

All enums are closed sets - no values outside these sets are permitted.
"""

from enum import Enum


class Role(str, Enum):
    """Author of a conversation turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class FailureKind(str, Enum):
    """
    Classification of a failed provider attempt.

    TRANSIENT: retrying the same provider may succeed (rate limit, 5xx, timeout).
    PERMANENT: retrying the same provider cannot succeed (auth, invalid request);
    the delivery layer still falls back to the next provider once.
    """

    TRANSIENT = "transient"
    PERMANENT = "permanent"


class SupportCategory(str, Enum):
    """
    Closed taxonomy for inbound customer message classification.

    Declaration order is the tie-break order used by the classification parser.
    """

    SUPPORT = "support"
    SALES = "sales"
    BILLING = "billing"
