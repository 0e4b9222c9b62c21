"""
Data models for the structured inference pipeline.

Includes:
- Enums (Role, FailureKind, SupportCategory)
- Conversation messages (Message, validate_conversation)
- Provider models (RequestSpec, Success, Failure, ProviderFailure)
- Task models (TaskConfig, FewShotExample, FeedbackItem, ScoreEntry, FeedbackReport)
"""

from structured_inference.models.enums import FailureKind, Role, SupportCategory
from structured_inference.models.messages import (
    Message,
    split_system_message,
    validate_conversation,
)
from structured_inference.models.llm_models import (
    DeliveryOutcome,
    Failure,
    ProviderFailure,
    RequestSpec,
    Success,
)
from structured_inference.models.task_models import (
    FeedbackItem,
    FeedbackReport,
    FewShotExample,
    ScoreEntry,
    TaskConfig,
)

__all__ = [
    # Enums
    "Role",
    "FailureKind",
    "SupportCategory",
    # Messages
    "Message",
    "validate_conversation",
    "split_system_message",
    # Provider models
    "RequestSpec",
    "Success",
    "Failure",
    "DeliveryOutcome",
    "ProviderFailure",
    # Task models
    "TaskConfig",
    "FewShotExample",
    "FeedbackItem",
    "ScoreEntry",
    "FeedbackReport",
]
