"""
API-specific request and response models for FastAPI endpoints.

These wrap the task entry points (classification, feedback) with request
validation and response envelopes.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from structured_inference.models.enums import Role, SupportCategory
from structured_inference.models.messages import Message, validate_conversation
from structured_inference.models.task_models import FeedbackItem, ScoreEntry


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClassifyRequest(BaseModel):
    """Request for the classification endpoint."""

    text: str = Field(
        min_length=1,
        description="Customer message to route",
        examples=["I'd like a refund, my card was charged twice"],
    )
    context: dict[str, str] = Field(
        default_factory=dict,
        description="Optional facts shown to the model",
        examples=[{"plan": "enterprise"}],
    )

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, text: str) -> str:
        if not text.strip():
            raise ValueError("text must contain non-whitespace characters")
        return text


class ClassifyResponse(BaseModel):
    """Response for the classification endpoint."""

    status: str = Field(default="success", examples=["success"])
    category: SupportCategory = Field(description="Queue the message belongs to")


class FeedbackRequest(BaseModel):
    """Request for the feedback endpoint."""

    conversation: list[Message] = Field(
        min_length=1,
        description="Practice conversation; user turns are the learner's",
    )
    scenario: str = Field(
        min_length=1,
        description="Practice scenario description",
        examples=["Customer calling about a delayed order"],
    )

    @field_validator("conversation")
    @classmethod
    def conversation_shape(cls, conversation: list[Message]) -> list[Message]:
        validate_conversation(conversation)
        if all(message.role == Role.SYSTEM for message in conversation):
            raise ValueError("conversation needs at least one user or assistant turn")
        return conversation


class FeedbackResponse(BaseModel):
    """Response for the feedback endpoint."""

    status: str = Field(default="success", examples=["success"])
    feedback: list[FeedbackItem]
    scores: list[ScoreEntry]


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str = Field(
        description="Overall health status",
        examples=["healthy", "degraded", "unhealthy"],
    )
    version: str = Field(examples=["0.1.0"])
    providers: dict[str, str] = Field(
        description="Per-provider health, in fallback order",
        examples=[{"openai": "ok", "ollama": "unreachable"}],
    )
    timestamp: datetime = Field(default_factory=_utcnow)


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str = Field(
        description="Error code",
        examples=["generation_failed", "providers_exhausted", "deadline_exceeded", "internal_error"],
    )
    message: str
    details: Optional[dict] = None
    timestamp: datetime = Field(default_factory=_utcnow)
