"""
Provider-facing data models for the request/outcome cycle.

RequestSpec is the normalized, provider-agnostic request handed to the
delivery layer. Adapters turn it into their backend's wire shape and
report back a DeliveryOutcome: exactly one Success or Failure per attempt.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from structured_inference.models.enums import FailureKind
from structured_inference.models.messages import Message

if TYPE_CHECKING:
    from structured_inference.llm.exceptions import ProviderError


class RequestSpec(BaseModel):
    """
    Normalized generation request.

    Immutable once constructed. Each corrective retry builds a new RequestSpec
    via with_message(), sharing the earlier turns.
    """

    model_config = ConfigDict(frozen=True)

    conversation: tuple[Message, ...] = Field(..., min_length=1, description="Ordered turns")
    model_hint: Optional[str] = Field(
        default=None,
        description="Provider-agnostic model hint, resolved per provider via model_aliases",
    )
    structured_output_requested: bool = Field(
        default=False,
        description="Ask providers that support it for JSON-object output mode",
    )
    provider_order: tuple[str, ...] = Field(
        default=(),
        description="Provider ids to try, in order (empty = delivery layer default order)",
    )

    def with_message(self, message: Message) -> "RequestSpec":
        """Return a copy with one more turn appended to the conversation."""
        return self.model_copy(update={"conversation": (*self.conversation, message)})


@dataclass(frozen=True)
class Success:
    """Successful attempt: normalized completion text from one provider."""

    text: str
    provider_id: str
    attempts: int = 1  # Attempts spent on this provider, filled in by the delivery layer


@dataclass(frozen=True)
class Failure:
    """Failed attempt, classified so the delivery layer can pick its next move."""

    kind: FailureKind
    provider_id: str
    error: "ProviderError"

    @property
    def is_transient(self) -> bool:
        return self.kind == FailureKind.TRANSIENT


DeliveryOutcome = Union[Success, Failure]


@dataclass(frozen=True)
class ProviderFailure:
    """
    Final failure recorded against one provider once the delivery layer moved on.

    Attributes:
        provider_id: Provider that failed
        kind: Kind of the last failure on that provider
        error: Last error raised by that provider
        attempts: Attempts spent on that provider
    """

    provider_id: str
    kind: FailureKind
    error: "ProviderError"
    attempts: int

    def as_dict(self) -> dict:
        return {
            "provider_id": self.provider_id,
            "kind": self.kind.value,
            "error": str(self.error),
            "attempts": self.attempts,
        }
