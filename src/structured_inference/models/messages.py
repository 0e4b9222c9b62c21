"""
Conversation message model.

A conversation is an ordered list of Message objects. Order is significant
and at most one system message may appear, as the first turn.
"""

from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field

from structured_inference.models.enums import Role


class Message(BaseModel):
    """A single conversation turn."""

    model_config = ConfigDict(frozen=True)

    role: Role = Field(..., description="Turn author: system, user or assistant")
    content: str = Field(..., description="Turn text")

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role=Role.ASSISTANT, content=content)

    def as_payload(self) -> dict[str, str]:
        """Wire shape shared by the chat-completions and Ollama protocols."""
        return {"role": self.role.value, "content": self.content}


def validate_conversation(conversation: Sequence[Message]) -> None:
    """
    Check the leading-system-message invariant.

    Raises:
        ValueError: If a system message appears anywhere but index 0
    """
    for index, message in enumerate(conversation):
        if message.role == Role.SYSTEM and index != 0:
            raise ValueError(
                f"System message only allowed as the first turn (found at index {index})"
            )


def split_system_message(
    conversation: Sequence[Message],
) -> tuple[Message | None, list[Message]]:
    """
    Separate the optional leading system message from the remaining turns.

    Returns:
        Tuple of (system message or None, remaining turns in original order)
    """
    validate_conversation(conversation)
    if conversation and conversation[0].role == Role.SYSTEM:
        return conversation[0], list(conversation[1:])
    return None, list(conversation)
