"""
Task configuration and structured result models.

TaskConfig is the only place domain knowledge lives: instructions, the
category/schema description, few-shot examples and the parser that turns
the model's raw text into the task's result type.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from structured_inference.parsing.result import ParseResult

T = TypeVar("T")


class FewShotExample(BaseModel):
    """One input/output demonstration rendered into the system turn."""

    model_config = ConfigDict(frozen=True)

    input: str
    output: str


@dataclass(frozen=True)
class TaskConfig(Generic[T]):
    """
    Everything the orchestrator needs to run one structured-output task.

    Attributes:
        name: Task name (used in logs and metric labels)
        instructions: Task instructions for the system turn
        parser: Pure function raw text -> ParseResult[T]
        output_description: Category list or output format description
        examples: Few-shot demonstrations
        model_hint: Provider-agnostic model hint
        structured_output: Request JSON-object mode from providers
        provider_order: Provider ids to try (empty = delivery layer default)
        max_attempts: Corrective retry budget (None = engine default)
    """

    name: str
    instructions: str
    parser: Callable[[str], "ParseResult[T]"]
    output_description: str = ""
    examples: tuple[FewShotExample, ...] = ()
    model_hint: Optional[str] = None
    structured_output: bool = False
    provider_order: tuple[str, ...] = ()
    max_attempts: Optional[int] = None
    context: dict = field(default_factory=dict)


class FeedbackItem(BaseModel):
    """One enumerated feedback line ("1. Use shorter sentences")."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="Ordinal marker as written by the model")
    text: str = Field(..., min_length=1)


class ScoreEntry(BaseModel):
    """One scored-category line ("Grammar: 80/100 - clear but minor errors")."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(..., min_length=1)
    score: int = Field(..., ge=0)
    max: int = Field(..., gt=0)
    justification: str = ""


class FeedbackReport(BaseModel):
    """Structured result of the feedback task."""

    model_config = ConfigDict(frozen=True)

    feedback: list[FeedbackItem] = Field(default_factory=list)
    scores: list[ScoreEntry] = Field(default_factory=list)
    raw_text: str = Field(..., description="Normalized model output the report was parsed from")
