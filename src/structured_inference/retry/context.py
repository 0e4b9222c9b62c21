"""
Generation attempt tracking.

RetryContext records every rejected model output for one generation so the
final GenerationFailed carries the complete history.
"""

from dataclasses import dataclass, field
from typing import Optional

from structured_inference.parsing.exceptions import ParseError


@dataclass
class RetryContext:
    """
    Attempt history for a single generation.

    Attributes:
        max_attempts: Generation attempt budget (>= 1)
        attempts_made: Attempts made so far
        last_error: Most recent parse error, if any
        history: details of every rejected attempt, oldest first
    """

    max_attempts: int
    attempts_made: int = 0
    last_error: Optional[ParseError] = None
    history: list[dict] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    @property
    def exhausted(self) -> bool:
        return self.attempts_made >= self.max_attempts

    def start_attempt(self) -> int:
        self.attempts_made += 1
        return self.attempts_made

    def record(self, error: ParseError, provider_id: Optional[str] = None) -> None:
        """Record a rejected output for the current attempt."""
        self.last_error = error
        self.history.append(
            {
                "attempt": self.attempts_made,
                "provider": provider_id,
                "error_type": type(error).__name__,
                "reason": error.message,
                **error.details,
            }
        )
