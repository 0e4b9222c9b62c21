"""
Generation engine exceptions.

GenerationFailed is raised when every generation attempt produced output
the task parser rejected. Delivery failures (AllProvidersExhausted,
DeliveryDeadlineExceeded) are not wrapped and propagate unchanged.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from structured_inference.parsing.exceptions import ParseError
    from structured_inference.retry.context import RetryContext


class GenerationFailed(Exception):
    """
    Raised when the attempt budget is spent without a parseable response.

    Attributes:
        task_name: Name of the task that failed
        attempts: Number of generation attempts made
        last_error: ParseError of the final attempt
        history: Details of every rejected attempt, oldest first
    """

    def __init__(self, task_name: str, context: "RetryContext") -> None:
        self.task_name = task_name
        self.attempts = context.attempts_made
        self.last_error: "ParseError | None" = context.last_error
        self.history = list(context.history)

        final = type(self.last_error).__name__ if self.last_error else "unknown"
        super().__init__(
            f"Generation for task '{task_name}' failed after {self.attempts} attempts. "
            f"Final error: {final}"
        )

    @property
    def reason(self) -> str:
        return self.last_error.message if self.last_error else ""
