"""
Generation engine with corrective-feedback retry.

When the task parser rejects a model output, the engine appends one user
turn explaining the rejection (reason + rejected output) and asks again,
up to the attempt budget. Provider-level retry and fallback happen below
it, in the delivery layer.

Main Components:
    - GenerationEngine: Orchestrator running a TaskConfig to a parsed value
    - RetryContext: Attempt history of one generation
    - GenerationFailed: Raised when the attempt budget is spent

Usage:
    >>> from structured_inference.retry import GenerationEngine
    >>> engine = GenerationEngine(delivery, prompt_builder, max_attempts=3)
    >>> value = await engine.run(conversation, task)
"""

from structured_inference.retry.context import RetryContext
from structured_inference.retry.engine import GenerationEngine
from structured_inference.retry.exceptions import GenerationFailed

__all__ = [
    "GenerationEngine",
    "GenerationFailed",
    "RetryContext",
]
