"""
Parse errors for model output.

These errors are carried inside Err results and picked up by the generation
engine, which will:
- Append a corrective turn quoting the error message and retry
- Raise GenerationFailed once the attempt budget is exhausted
"""

from typing import Any


class ParseError(Exception):
    """
    Base exception for all model output parse errors.

    Attributes:
        message: Human-readable reason, shown to the model in the corrective turn
        raw_text: Offending model output
        details: Structured error data for logging/metrics
    """

    def __init__(self, message: str, raw_text: str = "", details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.raw_text = raw_text
        self.details = details or {}
        # Include first 500 chars for debugging, avoid excessive logging
        self.details.setdefault("content_snippet", raw_text[:500])

    def __str__(self) -> str:
        return self.message


class NoCategoryMatch(ParseError):
    """
    Classification output names none of the allowed categories.

    Raised when neither a label nor any synonym occurs in the text.
    """

    def __init__(self, raw_text: str, allowed: list[str]):
        super().__init__(
            f"Response must be exactly one of: {', '.join(allowed)}",
            raw_text=raw_text,
            details={"expected_values": allowed},
        )


class InvalidScore(ParseError):
    """
    A scored-category line is out of range.

    Raised when the score exceeds the fixed maximum of the scale.
    """

    def __init__(self, raw_text: str, line: str, expected_max: int):
        super().__init__(
            f"Score line '{line}' must be a score between 0 and {expected_max} "
            f"written as <score>/{expected_max}",
            raw_text=raw_text,
            details={"line": line, "expected_max": expected_max},
        )


class MissingRequiredField(ParseError):
    """
    A required collection came back empty.

    Whether a field is required is a caller policy (FeedbackParser flags).
    """

    def __init__(self, raw_text: str, field_name: str, expected_format: str):
        super().__init__(
            f"Response contains no {field_name}; expected lines like '{expected_format}'",
            raw_text=raw_text,
            details={"field": field_name},
        )
