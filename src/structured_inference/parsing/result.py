"""
Parse result types.

Parsers never raise on bad model output: they return Ok(value) or
Err(reason, offending_text, error) so the orchestrator can decide whether
to send corrective feedback or give up.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from structured_inference.parsing.exceptions import ParseError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """
    Rejected model output.

    Attributes:
        error: Classified ParseError (NoCategoryMatch, InvalidScore, ...)
    """

    error: ParseError

    @property
    def ok(self) -> bool:
        return False

    @property
    def reason(self) -> str:
        return self.error.message

    @property
    def offending_text(self) -> str:
        return self.error.raw_text


ParseResult = Union[Ok[T], Err]
