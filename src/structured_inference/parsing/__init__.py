"""Parsers turning raw model text into typed values or classified errors."""

from structured_inference.parsing.classification import CategoryParser
from structured_inference.parsing.exceptions import (
    InvalidScore,
    MissingRequiredField,
    NoCategoryMatch,
    ParseError,
)
from structured_inference.parsing.feedback import FeedbackParser
from structured_inference.parsing.result import Err, Ok, ParseResult

__all__ = [
    "CategoryParser",
    "Err",
    "FeedbackParser",
    "InvalidScore",
    "MissingRequiredField",
    "NoCategoryMatch",
    "Ok",
    "ParseError",
    "ParseResult",
]
