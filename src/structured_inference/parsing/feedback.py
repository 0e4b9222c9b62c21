"""
Structured multi-field extraction for feedback responses.

Recognized line shapes (markup such as **bold** is stripped first):

    1. Use shorter sentences.              -> FeedbackItem(index=1, ...)
    2) Greet the customer by name.         -> FeedbackItem(index=2, ...)
    #3: Confirm the order number.          -> FeedbackItem(index=3, ...)
    Grammar: 80/100 - clear but minor errors
                                           -> ScoreEntry(label="Grammar", score=80, max=100, ...)

A line matching the scored-category shape is never also counted as an
enumerated feedback item, so "1. Tone: 70/100 - friendly" is a score.
Only lines on the fixed scale (score_max) count as scores; a score above
that scale is rejected with InvalidScore.
"""

import re
from typing import Optional

from structured_inference.llm.text_utils import normalize_completion
from structured_inference.models.task_models import FeedbackItem, FeedbackReport, ScoreEntry
from structured_inference.parsing.exceptions import InvalidScore, MissingRequiredField
from structured_inference.parsing.result import Err, Ok, ParseResult

SCORE_LINE_PATTERN = re.compile(
    r"^\s*(?:[-•*]\s*|\d+[.)]\s*)?"
    r"(?P<label>[^\W\d_][\w &/'-]*?)\s*:\s*"
    r"(?P<score>\d+)\s*/\s*(?P<max>\d+)"
    r"\s*(?:[-–—:]\s*)?(?P<justification>.*?)\s*$"
)

ORDINAL_LINE_PATTERN = re.compile(r"^\s*#?\s*(?P<index>\d{1,3})\s*[.):]\s+(?P<text>\S.*?)\s*$")


class FeedbackParser:
    """
    Parser extracting enumerated feedback and scored categories.

    Pure and deterministic. Whether an empty collection is an error is the
    caller's policy, set per field.

    Attributes:
        score_max: Fixed scale of score lines (e.g. 100); lines on another scale are not scores
        require_feedback: Fail when no enumerated feedback line is found
        require_scores: Fail when no scored-category line is found
    """

    def __init__(
        self,
        score_max: int = 100,
        require_feedback: bool = False,
        require_scores: bool = False,
    ):
        if score_max < 1:
            raise ValueError("score_max must be >= 1")
        self.score_max = score_max
        self.require_feedback = require_feedback
        self.require_scores = require_scores

    def _parse_score(self, raw_text: str, line: str, match: re.Match) -> Optional[ScoreEntry]:
        """Score entry for a matched line, or None when the line uses another scale."""
        score = int(match.group("score"))
        maximum = int(match.group("max"))
        if maximum != self.score_max:
            return None
        if score > maximum:
            raise InvalidScore(raw_text, line.strip(), self.score_max)
        return ScoreEntry(
            label=match.group("label").strip(),
            score=score,
            max=maximum,
            justification=match.group("justification"),
        )

    def parse(self, raw_text: str) -> ParseResult[FeedbackReport]:
        feedback: list[FeedbackItem] = []
        scores: list[ScoreEntry] = []

        for line in normalize_completion(raw_text).splitlines():
            score_match = SCORE_LINE_PATTERN.match(line)
            if score_match:
                try:
                    entry = self._parse_score(raw_text, line, score_match)
                except InvalidScore as e:
                    return Err(e)
                if entry is not None:
                    scores.append(entry)
                    continue

            ordinal_match = ORDINAL_LINE_PATTERN.match(line)
            if ordinal_match:
                feedback.append(
                    FeedbackItem(
                        index=int(ordinal_match.group("index")),
                        text=ordinal_match.group("text"),
                    )
                )

        missing = self._check_required(raw_text, feedback, scores)
        if missing is not None:
            return Err(missing)

        return Ok(FeedbackReport(feedback=feedback, scores=scores, raw_text=raw_text))

    def _check_required(
        self,
        raw_text: str,
        feedback: list[FeedbackItem],
        scores: list[ScoreEntry],
    ) -> Optional[MissingRequiredField]:
        if self.require_feedback and not feedback:
            return MissingRequiredField(raw_text, "feedback items", "1. <feedback>")
        if self.require_scores and not scores:
            return MissingRequiredField(
                raw_text,
                "scores",
                f"<Category>: <score>/{self.score_max} - <justification>",
            )
        return None

    __call__ = parse
