"""
Closed-set classification parser.

Turns a free-form model answer into one of a fixed set of category labels.

Resolution order (first hit wins, stable in declaration order):
    1. Exact match of the normalized text against a label
    2. A label occurring as a substring (first declared label wins when
       several occur)
    3. A synonym occurring as a substring (first declared synonym wins)
    4. Otherwise Err(NoCategoryMatch)

A canonical label anywhere in the text therefore always beats a synonym of
a different category.
"""

from typing import Iterable, Mapping, Sequence, Union

from structured_inference.llm.text_utils import normalize_completion
from structured_inference.parsing.exceptions import NoCategoryMatch
from structured_inference.parsing.result import Err, Ok, ParseResult

SynonymTable = Union[Mapping[str, str], Iterable[tuple[str, str]]]


class CategoryParser:
    """
    Parser for closed-set classification output.

    Pure and deterministic: the same text always yields the same result.

    Attributes:
        categories: Canonical labels (case-folded) in declaration order
        synonyms: (term, category) pairs in declaration order
    """

    def __init__(self, categories: Sequence[str], synonyms: SynonymTable = ()):
        """
        Initialize parser.

        Args:
            categories: Allowed labels, in tie-break order
            synonyms: Related term -> canonical label, in tie-break order

        Raises:
            ValueError: If no category is given or a synonym maps to an unknown label
        """
        if not categories:
            raise ValueError("CategoryParser needs at least one category")

        self.categories: tuple[str, ...] = tuple(c.strip().casefold() for c in categories)

        pairs = synonyms.items() if isinstance(synonyms, Mapping) else synonyms
        self.synonyms: tuple[tuple[str, str], ...] = tuple(
            (term.strip().casefold(), category.strip().casefold()) for term, category in pairs
        )
        unknown = sorted({c for _, c in self.synonyms if c not in self.categories})
        if unknown:
            raise ValueError(f"Synonyms map to unknown categories: {', '.join(unknown)}")

    @staticmethod
    def normalize(text: str) -> str:
        """Trim, strip decorative markup and case-fold."""
        return normalize_completion(text).casefold()

    def parse(self, raw_text: str) -> ParseResult[str]:
        text = self.normalize(raw_text)

        if text in self.categories:
            return Ok(text)

        for category in self.categories:
            if category in text:
                return Ok(category)

        for term, category in self.synonyms:
            if term in text:
                return Ok(category)

        return Err(NoCategoryMatch(raw_text, list(self.categories)))

    __call__ = parse
