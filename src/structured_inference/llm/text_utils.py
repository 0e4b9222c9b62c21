"""
Text processing utilities for the LLM layer.

Provides completion normalization (stripping decorative markup that
providers add around otherwise plain answers) and sentence-boundary
truncation used when echoing a rejected completion back to the model.
"""

import re

# Emphasis / code markers: runs of 2+ asterisks, a single asterisk touching
# a word, runs of 2+ underscores, backticks. A spaced "*" is kept as text.
_MARKUP_PATTERN = re.compile(r"\*{2,}|\*(?=\S)|(?<=\S)\*|_{2,}|`+")


def normalize_completion(text: str) -> str:
    """
    Strip decorative markup and surrounding whitespace from a completion.

    Idempotent: normalize_completion(normalize_completion(x)) equals
    normalize_completion(x). Single underscores are kept (snake_case words,
    identifiers); only emphasis runs are removed.

    Examples:
        >>> normalize_completion("  **Billing**  ")
        'Billing'
        >>> normalize_completion("__Sales__ inquiry")
        'Sales inquiry'
    """
    if not text:
        return ""
    # Removing one marker can join two single underscores ("_*_"), so repeat
    # until nothing matches.
    previous = None
    while previous != text:
        previous, text = text, _MARKUP_PATTERN.sub("", text)
    return text.strip()


def truncate_at_sentence_boundary(text: str, max_chars: int) -> str:
    """
    Truncate text at the nearest sentence boundary before max_chars.

    Looks for sentence-ending punctuation (. ! ?) followed by whitespace or end.
    Falls back to the last word boundary past 80% of the limit, then to a
    hard cut.

    Examples:
        >>> truncate_at_sentence_boundary("Hello. World. Test.", 15)
        'Hello. World.'
    """
    if len(text) <= max_chars:
        return text

    truncated_segment = text[:max_chars]
    matches = list(re.finditer(r"[.!?](?:\s|$)", truncated_segment))

    if matches:
        cutoff = matches[-1].end()
        if truncated_segment[cutoff - 1:cutoff].isspace():
            cutoff -= 1
        return text[:cutoff]

    last_space = truncated_segment.rfind(" ")
    if last_space > max_chars * 0.8:
        return text[:last_space]

    return text[:max_chars]
