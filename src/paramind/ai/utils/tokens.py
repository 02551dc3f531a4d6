"""Token estimation utilities for AI operations."""

from __future__ import annotations

from typing import Iterable, Protocol

# Conservative word-to-token ratio (1.3) kept as an exact fraction.
TOKENS_PER_WORD_NUMERATOR = 13
TOKENS_PER_WORD_DENOMINATOR = 10
TOKENS_PER_WORD = TOKENS_PER_WORD_NUMERATOR / TOKENS_PER_WORD_DENOMINATOR


class _HasText(Protocol):
    text: str


def count_words(text: str) -> int:
    """Return the number of whitespace-separated words in ``text``."""

    if not text:
        return 0
    return len(text.split())


def tokens_for_words(word_count: int) -> int:
    """Return ``ceil(word_count * 1.3)`` without floating point drift."""

    if word_count <= 0:
        return 0
    return -(-word_count * TOKENS_PER_WORD_NUMERATOR // TOKENS_PER_WORD_DENOMINATOR)


def words_for_tokens(max_tokens: int) -> int:
    """Return the largest word count whose estimate fits in ``max_tokens``."""

    if max_tokens <= 0:
        return 0
    return max_tokens * TOKENS_PER_WORD_DENOMINATOR // TOKENS_PER_WORD_NUMERATOR


def estimate_tokens(text: str) -> int:
    """Estimate the number of model tokens in a text string.

    Uses a word-based heuristic of ~1.3 tokens per word, which errs on the
    generous side for English prose.

    Args:
        text: The text to estimate tokens for.

    Returns:
        Estimated token count (0 for empty or whitespace-only text).
    """
    return tokens_for_words(count_words(text))


def estimate_document_tokens(paragraphs: Iterable[_HasText]) -> int:
    """Sum the per-paragraph estimates, matching what the chunk builder accumulates."""

    return sum(estimate_tokens(paragraph.text.strip()) for paragraph in paragraphs)


def truncate_to_tokens(text: str, max_tokens: int) -> str:
    """Return the leading words of ``text`` that fit inside ``max_tokens``.

    Text that already fits is returned unchanged. Truncated output is joined
    with single spaces.
    """
    words = text.split()
    max_words = words_for_tokens(max_tokens)
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words])


__all__ = [
    "TOKENS_PER_WORD",
    "count_words",
    "estimate_document_tokens",
    "estimate_tokens",
    "tokens_for_words",
    "truncate_to_tokens",
    "words_for_tokens",
]
