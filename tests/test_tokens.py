"""Tests for the word-based token estimator."""

from __future__ import annotations

import pytest

from paramind.ai.utils.tokens import (
    count_words,
    estimate_document_tokens,
    estimate_tokens,
    tokens_for_words,
    truncate_to_tokens,
    words_for_tokens,
)
from paramind.documents import Paragraph


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("", 0),
        ("   \n\t ", 0),
        ("one", 2),
        ("one two three", 4),
        ("a  b\n\nc\td", 6),
        (" ".join(["w"] * 10), 13),
    ],
)
def test_estimate_tokens_rounds_up_word_count_times_1_3(text: str, expected: int) -> None:
    assert estimate_tokens(text) == expected


def test_count_words_ignores_empty_tokens() -> None:
    assert count_words("  alpha   beta  ") == 2
    assert count_words("") == 0


def test_words_for_tokens_is_the_inverse_bound() -> None:
    for budget in range(0, 300):
        fitted = words_for_tokens(budget)
        assert tokens_for_words(fitted) <= budget
        assert tokens_for_words(fitted + 1) > budget or budget == 0


def test_estimate_document_tokens_sums_paragraph_estimates() -> None:
    paragraphs = [Paragraph(index=0, text="a b"), Paragraph(index=1, text=" c "), Paragraph(index=2, text="")]

    assert estimate_document_tokens(paragraphs) == 3 + 2 + 0


def test_truncate_to_tokens_keeps_leading_words() -> None:
    assert truncate_to_tokens("a b c d e", 3) == "a b"
    assert truncate_to_tokens("a b", 5) == "a b"
