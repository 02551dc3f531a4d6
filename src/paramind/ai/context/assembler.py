"""Concatenate ranked chunks into a prompt-sized context string."""

from __future__ import annotations

import logging
from typing import Sequence

from ..utils.tokens import count_words, tokens_for_words, truncate_to_tokens, words_for_tokens
from .models import Chunk

LOGGER = logging.getLogger(__name__)

TRUNCATION_MARKER = "[... content truncated ...]"
_ELLIPSIS = "..."


def assemble_context(chunks: Sequence[Chunk], max_tokens: int, include_metadata: bool = True) -> str:
    """Combine ``chunks`` in order without exceeding ``max_tokens``.

    Each chunk may be prefixed with a ``## <section title>`` line. The first
    chunk that does not fit is cut down to the words that still fit, followed
    by :data:`TRUNCATION_MARKER`, and assembly stops there. Heading lines and
    the marker count against the budget, so ``estimate_tokens`` of the result
    never exceeds ``max_tokens``.
    """
    word_budget = words_for_tokens(max_tokens)
    marker_words = count_words(TRUNCATION_MARKER)
    parts: list[str] = []
    used = 0

    for chunk in chunks:
        header = ""
        if include_metadata and chunk.metadata.section_title:
            header = f"## {chunk.metadata.section_title}"
        header_words = count_words(header)
        content_words = count_words(chunk.content)

        if used + header_words + content_words <= word_budget:
            if header:
                parts.append(header)
            parts.append(chunk.content)
            used += header_words + content_words
            continue

        remaining = word_budget - used - header_words - marker_words
        if remaining > 0:
            truncated = truncate_to_tokens(chunk.content, tokens_for_words(remaining))
            kept = count_words(truncated)
            if header:
                parts.append(header)
            parts.append(truncated + _ELLIPSIS)
            parts.append(TRUNCATION_MARKER)
            used += header_words + kept + marker_words
            LOGGER.debug("Truncated chunk %s to %s of %s words", chunk.id, kept, content_words)
        else:
            LOGGER.debug("Context budget exhausted before chunk %s", chunk.id)
        break

    return "\n\n".join(part for part in parts if part).strip()


__all__ = ["TRUNCATION_MARKER", "assemble_context"]
