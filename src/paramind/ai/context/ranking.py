"""Lexical relevance ranking of chunks against a query or a literal selection."""

from __future__ import annotations

import logging
from typing import Sequence

from .models import Chunk

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 3
TITLE_MATCH_BONUS = 2
MIN_QUERY_WORD_LENGTH = 3


def query_words(query: str) -> list[str]:
    """Lowercase words of ``query`` longer than two characters."""

    return [word for word in (query or "").lower().split() if len(word) >= MIN_QUERY_WORD_LENGTH]


def score_chunk(chunk: Chunk, words: Sequence[str]) -> int:
    """Occurrences of ``words`` in the content plus a bonus per word found in the title."""

    content = chunk.content.lower()
    score = sum(content.count(word) for word in words)
    title = (chunk.metadata.section_title or "").lower()
    if title:
        score += TITLE_MATCH_BONUS * sum(1 for word in words if word in title)
    return score


def select_by_selection(chunks: Sequence[Chunk], selection: str | None) -> list[Chunk]:
    """Chunks whose content contains ``selection`` (case-insensitive), in document order."""

    needle = (selection or "").strip().lower()
    if not needle:
        return []
    return [chunk for chunk in chunks if needle in chunk.content.lower()]


def rank_chunks(
    chunks: Sequence[Chunk],
    query: str,
    selection: str | None = None,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> list[Chunk]:
    """Return up to ``max_results`` chunks most relevant to ``query``.

    A non-empty ``selection`` takes absolute priority: only chunks containing
    it verbatim are returned and keyword scores are ignored. When no chunk
    contains the selection, ranking falls back to keyword scoring. Ties keep
    document order.
    """
    limit = max(0, int(max_results))
    if limit == 0 or not chunks:
        return []

    selected = select_by_selection(chunks, selection)
    if selected:
        return selected[:limit]
    if selection and selection.strip():
        LOGGER.debug("Selection not found in %s chunk(s); ranking by keywords", len(chunks))

    words = query_words(query)
    scored = [(score_chunk(chunk, words), position, chunk) for position, chunk in enumerate(chunks)]
    scored.sort(key=lambda item: (-item[0], item[1]))
    return [chunk for _score, _position, chunk in scored[:limit]]


__all__ = ["DEFAULT_MAX_RESULTS", "query_words", "rank_chunks", "score_chunk", "select_by_selection"]
