"""Structure-aware, token-bounded chunking of paragraph sequences."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Sequence

from ...documents.models import Paragraph, is_heading_style
from ...services.settings import DEFAULT_CONTEXT_WINDOW
from ..utils.tokens import count_words, estimate_document_tokens, estimate_tokens
from .models import Chunk, ChunkingStrategy, ChunkKind, ChunkMetadata, OutlineEntry

LOGGER = logging.getLogger(__name__)

# Window fractions, expressed in tenths to keep the arithmetic exact.
FULL_CONTEXT_THRESHOLD_TENTHS = 6
FULL_CONTEXT_BUDGET_TENTHS = 8
CHUNKED_BUDGET_TENTHS = 4
CHUNKED_OVERLAP_TOKENS = 200
# A heading only closes a chunk once the chunk holds this share of max_tokens.
SECTION_FLUSH_RATIO = 0.3

SECTION_BREAK_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^chapter\s+\d+", re.IGNORECASE),
    re.compile(r"^section\s+\d+", re.IGNORECASE),
    re.compile(r"^part\s+\d+", re.IGNORECASE),
    re.compile(r"^appendix", re.IGNORECASE),
    re.compile(r"^conclusion", re.IGNORECASE),
    re.compile(r"^introduction", re.IGNORECASE),
    re.compile(r"^abstract", re.IGNORECASE),
    re.compile(r"^summary", re.IGNORECASE),
)

ChunkAnnotator = Callable[[Chunk, Sequence[Paragraph]], None]


def select_chunking_strategy(
    document_tokens: int,
    context_window: int = DEFAULT_CONTEXT_WINDOW,
    *,
    prioritize_selection: bool = False,
) -> ChunkingStrategy:
    """Pick the chunking strategy for a document of ``document_tokens``.

    Documents under 60% of the context window are sent whole: one chunk of up
    to 80% of the window, with structural flushes disabled so the document
    never splits. Larger documents are chunked at 40% of the window.
    """
    window = max(1, int(context_window))
    if document_tokens * 10 < window * FULL_CONTEXT_THRESHOLD_TENTHS:
        return ChunkingStrategy(
            max_tokens=max(1, window * FULL_CONTEXT_BUDGET_TENTHS // 10),
            overlap_tokens=0,
            preserve_structure=False,
            prioritize_selection=False,
        )
    return ChunkingStrategy(
        max_tokens=max(1, window * CHUNKED_BUDGET_TENTHS // 10),
        overlap_tokens=CHUNKED_OVERLAP_TOKENS,
        preserve_structure=True,
        prioritize_selection=prioritize_selection,
    )


def strategy_for_paragraphs(
    paragraphs: Sequence[Paragraph],
    context_window: int = DEFAULT_CONTEXT_WINDOW,
    *,
    prioritize_selection: bool = False,
) -> ChunkingStrategy:
    return select_chunking_strategy(
        estimate_document_tokens(paragraphs),
        context_window,
        prioritize_selection=prioritize_selection,
    )


def is_section_break(text: str) -> bool:
    """Return True when ``text`` opens with a structural marker such as "Chapter 3"."""

    candidate = text.strip()
    return any(pattern.search(candidate) for pattern in SECTION_BREAK_PATTERNS)


@dataclass(slots=True)
class _ChunkAccumulator:
    start_index: int
    end_index: int
    tokens: int = 0
    words: int = 0
    section_title: str | None = None
    texts: list[str] = field(default_factory=list)
    paragraphs: list[Paragraph] = field(default_factory=list)

    def add(self, paragraph: Paragraph, text: str, tokens: int, *, heading: bool) -> None:
        self.texts.append(text)
        self.paragraphs.append(paragraph)
        self.end_index = paragraph.index
        self.tokens += tokens
        self.words += count_words(text)
        if heading and self.section_title is None:
            self.section_title = text


class ChunkBuilder:
    """Partition paragraphs into chunks according to a :class:`ChunkingStrategy`.

    The walk is deterministic: rebuilding an unchanged paragraph sequence with
    the same strategy yields identical chunk ids, boundaries, and metadata.
    ``overlap_tokens`` is carried on the strategy but never duplicates
    paragraphs across chunks, so every non-empty paragraph lands in exactly
    one chunk.

    Args:
        strategy: Limits for this build.
        annotator: Optional hook that can fill ``has_images``/``has_table``
            from host-specific knowledge of the chunk's paragraphs.
        id_prefix: Prefix for generated chunk ids.
    """

    def __init__(
        self,
        strategy: ChunkingStrategy,
        *,
        annotator: ChunkAnnotator | None = None,
        id_prefix: str = "chunk",
    ) -> None:
        self._strategy = strategy
        self._annotator = annotator
        self._id_prefix = id_prefix

    @property
    def strategy(self) -> ChunkingStrategy:
        return self._strategy

    def build(self, paragraphs: Sequence[Paragraph]) -> list[Chunk]:
        strategy = self._strategy
        structure_threshold = strategy.max_tokens * SECTION_FLUSH_RATIO
        chunks: list[Chunk] = []
        current: _ChunkAccumulator | None = None

        for paragraph in paragraphs:
            text = paragraph.text.strip()
            if not text:
                continue
            tokens = estimate_tokens(text)
            heading = is_heading_style(paragraph.style)
            section_break = heading or is_section_break(text)

            if (
                current is None
                or current.tokens + tokens > strategy.max_tokens
                or (strategy.preserve_structure and section_break and current.tokens > structure_threshold)
            ):
                if current is not None:
                    chunks.append(self._close(current, len(chunks)))
                current = _ChunkAccumulator(start_index=paragraph.index, end_index=paragraph.index)

            current.add(paragraph, text, tokens, heading=heading)

        if current is not None:
            chunks.append(self._close(current, len(chunks)))
        LOGGER.debug(
            "Built %s chunk(s) from %s paragraph(s) (max_tokens=%s)",
            len(chunks),
            len(paragraphs),
            strategy.max_tokens,
        )
        return chunks

    def _close(self, accumulator: _ChunkAccumulator, position: int) -> Chunk:
        if accumulator.tokens > self._strategy.max_tokens:
            LOGGER.debug(
                "Paragraph %s exceeds the chunk limit (%s > %s); keeping it whole",
                accumulator.start_index,
                accumulator.tokens,
                self._strategy.max_tokens,
            )
        chunk = Chunk(
            id=f"{self._id_prefix}_{position}",
            content="\n\n".join(accumulator.texts),
            start_index=accumulator.start_index,
            end_index=accumulator.end_index,
            kind=ChunkKind.SECTION,
            metadata=ChunkMetadata(
                word_count=accumulator.words,
                section_title=accumulator.section_title,
            ),
        )
        if self._annotator is not None:
            self._annotator(chunk, tuple(accumulator.paragraphs))
        return chunk


def outline_document(paragraphs: Sequence[Paragraph]) -> list[OutlineEntry]:
    """Return the heading outline of ``paragraphs`` in document order."""

    outline: list[OutlineEntry] = []
    for paragraph in paragraphs:
        text = paragraph.text.strip()
        if not text:
            continue
        level = paragraph.heading_level
        if level > 0:
            outline.append(OutlineEntry(title=text, level=level, word_count=count_words(text), index=paragraph.index))
    return outline


def summarize_document(paragraphs: Sequence[Paragraph]) -> str:
    """Render document statistics and the heading outline as plain text."""

    non_empty = [paragraph for paragraph in paragraphs if paragraph.text.strip()]
    word_total = sum(count_words(paragraph.text) for paragraph in non_empty)
    lines = [
        "Document Statistics:",
        f"- {word_total} words",
        f"- {len(non_empty)} paragraphs",
        f"- ~{estimate_document_tokens(non_empty)} estimated tokens",
        "",
        "Document Structure:",
    ]
    outline = outline_document(paragraphs)
    if not outline:
        lines.append("(no headings)")
    for position, entry in enumerate(outline, start=1):
        indent = "  " * (entry.level - 1)
        lines.append(f"{indent}{position}. {entry.title} ({entry.word_count} words)")
    return "\n".join(lines)


__all__ = [
    "CHUNKED_OVERLAP_TOKENS",
    "ChunkAnnotator",
    "ChunkBuilder",
    "SECTION_BREAK_PATTERNS",
    "is_section_break",
    "outline_document",
    "select_chunking_strategy",
    "strategy_for_paragraphs",
    "summarize_document",
]
