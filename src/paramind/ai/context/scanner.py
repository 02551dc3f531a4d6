"""Contextual scan: decide whether to look past the user's focus, and where."""

from __future__ import annotations

import logging
import re
from typing import Callable, Mapping, Sequence

from ...documents.host import DocumentHost
from ...documents.models import Paragraph
from ..errors import DocumentReadError, ParaMindError
from ..utils.tokens import count_words, estimate_tokens
from .chunking import ChunkBuilder
from .models import Chunk, ChunkingStrategy, ChunkKind, ChunkMetadata, ContextualScanResult, ScanCategory, ScanTrigger
from .ranking import rank_chunks
from .triggers import ACTION_VERBS, detect_scan_triggers, should_expand_scan, triggers_for

LOGGER = logging.getLogger(__name__)

SCAN_STRATEGY = ChunkingStrategy(max_tokens=4000, overlap_tokens=200, preserve_structure=True, prioritize_selection=False)
DEFAULT_RELATED_LIMIT = 5

CURRENT_SECTION_TITLE = "Current Section"
REASON_CURRENT_ONLY = "Processing current section only"
REASON_QUERY_ANALYSIS = "Contextual scanning based on query analysis"
REASON_PREFIX = "Expanded scan: "

_ACTION_VERB_RE = re.compile(r"\b(" + "|".join(ACTION_VERBS) + r")", re.IGNORECASE)

ChunkFilter = Callable[[Sequence[Chunk], Sequence[ScanTrigger], "str | None"], list[Chunk]]


def _keywords(triggers: Sequence[ScanTrigger]) -> list[str]:
    seen: dict[str, None] = {}
    for trigger in triggers:
        for keyword in trigger.matched_keywords:
            if keyword:
                seen.setdefault(keyword.lower(), None)
    return list(seen)


def find_character_references(
    chunks: Sequence[Chunk], triggers: Sequence[ScanTrigger], current_chapter: str | None = None
) -> list[Chunk]:
    """Chunks naming a candidate character alongside dialogue or action verbs."""

    names: dict[str, None] = {}
    for trigger in triggers:
        for name in trigger.candidate_names:
            names.setdefault(name.lower(), None)
    if not names:
        return []
    result: list[Chunk] = []
    for chunk in chunks:
        content = chunk.content.lower()
        if any(name in content for name in names) and _ACTION_VERB_RE.search(content):
            result.append(chunk)
    return result


def find_plot_references(
    chunks: Sequence[Chunk], triggers: Sequence[ScanTrigger], current_chapter: str | None = None
) -> list[Chunk]:
    """Chunks sharing a timeline keyword, excluding the user's current chapter."""

    keywords = _keywords(triggers)
    result: list[Chunk] = []
    for chunk in chunks:
        if current_chapter and chunk.metadata.section_title == current_chapter:
            continue
        content = chunk.content.lower()
        if any(keyword in content for keyword in keywords):
            result.append(chunk)
    return result


def find_keyword_usage(
    chunks: Sequence[Chunk], triggers: Sequence[ScanTrigger], current_chapter: str | None = None
) -> list[Chunk]:
    """Chunks containing any matched keyword (terminology and cross references)."""

    keywords = _keywords(triggers)
    if not keywords:
        return []
    return [chunk for chunk in chunks if any(keyword in chunk.content.lower() for keyword in keywords)]


# style_consistency is detection-only: it can open the scan but has no filter.
CATEGORY_FILTERS: Mapping[ScanCategory, tuple[ChunkFilter, str]] = {
    ScanCategory.CHARACTER_REFERENCE: (find_character_references, "Character consistency check ({count} references found)"),
    ScanCategory.PLOT_CONSISTENCY: (find_plot_references, "Plot consistency check ({count} timeline references)"),
    ScanCategory.TERMINOLOGY: (find_keyword_usage, "Terminology consistency ({count} definitions found)"),
    ScanCategory.CROSS_REFERENCE: (find_keyword_usage, "Cross-reference validation ({count} references)"),
}


def current_working_chunk(selection: str | None, current_chapter: str | None = None) -> Chunk:
    """Chunk standing for the user's focus (their selection)."""

    text = (selection or "").strip()
    return Chunk(
        id="current",
        content=text,
        start_index=0,
        end_index=0,
        kind=ChunkKind.PARAGRAPH,
        metadata=ChunkMetadata(word_count=count_words(text), section_title=current_chapter or CURRENT_SECTION_TITLE),
    )


def estimate_scan_tokens(primary: Chunk, related: Sequence[Chunk]) -> int:
    return estimate_tokens(primary.content) + sum(estimate_tokens(chunk.content) for chunk in related)


class ContextualScanner:
    """Select chunks beyond the user's focus when the query calls for it.

    Args:
        host: Document host read when a scan expands and no paragraphs are
            supplied by the caller.
        strategy: Chunking strategy used for the whole-document rebuild.
        related_limit: Maximum number of related chunks returned.
    """

    def __init__(
        self,
        host: DocumentHost | None = None,
        *,
        strategy: ChunkingStrategy = SCAN_STRATEGY,
        related_limit: int = DEFAULT_RELATED_LIMIT,
    ) -> None:
        self._host = host
        self._builder = ChunkBuilder(strategy, id_prefix="scan")
        self._related_limit = max(0, int(related_limit))

    async def analyze(
        self,
        query: str,
        selection: str | None = None,
        current_chapter: str | None = None,
        *,
        paragraphs: Sequence[Paragraph] | None = None,
    ) -> ContextualScanResult:
        """Run trigger detection and, when warranted, the expanded scan.

        Raises:
            DocumentReadError: When the scan expands and the document cannot
                be read.
        """
        primary = current_working_chunk(selection, current_chapter)
        triggers = detect_scan_triggers(query, selection or "")
        related: list[Chunk] = []
        reason = REASON_CURRENT_ONLY

        if should_expand_scan(triggers, query):
            if paragraphs is None:
                paragraphs = await self._read_paragraphs()
            chunks = self._builder.build(paragraphs)
            related, reason = self.scan_chunks(chunks, triggers, query, current_chapter)

        result = ContextualScanResult(
            primary_chunk=primary,
            related_chunks=related,
            triggers=triggers,
            reason=reason,
            total_estimated_tokens=estimate_scan_tokens(primary, related),
        )
        LOGGER.debug("Contextual scan: %s (%s related chunk(s))", result.reason, len(related))
        return result

    def scan_chunks(
        self,
        chunks: Sequence[Chunk],
        triggers: Sequence[ScanTrigger],
        query: str,
        current_chapter: str | None = None,
    ) -> tuple[list[Chunk], str]:
        """Filter ``chunks`` per active category, then dedupe, rank, and cap."""

        retained: list[Chunk] = []
        clauses: list[str] = []
        any_retained = False
        for category, (chunk_filter, clause) in CATEGORY_FILTERS.items():
            active = triggers_for(triggers, category)
            if not active:
                continue
            found = chunk_filter(chunks, active, current_chapter)
            retained.extend(found)
            clauses.append(clause.format(count=len(found)))
            any_retained = any_retained or bool(found)

        unique: dict[str, Chunk] = {}
        for chunk in retained:
            unique.setdefault(chunk.id, chunk)
        ranked = rank_chunks(list(unique.values()), query, max_results=self._related_limit)

        if not any_retained:
            return ranked, REASON_QUERY_ANALYSIS
        return ranked, REASON_PREFIX + ", ".join(clauses)

    async def _read_paragraphs(self) -> Sequence[Paragraph]:
        if self._host is None:
            raise DocumentReadError(message="No document host is available for an expanded scan")
        try:
            return await self._host.read_paragraphs()
        except ParaMindError:
            raise
        except Exception as exc:
            raise DocumentReadError(
                message=f"Failed to read document paragraphs: {exc}",
                details={"exception": type(exc).__name__},
            ) from exc


def format_scan_summary(result: ContextualScanResult) -> str:
    """User-facing summary of a contextual scan."""

    lines = ["**Context Scan Results:**"]
    lines.append(f"- Primary focus: {result.primary_chunk.metadata.section_title or CURRENT_SECTION_TITLE}")
    if result.related_chunks:
        lines.append(f"- Additional context: {len(result.related_chunks)} related sections")
        lines.append(f"- Scan reason: {result.reason}")
        lines.append(f"- Triggers detected: {', '.join(trigger.category.value for trigger in result.triggers)}")
    else:
        lines.append("- Scope: Current section only (no cross-references needed)")
    lines.append(f"- Total context: ~{round(result.total_estimated_tokens / 1000)}k tokens")
    return "\n".join(lines)


__all__ = [
    "CATEGORY_FILTERS",
    "ContextualScanner",
    "REASON_CURRENT_ONLY",
    "REASON_PREFIX",
    "REASON_QUERY_ANALYSIS",
    "SCAN_STRATEGY",
    "current_working_chunk",
    "estimate_scan_tokens",
    "find_character_references",
    "find_keyword_usage",
    "find_plot_references",
    "format_scan_summary",
]
