"""Tests for the contextual scan orchestrator."""

from __future__ import annotations

import pytest

from helpers import RecordingHost, make_paragraphs
from paramind.ai.context import ChunkingStrategy, ChunkKind, ContextualScanner, format_scan_summary
from paramind.ai.context.scanner import REASON_CURRENT_ONLY, REASON_QUERY_ANALYSIS
from paramind.ai.errors import DocumentReadError
from paramind.documents import InMemoryDocumentHost

# Small chunks so the sample novel splits into four sections:
# scan_0 = Chapter 1 (paragraphs 0-1), scan_1 = paragraph 2,
# scan_2 = Chapter 2 (3-5), scan_3 = Glossary (6-7).
SMALL = ChunkingStrategy(max_tokens=40, overlap_tokens=0, preserve_structure=True)


def _scanner(host, **kwargs) -> ContextualScanner:
    return ContextualScanner(host, strategy=SMALL, **kwargs)


@pytest.mark.asyncio
async def test_focused_query_does_not_read_the_document() -> None:
    host = RecordingHost(make_paragraphs("Anything"))

    result = await _scanner(host).analyze("Fix the grammar here", selection="The quick fox")

    assert host.reads == 0
    assert result.related_chunks == []
    assert result.reason == REASON_CURRENT_ONLY
    assert result.expanded is False
    assert result.primary_chunk.content == "The quick fox"
    assert result.primary_chunk.kind is ChunkKind.PARAGRAPH
    assert result.primary_chunk.metadata.section_title == "Current Section"
    assert result.total_estimated_tokens == 4


@pytest.mark.asyncio
async def test_character_scan_finds_chunks_with_name_and_action(novel_host: InMemoryDocumentHost) -> None:
    result = await _scanner(novel_host).analyze("Check whether Alice said anything different")

    assert [chunk.id for chunk in result.related_chunks] == ["scan_1", "scan_0", "scan_2"]
    assert result.reason == "Expanded scan: Character consistency check (3 references found)"
    assert result.total_estimated_tokens > 0


@pytest.mark.asyncio
async def test_related_chunks_are_capped(novel_host: InMemoryDocumentHost) -> None:
    result = await _scanner(novel_host, related_limit=1).analyze("Check whether Alice said anything different")

    assert [chunk.id for chunk in result.related_chunks] == ["scan_1"]


@pytest.mark.asyncio
async def test_plot_scan_skips_the_current_chapter(novel_host: InMemoryDocumentHost) -> None:
    outside = await _scanner(novel_host).analyze("Check the timeline")
    inside = await _scanner(novel_host).analyze("Check the timeline", current_chapter="Chapter 2")

    assert [chunk.id for chunk in outside.related_chunks] == ["scan_2"]
    assert outside.reason == "Expanded scan: Plot consistency check (1 timeline references)"
    assert inside.related_chunks == []
    assert inside.reason == REASON_QUERY_ANALYSIS
    assert inside.primary_chunk.metadata.section_title == "Chapter 2"


@pytest.mark.asyncio
async def test_terminology_scan_matches_keywords(novel_host: InMemoryDocumentHost) -> None:
    result = await _scanner(novel_host).analyze("Check the definition of cartography")

    assert [chunk.id for chunk in result.related_chunks] == ["scan_3"]
    assert result.reason == "Expanded scan: Terminology consistency (1 definitions found)"


@pytest.mark.asyncio
async def test_reason_lists_one_clause_per_active_category(novel_host: InMemoryDocumentHost) -> None:
    result = await _scanner(novel_host).analyze("Check whether Alice said anything about the timeline")

    assert result.reason == (
        "Expanded scan: Character consistency check (3 references found), "
        "Plot consistency check (1 timeline references)"
    )
    assert len(result.related_chunks) == 3


@pytest.mark.asyncio
async def test_style_triggers_are_detection_only(novel_host: InMemoryDocumentHost) -> None:
    result = await _scanner(novel_host).analyze("check the tone")

    assert [trigger.category.value for trigger in result.triggers] == ["style_consistency"]
    assert result.related_chunks == []
    assert result.reason == REASON_QUERY_ANALYSIS


@pytest.mark.asyncio
async def test_supplied_paragraphs_avoid_a_second_read() -> None:
    host = RecordingHost(make_paragraphs("unused"))
    paragraphs = make_paragraphs("A definition of terms appears here.")

    result = await _scanner(host).analyze("check the definition", paragraphs=paragraphs)

    assert host.reads == 0
    assert [chunk.content for chunk in result.related_chunks] == ["A definition of terms appears here."]


@pytest.mark.asyncio
async def test_read_failure_propagates_as_document_read_error() -> None:
    host = RecordingHost(read_error=RuntimeError("host offline"))

    with pytest.raises(DocumentReadError) as excinfo:
        await _scanner(host).analyze("check consistency throughout")

    assert "host offline" in excinfo.value.message


@pytest.mark.asyncio
async def test_expansion_without_host_is_a_read_error() -> None:
    with pytest.raises(DocumentReadError):
        await ContextualScanner().analyze("check consistency throughout")


@pytest.mark.asyncio
async def test_scan_summary_mentions_related_sections(novel_host: InMemoryDocumentHost) -> None:
    expanded = await _scanner(novel_host).analyze("Check the timeline")
    focused = await _scanner(novel_host).analyze("Fix the grammar")

    assert "- Additional context: 1 related sections" in format_scan_summary(expanded)
    assert "- Triggers detected: plot_consistency" in format_scan_summary(expanded)
    assert "Current section only" in format_scan_summary(focused)
