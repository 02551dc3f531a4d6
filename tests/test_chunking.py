"""Tests for strategy selection and the chunk builder."""

from __future__ import annotations

import pytest

from helpers import make_paragraphs, words
from paramind.ai.context import ChunkBuilder, ChunkingStrategy, select_chunking_strategy, strategy_for_paragraphs
from paramind.ai.context.chunking import is_section_break, outline_document, summarize_document
from paramind.ai.utils.tokens import estimate_document_tokens, estimate_tokens


def _covered_indexes(chunks) -> list[int]:
    covered: list[int] = []
    for chunk in chunks:
        covered.extend(range(chunk.start_index, chunk.end_index + 1))
    return covered


def test_small_documents_use_the_full_strategy() -> None:
    strategy = select_chunking_strategy(1_000, 128_000)

    assert strategy.max_tokens == 102_400
    assert strategy.overlap_tokens == 0
    assert strategy.preserve_structure is False


def test_threshold_switches_to_the_chunked_strategy() -> None:
    assert select_chunking_strategy(76_799, 128_000).max_tokens == 102_400

    chunked = select_chunking_strategy(76_800, 128_000, prioritize_selection=True)

    assert chunked.max_tokens == 51_200
    assert chunked.overlap_tokens == 200
    assert chunked.preserve_structure is True
    assert chunked.prioritize_selection is True


def test_strategy_rejects_non_positive_budget() -> None:
    with pytest.raises(ValueError):
        ChunkingStrategy(max_tokens=0)


@pytest.mark.parametrize("window", [1_000, 4_096, 128_000])
def test_documents_under_the_full_threshold_yield_exactly_one_chunk(window: int) -> None:
    texts = [
        "Chapter 1",
        words(window // 20),
        "Introduction to the topic",
        words(window // 20, "more"),
        "Conclusion",
    ]
    paragraphs = make_paragraphs(*texts, styles={0: "Heading1", 2: "Heading2"})
    assert estimate_document_tokens(paragraphs) * 10 < window * 6

    chunks = ChunkBuilder(strategy_for_paragraphs(paragraphs, window)).build(paragraphs)

    assert len(chunks) == 1
    assert chunks[0].start_index == 0
    assert chunks[0].end_index == 4


def test_every_non_empty_paragraph_is_covered_exactly_once() -> None:
    texts = [words(n) for n in (5, 12, 0, 7, 3, 15, 9, 1, 0, 11, 4)]
    texts[2] = ""
    texts[8] = "   "
    paragraphs = make_paragraphs(*texts)

    chunks = ChunkBuilder(ChunkingStrategy(max_tokens=25)).build(paragraphs)
    covered = _covered_indexes(chunks)
    non_empty = [p.index for p in paragraphs if p.text.strip()]

    assert len(covered) == len(set(covered))
    assert [index for index in covered if index in non_empty] == non_empty
    assert all(paragraphs[index].text.strip() for index in (chunk.start_index for chunk in chunks))


def test_chunks_stay_within_max_tokens() -> None:
    texts = ["Chapter 1", *(words(n) for n in (5, 9, 14, 3, 8)), "Section 2", *(words(n) for n in (12, 6, 15, 2))]
    paragraphs = make_paragraphs(*texts, styles={0: "Heading1"})
    strategy = ChunkingStrategy(max_tokens=30, overlap_tokens=0, preserve_structure=True)

    chunks = ChunkBuilder(strategy).build(paragraphs)

    assert len(chunks) > 1
    for chunk in chunks:
        assert estimate_tokens(chunk.content) <= strategy.max_tokens


def test_oversized_paragraph_becomes_a_singleton_chunk_without_truncation() -> None:
    big = words(100, "huge")
    paragraphs = make_paragraphs(words(5), big, words(5))

    chunks = ChunkBuilder(ChunkingStrategy(max_tokens=30)).build(paragraphs)

    assert [(c.start_index, c.end_index) for c in chunks] == [(0, 0), (1, 1), (2, 2)]
    assert chunks[1].content == big


def test_section_break_flushes_only_after_thirty_percent() -> None:
    strategy = ChunkingStrategy(max_tokens=100, preserve_structure=True)
    full = make_paragraphs(words(30), "Chapter 2 begins here")
    small = make_paragraphs(words(5), "Chapter 2 begins here")

    assert len(ChunkBuilder(strategy).build(full)) == 2
    assert len(ChunkBuilder(strategy).build(small)) == 1


def test_section_breaks_are_ignored_without_preserve_structure() -> None:
    strategy = ChunkingStrategy(max_tokens=100, preserve_structure=False)
    paragraphs = make_paragraphs(words(30), "Chapter 2 begins here", styles={1: "Heading1"})

    assert len(ChunkBuilder(strategy).build(paragraphs)) == 1


def test_first_heading_becomes_the_section_title() -> None:
    paragraphs = make_paragraphs("Preface text", "The Storm", "Rain fell.", "Aftermath", styles={1: "Heading1", 3: "Heading2"})

    (chunk,) = ChunkBuilder(ChunkingStrategy(max_tokens=1_000)).build(paragraphs)

    assert chunk.metadata.section_title == "The Storm"
    assert chunk.id == "chunk_0"
    assert chunk.content == "Preface text\n\nThe Storm\n\nRain fell.\n\nAftermath"
    assert chunk.metadata.word_count == 7
    assert chunk.metadata.has_images is False
    assert chunk.metadata.has_table is False


def test_rebuilding_is_idempotent() -> None:
    texts = ["Chapter 1", *(words(n) for n in (5, 9, 14, 3, 8)), "Part 2", *(words(n) for n in (12, 6))]
    paragraphs = make_paragraphs(*texts, styles={0: "Heading1"})
    strategy = ChunkingStrategy(max_tokens=25)

    first = ChunkBuilder(strategy).build(paragraphs)
    second = ChunkBuilder(strategy).build(paragraphs)

    assert [chunk.as_dict() for chunk in first] == [chunk.as_dict() for chunk in second]


def test_annotator_can_flag_tables() -> None:
    def annotate(chunk, paragraphs) -> None:
        chunk.metadata.has_table = any(p.style == "Table" for p in paragraphs)

    paragraphs = make_paragraphs("Intro", "cell", styles={1: "Table"})

    (chunk,) = ChunkBuilder(ChunkingStrategy(max_tokens=100), annotator=annotate).build(paragraphs)

    assert chunk.metadata.has_table is True


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Chapter 3: The Return", True),
        ("  section 12", True),
        ("PART 2", True),
        ("Appendix A", True),
        ("Summary of findings", True),
        ("The chapter 3 recap", False),
        ("Chapter three", False),
    ],
)
def test_is_section_break(text: str, expected: bool) -> None:
    assert is_section_break(text) is expected


def test_outline_and_summary_list_headings() -> None:
    paragraphs = make_paragraphs("Book", "Opening", "Some text here.", styles={0: "Title", 1: "Heading2"})

    outline = outline_document(paragraphs)
    summary = summarize_document(paragraphs)

    assert [(entry.title, entry.level, entry.index) for entry in outline] == [("Book", 1, 0), ("Opening", 2, 1)]
    assert "- 5 words" in summary
    assert "1. Book (1 words)" in summary
    assert "  2. Opening (1 words)" in summary
