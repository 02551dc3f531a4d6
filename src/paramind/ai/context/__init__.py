"""Chunking, ranking, and contextual scanning over long documents."""

from .assembler import TRUNCATION_MARKER, assemble_context
from .chunking import (
    ChunkBuilder,
    is_section_break,
    outline_document,
    select_chunking_strategy,
    strategy_for_paragraphs,
    summarize_document,
)
from .models import (
    Chunk,
    ChunkingStrategy,
    ChunkKind,
    ChunkMetadata,
    ContextualScanResult,
    OutlineEntry,
    ScanCategory,
    ScanTrigger,
)
from .ranking import rank_chunks
from .scanner import ContextualScanner, format_scan_summary
from .triggers import detect_scan_triggers, should_expand_scan

__all__ = [
    "Chunk",
    "ChunkBuilder",
    "ChunkKind",
    "ChunkMetadata",
    "ChunkingStrategy",
    "ContextualScanResult",
    "ContextualScanner",
    "OutlineEntry",
    "ScanCategory",
    "ScanTrigger",
    "TRUNCATION_MARKER",
    "assemble_context",
    "detect_scan_triggers",
    "format_scan_summary",
    "is_section_break",
    "outline_document",
    "rank_chunks",
    "select_chunking_strategy",
    "should_expand_scan",
    "strategy_for_paragraphs",
    "summarize_document",
]
