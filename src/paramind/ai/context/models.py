"""Dataclasses shared across the context package."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ChunkKind(str, Enum):
    PARAGRAPH = "paragraph"
    SECTION = "section"
    PAGE = "page"


@dataclass(slots=True)
class ChunkMetadata:
    """Descriptive metadata attached to a chunk."""

    word_count: int = 0
    section_title: str | None = None
    has_images: bool = False
    has_table: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "word_count": self.word_count,
            "section_title": self.section_title,
            "has_images": self.has_images,
            "has_table": self.has_table,
        }


@dataclass(slots=True)
class Chunk:
    """A contiguous, token-bounded run of paragraphs.

    ``start_index`` and ``end_index`` are inclusive paragraph positions.
    """

    id: str
    content: str
    start_index: int
    end_index: int
    kind: ChunkKind = ChunkKind.SECTION
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)

    @property
    def section_title(self) -> str | None:
        return self.metadata.section_title

    def overlaps(self, other: "Chunk") -> bool:
        return self.start_index <= other.end_index and other.start_index <= self.end_index

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "start_index": self.start_index,
            "end_index": self.end_index,
            "kind": self.kind.value,
            "metadata": self.metadata.as_dict(),
        }


@dataclass(slots=True, frozen=True)
class ChunkingStrategy:
    """Chunking limits for one builder invocation."""

    max_tokens: int
    overlap_tokens: int = 0
    preserve_structure: bool = True
    prioritize_selection: bool = False

    def __post_init__(self) -> None:
        if self.max_tokens <= 0:
            raise ValueError(f"max_tokens must be positive, got {self.max_tokens}")
        if self.overlap_tokens < 0:
            raise ValueError(f"overlap_tokens must not be negative, got {self.overlap_tokens}")


class ScanCategory(str, Enum):
    CHARACTER_REFERENCE = "character_reference"
    PLOT_CONSISTENCY = "plot_consistency"
    TERMINOLOGY = "terminology"
    CROSS_REFERENCE = "cross_reference"
    STYLE_CONSISTENCY = "style_consistency"


@dataclass(slots=True, frozen=True)
class ScanTrigger:
    """Evidence that a query needs context from outside the user's focus."""

    category: ScanCategory
    confidence: float
    matched_keywords: tuple[str, ...]
    suggested_sections: tuple[str, ...]
    candidate_names: tuple[str, ...] = ()


@dataclass(slots=True)
class ContextualScanResult:
    """Outcome of one contextual scan."""

    primary_chunk: Chunk
    related_chunks: list[Chunk]
    triggers: list[ScanTrigger]
    reason: str
    total_estimated_tokens: int

    @property
    def expanded(self) -> bool:
        return bool(self.related_chunks)


@dataclass(slots=True, frozen=True)
class OutlineEntry:
    """Heading discovered while outlining a document."""

    title: str
    level: int
    word_count: int
    index: int


__all__ = [
    "Chunk",
    "ChunkKind",
    "ChunkMetadata",
    "ChunkingStrategy",
    "ContextualScanResult",
    "OutlineEntry",
    "ScanCategory",
    "ScanTrigger",
]
