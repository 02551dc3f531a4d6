"""Capability interface for the editor that owns the document."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Protocol, Sequence, runtime_checkable

from .models import Paragraph

ParagraphPosition = Literal["before", "after", "replace"]
TableLocation = Literal["start", "end", "cursor"]

PARAGRAPH_POSITIONS: tuple[str, ...] = ("before", "after", "replace")
TABLE_LOCATIONS: tuple[str, ...] = ("start", "end", "cursor")


@dataclass(slots=True)
class FormattingAnalysis:
    """Summary of paragraph formatting reported by a host."""

    total_paragraphs: int = 0
    heading_count: int = 0
    body_paragraphs: int = 0
    indented_paragraphs: int = 0
    styles_used: list[str] = field(default_factory=list)
    font_analysis: dict[str, int] = field(default_factory=dict)
    alignment_analysis: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalParagraphs": self.total_paragraphs,
            "headingCount": self.heading_count,
            "bodyParagraphs": self.body_paragraphs,
            "indentedParagraphs": self.indented_paragraphs,
            "stylesUsed": list(self.styles_used),
            "fontAnalysis": dict(self.font_analysis),
            "alignmentAnalysis": dict(self.alignment_analysis),
        }


@runtime_checkable
class DocumentHost(Protocol):
    """Operations the core needs from the editor hosting the document.

    Every method may fail independently; failures are scoped to the call.
    Callers await one operation at a time because hosts serialize edits and
    intermediate reads would otherwise observe inconsistent state.
    """

    async def read_paragraphs(self) -> Sequence[Paragraph]:
        """Return every paragraph in document order.

        Raises:
            DocumentReadError: When the document cannot be read.
        """
        ...

    async def find_and_replace(self, search: str, replace: str, options: Mapping[str, Any]) -> int:
        """Replace occurrences of ``search`` and return how many were found."""
        ...

    async def insert_at_start(self, text: str) -> None:
        ...

    async def insert_at_end(self, text: str) -> None:
        ...

    async def insert_after_heading(self, heading: str, text: str) -> bool:
        """Insert ``text`` after the first paragraph matching ``heading``; False when absent."""
        ...

    async def insert_at_paragraph(self, index: int, text: str, position: ParagraphPosition) -> None:
        ...

    async def format_text_range(self, search: str, formatting: Mapping[str, Any]) -> int:
        """Apply character formatting to each occurrence of ``search``; return the count."""
        ...

    async def insert_table(self, rows: int, columns: int, location: TableLocation) -> None:
        ...

    async def format_paragraphs(self, criteria: Mapping[str, Any], formatting: Mapping[str, Any]) -> int:
        """Apply paragraph formatting to paragraphs matching ``criteria``; return the count."""
        ...

    async def get_formatting_analysis(self) -> FormattingAnalysis:
        ...


__all__ = [
    "DocumentHost",
    "FormattingAnalysis",
    "PARAGRAPH_POSITIONS",
    "ParagraphPosition",
    "TABLE_LOCATIONS",
    "TableLocation",
]
