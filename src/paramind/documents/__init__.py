"""Document-side types: paragraphs, the host capability, and an in-memory host."""

from .host import PARAGRAPH_POSITIONS, TABLE_LOCATIONS, DocumentHost, FormattingAnalysis
from .memory_host import InMemoryDocumentHost, ParagraphRecord, TextFormat
from .models import Paragraph, heading_level, heading_style, is_heading_style

__all__ = [
    "DocumentHost",
    "FormattingAnalysis",
    "InMemoryDocumentHost",
    "PARAGRAPH_POSITIONS",
    "Paragraph",
    "ParagraphRecord",
    "TABLE_LOCATIONS",
    "TextFormat",
    "heading_level",
    "heading_style",
    "is_heading_style",
]
