"""Dataclasses describing paragraphs read from a document host."""

from __future__ import annotations

import re
from dataclasses import dataclass

BODY_STYLE = "Normal"
TITLE_STYLE = "Title"
SUBTITLE_STYLE = "Subtitle"
TABLE_STYLE = "Table"

_HEADING_STYLE_RE = re.compile(r"^heading\s*([1-6])$", re.IGNORECASE)


def _normalize_style(style: str | None) -> str:
    return (style or "").strip().replace("_", " ").lower()


def heading_style(level: int) -> str:
    """Return the built-in style name for a heading ``level`` (1-6)."""

    if not 1 <= level <= 6:
        raise ValueError(f"Heading level must be between 1 and 6, got {level}")
    return f"Heading{level}"


def heading_level(style: str | None) -> int:
    """Return the outline level for ``style`` (0 for body text)."""

    normalized = _normalize_style(style)
    if normalized == "title":
        return 1
    match = _HEADING_STYLE_RE.match(normalized)
    if match:
        return int(match.group(1))
    return 0


def is_heading_style(style: str | None) -> bool:
    """Return True for heading, title, and subtitle styles."""

    return heading_level(style) > 0 or _normalize_style(style) == "subtitle"


@dataclass(slots=True, frozen=True)
class Paragraph:
    """One paragraph of the host document, as seen by the core."""

    index: int
    text: str
    style: str = BODY_STYLE

    @property
    def is_heading(self) -> bool:
        return is_heading_style(self.style)

    @property
    def heading_level(self) -> int:
        return heading_level(self.style)


__all__ = [
    "BODY_STYLE",
    "SUBTITLE_STYLE",
    "TABLE_STYLE",
    "TITLE_STYLE",
    "Paragraph",
    "heading_level",
    "heading_style",
    "is_heading_style",
]
