"""In-memory document host used for tests, demos, and headless sessions."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from ..ai.errors import HostOperationError, ParagraphOutOfRangeError
from .host import PARAGRAPH_POSITIONS, TABLE_LOCATIONS, FormattingAnalysis
from .models import BODY_STYLE, TABLE_STYLE, Paragraph, heading_level, heading_style, is_heading_style

LOGGER = logging.getLogger(__name__)

_MARKDOWN_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)\s*#*\s*$")


@dataclass(slots=True)
class TextFormat:
    """Character formatting applied to every occurrence of ``search``."""

    search: str
    formatting: dict[str, Any]


@dataclass(slots=True)
class ParagraphRecord:
    """Mutable paragraph state owned by :class:`InMemoryDocumentHost`."""

    text: str
    style: str = BODY_STYLE
    alignment: str = "Left"
    first_line_indent: float = 0.0
    hanging_indent: float = 0.0
    left_indent: float = 0.0
    right_indent: float = 0.0
    space_before: float = 0.0
    space_after: float = 0.0
    line_spacing: float = 1.0
    font_name: str = "Calibri"
    font_size: float = 11.0
    bold: bool = False
    italic: bool = False
    color: str = "#000000"
    text_formats: list[TextFormat] = field(default_factory=list)
    table: tuple[int, int] | None = None

    @property
    def is_heading(self) -> bool:
        return is_heading_style(self.style)


class InMemoryDocumentHost:
    """Document host backed by a list of :class:`ParagraphRecord` objects.

    Mutations are applied synchronously under ``async`` signatures so the
    host can stand in for an editor bridge.
    """

    def __init__(self, paragraphs: Iterable[ParagraphRecord | str] = (), *, cursor: int | None = None) -> None:
        self._records: list[ParagraphRecord] = [
            record if isinstance(record, ParagraphRecord) else ParagraphRecord(text=str(record))
            for record in paragraphs
        ]
        self.cursor = cursor
        self.revision = 0

    @classmethod
    def from_markdown(cls, text: str) -> "InMemoryDocumentHost":
        """Build a host from Markdown-style text.

        ``#`` lines become heading paragraphs; consecutive non-blank lines are
        joined into one body paragraph.
        """
        records: list[ParagraphRecord] = []
        pending: list[str] = []

        def flush() -> None:
            if pending:
                records.append(ParagraphRecord(text=" ".join(pending)))
                pending.clear()

        for raw_line in (text or "").splitlines():
            line = raw_line.strip()
            if not line:
                flush()
                continue
            match = _MARKDOWN_HEADING_RE.match(line)
            if match:
                flush()
                level = len(match.group(1))
                records.append(ParagraphRecord(text=match.group(2), style=heading_style(level)))
                continue
            pending.append(line)
        flush()
        return cls(records)

    # ------------------------------------------------------------------
    # Inspection helpers
    # ------------------------------------------------------------------
    @property
    def records(self) -> tuple[ParagraphRecord, ...]:
        return tuple(self._records)

    @property
    def texts(self) -> list[str]:
        return [record.text for record in self._records]

    def to_markdown(self) -> str:
        blocks: list[str] = []
        for record in self._records:
            if record.table is not None:
                rows, columns = record.table
                header = "| " + " | ".join(" " for _ in range(columns)) + " |"
                divider = "|" + "|".join("---" for _ in range(columns)) + "|"
                body = [header] * max(0, rows - 1)
                blocks.append("\n".join([header, divider, *body]))
                continue
            level = heading_level(record.style)
            if level:
                blocks.append(f"{'#' * level} {record.text}")
            else:
                blocks.append(record.text)
        return "\n\n".join(blocks)

    # ------------------------------------------------------------------
    # DocumentHost API
    # ------------------------------------------------------------------
    async def read_paragraphs(self) -> Sequence[Paragraph]:
        return [Paragraph(index=index, text=record.text, style=record.style) for index, record in enumerate(self._records)]

    async def find_and_replace(self, search: str, replace: str, options: Mapping[str, Any]) -> int:
        if not search:
            raise HostOperationError(message="Search text is required", operation="find_and_replace")
        pattern = _search_pattern(
            search,
            match_case=bool(options.get("matchCase", False)),
            whole_word=bool(options.get("matchWholeWord", False)),
        )
        replace_all = options.get("replaceAll", True) is not False
        found = 0
        replaced_once = False
        for record in self._records:
            matches = len(pattern.findall(record.text))
            if not matches:
                continue
            found += matches
            if replace_all:
                record.text = pattern.sub(lambda _match: replace, record.text)
            elif not replaced_once:
                record.text = pattern.sub(lambda _match: replace, record.text, count=1)
                replaced_once = True
        if found:
            self._touch()
        return found

    async def insert_at_start(self, text: str) -> None:
        self._records[0:0] = _records_from_text(text)
        self._touch()

    async def insert_at_end(self, text: str) -> None:
        self._records.extend(_records_from_text(text))
        self._touch()

    async def insert_after_heading(self, heading: str, text: str) -> bool:
        needle = (heading or "").strip().lower()
        if not needle:
            return False
        target = self._find_heading(needle)
        if target is None:
            return False
        self._records[target + 1 : target + 1] = _records_from_text(text)
        self._touch()
        return True

    async def insert_at_paragraph(self, index: int, text: str, position: str) -> None:
        self._check_index(index, "insert_at_paragraph")
        if position not in PARAGRAPH_POSITIONS:
            raise HostOperationError(
                message=f"Unsupported paragraph position: {position!r}",
                operation="insert_at_paragraph",
            )
        new_records = _records_from_text(text)
        if position == "before":
            self._records[index:index] = new_records
        elif position == "after":
            self._records[index + 1 : index + 1] = new_records
        else:
            target = self._records[index]
            if new_records:
                target.text = new_records[0].text
                self._records[index + 1 : index + 1] = new_records[1:]
            else:
                target.text = ""
        self._touch()

    async def format_text_range(self, search: str, formatting: Mapping[str, Any]) -> int:
        if not search:
            raise HostOperationError(message="Text to format is required", operation="format_text_range")
        pattern = _search_pattern(search, match_case=False, whole_word=False)
        count = 0
        for record in self._records:
            matches = len(pattern.findall(record.text))
            if matches:
                record.text_formats.append(TextFormat(search=search, formatting=dict(formatting)))
                count += matches
        if count:
            self._touch()
        return count

    async def insert_table(self, rows: int, columns: int, location: str) -> None:
        if rows < 1 or columns < 1:
            raise HostOperationError(
                message=f"Table dimensions must be positive, got {rows}x{columns}",
                operation="insert_table",
            )
        if location not in TABLE_LOCATIONS:
            raise HostOperationError(message=f"Unsupported table location: {location!r}", operation="insert_table")
        record = ParagraphRecord(text="", style=TABLE_STYLE, table=(rows, columns))
        if location == "start":
            self._records.insert(0, record)
        elif location == "end" or self.cursor is None:
            self._records.append(record)
        else:
            position = max(0, min(self.cursor + 1, len(self._records)))
            self._records.insert(position, record)
        self._touch()

    async def format_paragraphs(self, criteria: Mapping[str, Any], formatting: Mapping[str, Any]) -> int:
        include_only = _index_set(criteria.get("includeOnly"))
        exclude_indexes = _index_set(criteria.get("excludeIndexes")) or set()
        style_filter = criteria.get("styleFilter")
        exclude_headings = bool(criteria.get("excludeHeadings"))
        count = 0
        for index, record in enumerate(self._records):
            if exclude_headings and record.is_heading:
                continue
            if include_only is not None and index not in include_only:
                continue
            if index in exclude_indexes:
                continue
            if style_filter and record.style not in style_filter:
                continue
            _apply_paragraph_formatting(record, formatting)
            count += 1
        if count:
            self._touch()
        return count

    async def get_formatting_analysis(self) -> FormattingAnalysis:
        analysis = FormattingAnalysis(total_paragraphs=len(self._records))
        for record in self._records:
            if record.is_heading:
                analysis.heading_count += 1
            else:
                analysis.body_paragraphs += 1
            if record.first_line_indent > 0:
                analysis.indented_paragraphs += 1
            if record.style and record.style not in analysis.styles_used:
                analysis.styles_used.append(record.style)
            font = record.font_name or "Unknown"
            analysis.font_analysis[font] = analysis.font_analysis.get(font, 0) + 1
            alignment = record.alignment or "Left"
            analysis.alignment_analysis[alignment] = analysis.alignment_analysis.get(alignment, 0) + 1
        return analysis

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _find_heading(self, needle: str) -> int | None:
        fallback: int | None = None
        for index, record in enumerate(self._records):
            if needle not in record.text.lower():
                continue
            if record.is_heading:
                return index
            if fallback is None:
                fallback = index
        return fallback

    def _check_index(self, index: int, operation: str) -> None:
        if not 0 <= index < len(self._records):
            raise ParagraphOutOfRangeError(
                message=f"Paragraph {index} does not exist",
                operation=operation,
                index=index,
                paragraph_count=len(self._records),
            )

    def _touch(self) -> None:
        self.revision += 1
        LOGGER.debug("In-memory document revised to %s (%s paragraphs)", self.revision, len(self._records))


def _search_pattern(search: str, *, match_case: bool, whole_word: bool) -> re.Pattern[str]:
    body = re.escape(search)
    if whole_word:
        body = rf"\b{body}\b"
    return re.compile(body, 0 if match_case else re.IGNORECASE)


def _records_from_text(text: str) -> list[ParagraphRecord]:
    lines = [line for line in (text or "").split("\n") if line.strip()]
    return [ParagraphRecord(text=line) for line in lines]


def _index_set(value: Any) -> set[int] | None:
    if value is None:
        return None
    result: set[int] = set()
    for item in value:
        try:
            result.add(int(item))
        except (TypeError, ValueError):
            continue
    return result


def _apply_paragraph_formatting(record: ParagraphRecord, formatting: Mapping[str, Any]) -> None:
    indentation = formatting.get("indentation")
    if isinstance(indentation, Mapping):
        if indentation.get("firstLine") is not None:
            record.first_line_indent = float(indentation["firstLine"])
        if indentation.get("hanging") is not None:
            record.hanging_indent = float(indentation["hanging"])
        if indentation.get("left") is not None:
            record.left_indent = float(indentation["left"])
        if indentation.get("right") is not None:
            record.right_indent = float(indentation["right"])
    spacing = formatting.get("spacing")
    if isinstance(spacing, Mapping):
        if spacing.get("before") is not None:
            record.space_before = float(spacing["before"])
        if spacing.get("after") is not None:
            record.space_after = float(spacing["after"])
        if spacing.get("lineSpacing") is not None:
            record.line_spacing = float(spacing["lineSpacing"])
    if formatting.get("alignment"):
        record.alignment = str(formatting["alignment"])
    if formatting.get("style"):
        record.style = str(formatting["style"])
    font = formatting.get("font")
    if isinstance(font, Mapping):
        if font.get("name"):
            record.font_name = str(font["name"])
        if font.get("size"):
            record.font_size = float(font["size"])
        if font.get("bold") is not None:
            record.bold = bool(font["bold"])
        if font.get("italic") is not None:
            record.italic = bool(font["italic"])
        if font.get("color"):
            record.color = str(font["color"])


__all__ = ["InMemoryDocumentHost", "ParagraphRecord", "TextFormat"]
