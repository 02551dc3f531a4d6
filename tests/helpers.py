"""Test helpers shared across modules."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from paramind.documents import FormattingAnalysis, Paragraph
from paramind.documents.models import BODY_STYLE


def make_paragraphs(*texts: str, styles: Mapping[int, str] | None = None) -> list[Paragraph]:
    """Build paragraphs with sequential indexes; ``styles`` overrides per index."""

    styles = styles or {}
    return [Paragraph(index=index, text=text, style=styles.get(index, BODY_STYLE)) for index, text in enumerate(texts)]


def words(count: int, word: str = "word") -> str:
    return " ".join([word] * count)


class RecordingHost:
    """Host stub that records every call and can fail selected operations."""

    def __init__(
        self,
        paragraphs: Sequence[Paragraph] = (),
        *,
        fail_on: Sequence[str] = (),
        read_error: Exception | None = None,
    ) -> None:
        self.paragraphs = list(paragraphs)
        self.fail_on = set(fail_on)
        self.read_error = read_error
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.reads = 0

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name in self.fail_on:
            raise RuntimeError(f"{name} exploded")

    async def read_paragraphs(self) -> Sequence[Paragraph]:
        self.reads += 1
        if self.read_error is not None:
            raise self.read_error
        return list(self.paragraphs)

    async def find_and_replace(self, search: str, replace: str, options: Mapping[str, Any]) -> int:
        self._record("find_and_replace", search, replace, dict(options))
        return 2

    async def insert_at_start(self, text: str) -> None:
        self._record("insert_at_start", text)

    async def insert_at_end(self, text: str) -> None:
        self._record("insert_at_end", text)

    async def insert_after_heading(self, heading: str, text: str) -> bool:
        self._record("insert_after_heading", heading, text)
        return heading != "Missing"

    async def insert_at_paragraph(self, index: int, text: str, position: str) -> None:
        self._record("insert_at_paragraph", index, text, position)

    async def format_text_range(self, search: str, formatting: Mapping[str, Any]) -> int:
        self._record("format_text_range", search, dict(formatting))
        return 1

    async def insert_table(self, rows: int, columns: int, location: str) -> None:
        self._record("insert_table", rows, columns, location)

    async def format_paragraphs(self, criteria: Mapping[str, Any], formatting: Mapping[str, Any]) -> int:
        self._record("format_paragraphs", dict(criteria), dict(formatting))
        return 4

    async def get_formatting_analysis(self) -> FormattingAnalysis:
        self._record("get_formatting_analysis")
        return FormattingAnalysis(total_paragraphs=3, styles_used=["Normal", "Heading1"])

    @property
    def call_names(self) -> list[str]:
        return [name for name, _args in self.calls]
