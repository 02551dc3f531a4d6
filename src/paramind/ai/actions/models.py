"""Typed action commands parsed from AI replies, and their dispatch outcomes."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, is_dataclass
from enum import Enum
from typing import Any, Union

from ..errors import ActionDispatchError, ActionParseError

DEFAULT_INDENT_AMOUNT = 36


class ActionType(str, Enum):
    """Directive types understood by the ``[ACTION:<TYPE>:<PAYLOAD>]`` protocol."""

    FIND_REPLACE = "find_replace"
    INSERT_AT_START = "insert_at_start"
    INSERT_AT_END = "insert_at_end"
    INSERT_AFTER_HEADING = "insert_after_heading"
    INSERT_AT_PARAGRAPH = "insert_at_paragraph"
    FORMAT_TEXT = "format_text"
    CREATE_TABLE = "create_table"
    FORMAT_PARAGRAPHS = "format_paragraphs"
    INDENT_PARAGRAPHS = "indent_paragraphs"
    ANALYZE_FORMATTING = "analyze_formatting"

    @property
    def directive(self) -> str:
        """Name used inside the envelope, e.g. ``FIND_REPLACE``."""
        return self.value.upper()

    @classmethod
    def from_directive(cls, name: str) -> "ActionType | None":
        key = (name or "").strip().lower()
        for member in cls:
            if member.value == key:
                return member
        return None


@dataclass(slots=True, frozen=True)
class FindReplaceParams:
    search: str
    replace: str
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class InsertContentParams:
    content: str


@dataclass(slots=True, frozen=True)
class InsertAfterHeadingParams:
    heading: str
    content: str


@dataclass(slots=True, frozen=True)
class InsertAtParagraphParams:
    index: int
    content: str
    position: str


@dataclass(slots=True, frozen=True)
class FormatTextParams:
    text: str
    formatting: dict[str, Any]


@dataclass(slots=True, frozen=True)
class CreateTableParams:
    rows: int
    columns: int
    location: str


@dataclass(slots=True, frozen=True)
class FormatParagraphsParams:
    criteria: dict[str, Any]
    formatting: dict[str, Any]


@dataclass(slots=True, frozen=True)
class IndentParagraphsParams:
    amount: int = DEFAULT_INDENT_AMOUNT


@dataclass(slots=True, frozen=True)
class AnalyzeFormattingParams:
    pass


ActionParams = Union[
    FindReplaceParams,
    InsertContentParams,
    InsertAfterHeadingParams,
    InsertAtParagraphParams,
    FormatTextParams,
    CreateTableParams,
    FormatParagraphsParams,
    IndentParagraphsParams,
    AnalyzeFormattingParams,
]


@dataclass(slots=True, frozen=True)
class ActionCommand:
    """One directive extracted from an AI reply.

    ``raw`` keeps the original envelope text and ``offset`` its position in
    the reply, which is also the dispatch order.
    """

    type: ActionType
    params: ActionParams
    raw: str = ""
    offset: int = 0

    def params_dict(self) -> dict[str, Any]:
        return _params_to_dict(self.params)


@dataclass(slots=True)
class ParseReport:
    """Commands parsed from one reply plus the directives that were rejected."""

    commands: list[ActionCommand] = field(default_factory=list)
    rejected: list[ActionParseError] = field(default_factory=list)


@dataclass(slots=True)
class ActionResult:
    """Host-reported outcome of one successfully dispatched command."""

    type: ActionType
    params: dict[str, Any]
    outcome: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "params": dict(self.params), "outcome": dict(self.outcome)}


@dataclass(slots=True)
class ActionFailure:
    """A command whose dispatch failed, with the captured error."""

    command: ActionCommand
    error: ActionDispatchError

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.command.type.value, "params": self.command.params_dict(), "error": self.error.to_dict()}


@dataclass(slots=True)
class ExecutionReport:
    """Results of one dispatch batch, in dispatch order."""

    results: list[ActionResult] = field(default_factory=list)
    failures: list[ActionFailure] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.results) + len(self.failures)

    @property
    def all_applied(self) -> bool:
        return not self.failures


def _params_to_dict(params: Any) -> dict[str, Any]:
    if is_dataclass(params) and not isinstance(params, type):
        return asdict(params)
    return {}


__all__ = [
    "ActionCommand",
    "ActionFailure",
    "ActionParams",
    "ActionResult",
    "ActionType",
    "AnalyzeFormattingParams",
    "CreateTableParams",
    "DEFAULT_INDENT_AMOUNT",
    "ExecutionReport",
    "FindReplaceParams",
    "FormatParagraphsParams",
    "FormatTextParams",
    "IndentParagraphsParams",
    "InsertAfterHeadingParams",
    "InsertAtParagraphParams",
    "InsertContentParams",
    "ParseReport",
]
