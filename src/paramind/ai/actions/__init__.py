"""Action protocol: parsing ``[ACTION:...]`` directives and applying them to a host."""

from .executor import (
    ACTION_HANDLERS,
    ActionExecutor,
    ExecutionListener,
    describe_result,
    summarize_failures,
    summarize_report,
    summarize_results,
)
from .models import (
    DEFAULT_INDENT_AMOUNT,
    ActionCommand,
    ActionFailure,
    ActionParams,
    ActionResult,
    ActionType,
    AnalyzeFormattingParams,
    CreateTableParams,
    ExecutionReport,
    FindReplaceParams,
    FormatParagraphsParams,
    FormatTextParams,
    IndentParagraphsParams,
    InsertAfterHeadingParams,
    InsertAtParagraphParams,
    InsertContentParams,
    ParseReport,
)
from .parser import ACTION_ENVELOPE_RE, ActionParser, parse_actions, split_payload

__all__ = [
    "ACTION_ENVELOPE_RE",
    "ACTION_HANDLERS",
    "ActionCommand",
    "ActionExecutor",
    "ActionFailure",
    "ActionParams",
    "ActionParser",
    "ActionResult",
    "ActionType",
    "AnalyzeFormattingParams",
    "CreateTableParams",
    "DEFAULT_INDENT_AMOUNT",
    "ExecutionListener",
    "ExecutionReport",
    "FindReplaceParams",
    "FormatParagraphsParams",
    "FormatTextParams",
    "IndentParagraphsParams",
    "InsertAfterHeadingParams",
    "InsertAtParagraphParams",
    "InsertContentParams",
    "ParseReport",
    "describe_result",
    "parse_actions",
    "split_payload",
    "summarize_failures",
    "summarize_report",
    "summarize_results",
]
