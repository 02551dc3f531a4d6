"""Sequential dispatch of parsed action commands onto a document host."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping, Protocol, Sequence

from ...documents.host import DocumentHost
from ..errors import ActionDispatchError, ErrorCode, ParaMindError
from .models import (
    ActionCommand,
    ActionFailure,
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
)

LOGGER = logging.getLogger(__name__)

INDENT_CRITERIA: Mapping[str, Any] = {"excludeHeadings": True}

Handler = Callable[[DocumentHost, Any], Awaitable[dict[str, Any]]]


# -----------------------------------------------------------------------------
# Execution Listener
# -----------------------------------------------------------------------------


class ExecutionListener(Protocol):
    """Callback protocol for per-command execution events."""

    def on_action_start(self, command: ActionCommand) -> None:
        ...

    def on_action_complete(self, result: ActionResult) -> None:
        ...

    def on_action_error(self, failure: ActionFailure) -> None:
        ...


# -----------------------------------------------------------------------------
# Handlers
# -----------------------------------------------------------------------------


async def _find_replace(host: DocumentHost, params: FindReplaceParams) -> dict[str, Any]:
    count = await host.find_and_replace(params.search, params.replace, dict(params.options))
    return {"count": int(count or 0)}


async def _insert_at_start(host: DocumentHost, params: InsertContentParams) -> dict[str, Any]:
    await host.insert_at_start(params.content)
    return {}


async def _insert_at_end(host: DocumentHost, params: InsertContentParams) -> dict[str, Any]:
    await host.insert_at_end(params.content)
    return {}


async def _insert_after_heading(host: DocumentHost, params: InsertAfterHeadingParams) -> dict[str, Any]:
    found = await host.insert_after_heading(params.heading, params.content)
    return {"found": bool(found)}


async def _insert_at_paragraph(host: DocumentHost, params: InsertAtParagraphParams) -> dict[str, Any]:
    await host.insert_at_paragraph(params.index, params.content, params.position)  # type: ignore[arg-type]
    return {}


async def _format_text(host: DocumentHost, params: FormatTextParams) -> dict[str, Any]:
    count = await host.format_text_range(params.text, dict(params.formatting))
    return {"count": int(count or 0)}


async def _create_table(host: DocumentHost, params: CreateTableParams) -> dict[str, Any]:
    await host.insert_table(params.rows, params.columns, params.location)  # type: ignore[arg-type]
    return {}


async def _format_paragraphs(host: DocumentHost, params: FormatParagraphsParams) -> dict[str, Any]:
    count = await host.format_paragraphs(dict(params.criteria), dict(params.formatting))
    return {"count": int(count or 0)}


async def _indent_paragraphs(host: DocumentHost, params: IndentParagraphsParams) -> dict[str, Any]:
    formatting = {"indentation": {"firstLine": params.amount}}
    count = await host.format_paragraphs(dict(INDENT_CRITERIA), formatting)
    return {"count": int(count or 0)}


async def _analyze_formatting(host: DocumentHost, params: AnalyzeFormattingParams) -> dict[str, Any]:
    analysis = await host.get_formatting_analysis()
    return {"analysis": analysis.to_dict()}


ACTION_HANDLERS: Mapping[ActionType, Handler] = {
    ActionType.FIND_REPLACE: _find_replace,
    ActionType.INSERT_AT_START: _insert_at_start,
    ActionType.INSERT_AT_END: _insert_at_end,
    ActionType.INSERT_AFTER_HEADING: _insert_after_heading,
    ActionType.INSERT_AT_PARAGRAPH: _insert_at_paragraph,
    ActionType.FORMAT_TEXT: _format_text,
    ActionType.CREATE_TABLE: _create_table,
    ActionType.FORMAT_PARAGRAPHS: _format_paragraphs,
    ActionType.INDENT_PARAGRAPHS: _indent_paragraphs,
    ActionType.ANALYZE_FORMATTING: _analyze_formatting,
}


# -----------------------------------------------------------------------------
# Executor
# -----------------------------------------------------------------------------


class ActionExecutor:
    """Apply parsed commands to a host one at a time, in order.

    Each command is awaited to completion before the next starts. A host
    failure is captured as an :class:`ActionFailure` and the remaining
    commands still run.

    Example:
        executor = ActionExecutor(host)
        report = await executor.execute(parse_actions(reply))
    """

    def __init__(
        self,
        host: DocumentHost,
        *,
        handlers: Mapping[ActionType, Handler] | None = None,
        listener: ExecutionListener | None = None,
    ) -> None:
        self._host = host
        self._handlers = dict(handlers or ACTION_HANDLERS)
        self._listener = listener

    async def execute(self, commands: Sequence[ActionCommand]) -> ExecutionReport:
        report = ExecutionReport()
        for command in commands:
            if self._listener is not None:
                self._listener.on_action_start(command)
            try:
                outcome = await self._dispatch(command)
            except Exception as exc:
                failure = ActionFailure(command=command, error=self._wrap_error(command, exc))
                LOGGER.warning("Action %s failed: %s", command.type.directive, failure.error.message)
                report.failures.append(failure)
                if self._listener is not None:
                    self._listener.on_action_error(failure)
                continue
            result = ActionResult(type=command.type, params=command.params_dict(), outcome=outcome)
            LOGGER.debug("Action %s applied: %s", command.type.directive, outcome)
            report.results.append(result)
            if self._listener is not None:
                self._listener.on_action_complete(result)
        if report.failures:
            LOGGER.info("Applied %s of %s action(s)", len(report.results), report.attempted)
        return report

    async def _dispatch(self, command: ActionCommand) -> dict[str, Any]:
        handler = self._handlers.get(command.type)
        if handler is None:
            raise ActionDispatchError(
                error_code=ErrorCode.UNKNOWN_ACTION,
                message=f"No handler registered for {command.type.directive}",
                action_type=command.type.directive,
            )
        return await handler(self._host, command.params)

    @staticmethod
    def _wrap_error(command: ActionCommand, exc: Exception) -> ActionDispatchError:
        if isinstance(exc, ActionDispatchError):
            return exc
        details: dict[str, Any] = {"exception": type(exc).__name__}
        if isinstance(exc, ParaMindError):
            details["cause"] = exc.to_dict()
            message = exc.message
        else:
            message = str(exc) or type(exc).__name__
        return ActionDispatchError(message=message, details=details, action_type=command.type.directive)


# -----------------------------------------------------------------------------
# Summaries
# -----------------------------------------------------------------------------


def describe_result(result: ActionResult) -> str:
    """One-line, user-facing description of an applied action."""

    params = result.params
    outcome = result.outcome
    kind = result.type
    if kind is ActionType.FIND_REPLACE:
        return f'Replaced "{params.get("search", "")}" with "{params.get("replace", "")}" ({outcome.get("count", 0)} found)'
    if kind is ActionType.INSERT_AT_START:
        return "Inserted content at document beginning"
    if kind is ActionType.INSERT_AT_END:
        return "Inserted content at document end"
    if kind is ActionType.INSERT_AFTER_HEADING:
        if not outcome.get("found", True):
            return f'Heading "{params.get("heading", "")}" not found; nothing inserted'
        return f'Inserted content after heading "{params.get("heading", "")}"'
    if kind is ActionType.INSERT_AT_PARAGRAPH:
        return f"Modified paragraph {params.get('index')}"
    if kind is ActionType.FORMAT_TEXT:
        return f'Applied formatting to "{params.get("text", "")}"'
    if kind is ActionType.CREATE_TABLE:
        return f"Created {params.get('rows')}x{params.get('columns')} table"
    if kind is ActionType.FORMAT_PARAGRAPHS:
        return f"Applied formatting to {outcome.get('count', 0)} paragraphs"
    if kind is ActionType.INDENT_PARAGRAPHS:
        return f"Added indentation to {outcome.get('count', 0)} paragraphs"
    if kind is ActionType.ANALYZE_FORMATTING:
        analysis = outcome.get("analysis", {})
        return (
            f"Analyzed document formatting ({analysis.get('totalParagraphs', 0)} paragraphs, "
            f"{len(analysis.get('stylesUsed', []))} styles)"
        )
    return f"Performed {kind.directive}"


def summarize_results(results: Sequence[ActionResult]) -> str:
    """Render the "Actions Performed" block, or an empty string when nothing ran."""

    if not results:
        return ""
    lines = ["**Actions Performed:**"]
    lines.extend(f"- {describe_result(result)}" for result in results)
    return "\n".join(lines)


def summarize_failures(failures: Sequence[ActionFailure]) -> str:
    if not failures:
        return ""
    lines = ["**Actions Failed:**"]
    lines.extend(f"- {failure.command.type.directive}: {failure.error.message}" for failure in failures)
    return "\n".join(lines)


def summarize_report(report: ExecutionReport) -> str:
    return "\n\n".join(block for block in (summarize_results(report.results), summarize_failures(report.failures)) if block)


__all__ = [
    "ACTION_HANDLERS",
    "ActionExecutor",
    "ExecutionListener",
    "INDENT_CRITERIA",
    "describe_result",
    "summarize_failures",
    "summarize_report",
    "summarize_results",
]
