"""Extraction of ``[ACTION:<TYPE>:<PAYLOAD>]`` directives from AI replies.

Each directive is parsed on its own. A malformed directive is logged and
reported in :class:`ParseReport.rejected`; it never stops later directives in
the same reply from being extracted.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Mapping

from ...documents.host import PARAGRAPH_POSITIONS, TABLE_LOCATIONS
from ..errors import ActionParseError, ErrorCode
from .models import (
    DEFAULT_INDENT_AMOUNT,
    ActionCommand,
    ActionParams,
    ActionType,
    AnalyzeFormattingParams,
    CreateTableParams,
    FindReplaceParams,
    FormatParagraphsParams,
    FormatTextParams,
    IndentParagraphsParams,
    InsertAfterHeadingParams,
    InsertAtParagraphParams,
    InsertContentParams,
    ParseReport,
)

LOGGER = logging.getLogger(__name__)

ACTION_ENVELOPE_RE = re.compile(r"\[ACTION:(?P<type>[^:\]]+)(?::(?P<payload>[^\]]*))?\]")

_DECODER = json.JSONDecoder()
_INT_RE = re.compile(r"^[+-]?\d+$")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


class _PayloadError(ValueError):
    pass


def split_payload(payload: str) -> list[Any]:
    """Split a payload into colon-separated fields.

    A field is a JSON string, a JSON object, or a bare token running to the
    next colon. Colons inside JSON values do not split fields.
    """
    fields: list[Any] = []
    length = len(payload)
    position = _skip_whitespace(payload, 0)
    if position >= length:
        return fields
    while True:
        position = _skip_whitespace(payload, position)
        if position >= length:
            raise _PayloadError("empty field")
        if payload[position] in "\"{":
            try:
                value, position = _DECODER.raw_decode(payload, position)
            except json.JSONDecodeError as exc:
                raise _PayloadError(f"invalid JSON at offset {position}: {exc.msg}") from exc
            fields.append(value)
        else:
            end = payload.find(":", position)
            if end == -1:
                end = length
            token = payload[position:end].strip()
            if not token:
                raise _PayloadError("empty field")
            fields.append(token)
            position = end
        position = _skip_whitespace(payload, position)
        if position >= length:
            return fields
        if payload[position] != ":":
            raise _PayloadError(f"expected ':' at offset {position}")
        position += 1


def _skip_whitespace(text: str, position: int) -> int:
    while position < len(text) and text[position].isspace():
        position += 1
    return position


def _check_count(fields: list[Any], minimum: int, maximum: int) -> list[Any]:
    if not minimum <= len(fields) <= maximum:
        expected = str(minimum) if minimum == maximum else f"{minimum}-{maximum}"
        raise _PayloadError(f"expected {expected} field(s), got {len(fields)}")
    return fields


def _fields(payload: str, minimum: int, maximum: int) -> list[Any]:
    return _check_count(split_payload(payload), minimum, maximum)


def _quoted_fields(payload: str, minimum: int, maximum: int, *, strings: int, trailing_object: bool = False) -> list[Any]:
    """Like :func:`_fields`, but recovers quoted text holding raw ``"`` characters.

    When strict splitting fails, ``strings`` leading text fields are split on
    the literal ``":"`` separator, optionally followed by one JSON object.
    """
    try:
        fields = split_payload(payload)
    except _PayloadError as error:
        fields = _split_quoted(payload, strings, trailing_object=trailing_object, error=error)
        LOGGER.debug("Recovered %s field(s) from a payload with unescaped quotes", len(fields))
    return _check_count(fields, minimum, maximum)


def _split_quoted(payload: str, strings: int, *, trailing_object: bool, error: _PayloadError) -> list[Any]:
    text = payload.strip()
    tail: dict[str, Any] | None = None
    if trailing_object:
        text, tail = _split_trailing_object(text)
    if len(text) < 2 or not (text.startswith('"') and text.endswith('"')):
        raise error
    inner = text[1:-1]
    if strings == 1:
        fields: list[Any] = [inner]
    else:
        head, separator, rest = inner.partition('":"')
        if not separator:
            raise error
        fields = [head, rest]
    if tail is not None:
        fields.append(tail)
    return fields


def _split_trailing_object(text: str) -> tuple[str, dict[str, Any] | None]:
    start = text.find('":{')
    while start != -1:
        try:
            value = json.loads(text[start + 2 :])
        except json.JSONDecodeError:
            value = None
        if isinstance(value, dict):
            return text[: start + 1], value
        start = text.find('":{', start + 1)
    return text, None


def _text(value: Any, name: str, *, required: bool = True) -> str:
    if not isinstance(value, str):
        raise _PayloadError(f"{name} must be a string")
    if required and not value.strip():
        raise _PayloadError(f"{name} must not be empty")
    return value


def _mapping(value: Any, name: str) -> dict[str, Any]:
    if not isinstance(value, Mapping):
        raise _PayloadError(f"{name} must be a JSON object")
    return dict(value)


def _integer(value: Any, name: str, *, minimum: int) -> int:
    if isinstance(value, bool):
        raise _PayloadError(f"{name} must be an integer")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _INT_RE.match(value.strip()):
        number = int(value.strip())
    else:
        raise _PayloadError(f"{name} must be an integer")
    if number < minimum:
        raise _PayloadError(f"{name} must be >= {minimum}")
    return number


def _choice(value: Any, name: str, choices: tuple[str, ...]) -> str:
    text = _text(value, name).strip().lower()
    if text not in choices:
        raise _PayloadError(f"{name} must be one of {', '.join(choices)}")
    return text


def _single_text(payload: str) -> str:
    stripped = payload.strip()
    if len(stripped) >= 2 and stripped.startswith('"') and stripped.endswith('"'):
        try:
            value = json.loads(stripped)
        except json.JSONDecodeError:
            # Unescaped inner quotes: take the text between the outer quotes.
            value = stripped[1:-1]
        if isinstance(value, str):
            return value
    return stripped


# ----------------------------------------------------------------------
# Payload grammars
# ----------------------------------------------------------------------
def _parse_find_replace(payload: str) -> FindReplaceParams:
    fields = _quoted_fields(payload, 2, 3, strings=2, trailing_object=True)
    options = _mapping(fields[2], "options") if len(fields) == 3 else {}
    return FindReplaceParams(
        search=_text(fields[0], "search"),
        replace=_text(fields[1], "replace", required=False),
        options=options,
    )


def _parse_insert_content(payload: str) -> InsertContentParams:
    content = _single_text(payload)
    if not content.strip():
        raise _PayloadError("content must not be empty")
    return InsertContentParams(content=content)


def _parse_insert_after_heading(payload: str) -> InsertAfterHeadingParams:
    heading, content = _quoted_fields(payload, 2, 2, strings=2)
    return InsertAfterHeadingParams(heading=_text(heading, "heading"), content=_text(content, "content"))


def _parse_insert_at_paragraph(payload: str) -> InsertAtParagraphParams:
    index, content, position = _fields(payload, 3, 3)
    return InsertAtParagraphParams(
        index=_integer(index, "index", minimum=0),
        content=_text(content, "content", required=False),
        position=_choice(position, "position", PARAGRAPH_POSITIONS),
    )


def _parse_format_text(payload: str) -> FormatTextParams:
    text, formatting = _quoted_fields(payload, 2, 2, strings=1, trailing_object=True)
    return FormatTextParams(text=_text(text, "text"), formatting=_mapping(formatting, "formatting"))


def _parse_create_table(payload: str) -> CreateTableParams:
    rows, columns, location = _fields(payload, 3, 3)
    return CreateTableParams(
        rows=_integer(rows, "rows", minimum=1),
        columns=_integer(columns, "columns", minimum=1),
        location=_choice(location, "location", TABLE_LOCATIONS),
    )


def _parse_format_paragraphs(payload: str) -> FormatParagraphsParams:
    criteria, formatting = _fields(payload, 2, 2)
    return FormatParagraphsParams(criteria=_mapping(criteria, "criteria"), formatting=_mapping(formatting, "formatting"))


def _parse_indent_paragraphs(payload: str) -> IndentParagraphsParams:
    match = _LEADING_INT_RE.match(_single_text(payload))
    amount = int(match.group(1)) if match else 0
    return IndentParagraphsParams(amount=amount if amount > 0 else DEFAULT_INDENT_AMOUNT)


def _parse_analyze_formatting(payload: str) -> AnalyzeFormattingParams:
    return AnalyzeFormattingParams()


PAYLOAD_PARSERS: Mapping[ActionType, Callable[[str], ActionParams]] = {
    ActionType.FIND_REPLACE: _parse_find_replace,
    ActionType.INSERT_AT_START: _parse_insert_content,
    ActionType.INSERT_AT_END: _parse_insert_content,
    ActionType.INSERT_AFTER_HEADING: _parse_insert_after_heading,
    ActionType.INSERT_AT_PARAGRAPH: _parse_insert_at_paragraph,
    ActionType.FORMAT_TEXT: _parse_format_text,
    ActionType.CREATE_TABLE: _parse_create_table,
    ActionType.FORMAT_PARAGRAPHS: _parse_format_paragraphs,
    ActionType.INDENT_PARAGRAPHS: _parse_indent_paragraphs,
    ActionType.ANALYZE_FORMATTING: _parse_analyze_formatting,
}


class ActionParser:
    """Parse every action directive embedded in a reply."""

    def __init__(self, parsers: Mapping[ActionType, Callable[[str], ActionParams]] | None = None) -> None:
        self._parsers = dict(parsers or PAYLOAD_PARSERS)

    def parse(self, text: str) -> ParseReport:
        report = ParseReport()
        if not text or not isinstance(text, str):
            return report
        for match in ACTION_ENVELOPE_RE.finditer(text):
            try:
                report.commands.append(self._parse_match(match))
            except ActionParseError as error:
                LOGGER.warning("Skipping action directive at offset %s: %s", match.start(), error)
                report.rejected.append(error)
        if report.commands or report.rejected:
            LOGGER.debug("Parsed %s action(s), rejected %s", len(report.commands), len(report.rejected))
        return report

    def _parse_match(self, match: re.Match[str]) -> ActionCommand:
        directive = match.group("type").strip()
        payload = match.group("payload") or ""
        action_type = ActionType.from_directive(directive)
        if action_type is None or action_type not in self._parsers:
            raise ActionParseError(
                error_code=ErrorCode.UNKNOWN_ACTION,
                message=f"Unknown action type {directive!r}",
                action_type=directive,
                raw=match.group(0),
                offset=match.start(),
            )
        try:
            params = self._parsers[action_type](payload)
        except _PayloadError as exc:
            raise ActionParseError(
                message=f"Malformed {action_type.directive} payload: {exc}",
                action_type=action_type.directive,
                raw=match.group(0),
                offset=match.start(),
            ) from exc
        return ActionCommand(type=action_type, params=params, raw=match.group(0), offset=match.start())


def parse_actions(text: str) -> list[ActionCommand]:
    """Return the well-formed action commands in ``text``, in order of appearance."""

    return ActionParser().parse(text).commands


__all__ = [
    "ACTION_ENVELOPE_RE",
    "ActionParser",
    "PAYLOAD_PARSERS",
    "parse_actions",
    "split_payload",
]
