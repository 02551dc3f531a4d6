"""Tests for sequential action dispatch."""

from __future__ import annotations

import logging

import pytest

from helpers import RecordingHost
from paramind.ai.actions import (
    ActionExecutor,
    ActionType,
    parse_actions,
    summarize_failures,
    summarize_report,
    summarize_results,
)
from paramind.ai.errors import ActionDispatchError, ErrorCode
from paramind.documents import InMemoryDocumentHost


@pytest.mark.asyncio
async def test_commands_dispatch_in_parse_order() -> None:
    host = RecordingHost()
    commands = parse_actions(
        '[ACTION:INSERT_AT_START:"A"] [ACTION:FIND_REPLACE:"x":"y"] '
        '[ACTION:CREATE_TABLE:2:2:"cursor"] [ACTION:INSERT_AT_END:"Z"]'
    )

    report = await ActionExecutor(host).execute(commands)

    assert host.call_names == ["insert_at_start", "find_and_replace", "insert_table", "insert_at_end"]
    assert [result.type for result in report.results] == [command.type for command in commands]
    assert report.all_applied is True
    assert report.attempted == 4


@pytest.mark.asyncio
async def test_failing_command_is_recorded_and_the_rest_still_run(caplog: pytest.LogCaptureFixture) -> None:
    host = RecordingHost(fail_on=["find_and_replace"])
    commands = parse_actions('[ACTION:FIND_REPLACE:"x":"y"] [ACTION:INSERT_AT_END:"after failure"]')

    with caplog.at_level(logging.WARNING, logger="paramind.ai.actions.executor"):
        report = await ActionExecutor(host).execute(commands)

    assert host.call_names == ["find_and_replace", "insert_at_end"]
    assert [result.type for result in report.results] == [ActionType.INSERT_AT_END]
    (failure,) = report.failures
    assert failure.command is commands[0]
    assert isinstance(failure.error, ActionDispatchError)
    assert failure.error.error_code == ErrorCode.DISPATCH_FAILED
    assert failure.error.action_type == "FIND_REPLACE"
    assert "find_and_replace exploded" in failure.error.message
    assert failure.error.details["exception"] == "RuntimeError"
    assert report.all_applied is False
    assert any("FIND_REPLACE" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_indent_paragraphs_maps_to_format_paragraphs() -> None:
    host = RecordingHost()

    report = await ActionExecutor(host).execute(parse_actions("[ACTION:INDENT_PARAGRAPHS:nonsense]"))

    assert host.calls == [("format_paragraphs", ({"excludeHeadings": True}, {"indentation": {"firstLine": 36}}))]
    assert report.results[0].outcome == {"count": 4}


@pytest.mark.asyncio
async def test_outcomes_carry_host_reported_values() -> None:
    host = RecordingHost()
    commands = parse_actions(
        '[ACTION:FIND_REPLACE:"a":"b"] [ACTION:FORMAT_TEXT:"t":{"bold":true}] '
        '[ACTION:INSERT_AFTER_HEADING:"Missing":"text"] [ACTION:ANALYZE_FORMATTING]'
    )

    report = await ActionExecutor(host).execute(commands)

    assert [result.outcome for result in report.results[:3]] == [{"count": 2}, {"count": 1}, {"found": False}]
    assert report.results[3].outcome["analysis"]["totalParagraphs"] == 3


@pytest.mark.asyncio
async def test_later_commands_see_earlier_edits() -> None:
    host = InMemoryDocumentHost(["The colour of the sky."])
    commands = parse_actions(
        '[ACTION:FIND_REPLACE:"colour":"color"] [ACTION:FIND_REPLACE:"color of":"hue of"] '
        '[ACTION:INSERT_AT_PARAGRAPH:0:"Opening line":"before"]'
    )

    report = await ActionExecutor(host).execute(commands)

    assert host.texts == ["Opening line", "The hue of the sky."]
    assert [result.outcome.get("count") for result in report.results] == [1, 1, None]


@pytest.mark.asyncio
async def test_out_of_range_paragraph_is_a_failure_not_an_abort() -> None:
    host = InMemoryDocumentHost(["Only paragraph."])
    commands = parse_actions('[ACTION:INSERT_AT_PARAGRAPH:5:"x":"after"] [ACTION:INSERT_AT_END:"Tail"]')

    report = await ActionExecutor(host).execute(commands)

    assert host.texts == ["Only paragraph.", "Tail"]
    (failure,) = report.failures
    assert failure.error.details["cause"]["error"] == ErrorCode.PARAGRAPH_OUT_OF_RANGE


@pytest.mark.asyncio
async def test_listener_receives_events() -> None:
    events: list[str] = []

    class Listener:
        def on_action_start(self, command) -> None:
            events.append(f"start:{command.type.value}")

        def on_action_complete(self, result) -> None:
            events.append(f"done:{result.type.value}")

        def on_action_error(self, failure) -> None:
            events.append(f"error:{failure.command.type.value}")

    host = RecordingHost(fail_on=["insert_at_start"])
    commands = parse_actions('[ACTION:INSERT_AT_START:"a"] [ACTION:INSERT_AT_END:"b"]')

    await ActionExecutor(host, listener=Listener()).execute(commands)

    assert events == ["start:insert_at_start", "error:insert_at_start", "start:insert_at_end", "done:insert_at_end"]


@pytest.mark.asyncio
async def test_summaries_describe_results_and_failures() -> None:
    host = RecordingHost(fail_on=["insert_table"])
    commands = parse_actions(
        '[ACTION:FIND_REPLACE:"color":"colour"] [ACTION:CREATE_TABLE:3:2:"end"] '
        "[ACTION:INDENT_PARAGRAPHS:36] [ACTION:ANALYZE_FORMATTING]"
    )

    report = await ActionExecutor(host).execute(commands)
    results_text = summarize_results(report.results)
    failures_text = summarize_failures(report.failures)

    assert results_text.splitlines() == [
        "**Actions Performed:**",
        '- Replaced "color" with "colour" (2 found)',
        "- Added indentation to 4 paragraphs",
        "- Analyzed document formatting (3 paragraphs, 2 styles)",
    ]
    assert failures_text == "**Actions Failed:**\n- CREATE_TABLE: insert_table exploded"
    assert summarize_report(report) == f"{results_text}\n\n{failures_text}"
    assert summarize_results([]) == ""
