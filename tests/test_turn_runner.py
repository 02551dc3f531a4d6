"""Tests for the turn runner that ties context, model, and actions together."""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

import pytest

from helpers import RecordingHost
from paramind.ai.errors import AIServiceError, DocumentReadError, ErrorCode
from paramind.ai.orchestration import TurnRequest, TurnRunner, create_turn_runner
from paramind.services import ChatMode, Settings
from paramind.utils import logging as paramind_logging


class FakeBackend:
    """Chat backend that returns a canned reply and records the prompts it saw."""

    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.requests: list[list[dict[str, str]]] = []

    async def complete(self, messages: Sequence[Mapping[str, str]]) -> str:
        self.requests.append([dict(message) for message in messages])
        return self.reply

    @property
    def system_prompt(self) -> str:
        return self.requests[-1][0]["content"]

    @property
    def user_message(self) -> str:
        return self.requests[-1][1]["content"]


REPLACE_REPLY = 'I swapped the wording. [ACTION:FIND_REPLACE:"map":"chart":{"replaceAll":true}]'


@pytest.mark.asyncio
async def test_agent_turn_applies_actions_and_summarizes(novel_host) -> None:
    backend = FakeBackend(REPLACE_REPLY)
    runner = TurnRunner(novel_host, backend, Settings())

    outcome = await runner.run(TurnRequest(query="Use chart instead of map"))

    assert not any("map" in text for text in novel_host.texts)
    assert "the old chart her grandmother" in novel_host.texts[1]
    assert len(outcome.execution.results) == 1
    assert outcome.summary == '**Actions Performed:**\n- Replaced "map" with "chart" (4 found)'
    assert outcome.display_text == f"{REPLACE_REPLY}\n\n{outcome.summary}"
    assert "DOCUMENT EDITING ACTIONS" in backend.system_prompt
    assert "**Current Document Content:**" in backend.system_prompt
    assert "Alice walked into the quiet library" in backend.system_prompt


@pytest.mark.asyncio
async def test_ask_mode_never_touches_the_document(novel_host) -> None:
    before = list(novel_host.texts)
    backend = FakeBackend(REPLACE_REPLY)
    runner = TurnRunner(novel_host, backend, Settings(chat_mode=ChatMode.ASK))

    outcome = await runner.run(TurnRequest(query="Use chart instead of map"))

    assert novel_host.texts == before
    assert outcome.summary == ""
    assert outcome.display_text == REPLACE_REPLY
    assert outcome.parse_report.commands == []
    assert "DOCUMENT EDITING ACTIONS" not in backend.system_prompt


@pytest.mark.asyncio
async def test_request_chat_mode_overrides_settings(novel_host) -> None:
    backend = FakeBackend(REPLACE_REPLY)
    runner = TurnRunner(novel_host, backend, Settings(chat_mode=ChatMode.AGENT))

    outcome = await runner.run(TurnRequest(query="Just explain", chat_mode="ask"))

    assert outcome.execution.results == []
    assert any("map" in text for text in novel_host.texts)


@pytest.mark.asyncio
async def test_unreadable_document_fails_before_calling_the_model() -> None:
    host = RecordingHost(read_error=RuntimeError("editor closed"))
    backend = FakeBackend("unused")
    runner = TurnRunner(host, backend)

    with pytest.raises(DocumentReadError) as excinfo:
        await runner.run(TurnRequest(query="Summarize"))

    assert "editor closed" in excinfo.value.message
    assert excinfo.value.details == {"exception": "RuntimeError"}
    assert backend.requests == []


@pytest.mark.asyncio
async def test_selection_is_quoted_in_the_user_message(novel_host) -> None:
    backend = FakeBackend("Nothing to do.")
    runner = TurnRunner(novel_host, backend)

    await runner.run(TurnRequest(query="Make this vivid", selection="quiet library"))

    assert backend.user_message == 'Selected text: "quiet library"\n\nUser query: Make this vivid'


@pytest.mark.asyncio
async def test_failed_and_rejected_actions_are_reported(novel_host) -> None:
    reply = (
        '[ACTION:INSERT_AT_PARAGRAPH:99:"Lost":"after"]'
        "[ACTION:SUMMON_DRAGON:now]"
        '[ACTION:INSERT_AT_END:"The End"]'
    )
    runner = TurnRunner(novel_host, FakeBackend(reply))

    outcome = await runner.run(TurnRequest(query="Finish it"))

    assert len(outcome.parse_report.commands) == 2
    assert len(outcome.parse_report.rejected) == 1
    assert len(outcome.execution.failures) == 1
    assert novel_host.texts[-1] == "The End"
    assert "**Actions Performed:**\n- Inserted content at document end" in outcome.summary
    assert "**Actions Failed:**\n- INSERT_AT_PARAGRAPH:" in outcome.summary


@pytest.mark.asyncio
async def test_small_documents_are_sent_whole(novel_host) -> None:
    runner = TurnRunner(novel_host, FakeBackend(""))

    prepared = await runner.prepare_context(TurnRequest(query="Summarize"))

    assert len(prepared.chunks) == 1
    assert prepared.selected == prepared.chunks
    assert prepared.paragraph_count == 8
    assert "Cartography: the definition of map making" in prepared.text
    assert prepared.structure.startswith("[0] Chapter 1\n[1] Alice walked")


@pytest.mark.asyncio
async def test_small_context_window_forces_chunking(novel_host) -> None:
    runner = TurnRunner(novel_host, FakeBackend(""))

    prepared = await runner.prepare_context(TurnRequest(query="What happened to the library?", context_window=100))

    assert prepared.strategy.preserve_structure is True
    assert prepared.strategy.max_tokens == 40
    assert len(prepared.chunks) > 1
    assert 1 <= len(prepared.selected) <= runner.settings.context.relevant_chunk_limit


@pytest.mark.asyncio
async def test_reply_without_directives_runs_nothing(plain_host) -> None:
    runner = TurnRunner(plain_host, FakeBackend("Looks good to me."))

    outcome = await runner.run(TurnRequest(query="Review"))

    assert outcome.execution.attempted == 0
    assert outcome.display_text == "Looks good to me."


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    paramind_logging._ACTIVE = None


@pytest.mark.asyncio
async def test_create_turn_runner_configures_logging_from_settings(novel_host, tmp_path, restore_logging) -> None:
    settings = Settings(log_dir=str(tmp_path), debug_logging=True)

    runner = create_turn_runner(novel_host, settings, backend=FakeBackend("Done."))
    outcome = await runner.run(TurnRequest(query="Review"))

    assert runner.settings is settings
    assert outcome.reply == "Done."
    assert paramind_logging.active_logging().path == tmp_path / "paramind.log"


def test_create_turn_runner_requires_a_configured_service(novel_host) -> None:
    with pytest.raises(AIServiceError) as excinfo:
        create_turn_runner(novel_host, Settings(), setup_logging=False)

    assert excinfo.value.error_code == ErrorCode.AI_NOT_CONFIGURED
