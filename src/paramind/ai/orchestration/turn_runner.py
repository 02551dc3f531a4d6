"""Turn Runner: wires context preparation, the model call, and action dispatch.

One turn reads the document once, builds the prompt context from ranked and
scanned chunks, asks the chat backend for a reply, and (in agent mode) applies
the reply's action directives to the host in order.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Sequence

from ...documents.host import DocumentHost
from ...documents.models import Paragraph
from ...services.settings import ChatMode, Settings
from ...utils.logging import configure_logging
from ..actions.executor import ActionExecutor, ExecutionListener, summarize_report
from ..actions.models import ExecutionReport, ParseReport
from ..actions.parser import ActionParser
from ..client import AIClient, ChatBackend
from ..context.assembler import assemble_context
from ..context.chunking import ChunkBuilder, strategy_for_paragraphs
from ..context.models import Chunk, ChunkingStrategy, ContextualScanResult
from ..context.ranking import rank_chunks
from ..context.scanner import ContextualScanner
from ..errors import DocumentReadError, ParaMindError
from ..prompts import build_structure_preview, build_system_prompt, build_user_message

__all__ = [
    "PreparedContext",
    "TurnOutcome",
    "TurnRequest",
    "TurnRunner",
    "create_turn_runner",
]

LOGGER = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Turn Types
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class TurnRequest:
    """Input for one assistant turn.

    Attributes:
        query: The user's message.
        selection: Text the user has selected in the document, if any.
        current_chapter: Section title the user is working in, if known.
        context_window: Overrides ``Settings.context_window`` for this turn.
        chat_mode: Overrides ``Settings.chat_mode`` for this turn.
    """

    query: str
    selection: str | None = None
    current_chapter: str | None = None
    context_window: int | None = None
    chat_mode: ChatMode | str | None = None
    turn_id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass(slots=True)
class PreparedContext:
    """Prompt context built for one turn."""

    text: str
    strategy: ChunkingStrategy
    chunks: list[Chunk]
    selected: list[Chunk]
    scan: ContextualScanResult
    structure: str = ""
    paragraph_count: int = 0


@dataclass(slots=True)
class TurnOutcome:
    """Everything a turn produced."""

    reply: str
    prepared: PreparedContext
    parse_report: ParseReport = field(default_factory=ParseReport)
    execution: ExecutionReport = field(default_factory=ExecutionReport)
    summary: str = ""

    @property
    def display_text(self) -> str:
        if not self.summary:
            return self.reply
        return f"{self.reply}\n\n{self.summary}"


# -----------------------------------------------------------------------------
# Turn Runner
# -----------------------------------------------------------------------------


class TurnRunner:
    """Runs assistant turns against one document host and one chat backend.

    Example:
        runner = TurnRunner(host, AIClient.from_settings(settings), settings)
        outcome = await runner.run(TurnRequest(query="Fix the typos"))
    """

    def __init__(
        self,
        host: DocumentHost,
        backend: ChatBackend,
        settings: Settings | None = None,
        *,
        listener: ExecutionListener | None = None,
    ) -> None:
        self._host = host
        self._backend = backend
        self._settings = settings or Settings()
        self._parser = ActionParser()
        self._executor = ActionExecutor(host, listener=listener)

    @property
    def settings(self) -> Settings:
        return self._settings

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    async def prepare_context(self, request: TurnRequest) -> PreparedContext:
        """Build the prompt context for ``request``.

        Raises:
            DocumentReadError: When the document cannot be read.
        """
        paragraphs = await self._read_paragraphs()
        context_settings = self._settings.context
        window = request.context_window or self._settings.context_window
        strategy = strategy_for_paragraphs(paragraphs, window, prioritize_selection=bool(request.selection))
        chunks = ChunkBuilder(strategy).build(paragraphs)

        if len(chunks) <= 1:
            selected = list(chunks)
        else:
            selected = rank_chunks(chunks, request.query, request.selection, context_settings.relevant_chunk_limit)

        scanner = ContextualScanner(self._host, related_limit=context_settings.related_chunk_limit)
        scan = await scanner.analyze(
            request.query,
            request.selection,
            request.current_chapter,
            paragraphs=paragraphs,
        )

        included = list(selected)
        for chunk in scan.related_chunks:
            if not any(chunk.overlaps(existing) for existing in included):
                included.append(chunk)

        text = assemble_context(included, strategy.max_tokens, include_metadata=context_settings.include_section_titles)
        structure = ""
        if context_settings.include_structure_preview:
            structure = build_structure_preview(paragraphs, context_settings.structure_preview_chars)

        LOGGER.debug(
            "Prepared context for turn %s: %s chunk(s), %s selected, %s included",
            request.turn_id,
            len(chunks),
            len(selected),
            len(included),
        )
        return PreparedContext(
            text=text,
            strategy=strategy,
            chunks=chunks,
            selected=selected,
            scan=scan,
            structure=structure,
            paragraph_count=len(paragraphs),
        )

    def build_messages(self, request: TurnRequest, prepared: PreparedContext) -> list[dict[str, str]]:
        mode = self._mode_for(request)
        system = build_system_prompt(
            prepared.text,
            prepared.structure,
            allow_actions=mode.allows_actions,
            base_prompt=self._settings.system_prompt,
        )
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": build_user_message(request.query, request.selection)},
        ]

    async def run(self, request: TurnRequest) -> TurnOutcome:
        """Run one full turn.

        Raises:
            DocumentReadError: When the document cannot be read.
            AIServiceError: When the backend cannot produce a reply.
        """
        prepared = await self.prepare_context(request)
        reply = await self._backend.complete(self.build_messages(request, prepared))
        outcome = TurnOutcome(reply=reply, prepared=prepared)
        mode = self._mode_for(request)
        if not mode.allows_actions:
            LOGGER.debug("Turn %s ran in %s mode; actions not applied", request.turn_id, mode.value)
            return outcome
        outcome.parse_report, outcome.execution = await self.apply_reply(reply)
        outcome.summary = summarize_report(outcome.execution)
        return outcome

    async def apply_reply(self, reply: str) -> tuple[ParseReport, ExecutionReport]:
        """Parse action directives in ``reply`` and apply them in order."""

        report = self._parser.parse(reply)
        if not report.commands:
            return report, ExecutionReport()
        execution = await self._executor.execute(report.commands)
        return report, execution

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _mode_for(self, request: TurnRequest) -> ChatMode:
        if request.chat_mode is None:
            return self._settings.chat_mode
        return ChatMode.coerce(request.chat_mode)

    async def _read_paragraphs(self) -> Sequence[Paragraph]:
        try:
            return await self._host.read_paragraphs()
        except ParaMindError:
            raise
        except Exception as exc:
            raise DocumentReadError(
                message=f"Failed to read document paragraphs: {exc}",
                details={"exception": type(exc).__name__},
            ) from exc


def create_turn_runner(
    host: DocumentHost,
    settings: Settings | None = None,
    *,
    backend: ChatBackend | None = None,
    listener: ExecutionListener | None = None,
    setup_logging: bool = True,
) -> TurnRunner:
    """Build a :class:`TurnRunner` for a host application.

    ``settings`` defaults to :meth:`Settings.from_env`. Logging is configured
    from the same settings, and an :class:`AIClient` is created when no
    ``backend`` is supplied.

    Raises:
        AIServiceError: When no backend is given and the AI service is not configured.

    Example:
        runner = create_turn_runner(host)
        outcome = await runner.run(TurnRequest(query="Tighten the introduction"))
    """
    settings = settings or Settings.from_env()
    if setup_logging:
        configure_logging(settings)
    if backend is None:
        backend = AIClient.from_settings(settings)
    return TurnRunner(host, backend, settings, listener=listener)
