"""Turn orchestration: document context in, model reply and applied actions out."""

from .turn_runner import PreparedContext, TurnOutcome, TurnRequest, TurnRunner, create_turn_runner

__all__ = ["PreparedContext", "TurnOutcome", "TurnRequest", "TurnRunner", "create_turn_runner"]
