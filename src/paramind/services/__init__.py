"""Service layer helpers (settings)."""

from .settings import DEFAULT_CONTEXT_WINDOW, ChatMode, ContextSettings, Settings, redact_secret

__all__ = ["ChatMode", "ContextSettings", "DEFAULT_CONTEXT_WINDOW", "Settings", "redact_secret"]
