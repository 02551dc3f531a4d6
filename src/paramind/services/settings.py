"""Runtime settings dataclasses and environment overrides.

Settings are plain immutable-by-convention values handed to each component
explicitly; nothing in the core reads configuration from global state.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, Mapping

__all__ = [
    "ChatMode",
    "ContextSettings",
    "Settings",
    "DEFAULT_CONTEXT_WINDOW",
    "redact_secret",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_CONTEXT_WINDOW = 128_000

_ENV_OVERRIDES: Mapping[str, str] = {
    "PARAMIND_API_KEY": "api_key",
    "PARAMIND_BASE_URL": "base_url",
    "PARAMIND_MODEL": "model",
    "PARAMIND_ORGANIZATION": "organization",
    "PARAMIND_CHAT_MODE": "chat_mode",
    "PARAMIND_SYSTEM_PROMPT": "system_prompt",
    "PARAMIND_LOG_DIR": "log_dir",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "PARAMIND_DEBUG_LOGGING": "debug_logging",
    "PARAMIND_LOG_CONSOLE": "log_to_console",
}
_FLOAT_ENV_OVERRIDES: Mapping[str, str] = {
    "PARAMIND_REQUEST_TIMEOUT": "request_timeout",
    "PARAMIND_TEMPERATURE": "temperature",
    "PARAMIND_TOP_P": "top_p",
}
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "PARAMIND_MAX_TOKENS": "max_tokens",
    "PARAMIND_MAX_RETRIES": "max_retries",
    "PARAMIND_CONTEXT_WINDOW": "context_window",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}


class ChatMode(str, Enum):
    """Chat modes offered to the user.

    ``ask`` answers questions only; ``agent`` may also edit the document
    through embedded action directives.
    """

    ASK = "ask"
    AGENT = "agent"

    @property
    def allows_actions(self) -> bool:
        return self is ChatMode.AGENT

    @classmethod
    def coerce(cls, value: "ChatMode | str | None") -> "ChatMode":
        if isinstance(value, ChatMode):
            return value
        text = (value or "").strip().lower()
        for mode in cls:
            if mode.value == text:
                return mode
        LOGGER.warning("Unknown chat mode %r; falling back to agent", value)
        return cls.AGENT


@dataclass(slots=True, frozen=True)
class ContextSettings:
    """Knobs for context selection around the contextual scan."""

    relevant_chunk_limit: int = 3
    related_chunk_limit: int = 5
    include_section_titles: bool = True
    include_structure_preview: bool = True
    structure_preview_chars: int = 100


@dataclass(slots=True, frozen=True)
class Settings:
    """User-configurable settings supplied by the host application."""

    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "gpt-4o-mini"
    organization: str | None = None
    temperature: float = 0.7
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0
    max_tokens: int = 2_000
    request_timeout: float = 30.0
    max_retries: int = 3
    retry_min_seconds: float = 0.5
    retry_max_seconds: float = 6.0
    context_window: int = DEFAULT_CONTEXT_WINDOW
    chat_mode: ChatMode = ChatMode.AGENT
    system_prompt: str | None = None
    debug_logging: bool = False
    log_dir: str | None = None
    log_to_console: bool = False
    log_max_bytes: int = 1_000_000
    log_backup_count: int = 3
    default_headers: dict[str, str] = field(default_factory=dict)
    context: ContextSettings = field(default_factory=ContextSettings)

    def __post_init__(self) -> None:
        object.__setattr__(self, "chat_mode", ChatMode.coerce(self.chat_mode))

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key.strip() and self.base_url.strip() and self.model.strip())

    def with_overrides(self, overrides: Mapping[str, Any], *, source: str = "runtime") -> "Settings":
        """Return a copy with known, non-``None`` fields replaced."""

        allowed = {item.name for item in fields(Settings)}
        filtered: Dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in allowed or value is None:
                continue
            filtered[key] = value
        if not filtered:
            return self
        LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
        return replace(self, **filtered)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, *, base: "Settings | None" = None) -> "Settings":
        """Build settings from ``PARAMIND_*`` environment variables."""

        env = os.environ if environ is None else environ
        overrides: Dict[str, Any] = {}
        for env_name, field_name in _ENV_OVERRIDES.items():
            value = env.get(env_name)
            if value is not None:
                overrides[field_name] = value
        for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
            value = env.get(env_name)
            if value is not None:
                overrides[field_name] = value.strip().lower() in _TRUE_VALUES
        for env_name, field_name in _INT_ENV_OVERRIDES.items():
            value = env.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = int(value, 10)
            except ValueError:
                LOGGER.warning(
                    "Environment override %s=%s is not a valid integer",
                    env_name,
                    value,
                )
        for env_name, field_name in _FLOAT_ENV_OVERRIDES.items():
            value = env.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = float(value)
            except ValueError:
                LOGGER.warning(
                    "Environment override %s=%s is not a valid float", env_name, value
                )
        return (base or cls()).with_overrides(overrides, source="environment")


def redact_secret(value: str) -> str:
    stripped = (value or "").strip()
    if not stripped:
        return ""
    if len(stripped) <= 4:
        return "*" * len(stripped)
    return f"{stripped[:2]}{'*' * (len(stripped) - 4)}{stripped[-2:]}"
