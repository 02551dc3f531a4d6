"""Logging configuration driven by :class:`~paramind.services.settings.Settings`.

``configure_logging`` installs a rotating log file under ``Settings.log_dir``
(``~/.paramind/logs`` by default), an optional console stream, and a filter
that masks the configured API key wherever it would be written.
"""

from __future__ import annotations

import logging
import logging.handlers
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from ..services.settings import Settings, redact_secret

__all__ = ["DEFAULT_LOG_DIR", "LOG_FILE_NAME", "LoggingState", "SecretRedactingFilter", "active_logging", "configure_logging"]

LOGGER = logging.getLogger(__name__)

DEFAULT_LOG_DIR = Path.home() / ".paramind" / "logs"
LOG_FILE_NAME = "paramind.log"
_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_QUIET_LOGGERS: tuple[str, ...] = ("asyncio", "httpx", "httpcore", "openai")


@dataclass(slots=True, frozen=True)
class LoggingState:
    """Where and how verbosely the current process logs."""

    path: Path
    level: int
    console: bool


_ACTIVE: LoggingState | None = None


class SecretRedactingFilter(logging.Filter):
    """Replace known secrets in rendered messages with their redacted form."""

    def __init__(self, secrets: Iterable[str]) -> None:
        super().__init__()
        self._secrets = tuple(secret.strip() for secret in secrets if secret and secret.strip())

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        message = record.getMessage()
        redacted = message
        for secret in self._secrets:
            redacted = redacted.replace(secret, redact_secret(secret))
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(
    settings: Settings | None = None,
    *,
    log_dir: Path | str | None = None,
    force: bool = False,
) -> LoggingState:
    """Configure root logging for ParaMind.

    ``settings`` defaults to :meth:`Settings.from_env`, so ``PARAMIND_LOG_DIR``,
    ``PARAMIND_DEBUG_LOGGING`` and ``PARAMIND_LOG_CONSOLE`` apply. Calling again
    with an equivalent configuration is a no-op unless ``force`` is set.
    """
    global _ACTIVE
    settings = settings or Settings.from_env()
    level = logging.DEBUG if settings.debug_logging else logging.INFO
    target_dir = Path(log_dir or settings.log_dir or DEFAULT_LOG_DIR).expanduser()
    state = LoggingState(path=target_dir / LOG_FILE_NAME, level=level, console=settings.log_to_console)
    if _ACTIVE == state and not force:
        return _ACTIVE

    target_dir.mkdir(parents=True, exist_ok=True)
    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            state.path,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
    ]
    if state.console:
        handlers.append(logging.StreamHandler())

    formatter = logging.Formatter(_LOG_FORMAT)
    redactor = SecretRedactingFilter([settings.api_key])
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(redactor)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.captureWarnings(True)
    quiet_level = max(level, logging.WARNING)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    _ACTIVE = state
    LOGGER.debug("Logging configured (level=%s, file=%s)", logging.getLevelName(level), state.path)
    return state


def active_logging() -> LoggingState | None:
    return _ACTIVE
