"""Async chat client built around OpenAI-compatible endpoints."""

from __future__ import annotations

import inspect
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Protocol, Sequence, runtime_checkable

import httpx
from openai import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    InternalServerError,
    RateLimitError,
)
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..services.settings import Settings
from .errors import AIServiceError, ErrorCode

LOGGER = logging.getLogger(__name__)

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    APIConnectionError,
    APITimeoutError,
    RateLimitError,
    InternalServerError,
    httpx.TimeoutException,
)


@runtime_checkable
class ChatBackend(Protocol):
    """Anything able to turn a list of chat messages into a reply."""

    async def complete(self, messages: Sequence[Mapping[str, str]]) -> str:
        ...


@dataclass(slots=True)
class ClientSettings:
    """Subset of settings required to configure the AI client."""

    base_url: str
    api_key: str
    model: str
    organization: str | None = None
    temperature: float | None = 0.7
    top_p: float | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    max_tokens: int | None = 2_000
    request_timeout: float | None = 30.0
    max_retries: int = 3
    retry_min_seconds: float = 0.5
    retry_max_seconds: float = 6.0
    default_headers: Mapping[str, str] | None = None
    debug_logging: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClientSettings":
        return cls(
            base_url=settings.base_url,
            api_key=settings.api_key,
            model=settings.model,
            organization=settings.organization,
            temperature=settings.temperature,
            top_p=settings.top_p,
            frequency_penalty=settings.frequency_penalty,
            presence_penalty=settings.presence_penalty,
            max_tokens=settings.max_tokens,
            request_timeout=settings.request_timeout,
            max_retries=settings.max_retries,
            retry_min_seconds=settings.retry_min_seconds,
            retry_max_seconds=settings.retry_max_seconds,
            default_headers=dict(settings.default_headers) or None,
            debug_logging=settings.debug_logging,
        )


class AIClient:
    """Chat completion client with retry semantics and uniform error mapping."""

    def __init__(self, settings: ClientSettings, *, client: AsyncOpenAI | Any | None = None) -> None:
        self._settings = settings
        self._client = client or self._build_client(settings)

    @classmethod
    def from_settings(cls, settings: Settings, *, client: AsyncOpenAI | Any | None = None) -> "AIClient":
        """Build a client from application settings.

        Raises:
            AIServiceError: When no API key, base URL, or model is configured.
        """
        if client is None and not settings.is_configured:
            raise AIServiceError(
                error_code=ErrorCode.AI_NOT_CONFIGURED,
                message="AI service is not configured",
                suggestion="Set PARAMIND_API_KEY (and optionally PARAMIND_BASE_URL / PARAMIND_MODEL)",
            )
        return cls(ClientSettings.from_settings(settings), client=client)

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    async def complete(self, messages: Sequence[Mapping[str, str]]) -> str:
        """Return the assistant reply for ``messages``.

        Transient failures are retried; whatever still fails is raised as
        :class:`AIServiceError`.
        """
        payload = self._build_chat_payload(self._coerce_messages(messages))
        LOGGER.debug("Requesting chat completion via %s with %s message(s)", self._settings.model, len(payload["messages"]))
        if self._settings.debug_logging:
            self._log_prompt_payload(payload)

        try:
            async for attempt in self._retrying():
                with attempt:
                    response = await self._client.chat.completions.create(**payload)
        except (APIError, httpx.HTTPError) as exc:
            raise map_provider_error(exc) from exc
        return self._extract_content(response)

    def _build_client(self, settings: ClientSettings) -> AsyncOpenAI:
        headers = dict(settings.default_headers) if settings.default_headers else None
        return AsyncOpenAI(
            api_key=settings.api_key,
            base_url=settings.base_url,
            organization=settings.organization,
            timeout=settings.request_timeout,
            default_headers=headers,
            max_retries=0,
        )

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(max(1, self._settings.max_retries)),
            wait=wait_exponential(
                multiplier=self._settings.retry_min_seconds,
                max=self._settings.retry_max_seconds,
            ),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
        )

    @staticmethod
    def _coerce_messages(messages: Iterable[Mapping[str, str]]) -> List[Dict[str, str]]:
        normalized = [dict(message) for message in messages]
        if not normalized:
            raise ValueError("At least one message is required to request a completion")
        return normalized

    def _build_chat_payload(self, messages: Sequence[Dict[str, str]]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self._settings.model,
            "messages": list(messages),
        }
        optional = {
            "temperature": self._settings.temperature,
            "top_p": self._settings.top_p,
            "frequency_penalty": self._settings.frequency_penalty,
            "presence_penalty": self._settings.presence_penalty,
            "max_tokens": self._settings.max_tokens,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload

    @staticmethod
    def _extract_content(response: Any) -> str:
        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None)
        if not isinstance(content, str):
            raise AIServiceError(
                error_code=ErrorCode.AI_INVALID_RESPONSE,
                message="AI service returned no message content",
            )
        return content

    def _log_prompt_payload(self, payload: Mapping[str, Any]) -> None:
        try:
            serialized = json.dumps(payload, ensure_ascii=False, indent=2)
        except (TypeError, ValueError):
            LOGGER.debug("AI prompt payload (unserializable): %s", payload)
        else:
            LOGGER.debug("AI prompt payload:\n%s", serialized)

    async def aclose(self) -> None:
        """Close the underlying OpenAI client to release network resources."""

        close = getattr(self._client, "close", None)
        if close is None:
            return
        result = close()
        if inspect.isawaitable(result):
            await result


def map_provider_error(exc: BaseException) -> AIServiceError:
    """Translate a provider or transport exception into an :class:`AIServiceError`."""

    if isinstance(exc, APIStatusError):
        status = exc.status_code
        if status == 401:
            return AIServiceError(
                error_code=ErrorCode.AI_AUTHENTICATION,
                message="Invalid API key. Please check your credentials.",
                status_code=status,
            )
        if status == 429:
            return AIServiceError(
                error_code=ErrorCode.AI_RATE_LIMITED,
                message="Rate limit exceeded. Please try again later.",
                status_code=status,
            )
        if status >= 500:
            return AIServiceError(
                error_code=ErrorCode.AI_UNAVAILABLE,
                message="AI service is temporarily unavailable. Please try again.",
                status_code=status,
            )
        return AIServiceError(message=f"API Error: {exc.message}", status_code=status)
    return AIServiceError(message=f"Failed to communicate with AI service: {exc}")


__all__ = ["AIClient", "ChatBackend", "ClientSettings", "RETRYABLE_ERRORS", "map_provider_error"]
