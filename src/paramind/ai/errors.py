"""Standardized error types for document access, action parsing, and dispatch.

Errors fall into three disjoint classes: document read failures (fatal for
the call), action parse failures (skipped per directive), and dispatch
failures (skipped per command). All of them share the same dictionary
serialization so callers can surface them uniformly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping


# -----------------------------------------------------------------------------
# Error Code Constants
# -----------------------------------------------------------------------------

class ErrorCode:
    """Constants for error codes used in error payloads."""

    # Document access
    DOCUMENT_READ_FAILED = "document_read_failed"
    PARAGRAPH_OUT_OF_RANGE = "paragraph_out_of_range"
    HOST_OPERATION_FAILED = "host_operation_failed"

    # Action protocol
    UNKNOWN_ACTION = "unknown_action"
    MALFORMED_PAYLOAD = "malformed_payload"
    DISPATCH_FAILED = "dispatch_failed"

    # Model access
    AI_NOT_CONFIGURED = "ai_not_configured"
    AI_AUTHENTICATION = "ai_authentication"
    AI_RATE_LIMITED = "ai_rate_limited"
    AI_UNAVAILABLE = "ai_unavailable"
    AI_REQUEST_FAILED = "ai_request_failed"
    AI_INVALID_RESPONSE = "ai_invalid_response"

    # General errors
    INTERNAL_ERROR = "internal_error"
    INVALID_PARAMETER = "invalid_parameter"


# -----------------------------------------------------------------------------
# Base Error Class
# -----------------------------------------------------------------------------

@dataclass
class ParaMindError(Exception):
    """Base exception class for all ParaMind errors.

    Attributes:
        error_code: Machine-readable error identifier.
        message: Human-readable error description.
        details: Additional structured error information.
        suggestion: Actionable guidance for recovery.
    """

    error_code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = ""

    severity: ClassVar[str] = "error"

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary for logs and user-facing reports."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = dict(self.details)
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# -----------------------------------------------------------------------------
# Document Errors
# -----------------------------------------------------------------------------

@dataclass
class DocumentReadError(ParaMindError):
    """Raised when the document host cannot be read.

    This is fatal for the current call: callers must treat it as "no context
    available" rather than fabricating content.
    """

    error_code: str = field(default=ErrorCode.DOCUMENT_READ_FAILED)
    message: str = field(default="The document could not be read")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Make sure a document is open and try again")


@dataclass
class HostOperationError(ParaMindError):
    """Raised by a document host when a single mutation cannot be applied."""

    error_code: str = field(default=ErrorCode.HOST_OPERATION_FAILED)
    message: str = field(default="The document host rejected the operation")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="")

    operation: str | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.operation is not None:
            result["operation"] = self.operation
        return result


@dataclass
class ParagraphOutOfRangeError(HostOperationError):
    """Raised when a paragraph index does not exist in the document."""

    error_code: str = field(default=ErrorCode.PARAGRAPH_OUT_OF_RANGE)
    message: str = field(default="Paragraph index is out of range")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Use an index from the document structure listing")

    operation: str | None = field(default=None)
    index: int | None = field(default=None)
    paragraph_count: int | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.index is not None:
            result["index"] = self.index
        if self.paragraph_count is not None:
            result["paragraph_count"] = self.paragraph_count
        return result


# -----------------------------------------------------------------------------
# Action Protocol Errors
# -----------------------------------------------------------------------------

@dataclass
class ActionParseError(ParaMindError):
    """Raised (and collected) when one embedded action directive is malformed."""

    error_code: str = field(default=ErrorCode.MALFORMED_PAYLOAD)
    message: str = field(default="Action directive payload is malformed")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="")

    action_type: str | None = field(default=None)
    raw: str | None = field(default=None)
    offset: int | None = field(default=None)

    severity: ClassVar[str] = "warning"

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.action_type is not None:
            result["action_type"] = self.action_type
        if self.raw is not None:
            result["raw"] = self.raw
        if self.offset is not None:
            result["offset"] = self.offset
        return result


@dataclass
class ActionDispatchError(ParaMindError):
    """Wraps a host failure raised while dispatching one parsed action."""

    error_code: str = field(default=ErrorCode.DISPATCH_FAILED)
    message: str = field(default="Action could not be applied to the document")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="")

    action_type: str | None = field(default=None)

    severity: ClassVar[str] = "warning"

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.action_type is not None:
            result["action_type"] = self.action_type
        return result


# -----------------------------------------------------------------------------
# Model Access Errors
# -----------------------------------------------------------------------------

@dataclass
class AIServiceError(ParaMindError):
    """Raised when the language-model provider cannot complete a request."""

    error_code: str = field(default=ErrorCode.AI_REQUEST_FAILED)
    message: str = field(default="Failed to communicate with AI service")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="")

    status_code: int | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.status_code is not None:
            result["status_code"] = self.status_code
        return result


# -----------------------------------------------------------------------------
# Utility Functions
# -----------------------------------------------------------------------------

def error_from_dict(data: Mapping[str, Any]) -> ParaMindError:
    """Reconstruct a ParaMindError from its dictionary representation."""
    return ParaMindError(
        error_code=data.get("error", ErrorCode.INTERNAL_ERROR),
        message=data.get("message", "Unknown error"),
        details=dict(data.get("details", {})),
        suggestion=data.get("suggestion", ""),
    )


__all__ = [
    "ErrorCode",
    "ParaMindError",
    "DocumentReadError",
    "HostOperationError",
    "ParagraphOutOfRangeError",
    "ActionParseError",
    "ActionDispatchError",
    "AIServiceError",
    "error_from_dict",
]
