"""Error taxonomy and classification for the MCP repository server."""

import logging
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Classification of every failure a tool call can report."""

    VALIDATION = "validation"
    UNSUPPORTED_ACTION = "unsupported_action"
    NOT_FOUND = "not_found"
    AUTH = "auth"
    CLIENT = "client"
    RATE_LIMITED = "rate_limited"
    SERVER = "server"
    CONFIGURATION = "configuration"


class OperationContext(str, Enum):
    """Upstream call context used when classifying a status code."""

    DEFAULT = "default"
    EXISTENCE_CHECK = "existence_check"
    SOCIAL_POST = "social_post"


class RepoToolError(Exception):
    """Base class for failures surfaced to tool callers."""

    kind: ErrorKind = ErrorKind.SERVER

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class ToolValidationError(RepoToolError):
    """Arguments failed schema validation; no upstream call was made."""

    kind = ErrorKind.VALIDATION


class UnsupportedActionError(RepoToolError):
    """The requested action is not in the registry."""

    kind = ErrorKind.UNSUPPORTED_ACTION

    def __init__(self, action: str):
        super().__init__(f"Unsupported action: {action}")
        self.action = action


class ConfigurationError(RepoToolError):
    """Required configuration is missing or invalid. Fatal at startup."""

    kind = ErrorKind.CONFIGURATION

    def __init__(self, message: str, keys: Optional[list] = None):
        super().__init__(message)
        self.keys = keys or []


class UpstreamError(RepoToolError):
    """A non-2xx response from the hosting or social platform."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        status: int,
        operation: str = "",
    ):
        super().__init__(message, kind)
        self.status = status
        self.operation = operation


def classify_status(
    status: int, context: OperationContext = OperationContext.DEFAULT
) -> Optional[ErrorKind]:
    """
    Map an upstream HTTP status to an ErrorKind.

    Returns None for statuses below 400. A 404 is always NOT_FOUND; whether
    that is a failure is up to the caller (existence checks treat it as a
    normal ``False`` result). 429 is only reported as RATE_LIMITED for social
    posting, other platforms get the generic client classification.
    """
    if status < 400:
        return None
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status in (401, 403):
        return ErrorKind.AUTH
    if status == 429:
        if context == OperationContext.SOCIAL_POST:
            return ErrorKind.RATE_LIMITED
        return ErrorKind.CLIENT
    if status >= 500:
        return ErrorKind.SERVER
    return ErrorKind.CLIENT


def upstream_message(data: Any, default: str) -> str:
    """Pull the human-readable message out of an upstream error body."""
    if isinstance(data, dict):
        for key in ("message", "detail", "title"):
            value = data.get(key)
            if value:
                return str(value)
        errors = data.get("errors")
        if isinstance(errors, list) and errors:
            first = errors[0]
            if isinstance(first, dict):
                return str(first.get("message") or first.get("detail") or default)
            return str(first)
    if isinstance(data, str) and data.strip():
        return data.strip()
    return default


# Error metrics tracking
_error_stats: Dict[str, Any] = {
    "total_errors": 0,
    "errors_by_kind": {kind.value: 0 for kind in ErrorKind},
    "errors_by_action": {},
}


def record_error_metric(error: RepoToolError, action: str = "") -> None:
    """Record a failed tool call for diagnostics."""
    _error_stats["total_errors"] += 1
    _error_stats["errors_by_kind"][error.kind.value] += 1
    # unknown names are caller-chosen; only registered actions get a bucket
    if action and error.kind != ErrorKind.UNSUPPORTED_ACTION:
        _error_stats["errors_by_action"][action] = (
            _error_stats["errors_by_action"].get(action, 0) + 1
        )


def get_error_stats() -> Dict[str, Any]:
    """Get current error statistics."""
    return {
        "total_errors": _error_stats["total_errors"],
        "errors_by_kind": dict(_error_stats["errors_by_kind"]),
        "errors_by_action": dict(_error_stats["errors_by_action"]),
    }


def reset_error_stats() -> None:
    """Reset error statistics (useful for testing)."""
    global _error_stats
    _error_stats = {
        "total_errors": 0,
        "errors_by_kind": {kind.value: 0 for kind in ErrorKind},
        "errors_by_action": {},
    }
