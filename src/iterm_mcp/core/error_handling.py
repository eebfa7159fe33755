"""
Centralized error types for iTerm MCP
"""

import time
from enum import Enum
from typing import Any, Optional


class ErrorSeverity(Enum):
    """Error severity levels"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorKind(Enum):
    """Classification of a failed automation call, decided once at the channel boundary"""

    APP_NOT_RUNNING = "app_not_running"
    STALE_CONNECTION = "stale_connection"
    NO_WINDOW = "no_window"
    OUT_OF_BOUNDS = "out_of_bounds"
    TIMEOUT = "timeout"
    SCRIPT_ERROR = "script_error"
    UNAVAILABLE = "unavailable"

    @property
    def retryable(self) -> bool:
        return self in (ErrorKind.APP_NOT_RUNNING, ErrorKind.STALE_CONNECTION)


# Checked in order; first match wins.
_KIND_PATTERNS = (
    (ErrorKind.OUT_OF_BOUNDS, ("out of bounds", "out of range")),
    (ErrorKind.APP_NOT_RUNNING, ("no such app", "not running", "application isn't running")),
    (ErrorKind.STALE_CONNECTION, ("connection is invalid", "invalid connection")),
    (ErrorKind.NO_WINDOW, ("no iterm2 windows",)),
)


def classify_error(message: str) -> ErrorKind:
    """Map a raw osascript error message to an ErrorKind"""
    lowered = (message or "").lower()
    for kind, needles in _KIND_PATTERNS:
        if any(needle in lowered for needle in needles):
            return kind
    return ErrorKind.SCRIPT_ERROR


class ItermMCPError(Exception):
    """Base exception for iTerm MCP errors"""

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.severity = severity
        self.details = details or {}
        self.timestamp = time.time()


class ValidationError(ItermMCPError):
    """Bad or missing tool argument"""

    def __init__(self, message: str, field: str, value: Any, details: Optional[dict] = None):
        super().__init__(message, ErrorSeverity.LOW, details)
        self.field = field
        self.value = value


class ChannelError(ItermMCPError):
    """The automation channel failed or stayed unreachable after all retries"""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.SCRIPT_ERROR,
        attempts: int = 1,
        details: Optional[dict] = None,
    ):
        super().__init__(message, ErrorSeverity.HIGH, details)
        self.kind = kind
        self.attempts = attempts


class ChannelTimeout(ChannelError):
    """No attempt completed within the configured timeout"""

    def __init__(self, message: str, attempts: int = 1, details: Optional[dict] = None):
        super().__init__(message, ErrorKind.TIMEOUT, attempts, details)


class BoundsError(ChannelError):
    """Tab index outside the current tab range"""

    def __init__(
        self,
        message: str,
        tab: Optional[int] = None,
        tab_count: Optional[int] = None,
        attempts: int = 1,
    ):
        super().__init__(message, ErrorKind.OUT_OF_BOUNDS, attempts)
        self.tab = tab
        self.tab_count = tab_count


class ProtocolError(ItermMCPError):
    """iTerm2 returned output that could not be parsed"""

    pass
