"""
Custom exceptions for the polling machine.

This module defines the error taxonomy recorded in a session's ``errors``
sequence. Limit errors carry a tagged ``LimitKind`` so observers never need
to match on message text.
"""

from enum import Enum
from typing import Any


class PollingMachineError(Exception):
    """Base exception for polling machine errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "POLLING_MACHINE_ERROR"
        self.context = context or {}


class LimitKind(str, Enum):
    """Fatal session limits."""

    ATTEMPTS_EXCEEDED = "attempts_exceeded"
    POLLS_EXCEEDED = "polls_exceeded"
    TIMEOUT_EXCEEDED = "timeout_exceeded"


class PollingLimitError(PollingMachineError):
    """A session limit was breached; the session ends with an error status."""

    kind: LimitKind
    default_message: str = "Polling limit exceeded"

    def __init__(
        self, message: str | None = None, context: dict[str, Any] | None = None
    ):
        super().__init__(
            message or self.default_message, self.kind.value.upper(), context
        )


class MaxAttemptsExceededError(PollingLimitError):
    """Too many consecutive request failures."""

    kind = LimitKind.ATTEMPTS_EXCEEDED
    default_message = "Max attempts exceeded due to errors in the data provider"


class MaxPollsExceededError(PollingLimitError):
    """Too many successful polls without completion."""

    kind = LimitKind.POLLS_EXCEEDED
    default_message = "Max polls exceeded"


class PollingTimeoutError(PollingLimitError):
    """Wall-clock budget for the session was exceeded."""

    kind = LimitKind.TIMEOUT_EXCEEDED
    default_message = "Polling timeout exceeded"


class RequestFailedError(PollingMachineError):
    """Exception for request function failures raised by bundled adapters."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, "REQUEST_FAILED", context)
        self.status_code = status_code


class StepFailedError(PollingMachineError):
    """A caller-supplied callback raised outside the request itself."""

    def __init__(self, cause: BaseException, context: dict[str, Any] | None = None):
        super().__init__(f"Polling step failed: {cause}", "STEP_FAILED", context)
        self.cause = cause


class ConfigurationError(PollingMachineError):
    """Exception for configuration related errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, "CONFIGURATION_ERROR", context)


class ControllerClosedError(PollingMachineError):
    """Raised when a closed controller is asked to start a session."""

    def __init__(self, message: str = "Polling controller is closed"):
        super().__init__(message, "CONTROLLER_CLOSED")
