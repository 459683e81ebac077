"""
Polling Machine

A client-side polling controller: re-invokes an async fetch function on a
schedule, backs off on error and stops on completion, attempt, poll-count or
timeout limits.
"""

__version__ = "0.1.0"

from .config import PollingOptions, Settings
from .controller import PollingController, create_polling
from .exceptions import (
    LimitKind,
    MaxAttemptsExceededError,
    MaxPollsExceededError,
    PollingLimitError,
    PollingMachineError,
    PollingTimeoutError,
)
from .state import PollingSnapshot, PollingState, PollingStatus

__all__ = [
    "PollingController",
    "create_polling",
    "PollingOptions",
    "Settings",
    "PollingState",
    "PollingSnapshot",
    "PollingStatus",
    "PollingMachineError",
    "PollingLimitError",
    "LimitKind",
    "MaxAttemptsExceededError",
    "MaxPollsExceededError",
    "PollingTimeoutError",
]
