"""
State model for the polling machine.

A ``PollingState`` is an immutable snapshot of a session's progress. Every
transition produces a new value; nothing is mutated in place.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Generic, TypeVar

D = TypeVar("D")


class PollingStatus(str, Enum):
    """Status of the polling state machine."""

    IDLE = "idle"
    POLLING = "polling"
    RETRY = "retry"
    ERROR = "error"
    TIMEOUT = "timeout"


TERMINAL_STATUSES = frozenset(
    {PollingStatus.IDLE, PollingStatus.TIMEOUT, PollingStatus.ERROR}
)


@dataclass(frozen=True)
class PollingSnapshot(Generic[D]):
    """Read-only projection of a session handed to observers."""

    data: D | None
    status: PollingStatus
    poll_count: int | None
    errors: tuple[BaseException, ...]

    @property
    def is_finished(self) -> bool:
        """Check if the session reached a terminal status."""
        return self.status in TERMINAL_STATUSES


@dataclass(frozen=True)
class PollingState(Generic[D]):
    """Full snapshot of polling progress."""

    data: D | None = None
    status: PollingStatus = PollingStatus.IDLE
    running: bool = False
    delay: int | None = None
    interval_index: int | None = None
    poll_count: int | None = None
    errors: tuple[BaseException, ...] = field(default_factory=tuple)
    retry_attempts: int = 0

    @classmethod
    def initial(cls) -> "PollingState[Any]":
        """State before any session has started."""
        return cls()

    @classmethod
    def session_start(cls) -> "PollingState[Any]":
        """State at the start of a fresh session."""
        return cls(status=PollingStatus.POLLING, running=True)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def evolve(self, **changes: Any) -> "PollingState[D]":
        """Return a copy with ``changes`` applied."""
        return replace(self, **changes)

    def with_error(self, error: BaseException, **changes: Any) -> "PollingState[D]":
        """Return a copy with ``error`` appended to ``errors``."""
        return replace(self, errors=(*self.errors, error), **changes)

    def snapshot(self) -> PollingSnapshot[D]:
        return PollingSnapshot(
            data=self.data,
            status=self.status,
            poll_count=self.poll_count,
            errors=self.errors,
        )
