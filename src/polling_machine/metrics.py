"""
Metrics collection for polling sessions.

Counters are kept in memory for the current session only and reset whenever
a new session starts.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class SessionMetrics:
    """Metrics for a single polling session."""

    started_at: datetime | None = None
    ended_at: datetime | None = None
    requests: int = 0
    successes: int = 0
    failures: int = 0
    delays: list[int] = field(default_factory=list)
    final_status: str | None = None

    @property
    def duration_seconds(self) -> float:
        """Get session duration in seconds."""
        if self.started_at and self.ended_at:
            return (self.ended_at - self.started_at).total_seconds()
        return 0.0

    @property
    def failure_rate(self) -> float:
        """Get the share of requests that failed."""
        return self.failures / self.requests if self.requests > 0 else 0.0

    def record_start(self) -> None:
        self.started_at = datetime.now()

    def record_delay(self, delay: int) -> None:
        self.delays.append(delay)

    def record_request(self, success: bool) -> None:
        """Record the outcome of one request."""
        self.requests += 1
        if success:
            self.successes += 1
        else:
            self.failures += 1

    def record_end(self, status: str) -> None:
        """Record the terminal status of the session."""
        self.ended_at = datetime.now()
        self.final_status = status

        logger.debug(
            "Polling session metrics",
            status=status,
            requests=self.requests,
            failures=self.failures,
            duration_seconds=self.duration_seconds,
        )

    def as_dict(self) -> dict[str, Any]:
        """Get metrics as a dictionary for monitoring."""
        return {
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "duration_seconds": self.duration_seconds,
            "requests": self.requests,
            "successes": self.successes,
            "failures": self.failures,
            "failure_rate": self.failure_rate,
            "delays": list(self.delays),
            "final_status": self.final_status,
        }
