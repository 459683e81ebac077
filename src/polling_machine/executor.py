"""
Step executor for the polling machine.

One step schedules the next attempt, checks the stop conditions, waits, issues
at most one request and folds its outcome into a new state. The executor never
commits anything itself; it returns the state to commit.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

import structlog

from .config import PollingOptions
from .exceptions import (
    MaxAttemptsExceededError,
    MaxPollsExceededError,
    PollingLimitError,
    PollingTimeoutError,
    StepFailedError,
)
from .metrics import SessionMetrics
from .scheduler import apply_schedule
from .state import PollingState, PollingStatus

logger = structlog.get_logger(__name__)

D = TypeVar("D")
R = TypeVar("R")

Sleep = Callable[[float], Awaitable[Any]]
Clock = Callable[[], float]


class StepExecutor(Generic[D, R]):
    """
    Executes single steps of the polling state machine.

    Delays and timeouts are in milliseconds; ``sleep`` takes seconds like
    ``asyncio.sleep`` and ``clock`` returns seconds like ``time.monotonic``.
    """

    def __init__(
        self,
        create_request: Callable[[PollingState[D]], Awaitable[R]],
        options: PollingOptions,
        *,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = time.monotonic,
    ):
        """
        Initialize the step executor.

        Args:
            create_request: Async function performing one fetch attempt
            options: Polling options
            sleep: Awaitable used to wait between attempts
            clock: Monotonic clock used for the session timeout
        """
        self.create_request = create_request
        self.options = options
        self.sleep = sleep
        self.clock = clock

    def elapsed_ms(self, started_at: float) -> float:
        return (self.clock() - started_at) * 1000.0

    async def run_step(
        self,
        state: PollingState[D],
        started_at: float,
        metrics: SessionMetrics | None = None,
    ) -> PollingState[D] | None:
        """
        Run one step of the state machine.

        Args:
            state: State committed by the previous step
            started_at: Session start time from ``clock``
            metrics: Session metrics to update, if any

        Returns:
            The state to commit, or None when the step is a no-op
        """
        options = self.options

        if options.skip or not state.running:
            return None

        next_state = apply_schedule(state, options)
        status = next_state.status

        if next_state.is_terminal:
            return next_state.evolve(running=False)

        if options.is_complete(next_state):
            logger.info("Polling complete", poll_count=next_state.poll_count)
            return next_state.evolve(status=PollingStatus.IDLE)

        if (
            status == PollingStatus.RETRY
            and next_state.retry_attempts >= options.max_attempts
        ):
            return self._fail(
                next_state,
                MaxAttemptsExceededError(
                    context={"retry_attempts": next_state.retry_attempts}
                ),
            )

        # poll_count == 0 never engages the ceiling
        if next_state.poll_count and next_state.poll_count >= options.max_polls:
            return self._fail(
                next_state,
                MaxPollsExceededError(context={"poll_count": next_state.poll_count}),
            )

        if options.timeout > 0:
            elapsed = self.elapsed_ms(started_at)
            if elapsed > options.timeout:
                return self._fail(
                    next_state,
                    PollingTimeoutError(
                        context={"elapsed_ms": elapsed, "timeout_ms": options.timeout}
                    ),
                )

        delay = next_state.delay or 0
        logger.debug(
            "Waiting before request",
            delay_ms=delay,
            status=status.value,
            interval_index=next_state.interval_index,
        )
        if metrics is not None:
            metrics.record_delay(delay)
        await self.sleep(delay / 1000.0)

        try:
            response = await self.create_request(next_state)
            data = options.map_response(response, state)
        except Exception as e:
            if metrics is not None:
                metrics.record_request(success=False)
            retry_attempts = next_state.retry_attempts + 1
            logger.warning(
                "Polling request failed",
                error=str(e),
                error_type=type(e).__name__,
                retry_attempts=retry_attempts,
            )
            failed = next_state.with_error(
                e, status=PollingStatus.RETRY, retry_attempts=retry_attempts
            )
            try:
                data = options.map_response(None, state)
            except Exception as map_error:
                logger.error(
                    "Mapping failed response raised",
                    error=str(map_error),
                    request_error=str(e),
                )
                return failed.with_error(
                    StepFailedError(map_error, context={"request_error": e}),
                    status=PollingStatus.ERROR,
                    running=False,
                )
            return failed.evolve(data=data)

        if metrics is not None:
            metrics.record_request(success=True)
        poll_count = next_state.poll_count
        return next_state.evolve(
            data=data,
            status=PollingStatus.POLLING,
            poll_count=0 if poll_count is None else poll_count + 1,
            retry_attempts=0,
        )

    def _fail(
        self, state: PollingState[D], error: PollingLimitError
    ) -> PollingState[D]:
        logger.error(
            "Polling stopped",
            reason=error.kind.value,
            error=str(error),
            **error.context,
        )
        return state.with_error(error, status=PollingStatus.ERROR, running=False)
