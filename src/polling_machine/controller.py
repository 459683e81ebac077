"""
Polling controller for the polling machine.

The controller owns the current ``PollingState`` and the session start time.
Whenever a committed state is still running, a single driver task runs the
next step, so steps are strictly sequential and commit N is visible before
step N+1 is evaluated.
"""

import asyncio
import time
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

import structlog

from .config import PollingOptions
from .exceptions import ControllerClosedError, StepFailedError
from .executor import Clock, Sleep, StepExecutor
from .metrics import SessionMetrics
from .state import PollingSnapshot, PollingState, PollingStatus

logger = structlog.get_logger(__name__)

D = TypeVar("D")
R = TypeVar("R")

Subscriber = Callable[[PollingSnapshot[Any]], None]


class PollingController(Generic[D, R]):
    """
    Drives a polling session for one request function.

    ``start_polling`` must be called from within a running event loop. Call
    ``close`` (or use the controller as an async context manager) when the
    host goes away; nothing is committed after that.
    """

    def __init__(
        self,
        create_request: Callable[[PollingState[D]], Awaitable[R]],
        options: PollingOptions | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = time.monotonic,
    ):
        """
        Initialize the polling controller.

        Args:
            create_request: Async function performing one fetch attempt
            options: Polling options, defaults when omitted
            sleep: Awaitable used to wait between attempts
            clock: Monotonic clock used for the session timeout
        """
        self.options = options or PollingOptions()
        self.clock = clock
        self.executor: StepExecutor[D, R] = StepExecutor(
            create_request, self.options, sleep=sleep, clock=clock
        )
        self.metrics = SessionMetrics()

        self._state: PollingState[D] = PollingState.initial()
        self._started_at = clock()
        self._task: asyncio.Task[None] | None = None
        self._closed = False
        self._subscribers: list[Subscriber] = []
        self._pending: deque[PollingSnapshot[D]] = deque()
        self._notifying = False

    @property
    def state(self) -> PollingSnapshot[D]:
        """Read-only projection of the current state."""
        return self._state.snapshot()

    def is_running(self) -> bool:
        """Check if a session is currently active."""
        return self._state.running

    @property
    def closed(self) -> bool:
        return self._closed

    def as_tuple(self) -> tuple[PollingSnapshot[D], Callable[[], None]]:
        """Get the current snapshot together with ``start_polling``."""
        return self.state, self.start_polling

    def start_polling(self) -> None:
        """Start a fresh session unless one is already running."""
        if self._closed:
            raise ControllerClosedError()

        if self._state.running:
            logger.warning("Polling already running")
            return

        # Raises outside an event loop, before any state changes
        asyncio.get_running_loop()

        self._started_at = self.clock()
        self.metrics = SessionMetrics()
        self.metrics.record_start()

        logger.info(
            "Starting polling session",
            max_attempts=self.options.max_attempts,
            max_polls=self.options.max_polls,
            timeout_ms=self.options.timeout,
            skip=self.options.skip,
        )
        self._commit(PollingState.session_start())

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback invoked with every committed snapshot.

        Args:
            callback: Function receiving the new snapshot

        Returns:
            Function removing the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def wait(self) -> PollingSnapshot[D]:
        """Wait for the current driver task to finish and return the state."""
        task = self._task
        if task is not None and not task.done():
            await asyncio.wait([task])
        return self.state

    async def close(self) -> None:
        """Tear down the controller, cancelling any in-flight step."""
        if self._closed:
            return

        self._closed = True
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        self._subscribers.clear()
        logger.info("Polling controller closed", status=self._state.status.value)

    async def __aenter__(self) -> "PollingController[D, R]":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _commit(self, state: PollingState[D]) -> None:
        """Replace the current state, notify subscribers and re-drive."""
        if self._closed:
            return

        was_running = self._state.running
        self._state = state

        if was_running and not state.running:
            self.metrics.record_end(state.status.value)
            logger.info(
                "Polling session ended",
                status=state.status.value,
                poll_count=state.poll_count,
                errors=len(state.errors),
            )

        self._notify(state)
        self._schedule()

    def _notify(self, state: PollingState[D]) -> None:
        """Deliver snapshots to subscribers in commit order."""
        self._pending.append(state.snapshot())
        if self._notifying:
            # Committed from inside a subscriber; delivered after the current one
            return

        self._notifying = True
        try:
            while self._pending:
                snapshot = self._pending.popleft()
                for callback in list(self._subscribers):
                    try:
                        callback(snapshot)
                    except Exception as e:
                        logger.error("Polling subscriber failed", error=str(e))
        finally:
            self._notifying = False

    def _schedule(self) -> None:
        """Ensure a driver task is running while the state is running."""
        if self._closed or not self._state.running:
            return

        if self._task is not None and not self._task.done():
            # The active driver picks up the new state on its next iteration
            return

        self._task = asyncio.get_running_loop().create_task(self._drive())

    async def _drive(self) -> None:
        """Run steps one after another until the session stops."""
        while not self._closed and self._state.running:
            state = self._state
            try:
                next_state = await self.executor.run_step(
                    state, self._started_at, self.metrics
                )
            except Exception as e:
                logger.error(
                    "Polling step failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                next_state = state.with_error(
                    StepFailedError(e), status=PollingStatus.ERROR, running=False
                )

            if next_state is None:
                # Skipped steps commit nothing and are not re-driven
                return

            self._commit(next_state)


def create_polling(
    create_request: Callable[[PollingState[D]], Awaitable[R]],
    *,
    sleep: Sleep = asyncio.sleep,
    clock: Clock = time.monotonic,
    **option_kwargs: Any,
) -> PollingController[D, R]:
    """
    Create a polling controller from keyword options.

    Args:
        create_request: Async function performing one fetch attempt
        sleep: Awaitable used to wait between attempts
        clock: Monotonic clock used for the session timeout
        **option_kwargs: Fields of ``PollingOptions``

    Returns:
        Polling controller, not yet started
    """
    return PollingController(
        create_request, PollingOptions(**option_kwargs), sleep=sleep, clock=clock
    )
