"""
Interval scheduling for the polling machine.

While polling, delays walk an interval ladder: fast right after the session
starts, then settling into the slower steady cadence at the end of the ladder.
Retries bypass the ladder and use the backoff function instead.
"""

from typing import Any, NamedTuple

from .config import PollingOptions
from .state import PollingState, PollingStatus


class Schedule(NamedTuple):
    """Interval index and delay (ms) for the next attempt."""

    interval_index: int | None
    delay: int


def next_interval_index(
    state: PollingState[Any], intervals: tuple[int, ...]
) -> int | None:
    """Get the next ladder index, clamped at the last entry."""
    if state.poll_count is None:
        return None

    if state.interval_index is None:
        return 0

    return min(state.interval_index + 1, len(intervals) - 1)


def compute_next(state: PollingState[Any], options: PollingOptions) -> Schedule:
    """
    Compute the interval index and delay for the next attempt.

    Args:
        state: Current polling state
        options: Polling options providing the ladder and backoff

    Returns:
        Schedule for the next attempt
    """
    if state.status == PollingStatus.RETRY:
        return Schedule(interval_index=0, delay=options.get_retry_delay(state))

    interval_index = next_interval_index(state, options.intervals)
    delay = 0 if interval_index is None else options.intervals[interval_index]
    return Schedule(interval_index=interval_index, delay=delay)


def apply_schedule(
    state: PollingState[Any], options: PollingOptions
) -> PollingState[Any]:
    """Return ``state`` with the next interval index and delay applied."""
    schedule = compute_next(state, options)
    return state.evolve(interval_index=schedule.interval_index, delay=schedule.delay)
