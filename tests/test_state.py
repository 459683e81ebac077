"""
Tests for the polling state model.
"""

from dataclasses import FrozenInstanceError

import pytest

from polling_machine.state import (
    TERMINAL_STATUSES,
    PollingSnapshot,
    PollingState,
    PollingStatus,
)


def test_initial_state_defaults():
    """Test that the initial state is idle with nothing recorded."""
    state = PollingState.initial()

    assert state.data is None
    assert state.status == PollingStatus.IDLE
    assert state.running is False
    assert state.delay is None
    assert state.interval_index is None
    assert state.poll_count is None
    assert state.errors == ()
    assert state.retry_attempts == 0


def test_session_start_state():
    """Test that a session starts polling and running."""
    state = PollingState.session_start()

    assert state.status == PollingStatus.POLLING
    assert state.running is True
    assert state.poll_count is None
    assert state.errors == ()


def test_status_values():
    """Test that status values are the lowercase names."""
    assert PollingStatus.IDLE.value == "idle"
    assert PollingStatus("retry") == PollingStatus.RETRY
    assert TERMINAL_STATUSES == {
        PollingStatus.IDLE,
        PollingStatus.ERROR,
        PollingStatus.TIMEOUT,
    }


def test_evolve_returns_new_value():
    """Test that evolve leaves the original untouched."""
    state = PollingState.session_start()

    updated = state.evolve(poll_count=2, delay=400)

    assert updated is not state
    assert updated.poll_count == 2
    assert updated.delay == 400
    assert updated.status == PollingStatus.POLLING
    assert state.poll_count is None
    assert state.delay is None


def test_with_error_appends_in_order():
    """Test that errors accumulate in insertion order."""
    first = RuntimeError("first")
    second = ValueError("second")

    state = PollingState.session_start().with_error(first)
    state = state.with_error(second, status=PollingStatus.RETRY)

    assert state.errors == (first, second)
    assert state.status == PollingStatus.RETRY


def test_state_is_frozen():
    """Test that states cannot be mutated in place."""
    state = PollingState.session_start()

    with pytest.raises(FrozenInstanceError):
        state.running = False  # type: ignore[misc]


def test_snapshot_projection():
    """Test that the snapshot exposes only the public fields."""
    error = RuntimeError("boom")
    state = PollingState(
        data={"value": 1},
        status=PollingStatus.RETRY,
        running=True,
        delay=500,
        interval_index=0,
        poll_count=3,
        errors=(error,),
        retry_attempts=1,
    )

    snapshot = state.snapshot()

    assert snapshot == PollingSnapshot(
        data={"value": 1},
        status=PollingStatus.RETRY,
        poll_count=3,
        errors=(error,),
    )
    assert not hasattr(snapshot, "running")
    assert not hasattr(snapshot, "retry_attempts")
    assert snapshot.is_finished is False


def test_terminal_flags():
    """Test terminal detection on states and snapshots."""
    assert PollingState(status=PollingStatus.ERROR).is_terminal
    assert PollingState(status=PollingStatus.TIMEOUT).snapshot().is_finished
    assert not PollingState(status=PollingStatus.POLLING).is_terminal
