"""
Pytest configuration and fixtures for polling machine tests.
"""

import pytest

import polling_machine.config
from polling_machine.state import PollingState


class RecordingSleep:
    """Sleep replacement that records requested delays without waiting."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def delays_ms(self) -> list[int]:
        return [round(seconds * 1000) for seconds in self.calls]


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    """Sleep that returns immediately and records delays."""
    return RecordingSleep()


@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock that only moves when advanced."""
    return FakeClock()


@pytest.fixture
def running_state() -> PollingState:
    """State at the start of a session."""
    return PollingState.session_start()


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Clear the cached global settings around every test."""
    polling_machine.config._settings_instance = None
    yield
    polling_machine.config._settings_instance = None
