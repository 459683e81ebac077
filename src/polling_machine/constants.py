"""
Default polling policies.

Intervals and delays are expressed in milliseconds.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .state import PollingState

DEFAULT_INTERVALS: tuple[int, ...] = (400, 1000, 1500, 1500, 2000, 2000, 4000, 6000)

BASE_DELAY = 250

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_MAX_POLLS = 6

# 0 disables the session timeout
DEFAULT_TIMEOUT = 0


def default_is_complete(state: "PollingState[Any]") -> bool:
    """Never complete; the session ends on a limit instead."""
    return False


def default_get_retry_delay(state: "PollingState[Any]") -> int:
    """Exponential backoff: ``2 ** retry_attempts * BASE_DELAY``."""
    return 2**state.retry_attempts * BASE_DELAY


def default_map_response(response: Any, state: "PollingState[Any]") -> Any:
    """Store the raw response as-is."""
    return response
