"""
HTTP request adapter for the polling machine.

Builds a request function around an ``httpx.AsyncClient``. Non-2xx responses
count as request failures; no HTTP-level retry is attempted here, the state
machine's attempt counting handles that.
"""

from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import structlog

from .exceptions import RequestFailedError
from .state import PollingState

logger = structlog.get_logger(__name__)


def json_request(
    client: httpx.AsyncClient,
    url: str,
    *,
    method: str = "GET",
    **request_kwargs: Any,
) -> Callable[[PollingState[Any]], Awaitable[Any]]:
    """
    Create a request function fetching JSON from ``url``.

    Args:
        client: HTTP client owned by the caller
        url: URL to poll
        method: HTTP method
        **request_kwargs: Extra arguments for ``client.request``

    Returns:
        Async request function suitable for a polling controller
    """

    async def request(state: PollingState[Any]) -> Any:
        try:
            response = await client.request(method, url, **request_kwargs)
        except httpx.HTTPError as e:
            raise RequestFailedError(
                f"Request to {url} failed: {e}", context={"url": url}
            ) from e

        if not response.is_success:
            raise RequestFailedError(
                f"Request to {url} returned {response.status_code}",
                status_code=response.status_code,
                context={"url": url, "body": response.text[:200]},
            )

        logger.debug(
            "Polled resource",
            url=url,
            status_code=response.status_code,
            poll_count=state.poll_count,
        )
        try:
            return response.json()
        except ValueError as e:
            raise RequestFailedError(
                f"Request to {url} returned invalid JSON: {e}",
                status_code=response.status_code,
                context={"url": url, "body": response.text[:200]},
            ) from e

    return request
