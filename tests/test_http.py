"""
Tests for the httpx request adapter.
"""

import httpx
import pytest

from polling_machine import create_polling
from polling_machine.exceptions import RequestFailedError
from polling_machine.http import json_request
from polling_machine.state import PollingState, PollingStatus


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="https://api.example.com"
    )


@pytest.mark.asyncio
async def test_json_request_returns_payload():
    """Test that a successful response is decoded as JSON."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/jobs/1"
        return httpx.Response(200, json={"status": "running"})

    async with make_client(handler) as client:
        request = json_request(client, "/jobs/1")
        result = await request(PollingState.session_start())

    assert result == {"status": "running"}


@pytest.mark.asyncio
async def test_json_request_passes_method_and_kwargs():
    """Test that method and request arguments are forwarded."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.headers["X-Token"] == "abc"
        return httpx.Response(201, json=[])

    async with make_client(handler) as client:
        request = json_request(
            client, "/jobs", method="POST", headers={"X-Token": "abc"}
        )
        result = await request(PollingState.session_start())

    assert result == []


@pytest.mark.asyncio
async def test_json_request_error_status():
    """Test that non-2xx responses raise a request failure."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    async with make_client(handler) as client:
        request = json_request(client, "/jobs/1")
        with pytest.raises(RequestFailedError) as exc_info:
            await request(PollingState.session_start())

    assert exc_info.value.status_code == 503
    assert exc_info.value.code == "REQUEST_FAILED"
    assert exc_info.value.context["body"] == "unavailable"


@pytest.mark.asyncio
async def test_json_request_transport_error():
    """Test that transport errors raise a request failure."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        request = json_request(client, "/jobs/1")
        with pytest.raises(RequestFailedError) as exc_info:
            await request(PollingState.session_start())

    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_polls_until_job_done(recording_sleep):
    """Test a full session against a job endpoint that fails once."""
    responses = iter(
        [
            httpx.Response(500),
            httpx.Response(200, json={"done": False}),
            httpx.Response(200, json={"done": True}),
        ]
    )

    def handler(request: httpx.Request) -> httpx.Response:
        return next(responses)

    async with make_client(handler) as client:
        controller = create_polling(
            json_request(client, "/jobs/1"),
            sleep=recording_sleep,
            is_complete=lambda state: bool(state.data and state.data["done"]),
        )
        controller.start_polling()
        snapshot = await controller.wait()

    assert snapshot.status == PollingStatus.IDLE
    assert snapshot.data == {"done": True}
    assert len(snapshot.errors) == 1
    assert snapshot.errors[0].status_code == 500
    assert recording_sleep.delays_ms == [0, 500, 1000]


@pytest.mark.asyncio
async def test_json_request_invalid_json():
    """Test that an undecodable body raises a request failure."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    async with make_client(handler) as client:
        request = json_request(client, "/jobs/1")
        with pytest.raises(RequestFailedError) as exc_info:
            await request(PollingState.session_start())

    assert exc_info.value.status_code == 200
    assert exc_info.value.context["body"] == "<html>maintenance</html>"
    assert isinstance(exc_info.value.__cause__, ValueError)
