"""Unit tests for SyncthingClient (HTTP faked with httpx.MockTransport)."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from synchook.bridge.client import NetworkError, SyncthingClient

pytestmark = pytest.mark.anyio


def _event(event_id: int, event_type: str = "ItemFinished") -> dict:
    return {
        "id": event_id,
        "globalID": event_id,
        "type": event_type,
        "time": "2024-01-01T00:00:00Z",
        "data": {"item": "a.txt", "folder": "default", "error": None, "type": "file", "action": "update"},
    }


def _client(handler: Callable[[httpx.Request], httpx.Response], **kwargs: object) -> SyncthingClient:
    return SyncthingClient(
        "http://127.0.0.1",
        8384,
        "secret-key",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


async def test_fetch_without_cursor_omits_since() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[_event(1), _event(2)])

    async with _client(handler) as client:
        events = await client.fetch_events_since(None)

    assert [e.id for e in events] == [1, 2]
    assert len(seen) == 1
    assert str(seen[0].url) == "http://127.0.0.1:8384/rest/events"
    assert seen[0].method == "GET"
    assert seen[0].headers["X-API-KEY"] == "secret-key"


async def test_fetch_with_cursor_sends_since() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    async with _client(handler) as client:
        events = await client.fetch_events_since(5)

    assert events == []
    assert seen[0].url.path == "/rest/events"
    assert seen[0].url.params["since"] == "5"


async def test_fetch_with_zero_cursor_sends_since() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    async with _client(handler) as client:
        await client.fetch_events_since(0)

    assert seen[0].url.params["since"] == "0"


async def test_base_url_strips_trailing_slash() -> None:
    client = _client(lambda request: httpx.Response(200, json=[]))
    assert client.base_url == "http://127.0.0.1:8384"
    await client.aclose()

    client = SyncthingClient("https://sync.example/", 443, "k", transport=httpx.MockTransport(lambda r: None))
    assert client.base_url == "https://sync.example:443"
    await client.aclose()


async def test_http_401_raises_network_error() -> None:
    async with _client(lambda request: httpx.Response(401, text="Unauthorized")) as client:
        with pytest.raises(NetworkError, match="HTTP 401") as exc_info:
            await client.fetch_events_since(3)

    assert isinstance(exc_info.value.cause, httpx.HTTPStatusError)
    assert exc_info.value.__cause__ is exc_info.value.cause


async def test_http_500_raises_network_error() -> None:
    async with _client(lambda request: httpx.Response(500)) as client:
        with pytest.raises(NetworkError, match="HTTP 500"):
            await client.fetch_events_since(None)


async def test_transport_failure_raises_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(NetworkError, match="failed") as exc_info:
            await client.fetch_events_since(None)

    assert isinstance(exc_info.value.cause, httpx.ConnectError)


async def test_timeout_raises_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async with _client(handler) as client:
        with pytest.raises(NetworkError):
            await client.fetch_events_since(None)


@pytest.mark.parametrize(
    "body",
    [
        b"not json",
        b'{"id": 1}',
        json.dumps([{"id": 1, "type": "X"}]).encode(),
        json.dumps([{"id": "1", "globalID": 1, "type": "X", "time": "t", "data": None}]).encode(),
    ],
)
async def test_malformed_body_raises_network_error(body: bytes) -> None:
    async with _client(lambda request: httpx.Response(200, content=body)) as client:
        with pytest.raises(NetworkError, match="malformed"):
            await client.fetch_events_since(None)


async def test_unknown_payloads_pass_through() -> None:
    body = [{"id": 4, "globalID": 40, "type": "SomethingNew", "time": "t", "data": {"x": [1, 2]}}]

    async with _client(lambda request: httpx.Response(200, json=body)) as client:
        events = await client.fetch_events_since(3)

    assert events[0].type == "SomethingNew"
    assert events[0].data == {"x": [1, 2]}
