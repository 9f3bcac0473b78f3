import asyncio
import json

import httpx
import pytest

from cycle_coach.client.decoder import iter_deltas
from cycle_coach.client.transport import HttpRelayTransport
from cycle_coach.domain.exceptions import ApiError, NetworkError, QuotaExceededError, RateLimitError


def _patch_transport(monkeypatch, handler):
    real_client = httpx.AsyncClient

    def factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr("httpx.AsyncClient", factory)


def _collect(transport, payload):
    async def run():
        async with transport.open(payload) as body:
            return [d async for d in iter_deltas(body)]

    return asyncio.run(run())


def test_transport_posts_payload_and_streams_body(monkeypatch):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["payload"] = json.loads(request.content)
        return httpx.Response(
            200,
            content=b'data: {"choices":[{"delta":{"content":"hey"}}]}\n\ndata: [DONE]\n\n',
            headers={"content-type": "text/event-stream"},
        )

    _patch_transport(monkeypatch, handler)
    transport = HttpRelayTransport(url="http://relay.test/cycle-chat", timeout=1.0)
    payload = {"messages": [{"role": "user", "content": "hi"}], "currentPhase": None}

    assert _collect(transport, payload) == ["hey"]
    assert seen["url"] == "http://relay.test/cycle-chat"
    assert seen["payload"] == payload


@pytest.mark.parametrize(
    "status, error_type",
    [(429, RateLimitError), (402, QuotaExceededError), (500, ApiError)],
)
def test_transport_maps_error_statuses(monkeypatch, status, error_type):
    _patch_transport(monkeypatch, lambda request: httpx.Response(status, json={"error": "relay says no"}))
    transport = HttpRelayTransport(url="http://relay.test/cycle-chat", timeout=1.0)

    with pytest.raises(error_type) as excinfo:
        _collect(transport, {"messages": []})
    assert excinfo.value.message == "relay says no"
    assert excinfo.value.http_status == status


def test_transport_connection_failure_is_network_error(monkeypatch):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    _patch_transport(monkeypatch, handler)
    with pytest.raises(NetworkError):
        _collect(HttpRelayTransport(url="http://relay.test/cycle-chat", timeout=1.0), {"messages": []})
