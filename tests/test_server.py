"""End-to-end tests for BridgeServer over in-memory stdio and HTTP."""

from __future__ import annotations

import asyncio
import io
import json
from typing import Any

import httpx

from ghmcp.config import BridgeSettings
from ghmcp.protocol.errors import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST, METHOD_NOT_FOUND
from ghmcp.protocol.models import JsonRpcRequest
from ghmcp.protocol.transport import StdioTransport
from ghmcp.server import BridgeServer
from tests.conftest import Collector, RecordingAPI, hold_open, open_sse_response, sse_response

SETTINGS = BridgeSettings(server_url="http://api.test")


class MemoryTransport:
    """A MessageTransport fed by the test and recording everything sent."""

    def __init__(self) -> None:
        self.inbound: asyncio.Queue[JsonRpcRequest | None] = asyncio.Queue()
        self.sent = Collector()
        self.closed = False

    async def connect(self) -> None:
        pass

    async def send(self, data: dict[str, Any]) -> None:
        self.sent(data)

    async def receive(self) -> JsonRpcRequest | None:
        return await self.inbound.get()

    async def close(self) -> None:
        self.closed = True

    def feed(self, **raw: Any) -> None:
        self.inbound.put_nowait(JsonRpcRequest.model_validate({"jsonrpc": "2.0", **raw}))

    def eof(self) -> None:
        self.inbound.put_nowait(None)


def _call(id: int, name: str, **arguments: Any) -> dict[str, Any]:
    return {"id": id, "method": "tools/call", "params": {"name": name, "arguments": arguments}}


def _responses(sent: list[dict[str, Any]]) -> dict[Any, dict[str, Any]]:
    return {message["id"]: message for message in sent if "id" in message}


def _api_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/api/repos/octocat/Hello-World":
        return httpx.Response(200, json={"id": 123, "name": "Hello-World"})
    if request.url.path.startswith("/sse/github/"):
        return sse_response({"type": "push", "ref": "main"})
    return httpx.Response(404, json={"message": "Not Found"})


async def _run(server: BridgeServer) -> asyncio.Task[None]:
    task = asyncio.create_task(server.run())
    await asyncio.sleep(0)
    return task


class TestStdioSession:
    async def test_full_session_over_stdio(self) -> None:
        lines = [
            {"id": 1, "method": "initialize", "params": {}},
            {"method": "notifications/initialized"},
            {"id": 2, "method": "tools/list"},
            _call(3, "github_get_repository", owner="octocat", repo="Hello-World"),
            {"id": 4, "method": "resources/list"},
            _call(5, "github_nope"),
        ]
        reader = asyncio.StreamReader()
        reader.feed_data(b"this is not json\n")
        for line in lines:
            reader.feed_data((json.dumps({"jsonrpc": "2.0", **line}) + "\n").encode())
        reader.feed_eof()
        output = io.StringIO()
        api = RecordingAPI(_api_handler)

        server = BridgeServer(
            SETTINGS,
            transport=StdioTransport(reader=reader, output=output),
            http_client=api.client(),
        )
        await asyncio.wait_for(server.run(), timeout=5)

        sent = [json.loads(line) for line in output.getvalue().splitlines()]
        responses = _responses(sent)
        assert sorted(responses) == [1, 2, 3, 4, 5]
        assert len(sent) == 5

        assert responses[1]["result"]["serverInfo"]["name"] == "github-mcp-server-enhanced"
        tools = responses[2]["result"]["tools"]
        assert "github_get_repository" in [tool["name"] for tool in tools]
        assert responses[3]["result"]["content"][0]["text"] == (
            '{\n  "id": 123,\n  "name": "Hello-World"\n}'
        )
        assert responses[4]["error"]["code"] == METHOD_NOT_FOUND
        assert responses[5]["error"] == {"code": INVALID_PARAMS, "message": "Unknown tool: github_nope"}

        assert len(api.requests) == 1
        for message in sent:
            assert ("result" in message) != ("error" in message)


    async def test_malformed_requests_with_ids_are_answered(self) -> None:
        reader = asyncio.StreamReader()
        reader.feed_data(b'{"jsonrpc":"2.0","id":11,"method":42}\n')
        reader.feed_data(b'{"jsonrpc":"2.0","id":12,"method":"tools/call","params":["x"]}\n')
        reader.feed_data(b'{"jsonrpc":"2.0","method":42}\n')
        reader.feed_eof()
        output = io.StringIO()

        server = BridgeServer(
            SETTINGS,
            transport=StdioTransport(reader=reader, output=output),
            http_client=RecordingAPI().client(),
        )
        await asyncio.wait_for(server.run(), timeout=5)

        sent = [json.loads(line) for line in output.getvalue().splitlines()]
        responses = _responses(sent)
        assert len(sent) == 2
        assert responses[11]["error"]["code"] == INVALID_REQUEST
        assert responses[11]["error"]["message"].startswith("Invalid Request: method")
        assert responses[12]["error"] == {
            "code": INVALID_PARAMS,
            "message": "tools/call params must be an object",
        }


class TestConcurrency:
    async def test_slow_call_does_not_block_later_requests(self) -> None:
        release = asyncio.Event()

        async def slow(request: httpx.Request) -> httpx.Response:
            await release.wait()
            return httpx.Response(200, json={"slow": True})

        transport = MemoryTransport()
        server = BridgeServer(
            SETTINGS, transport=transport, http_client=RecordingAPI(slow).client()
        )
        task = await _run(server)

        transport.feed(**_call(1, "github_get_authenticated_user"))
        transport.feed(id=2, method="tools/list")
        first = await transport.sent.wait_for(1)
        assert first[0]["id"] == 2

        release.set()
        sent = await transport.sent.wait_for(2)
        assert sent[1]["id"] == 1
        assert json.loads(sent[1]["result"]["content"][0]["text"]) == {"slow": True}

        transport.eof()
        await asyncio.wait_for(task, timeout=5)
        assert transport.closed
        assert len(transport.sent.items) == 2

    async def test_eof_waits_for_in_flight_requests(self) -> None:
        async def delayed(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(0.05)
            return httpx.Response(200, json={"login": "octocat"})

        transport = MemoryTransport()
        server = BridgeServer(
            SETTINGS, transport=transport, http_client=RecordingAPI(delayed).client()
        )
        task = await _run(server)

        transport.feed(**_call(1, "github_get_user", username="octocat"))
        transport.eof()
        await asyncio.wait_for(task, timeout=5)

        (response,) = transport.sent.items
        assert response["id"] == 1
        assert "result" in response


class TestLiveEvents:
    async def test_confirmation_then_event_then_closure(self) -> None:
        transport = MemoryTransport()
        api = RecordingAPI(_api_handler)
        server = BridgeServer(SETTINGS, transport=transport, http_client=api.client())
        task = await _run(server)

        transport.feed(**_call(7, "github_live_events", owner="octocat", repo="Hello-World"))
        sent = await transport.sent.wait_for(3)

        response, event, closed = sent
        assert response["id"] == 7
        assert response["result"]["content"][0]["text"].startswith(
            "Connected to live events for octocat/Hello-World."
        )

        assert event["method"] == "tools/event"
        assert "id" not in event
        assert event["params"]["tool"] == "github_live_events"
        assert event["params"]["event"]["repository"] == "octocat/Hello-World"
        assert event["params"]["event"]["data"] == {"type": "push", "ref": "main"}

        assert closed["params"]["event"]["error"] == "Connection closed"
        assert server.subscriptions.active_keys() == []

        transport.eof()
        await asyncio.wait_for(task, timeout=5)
        assert len(transport.sent.items) == 3

    async def test_failed_subscription_sends_closure_then_error(self) -> None:
        transport = MemoryTransport()
        api = RecordingAPI(lambda request: httpx.Response(503, json={"message": "down"}))
        server = BridgeServer(SETTINGS, transport=transport, http_client=api.client())
        task = await _run(server)

        transport.feed(**_call(8, "github_live_events", owner="o", repo="r"))
        closed, response = await transport.sent.wait_for(2)
        transport.eof()
        await asyncio.wait_for(task, timeout=5)

        assert response["id"] == 8
        assert response["error"]["code"] == INTERNAL_ERROR
        assert response["error"]["message"].startswith("Failed to subscribe to o/r")
        assert len(transport.sent.items) == 2
        assert "id" not in closed
        assert closed["method"] == "tools/event"
        assert closed["params"]["event"]["repository"] == "o/r"
        assert closed["params"]["event"]["error"] == "Connection closed"


class TestShutdown:
    async def test_signal_cancels_in_flight_requests(self) -> None:
        started = asyncio.Event()

        async def hang(request: httpx.Request) -> httpx.Response:
            started.set()
            await asyncio.Event().wait()
            return httpx.Response(200, json={})

        transport = MemoryTransport()
        server = BridgeServer(
            SETTINGS, transport=transport, http_client=RecordingAPI(hang).client()
        )
        task = await _run(server)

        transport.feed(**_call(9, "github_get_authenticated_user"))
        await asyncio.wait_for(started.wait(), timeout=2)
        server.request_shutdown()
        await asyncio.wait_for(task, timeout=5)

        (response,) = transport.sent.items
        assert response == {
            "jsonrpc": "2.0",
            "id": 9,
            "error": {"code": INTERNAL_ERROR, "message": "Server shutting down"},
        }
        assert transport.closed

    async def test_shutdown_closes_open_streams_silently(self) -> None:
        async def endless(request: httpx.Request) -> httpx.Response:
            async def body():
                yield b'data: {"n": 1}\n\n'
                await asyncio.Event().wait()

            return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=body())

        transport = MemoryTransport()
        server = BridgeServer(
            SETTINGS, transport=transport, http_client=RecordingAPI(endless).client()
        )
        task = await _run(server)

        transport.feed(**_call(10, "github_live_events", owner="o", repo="r"))
        await transport.sent.wait_for(2)
        server.request_shutdown()
        await asyncio.wait_for(task, timeout=5)

        assert server.subscriptions.active_keys() == []
        assert [m.get("id") for m in transport.sent.items] == [10, None]

    async def test_eof_closes_open_streams_silently(self) -> None:
        transport = MemoryTransport()
        api = RecordingAPI(lambda request: open_sse_response(hold_open()))
        server = BridgeServer(SETTINGS, transport=transport, http_client=api.client())
        task = await _run(server)

        transport.feed(**_call(12, "github_live_events", owner="o", repo="r"))
        (response,) = await transport.sent.wait_for(1)
        assert "result" in response
        assert server.subscriptions.active_keys() == ["o/r"]

        transport.eof()
        await asyncio.wait_for(task, timeout=5)

        assert server.subscriptions.active_keys() == []
        assert transport.closed
        assert [m.get("id") for m in transport.sent.items] == [12]
