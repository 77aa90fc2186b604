"""Shared fixtures: in-memory HTTP API and SSE streams via ``httpx.MockTransport``."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx
import pytest

Handler = Callable[[httpx.Request], Any]


def sse_frames(*payloads: Any) -> bytes:
    """Encode *payloads* as ``data: <json>\\n\\n`` frames (strings are sent raw)."""
    chunks = []
    for payload in payloads:
        data = payload if isinstance(payload, str) else json.dumps(payload)
        chunks.append(f"data: {data}\n\n")
    return "".join(chunks).encode()


def sse_response(*payloads: Any, status_code: int = 200) -> httpx.Response:
    """A finite event stream that ends after *payloads*."""
    return httpx.Response(
        status_code,
        headers={"content-type": "text/event-stream"},
        content=sse_frames(*payloads),
    )


def open_sse_response(body: AsyncIterator[bytes]) -> httpx.Response:
    """An event stream whose body is produced lazily by *body*."""
    return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=body)


class RecordingAPI:
    """Records every request and answers through a per-test handler."""

    def __init__(self, handler: Handler | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self._handler = handler or (lambda request: httpx.Response(200, json={}))

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self._handler(request)
        if not isinstance(response, httpx.Response):
            response = await response
        return response

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def make_api() -> Callable[..., RecordingAPI]:
    def _make(handler: Handler | None = None) -> RecordingAPI:
        return RecordingAPI(handler)

    return _make


def body_of(request: httpx.Request) -> Any:
    """Decode a recorded request's JSON body (``None`` when empty)."""
    content = request.content
    return json.loads(content) if content else None


class Collector:
    """Captures emitted notifications and lets a test await a count of them."""

    def __init__(self) -> None:
        self.items: list[Any] = []
        self._changed = asyncio.Event()

    def __call__(self, item: Any) -> None:
        self.items.append(item)
        self._changed.set()

    async def wait_for(self, count: int, timeout: float = 2.0) -> list[Any]:
        async with asyncio.timeout(timeout):
            while len(self.items) < count:
                self._changed.clear()
                await self._changed.wait()
        return self.items


async def hold_open(*chunks: bytes, release: asyncio.Event | None = None) -> AsyncIterator[bytes]:
    """Yield *chunks*, then keep the stream open until *release* is set."""
    for chunk in chunks:
        yield chunk
    await (release or asyncio.Event()).wait()
