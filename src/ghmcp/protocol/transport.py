"""Stdio transport — newline-delimited JSON-RPC over stdin/stdout.

Lines that are not JSON, not a JSON object, lack the ``"2.0"`` version tag,
or carry no method are logged and dropped.  A malformed request whose ``id``
can still be echoed raises :class:`InvalidRequestError` so it can be
answered.  The writer emits one compact JSON document per line and flushes
immediately, since responses and notifications interleave on stdout.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import IO, Any, Protocol, runtime_checkable

from pydantic import ValidationError

from ghmcp.protocol.errors import InvalidRequestError
from ghmcp.protocol.models import JSONRPC_VERSION, JsonRpcRequest

logger = logging.getLogger(__name__)

_READ_LIMIT = 16 * 1024 * 1024


@runtime_checkable
class MessageTransport(Protocol):
    """Server-side transport for JSON-RPC communication."""

    async def connect(self) -> None: ...
    async def send(self, data: dict[str, Any]) -> None: ...
    async def receive(self) -> JsonRpcRequest | None: ...
    async def close(self) -> None: ...


def parse_line(line: str | bytes) -> JsonRpcRequest | None:
    """Parse one input line into a request, or ``None`` if it must be dropped.

    Raises :class:`InvalidRequestError` for an answerable malformed request.
    """
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    line = line.strip()
    if not line:
        return None

    try:
        raw = json.loads(line)
    except json.JSONDecodeError as exc:
        logger.warning("Dropping unparseable input line: %s", exc)
        return None

    if not isinstance(raw, dict) or raw.get("jsonrpc") != JSONRPC_VERSION:
        logger.warning("Dropping message without jsonrpc %r tag", JSONRPC_VERSION)
        return None
    if "method" not in raw:
        logger.debug("Ignoring inbound message without a method (id=%r)", raw.get("id"))
        return None

    try:
        return JsonRpcRequest.model_validate(raw)
    except ValidationError as exc:
        error = exc.errors()[0]
        detail = ".".join(str(part) for part in error["loc"]) + ": " + error["msg"]
        request_id = raw.get("id")
        if isinstance(request_id, (int, str)) and not isinstance(request_id, bool):
            raise InvalidRequestError(request_id, detail) from None
        logger.warning("Dropping malformed request: %s", detail)
        return None


class StdioTransport:
    """Reads requests from stdin and writes envelopes to stdout.

    Both ends can be injected for testing: *reader* is an
    :class:`asyncio.StreamReader` and *output* a text stream.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader | None = None,
        output: IO[str] | None = None,
    ) -> None:
        self._reader = reader
        self._output = output
        self._pipe: asyncio.ReadTransport | None = None
        self._threaded = False

    async def connect(self) -> None:
        """Attach to the process stdin unless a reader was injected."""
        if self._output is None:
            self._output = sys.stdout
        if self._reader is not None:
            return

        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader(limit=_READ_LIMIT)
        protocol = asyncio.StreamReaderProtocol(reader)
        try:
            self._pipe, _ = await loop.connect_read_pipe(lambda: protocol, sys.stdin)
        except (OSError, ValueError):
            # Regular files cannot be registered with the selector.
            logger.debug("stdin is not pollable; reading it from a worker thread")
            self._threaded = True
        self._reader = reader

    async def receive(self) -> JsonRpcRequest | None:
        """Return the next well-formed request, or ``None`` at end of input.

        Propagates :class:`InvalidRequestError` from :func:`parse_line`.
        """
        while True:
            try:
                line = await self._readline()
            except ValueError as exc:
                logger.warning("Dropping oversized input line: %s", exc)
                continue
            if not line:
                return None
            logger.debug("Received: %s", line[:200])
            request = parse_line(line)
            if request is not None:
                return request

    async def send(self, data: dict[str, Any]) -> None:
        """Write one JSON document terminated by a newline, then flush."""
        if self._output is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        line = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
        self._output.write(line + "\n")
        self._output.flush()

    async def close(self) -> None:
        """Detach from stdin."""
        if self._pipe is not None:
            self._pipe.close()
            self._pipe = None

    async def _readline(self) -> bytes:
        if self._threaded:
            return await asyncio.to_thread(sys.stdin.buffer.readline)
        if self._reader is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        return await self._reader.readline()
