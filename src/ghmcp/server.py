"""BridgeServer — the stdio event loop tying the bridge together.

One reader loop parses stdin and spawns a task per request, so a slow HTTP
call never blocks later requests.  Every outbound message (responses and
subscription notifications alike) goes through a single queue drained by one
writer task, which keeps each line intact and preserves per-key event order.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import Any

import httpx

from ghmcp.config import BridgeSettings
from ghmcp.dispatcher import RequestDispatcher
from ghmcp.invoker import ToolInvoker
from ghmcp.protocol.errors import INTERNAL_ERROR, InvalidRequestError
from ghmcp.protocol.models import JsonRpcRequest, JsonRpcResponse, OutboundMessage, ServerInfo
from ghmcp.protocol.transport import MessageTransport, StdioTransport
from ghmcp.subscriptions import SubscriptionManager
from ghmcp.tools.registry import ToolRegistry, build_default_registry

logger = logging.getLogger(__name__)

_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class BridgeServer:
    """Serves the GitHub tool catalog over a JSON-RPC stdio channel.

    Usage::

        server = BridgeServer(BridgeSettings.from_env())
        asyncio.run(server.run())
    """

    def __init__(
        self,
        settings: BridgeSettings | None = None,
        *,
        transport: MessageTransport | None = None,
        http_client: httpx.AsyncClient | None = None,
        registry: ToolRegistry | None = None,
    ) -> None:
        self._settings = settings or BridgeSettings()
        self._transport = transport or StdioTransport()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(self._settings.http_timeout),
            headers={
                "Content-Type": "application/json",
                "User-Agent": self._settings.user_agent,
            },
        )
        self._registry = registry if registry is not None else build_default_registry()
        self._subscriptions = SubscriptionManager(
            self._client,
            emit=self.emit,
            connect_timeout=self._settings.http_timeout,
        )
        self._invoker = ToolInvoker(
            self._registry,
            self._client,
            self._subscriptions,
            self._settings.server_url,
        )
        self._dispatcher = RequestDispatcher(
            self._registry,
            self._invoker,
            ServerInfo(name=self._settings.server_name, version=self._settings.server_version),
        )
        self._outbound: asyncio.Queue[OutboundMessage | None] = asyncio.Queue()
        self._pending: set[asyncio.Task[None]] = set()
        self._stop = asyncio.Event()
        self._interrupted = False

    @property
    def subscriptions(self) -> SubscriptionManager:
        return self._subscriptions

    def emit(self, message: OutboundMessage) -> None:
        """Queue *message* for the writer task."""
        self._outbound.put_nowait(message)

    def request_shutdown(self) -> None:
        """Stop reading, cancel in-flight requests, and close every stream."""
        logger.info("Received shutdown signal, cleaning up...")
        self._interrupted = True
        self._stop.set()

    async def run(self) -> None:
        """Serve until end of input or a shutdown signal."""
        loop = asyncio.get_running_loop()
        loop.set_exception_handler(_log_loop_exception)
        installed = _install_signal_handlers(loop, self.request_shutdown)

        logger.info("Starting MCP bridge against %s", self._settings.server_url)
        await self._transport.connect()
        writer = asyncio.create_task(self._write_loop(), name="ghmcp-writer")
        reader = asyncio.create_task(self._read_loop(), name="ghmcp-reader")
        logger.info("GitHub MCP bridge started with %d tools", len(self._registry))

        try:
            await self._stop.wait()
        finally:
            await self._shutdown(reader, writer)
            for sig in installed:
                loop.remove_signal_handler(sig)

    async def _read_loop(self) -> None:
        try:
            while True:
                try:
                    request = await self._transport.receive()
                except InvalidRequestError as exc:
                    logger.warning("Rejecting request %r: %s", exc.request_id, exc)
                    self.emit(JsonRpcResponse.failure(exc.request_id, exc.code, str(exc)))
                    continue
                if request is None:
                    logger.info("Input closed")
                    break
                task = asyncio.create_task(self._serve(request))
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
        finally:
            self._stop.set()

    async def _serve(self, request: JsonRpcRequest) -> None:
        try:
            response = await self._dispatcher.handle(request)
        except asyncio.CancelledError:
            if request.id is not None:
                self.emit(
                    JsonRpcResponse.failure(request.id, INTERNAL_ERROR, "Server shutting down")
                )
            raise
        if response is not None:
            self.emit(response)

    async def _write_loop(self) -> None:
        while True:
            message = await self._outbound.get()
            if message is None:
                return
            try:
                await self._transport.send(message.to_wire())
            except (OSError, ValueError) as exc:
                logger.error("Failed to write message: %s", exc)

    async def _shutdown(self, reader: asyncio.Task[None], writer: asyncio.Task[None]) -> None:
        reader.cancel()
        (outcome,) = await asyncio.gather(reader, return_exceptions=True)
        if isinstance(outcome, Exception):
            logger.error("Reader stopped on error: %s", outcome)

        await self._subscriptions.close_all()
        if self._interrupted:
            for task in self._pending:
                task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        await self._subscriptions.close_all()

        self._outbound.put_nowait(None)
        await writer
        await self._transport.close()
        if self._owns_client:
            await self._client.aclose()
        logger.info("Bridge stopped")


def serve(settings: BridgeSettings) -> None:
    """Run a :class:`BridgeServer` on the process stdio until it stops."""
    asyncio.run(BridgeServer(settings).run())


def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop, callback: Any
) -> list[signal.Signals]:
    installed: list[signal.Signals] = []
    for sig in _SIGNALS:
        try:
            loop.add_signal_handler(sig, callback)
        except (NotImplementedError, RuntimeError, ValueError):
            # Unsupported platform or not running in the main thread.
            continue
        installed.append(sig)
    return installed


def _log_loop_exception(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    exc = context.get("exception")
    logger.error(
        "Unhandled error in event loop: %s",
        context.get("message", "unknown"),
        exc_info=exc if isinstance(exc, BaseException) else None,
    )
