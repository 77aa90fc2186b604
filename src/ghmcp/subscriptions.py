"""SubscriptionManager — one live Server-Sent Events stream per resource key.

Each subscription runs in its own task and moves through
``CONNECTING → OPEN → CLOSED``.  Events are forwarded as ``tools/event``
notifications through the *emit* channel in the order the stream delivers
them.  A stream that fails upstream, before or after it opens, produces
exactly one closure notification; streams closed by the bridge
itself (replacement or shutdown) produce none.  Concurrent subscribes for
the same key are serialized so at most one stream per key is ever live.

Usage::

    manager = SubscriptionManager(http_client, emit=outbound.put_nowait)
    await manager.subscribe("octocat/Hello-World", url)   # resolves once OPEN
    ...
    await manager.close_all()
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx
from httpx_sse import ServerSentEvent, aconnect_sse

from ghmcp.protocol.errors import SubscriptionError
from ghmcp.protocol.models import JsonRpcNotification, utc_timestamp
from ghmcp.tools.registry import LIVE_EVENTS_TOOL

logger = logging.getLogger(__name__)

EVENT_METHOD = "tools/event"
CLOSED_MESSAGE = "Connection closed"


class SubscriptionState(str, Enum):
    """Lifecycle of a single stream."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


@dataclass
class Subscription:
    """The bridge's handle to one SSE stream."""

    key: str
    url: str
    state: SubscriptionState = SubscriptionState.CONNECTING
    task: asyncio.Task[None] | None = field(default=None, repr=False)


class SubscriptionManager:
    """Owns the table of active subscriptions, keyed by resource identity.

    The table is only touched from the event loop thread, through
    :meth:`subscribe`, :meth:`close` and :meth:`close_all`.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        emit: Callable[[JsonRpcNotification], None],
        *,
        tool_name: str = LIVE_EVENTS_TOOL,
        connect_timeout: float | None = None,
    ) -> None:
        self._client = client
        self._emit = emit
        self._tool_name = tool_name
        self._timeout = httpx.Timeout(connect_timeout, read=None)
        self._subscriptions: dict[str, Subscription] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def active_keys(self) -> list[str]:
        return list(self._subscriptions)

    def state(self, key: str) -> SubscriptionState:
        sub = self._subscriptions.get(key)
        return sub.state if sub is not None else SubscriptionState.CLOSED

    async def subscribe(self, key: str, url: str) -> Subscription:
        """Open a stream for *key*, retiring any existing one first.

        Returns once the stream is OPEN.  Raises :class:`SubscriptionError` if
        it cannot be opened; the key is then left unregistered.
        """
        async with self._locks.setdefault(key, asyncio.Lock()):
            await self.close(key)

            sub = Subscription(key=key, url=url)
            opened: asyncio.Future[None] = asyncio.get_running_loop().create_future()
            sub.task = asyncio.create_task(self._run(sub, opened), name=f"sse:{key}")
            self._subscriptions[key] = sub
            logger.info("Subscribing to events: %s", url)

            await opened
            return sub

    async def close(self, key: str) -> None:
        """Close the stream for *key*, if any, and wait for it to finish."""
        sub = self._subscriptions.pop(key, None)
        if sub is None:
            return
        sub.state = SubscriptionState.CLOSED
        if sub.task is not None and not sub.task.done():
            sub.task.cancel()
            await asyncio.gather(sub.task, return_exceptions=True)
        logger.debug("Closed subscription %s", key)

    async def close_all(self) -> None:
        """Close every active stream (process shutdown)."""
        keys = self.active_keys()
        if keys:
            logger.info("Closing %d live event stream(s)", len(keys))
        for key in keys:
            await self.close(key)

    # ------------------------------------------------------------------
    # Stream task
    # ------------------------------------------------------------------

    async def _run(self, sub: Subscription, opened: asyncio.Future[None]) -> None:
        reason = CLOSED_MESSAGE
        try:
            async with aconnect_sse(self._client, "GET", sub.url, timeout=self._timeout) as source:
                _check_stream(source.response)
                sub.state = SubscriptionState.OPEN
                opened.set_result(None)
                logger.info("Connected to SSE stream for %s", sub.key)
                # Let the subscriber answer before the first event is forwarded.
                await asyncio.sleep(0)

                async for event in source.aiter_sse():
                    if sub.state is not SubscriptionState.OPEN:
                        break
                    self._forward(sub, event)
        except asyncio.CancelledError:
            if not opened.done():
                opened.set_exception(SubscriptionError(sub.key, "subscription closed"))
            raise
        except httpx.HTTPError as exc:
            reason = str(exc) or type(exc).__name__
        except Exception as exc:
            logger.exception("Unexpected failure in SSE stream for %s", sub.key)
            reason = str(exc) or type(exc).__name__

        if not opened.done():
            logger.warning("Failed to open SSE stream for %s: %s", sub.key, reason)
            self._forget(sub)
            self._notify_closed(sub)
            opened.set_exception(SubscriptionError(sub.key, reason))
            return

        logger.warning("SSE error for %s: %s", sub.key, reason)
        if sub.state is SubscriptionState.OPEN:
            self._forget(sub)
            self._notify_closed(sub)

    def _forget(self, sub: Subscription) -> None:
        sub.state = SubscriptionState.CLOSED
        if self._subscriptions.get(sub.key) is sub:
            del self._subscriptions[sub.key]

    def _forward(self, sub: Subscription, event: ServerSentEvent) -> None:
        try:
            data: Any = json.loads(event.data)
        except json.JSONDecodeError as exc:
            logger.warning("Error parsing SSE event for %s: %s", sub.key, exc)
            return
        self._emit(
            JsonRpcNotification(
                method=EVENT_METHOD,
                params={
                    "tool": self._tool_name,
                    "event": {
                        "repository": sub.key,
                        "data": data,
                        "timestamp": utc_timestamp(),
                    },
                },
            )
        )

    def _notify_closed(self, sub: Subscription) -> None:
        self._emit(
            JsonRpcNotification(
                method=EVENT_METHOD,
                params={
                    "tool": self._tool_name,
                    "event": {
                        "repository": sub.key,
                        "error": CLOSED_MESSAGE,
                        "timestamp": utc_timestamp(),
                    },
                },
            )
        )


def _check_stream(response: httpx.Response) -> None:
    """Raise unless *response* is a successful event stream."""
    if response.status_code != 200:
        msg = f"stream endpoint answered {response.status_code}"
        raise httpx.HTTPStatusError(msg, request=response.request, response=response)
    content_type = response.headers.get("content-type", "")
    if "text/event-stream" not in content_type:
        msg = f"expected text/event-stream, got {content_type or 'no content type'}"
        raise httpx.HTTPStatusError(msg, request=response.request, response=response)
