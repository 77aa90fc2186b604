"""ToolInvoker — turns a ``tools/call`` into an HTTP call or a subscription.

Synchronous tools issue exactly one request against the HTTP API and wrap
the JSON body as a pretty-printed text block.  The live-events tool hands
off to the :class:`~ghmcp.subscriptions.SubscriptionManager` and answers
once the stream is open.  Nothing is retried.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

import httpx

from ghmcp.protocol.errors import InternalError, ToolNotFoundError, UpstreamError
from ghmcp.protocol.models import ToolResult
from ghmcp.tools.routes import ROUTES, ToolRoute, subscription_key
from ghmcp.tools.validation import validate_arguments
from ghmcp.utils.telemetry import (
    ATTR_HTTP_METHOD,
    ATTR_HTTP_PATH,
    ATTR_HTTP_STATUS,
    ATTR_SUBSCRIPTION_KEY,
    ATTR_TOOL_NAME,
    get_tracer,
)

if TYPE_CHECKING:
    from ghmcp.subscriptions import SubscriptionManager
    from ghmcp.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class ToolInvoker:
    """Executes registry tools against the HTTP API.

    Usage::

        invoker = ToolInvoker(registry, http_client, subscriptions, base_url)
        result = await invoker.invoke("github_get_repository", {"owner": "o", "repo": "r"})
    """

    def __init__(
        self,
        registry: ToolRegistry,
        client: httpx.AsyncClient,
        subscriptions: SubscriptionManager,
        base_url: str,
        *,
        routes: dict[str, ToolRoute] | None = None,
    ) -> None:
        self._registry = registry
        self._client = client
        self._subscriptions = subscriptions
        self._base_url = base_url.rstrip("/")
        self._routes = ROUTES if routes is None else routes

    async def invoke(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        """Validate and execute tool *name*.

        Raises a :class:`~ghmcp.protocol.errors.BridgeError` subclass on any
        failure; callers convert it into an error response.
        """
        tool = self._registry.get(name)
        route = self._routes.get(name)
        if tool is None or route is None:
            raise ToolNotFoundError(name)

        validate_arguments(tool, arguments)
        logger.debug("Tool call: %s with args: %s", name, json.dumps(arguments))

        with _tracer.start_as_current_span("ghmcp.tools.invoke") as span:
            span.set_attribute(ATTR_TOOL_NAME, name)
            if route.kind == "stream":
                key = subscription_key(arguments)
                span.set_attribute(ATTR_SUBSCRIPTION_KEY, key)
                return await self._subscribe(key, route, arguments)
            return await self._call_http(route, arguments, span)

    async def _call_http(self, route: ToolRoute, arguments: dict[str, Any], span: Any) -> ToolResult:
        call = route.build(arguments)
        url = f"{self._base_url}{call.path}"
        span.set_attribute(ATTR_HTTP_METHOD, call.method)
        span.set_attribute(ATTR_HTTP_PATH, call.path)
        logger.info("Making %s request to: %s", call.method, url)

        try:
            response = await self._client.request(
                call.method,
                url,
                params=call.params or None,
                json=call.json,
            )
        except httpx.HTTPError as exc:
            logger.warning("HTTP request failed: %s", exc)
            raise InternalError(f"HTTP request failed: {exc}") from exc

        span.set_attribute(ATTR_HTTP_STATUS, response.status_code)
        try:
            body = response.json()
        except ValueError as exc:
            if response.status_code >= 400:
                raise UpstreamError(response.status_code, "Unknown error") from exc
            raise InternalError(f"Failed to parse response: {exc}") from exc

        if response.status_code >= 400:
            raise UpstreamError(response.status_code, _upstream_message(body))

        return ToolResult.from_text(json.dumps(body, indent=2, ensure_ascii=False))

    async def _subscribe(self, key: str, route: ToolRoute, arguments: dict[str, Any]) -> ToolResult:
        url = f"{self._base_url}{route.resolve_path(arguments)}"
        await self._subscriptions.subscribe(key, url)
        return ToolResult.from_text(
            f"Connected to live events for {key}. "
            "You will receive real-time updates about repository activity."
        )


def _upstream_message(body: Any) -> str:
    """Pick the human-readable message out of an API error body."""
    if isinstance(body, dict):
        for field in ("message", "error"):
            value = body.get(field)
            if isinstance(value, str) and value:
                return value
    return "Unknown error"
