"""RequestDispatcher — routes JSON-RPC requests to protocol handlers.

The recognized methods form the closed :class:`Method` enumeration; every
member has exactly one handler.  Anything else is answered with
``-32601 Method not found`` and the session continues.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING, Any

from ghmcp.protocol.errors import (
    INTERNAL_ERROR,
    BridgeError,
    InvalidParamsError,
    MethodNotFoundError,
)
from ghmcp.protocol.models import (
    InitializeResult,
    JsonRpcRequest,
    JsonRpcResponse,
    ServerInfo,
)
from ghmcp.utils.telemetry import ATTR_RPC_ID, ATTR_RPC_METHOD, ATTR_TOOL_NAME, get_tracer

if TYPE_CHECKING:
    from ghmcp.invoker import ToolInvoker
    from ghmcp.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class Method(str, Enum):
    """JSON-RPC methods understood by the bridge."""

    INITIALIZE = "initialize"
    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"
    INITIALIZED = "notifications/initialized"


Handler = Callable[[JsonRpcRequest], Awaitable["dict[str, Any] | None"]]


class RequestDispatcher:
    """Stateless method router.

    :meth:`handle` returns the response for a request, or ``None`` when the
    message is a notification.  It never raises for protocol or tool
    failures; those become error responses.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        invoker: ToolInvoker,
        server_info: ServerInfo,
    ) -> None:
        self._registry = registry
        self._invoker = invoker
        self._server_info = server_info
        self._handlers: dict[Method, Handler] = {
            Method.INITIALIZE: self._initialize,
            Method.TOOLS_LIST: self._tools_list,
            Method.TOOLS_CALL: self._tools_call,
            Method.INITIALIZED: self._initialized,
        }
        unhandled = set(Method) - set(self._handlers)
        if unhandled:
            msg = f"no handler for method(s): {sorted(m.value for m in unhandled)}"
            raise RuntimeError(msg)

    async def handle(self, request: JsonRpcRequest) -> JsonRpcResponse | None:
        """Dispatch *request* and build its response."""
        logger.debug("Handling request: %s", request.method)

        with _tracer.start_as_current_span("ghmcp.rpc.handle") as span:
            span.set_attribute(ATTR_RPC_METHOD, request.method)
            if request.id is not None:
                span.set_attribute(ATTR_RPC_ID, str(request.id))

            try:
                method = _resolve(request.method)
                result = await self._handlers[method](request)
            except BridgeError as exc:
                if request.is_notification:
                    logger.debug("Ignoring notification %s: %s", request.method, exc)
                    return None
                logger.info("Request %s (%s) failed: %s", request.id, request.method, exc)
                error = exc.to_error()
                return JsonRpcResponse.failure(request.id, error.code, error.message)
            except Exception as exc:
                logger.exception("Error handling request: %s", request.method)
                if request.is_notification:
                    return None
                return JsonRpcResponse.failure(request.id, INTERNAL_ERROR, str(exc))

        if request.is_notification or result is None:
            return None
        return JsonRpcResponse.success(request.id, result)

    async def _initialize(self, request: JsonRpcRequest) -> dict[str, Any]:
        return InitializeResult(server_info=self._server_info).model_dump(by_alias=True)

    async def _tools_list(self, request: JsonRpcRequest) -> dict[str, Any]:
        return {"tools": self._registry.to_wire()}

    async def _tools_call(self, request: JsonRpcRequest) -> dict[str, Any]:
        if not isinstance(request.params, dict):
            msg = "tools/call params must be an object"
            raise InvalidParamsError(msg)
        name = request.params.get("name")
        if not isinstance(name, str) or not name:
            msg = "tools/call requires a string 'name'"
            raise InvalidParamsError(msg)
        arguments = request.params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            msg = "tools/call 'arguments' must be an object"
            raise InvalidParamsError(msg)

        with _tracer.start_as_current_span("ghmcp.tools.call") as span:
            span.set_attribute(ATTR_TOOL_NAME, name)
            result = await self._invoker.invoke(name, arguments)
        return result.model_dump()

    async def _initialized(self, request: JsonRpcRequest) -> None:
        logger.info("Client initialized")
        return None


def _resolve(method: str) -> Method:
    try:
        return Method(method)
    except ValueError:
        raise MethodNotFoundError(method) from None
