"""Shared error types for the bridge.

Every error that can be attributed to a request carries the JSON-RPC error
code it is reported with.
"""

from __future__ import annotations

from ghmcp.protocol.models import JsonRpcError, RequestId

INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class BridgeError(Exception):
    """Base error for all bridge failures."""

    code: int = INTERNAL_ERROR

    def to_error(self) -> JsonRpcError:
        return JsonRpcError(code=self.code, message=str(self))


class InvalidRequestError(BridgeError):
    """A message with a usable id that is not a valid request."""

    code = INVALID_REQUEST

    def __init__(self, request_id: RequestId, detail: str) -> None:
        self.request_id = request_id
        self.detail = detail
        super().__init__(f"Invalid Request: {detail}")


class MethodNotFoundError(BridgeError):
    """The request names a method the bridge does not implement."""

    code = METHOD_NOT_FOUND

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__("Method not found")


class InvalidParamsError(BridgeError):
    """Request parameters are missing or malformed."""

    code = INVALID_PARAMS


class ToolNotFoundError(InvalidParamsError):
    """Requested tool does not exist in the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class InvalidArgumentsError(InvalidParamsError):
    """Tool arguments do not satisfy the tool's input schema."""

    def __init__(self, name: str, detail: str) -> None:
        self.name = name
        self.detail = detail
        super().__init__(f"Invalid arguments for {name}: {detail}")


class InternalError(BridgeError):
    """A runtime failure while serving a request."""


class UpstreamError(InternalError):
    """The HTTP API answered with a 4xx/5xx status."""

    def __init__(self, status: int, message: str) -> None:
        self.status = status
        self.detail = message
        super().__init__(f"API error {status}: {message}")


class SubscriptionError(InternalError):
    """A live-event stream could not be opened."""

    def __init__(self, key: str, detail: str = "") -> None:
        self.key = key
        self.detail = detail
        super().__init__(f"Failed to subscribe to {key}" + (f": {detail}" if detail else ""))
