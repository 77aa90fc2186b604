"""Protocol layer — JSON-RPC envelopes, error codes, and the stdio transport."""

from ghmcp.protocol.errors import (
    BridgeError,
    InternalError,
    InvalidArgumentsError,
    InvalidParamsError,
    InvalidRequestError,
    MethodNotFoundError,
    SubscriptionError,
    ToolNotFoundError,
    UpstreamError,
)
from ghmcp.protocol.models import (
    PROTOCOL_VERSION,
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    ToolDescriptor,
    ToolResult,
)
from ghmcp.protocol.transport import MessageTransport, StdioTransport

__all__ = [
    "PROTOCOL_VERSION",
    "BridgeError",
    "InternalError",
    "InvalidArgumentsError",
    "InvalidParamsError",
    "InvalidRequestError",
    "JsonRpcError",
    "JsonRpcNotification",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "MessageTransport",
    "MethodNotFoundError",
    "StdioTransport",
    "SubscriptionError",
    "ToolDescriptor",
    "ToolNotFoundError",
    "ToolResult",
    "UpstreamError",
]
