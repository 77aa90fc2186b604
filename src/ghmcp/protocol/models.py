"""Protocol models — JSON-RPC 2.0 envelopes and MCP payloads.

Three envelope variants travel over the stdio channel:

* :class:`JsonRpcRequest` — carries an ``id`` that the eventual response echoes.
* :class:`JsonRpcResponse` — exactly one of ``result`` or ``error``.
* :class:`JsonRpcNotification` — no ``id``; never answered.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------

RequestId = int | str


class JsonRpcRequest(BaseModel):
    """An inbound JSON-RPC 2.0 message.

    A message without an ``id`` is a client notification (for example
    ``notifications/initialized``) and must not be answered.
    """

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    method: str
    id: RequestId | None = None
    params: dict[str, Any] | list[Any] = Field(default_factory=dict)

    @field_validator("params", mode="before")
    @classmethod
    def _null_params(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def is_notification(self) -> bool:
        return self.id is None


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: RequestId
    result: dict[str, Any] | None = None
    error: JsonRpcError | None = None

    @model_validator(mode="after")
    def _result_xor_error(self) -> JsonRpcResponse:
        if (self.result is None) == (self.error is None):
            msg = "response must carry exactly one of 'result' or 'error'"
            raise ValueError(msg)
        return self

    @classmethod
    def success(cls, request_id: RequestId, result: dict[str, Any]) -> JsonRpcResponse:
        return cls(id=request_id, result=result)

    @classmethod
    def failure(
        cls, request_id: RequestId, code: int, message: str, data: Any = None
    ) -> JsonRpcResponse:
        return cls(id=request_id, error=JsonRpcError(code=code, message=message, data=data))

    def to_wire(self) -> dict[str, Any]:
        """Serialize, omitting the absent member of the result/error pair."""
        wire: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            wire["error"] = self.error.model_dump(exclude_none=True)
        else:
            wire["result"] = self.result
        return wire


class JsonRpcNotification(BaseModel):
    """An outbound JSON-RPC 2.0 notification (no ``id``)."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    method: str
    params: dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump()


OutboundMessage = JsonRpcResponse | JsonRpcNotification

# ---------------------------------------------------------------------------
# MCP-specific payloads
# ---------------------------------------------------------------------------


class ToolDescriptor(BaseModel):
    """A tool definition as returned by ``tools/list``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=dict, alias="inputSchema")

    @property
    def required(self) -> list[str]:
        return list(self.input_schema.get("required", []))

    @property
    def properties(self) -> dict[str, Any]:
        return dict(self.input_schema.get("properties", {}))

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class TextContent(BaseModel):
    """Plain text content block."""

    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """The ``result`` payload of a successful ``tools/call``."""

    content: list[TextContent] = []

    @classmethod
    def from_text(cls, text: str) -> ToolResult:
        return cls(content=[TextContent(text=text)])


class ServerInfo(BaseModel):
    name: str
    version: str


class InitializeResult(BaseModel):
    """Answer to the ``initialize`` handshake."""

    model_config = ConfigDict(populate_by_name=True)

    protocol_version: str = Field(default=PROTOCOL_VERSION, alias="protocolVersion")
    capabilities: dict[str, Any] = Field(
        default_factory=lambda: {"tools": {}, "resources": {}, "prompts": {}}
    )
    server_info: ServerInfo = Field(alias="serverInfo")


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, ``Z`` suffixed."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
