"""Protocol models — JSON-RPC 2.0 envelopes and MCP descriptors.

Implements the message format used by the Model Context Protocol for
lifecycle (``initialize``), tool discovery and execution, resources and
prompts.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

JSONRPC_VERSION = "2.0"

RequestId = int | str | None

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request message.

    A request without an ``id`` is a notification and never gets a response.
    """

    model_config = ConfigDict(frozen=True)

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    method: str
    params: dict[str, Any] | list[Any] | None = None
    id: int | str | None = None

    @property
    def is_notification(self) -> bool:
        return self.id is None


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message carrying ``result`` xor ``error``."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: int | str | None = None
    result: Any = None
    error: JsonRpcError | None = None

    @model_validator(mode="after")
    def _result_xor_error(self) -> JsonRpcResponse:
        if (self.result is None) == (self.error is None):
            msg = "exactly one of 'result' or 'error' must be set"
            raise ValueError(msg)
        return self

    @classmethod
    def success(cls, request_id: RequestId, result: Any) -> JsonRpcResponse:
        return cls(id=request_id, result=result)

    @classmethod
    def failure(cls, request_id: RequestId, error: JsonRpcError) -> JsonRpcResponse:
        return cls(id=request_id, error=error)

    def to_wire(self) -> dict[str, Any]:
        """Serialise with exactly one of ``result`` / ``error`` present."""
        body: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            body["error"] = self.error.model_dump(exclude_none=True)
        else:
            body["result"] = self.result
        return body


# ---------------------------------------------------------------------------
# MCP-specific payloads
# ---------------------------------------------------------------------------


class InputSchema(BaseModel):
    """JSON Schema of a tool's ``arguments`` object."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: Literal["object"] = "object"
    properties: dict[str, Any] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)


class ToolDescriptor(BaseModel):
    """A tool definition as returned by ``tools/list``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    description: str = ""
    input_schema: InputSchema = Field(default_factory=InputSchema, alias="inputSchema")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ResourceDescriptor(BaseModel):
    """A URI-addressed, read-only view.

    The scheme of ``uri_template`` (``products`` in ``products://{productId}``)
    identifies the reader that serves it.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    uri_template: str = Field(alias="uriTemplate")
    description: str = ""
    mime_type: str = Field(default="application/json", alias="mimeType")

    @property
    def scheme(self) -> str:
        return self.uri_template.split("://", 1)[0]

    def to_wire(self) -> dict[str, Any]:
        """Entry shape for ``resources/list``."""
        return {
            "uri": self.uri_template,
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type,
        }

    def to_template_wire(self) -> dict[str, Any]:
        """Entry shape for ``resources/templates/list``."""
        return self.model_dump(by_alias=True)


class PromptArgument(BaseModel):
    """A single named argument accepted by a prompt."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    required: bool = False


class PromptDescriptor(BaseModel):
    """A prompt template as returned by ``prompts/list``."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    arguments: list[PromptArgument] = Field(default_factory=list)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump()


class TextContent(BaseModel):
    """A text content block inside a tool result or prompt message."""

    type: Literal["text"] = "text"
    text: str


class PromptMessage(BaseModel):
    """A role-tagged message fragment produced by ``prompts/get``."""

    role: Literal["user", "assistant"]
    content: TextContent


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class ClientInfo(BaseModel):
    name: str
    version: str


class ServerInfo(BaseModel):
    name: str
    version: str


class InitializeParams(BaseModel):
    """Params of the ``initialize`` request."""

    model_config = ConfigDict(populate_by_name=True)

    protocol_version: str = Field(alias="protocolVersion")
    capabilities: dict[str, Any]
    client_info: ClientInfo = Field(alias="clientInfo")
