"""Protocol layer — JSON-RPC 2.0 validation, dispatch, registry and sessions."""

from commerce_mcp.protocol.dispatcher import CallState, DispatchOutcome, Dispatcher
from commerce_mcp.protocol.errors import (
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    MethodNotFoundError,
    NotFoundError,
    ParseError,
    PromptNotFoundError,
    ProtocolError,
    ResourceNotFoundError,
    SessionNotFoundError,
    ToolNotFoundError,
)
from commerce_mcp.protocol.models import (
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
    PromptArgument,
    PromptDescriptor,
    PromptMessage,
    ResourceDescriptor,
    TextContent,
    ToolDescriptor,
)
from commerce_mcp.protocol.registry import SchemaRegistry
from commerce_mcp.protocol.session import Session, SessionManager
from commerce_mcp.protocol.validator import RequestValidator

__all__ = [
    "CallState",
    "DispatchOutcome",
    "Dispatcher",
    "InternalError",
    "InvalidParamsError",
    "InvalidRequestError",
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "MethodNotFoundError",
    "NotFoundError",
    "ParseError",
    "PromptArgument",
    "PromptDescriptor",
    "PromptMessage",
    "PromptNotFoundError",
    "ProtocolError",
    "RequestValidator",
    "ResourceDescriptor",
    "ResourceNotFoundError",
    "SchemaRegistry",
    "Session",
    "SessionManager",
    "SessionNotFoundError",
    "TextContent",
    "ToolDescriptor",
    "ToolNotFoundError",
]
