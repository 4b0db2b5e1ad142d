"""Shared error types for the protocol layer.

Every :class:`ProtocolError` maps onto a JSON-RPC error object with a fixed
numeric code.  Domain outcomes (out of stock, unknown product, ...) are *not*
protocol errors; see :mod:`commerce_mcp.commerce.errors`.
"""

from __future__ import annotations

from typing import Any

from commerce_mcp.protocol.models import JsonRpcError, RequestId

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
# Named sub-entity (tool, resource, prompt, session) is not registered.
NOT_FOUND = -32002


class ProtocolError(Exception):
    """Base error for all protocol-layer failures."""

    code: int = INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        *,
        data: Any = None,
        request_id: RequestId = None,
    ) -> None:
        self.message = message
        self.data = data
        self.request_id = request_id
        super().__init__(message)

    def to_error(self) -> JsonRpcError:
        """Convert to the wire-level error object."""
        return JsonRpcError(code=self.code, message=self.message, data=self.data)


class ParseError(ProtocolError):
    """The payload could not be decoded as JSON."""

    code = PARSE_ERROR


class InvalidRequestError(ProtocolError):
    """The payload is JSON but not a valid request envelope."""

    code = INVALID_REQUEST


class MethodNotFoundError(ProtocolError):
    """No handler is registered for the requested method."""

    code = METHOD_NOT_FOUND

    def __init__(self, method: str, *, request_id: RequestId = None) -> None:
        self.method = method
        super().__init__(
            f"Method not found: {method}",
            data={"method": method},
            request_id=request_id,
        )


class InvalidParamsError(ProtocolError):
    """Params are missing or do not match the method/tool schema."""

    code = INVALID_PARAMS


class InternalError(ProtocolError):
    """An unexpected fault inside a handler or collaborator."""

    code = INTERNAL_ERROR


class NotFoundError(ProtocolError):
    """The method is valid but the named entity it targets is not registered."""

    code = NOT_FOUND
    kind = "Entity"

    def __init__(self, name: str, *, request_id: RequestId = None) -> None:
        self.name = name
        super().__init__(
            f"{self.kind} not found: {name}",
            data={self.kind.lower(): name},
            request_id=request_id,
        )


class ToolNotFoundError(NotFoundError):
    """Requested tool does not exist in the registry."""

    kind = "Tool"


class ResourceNotFoundError(NotFoundError):
    """No resource reader or entity exists for the URI."""

    kind = "Resource"


class PromptNotFoundError(NotFoundError):
    """Requested prompt does not exist in the registry."""

    kind = "Prompt"


class SessionNotFoundError(NotFoundError):
    """The client referenced a session that was never created or has ended."""

    kind = "Session"
