"""Dispatcher — routes validated requests to method handlers.

Each inbound call moves through ``received -> validated -> routed ->
handler_executing -> succeeded | failed``.  The dispatcher never raises for
protocol problems: every failure of a request with an ``id`` becomes an
error envelope, and notifications never produce one.

Expected domain outcomes (out of stock, unknown product, order not
cancellable) are *successful* responses whose payload says so; only
protocol-shape violations and unexpected faults become error objects.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from commerce_mcp.protocol.errors import (
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    MethodNotFoundError,
    PromptNotFoundError,
    ProtocolError,
    ResourceNotFoundError,
    ToolNotFoundError,
)
from commerce_mcp.protocol.models import JsonRpcRequest, JsonRpcResponse, RequestId, TextContent
from commerce_mcp.protocol.schema import coerce_arguments, validate_prompt_arguments
from commerce_mcp.protocol.validator import RequestValidator
from commerce_mcp.utils.telemetry import (
    ATTR_BATCH_SIZE,
    ATTR_CALL_STATE,
    ATTR_NOTIFICATION,
    ATTR_PROMPT_NAME,
    ATTR_RESOURCE_URI,
    ATTR_RPC_METHOD,
    ATTR_RPC_REQUEST_ID,
    ATTR_RPC_SYSTEM,
    ATTR_SESSION_ID,
    ATTR_TOOL_NAME,
    get_tracer,
    mark_rpc_error,
)

if TYPE_CHECKING:
    from commerce_mcp.protocol.registry import SchemaRegistry, ToolOutput
    from commerce_mcp.protocol.session import Session, SessionManager

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

MethodHandler = Callable[[JsonRpcRequest, "Session"], Awaitable[Any]]
ContextFactory = Callable[["Session"], Any]

# Methods a session may call before ``initialize`` when initialisation is required.
_PRE_INIT_METHODS = frozenset({"initialize", "ping"})


class CallState(str, Enum):
    """Lifecycle of one dispatched call."""

    RECEIVED = "received"
    VALIDATED = "validated"
    ROUTED = "routed"
    EXECUTING = "handler_executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class CallRecord:
    """Tracks the state of a single request through the dispatcher."""

    method: str
    request_id: RequestId
    state: CallState = CallState.RECEIVED

    def advance(self, state: CallState) -> None:
        logger.debug("%s [%s]: %s -> %s", self.method, self.request_id, self.state.value, state.value)
        self.state = state


@dataclass(frozen=True)
class DispatchOutcome:
    """Result of handling one inbound payload.

    ``body`` is ``None`` when nothing must be sent back (notifications).
    ``malformed`` marks payloads rejected before any request could be
    routed (undecodable input or an invalid single envelope); transports
    may map it to their own "bad input" status.
    """

    body: dict[str, Any] | list[dict[str, Any]] | None
    malformed: bool = False

    @property
    def has_body(self) -> bool:
        return self.body is not None


class Dispatcher:
    """JSON-RPC dispatcher for the tools/resources/prompts surface.

    Usage::

        dispatcher = Dispatcher(registry, sessions, context_factory=make_context)
        session = sessions.create()
        outcome = await dispatcher.handle(raw_bytes, session)
        if outcome.has_body:
            send(outcome.body)
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        sessions: SessionManager,
        *,
        context_factory: ContextFactory | None = None,
        validator: RequestValidator | None = None,
        require_initialize: bool = False,
    ) -> None:
        self._registry = registry
        self._sessions = sessions
        self._context_factory = context_factory or (lambda session: session)
        self._validator = validator or RequestValidator()
        self._require_initialize = require_initialize
        self._methods: dict[str, MethodHandler] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "resources/list": self._resources_list,
            "resources/templates/list": self._resource_templates_list,
            "resources/read": self._resources_read,
            "prompts/list": self._prompts_list,
            "prompts/get": self._prompts_get,
        }

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    @property
    def sessions(self) -> SessionManager:
        return self._sessions

    # -- entry points -------------------------------------------------------

    async def handle(self, raw: bytes | str | Any, session: Session) -> DispatchOutcome:
        """Validate and dispatch a raw payload (single request or batch)."""
        with _tracer.start_as_current_span("mcp.request") as span:
            span.set_attribute(ATTR_RPC_SYSTEM, "jsonrpc")
            span.set_attribute(ATTR_SESSION_ID, session.session_id)
            try:
                parsed = self._validator.validate(raw)
            except ProtocolError as exc:
                logger.info("Rejected payload: %s", exc.message)
                mark_rpc_error(span, exc.code, exc.message)
                response = JsonRpcResponse.failure(exc.request_id, exc.to_error())
                return DispatchOutcome(body=response.to_wire(), malformed=True)

            if isinstance(parsed, list):
                span.set_attribute(ATTR_BATCH_SIZE, len(parsed))
                responses = await asyncio.gather(*[self._dispatch_entry(entry, session) for entry in parsed])
                body = [r.to_wire() for r in responses if r is not None]
                return DispatchOutcome(body=body or None)

            response = await self.dispatch(parsed, session)
            return DispatchOutcome(body=response.to_wire() if response is not None else None)

    async def dispatch(self, request: JsonRpcRequest, session: Session) -> JsonRpcResponse | None:
        """Dispatch one validated request; ``None`` for notifications."""
        call = CallRecord(method=request.method, request_id=request.id)
        call.advance(CallState.VALIDATED)

        with _tracer.start_as_current_span("mcp.dispatch") as span:
            span.set_attribute(ATTR_RPC_METHOD, request.method)
            span.set_attribute(ATTR_NOTIFICATION, request.is_notification)
            if request.id is not None:
                span.set_attribute(ATTR_RPC_REQUEST_ID, str(request.id))

            try:
                result = await self._route(request, session, call)
            except ProtocolError as exc:
                call.advance(CallState.FAILED)
                span.set_attribute(ATTR_CALL_STATE, call.state.value)
                mark_rpc_error(span, exc.code, exc.message)
                logger.info("%s failed: %s", request.method, exc.message)
                if request.is_notification:
                    return None
                return JsonRpcResponse.failure(request.id, exc.to_error())
            except Exception:
                call.advance(CallState.FAILED)
                span.set_attribute(ATTR_CALL_STATE, call.state.value)
                mark_rpc_error(span, InternalError.code, "Internal error")
                logger.exception("Unhandled error while handling %s", request.method)
                if request.is_notification:
                    return None
                return JsonRpcResponse.failure(request.id, InternalError("Internal error").to_error())

            call.advance(CallState.SUCCEEDED)
            span.set_attribute(ATTR_CALL_STATE, call.state.value)
            if request.is_notification:
                return None
            return JsonRpcResponse.success(request.id, result)

    async def _dispatch_entry(
        self, entry: JsonRpcRequest | ProtocolError, session: Session
    ) -> JsonRpcResponse | None:
        if isinstance(entry, ProtocolError):
            return JsonRpcResponse.failure(entry.request_id, entry.to_error())
        return await self.dispatch(entry, session)

    async def _route(self, request: JsonRpcRequest, session: Session, call: CallRecord) -> Any:
        handler = self._methods.get(request.method)
        if handler is None:
            if request.is_notification:
                call.advance(CallState.ROUTED)
                self._notification(request, session)
                return None
            raise MethodNotFoundError(request.method, request_id=request.id)

        if (
            self._require_initialize
            and not session.initialized
            and request.method not in _PRE_INIT_METHODS
        ):
            msg = "Invalid request: session is not initialized"
            raise InvalidRequestError(msg, request_id=request.id)

        call.advance(CallState.ROUTED)
        call.advance(CallState.EXECUTING)
        return await handler(request, session)

    def _notification(self, request: JsonRpcRequest, session: Session) -> None:
        if request.method == "notifications/initialized":
            session.ready = True
            logger.debug("Session %s ready", session.session_id)
        else:
            logger.debug("Ignoring notification %s", request.method)

    # -- lifecycle ----------------------------------------------------------

    async def _initialize(self, request: JsonRpcRequest, session: Session) -> dict[str, Any]:
        return self._sessions.initialize(session, request.params)

    async def _ping(self, request: JsonRpcRequest, session: Session) -> dict[str, Any]:
        return {}

    # -- tools --------------------------------------------------------------

    async def _tools_list(self, request: JsonRpcRequest, session: Session) -> dict[str, Any]:
        return {"tools": [d.to_wire() for d in self._registry.list_tools()]}

    async def _tools_call(self, request: JsonRpcRequest, session: Session) -> dict[str, Any]:
        params = _object_params(request)
        name = _required_str(params, "name")

        entry = self._registry.find_tool(name)
        if entry is None:
            raise ToolNotFoundError(name, request_id=request.id)

        arguments = coerce_arguments(params.get("arguments"))
        entry.validator.validate(arguments)

        with _tracer.start_as_current_span("mcp.tool") as span:
            span.set_attribute(ATTR_TOOL_NAME, name)
            context = self._context_factory(session)
            try:
                output = await entry.handler(arguments, context)
            except ProtocolError:
                raise
            except Exception as exc:
                logger.exception("Tool %s raised", name)
                msg = f"Internal error while executing tool '{name}'"
                raise InternalError(msg, data={"tool": name}) from exc

        content = _to_content(output)
        if not content:
            msg = f"Internal error: tool '{name}' produced no content"
            raise InternalError(msg, data={"tool": name})
        return {"content": [block.model_dump() for block in content], "isError": False}

    # -- resources ----------------------------------------------------------

    async def _resources_list(self, request: JsonRpcRequest, session: Session) -> dict[str, Any]:
        return {"resources": [d.to_wire() for d in self._registry.list_resources()]}

    async def _resource_templates_list(self, request: JsonRpcRequest, session: Session) -> dict[str, Any]:
        return {"resourceTemplates": [d.to_template_wire() for d in self._registry.list_resources()]}

    async def _resources_read(self, request: JsonRpcRequest, session: Session) -> dict[str, Any]:
        params = _object_params(request)
        uri = _required_str(params, "uri")

        resolved = self._registry.find_resource(uri)
        if resolved is None:
            raise ResourceNotFoundError(uri, request_id=request.id)
        entry, path = resolved

        with _tracer.start_as_current_span("mcp.resource") as span:
            span.set_attribute(ATTR_RESOURCE_URI, uri)
            try:
                payload = await entry.reader(path, self._context_factory(session))
            except ProtocolError:
                raise
            except Exception as exc:
                logger.exception("Resource reader for %s raised", uri)
                msg = f"Internal error while reading resource '{uri}'"
                raise InternalError(msg, data={"uri": uri}) from exc

        if payload is None:
            raise ResourceNotFoundError(uri, request_id=request.id)
        return {
            "contents": [
                {
                    "uri": uri,
                    "mimeType": entry.descriptor.mime_type,
                    "text": json.dumps(payload, default=str),
                }
            ]
        }

    # -- prompts ------------------------------------------------------------

    async def _prompts_list(self, request: JsonRpcRequest, session: Session) -> dict[str, Any]:
        return {"prompts": [d.to_wire() for d in self._registry.list_prompts()]}

    async def _prompts_get(self, request: JsonRpcRequest, session: Session) -> dict[str, Any]:
        params = _object_params(request)
        name = _required_str(params, "name")

        entry = self._registry.find_prompt(name)
        if entry is None:
            raise PromptNotFoundError(name, request_id=request.id)

        with _tracer.start_as_current_span("mcp.prompt") as span:
            span.set_attribute(ATTR_PROMPT_NAME, name)
            arguments = validate_prompt_arguments(entry.descriptor, coerce_arguments(params.get("arguments")))
            messages = entry.renderer(arguments)

        return {
            "description": entry.descriptor.description,
            "messages": [m.model_dump() for m in messages],
        }


def _object_params(request: JsonRpcRequest) -> dict[str, Any]:
    if request.params is None:
        return {}
    if not isinstance(request.params, dict):
        msg = f"Invalid params: '{request.method}' expects an object"
        raise InvalidParamsError(msg, request_id=request.id)
    return request.params


def _required_str(params: dict[str, Any], key: str) -> str:
    value = params.get(key)
    if not isinstance(value, str) or not value:
        msg = f"Invalid params: '{key}' is required"
        raise InvalidParamsError(msg, data={"param": key})
    return value


def _to_content(output: ToolOutput) -> list[TextContent]:
    """Wrap a handler's return value as content blocks."""
    if isinstance(output, str):
        return [TextContent(text=output)]
    if isinstance(output, dict):
        return [TextContent(text=json.dumps(output, default=str))]
    return list(output)
