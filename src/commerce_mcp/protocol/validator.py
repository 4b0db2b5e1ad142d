"""Request validation — raw bytes to typed JSON-RPC envelopes.

Only structural conformance is checked here.  Method-specific argument
checks belong to the dispatcher and the tool schemas.
"""

from __future__ import annotations

import json
from typing import Any

from commerce_mcp.protocol.errors import InvalidRequestError, ParseError, ProtocolError
from commerce_mcp.protocol.models import JSONRPC_VERSION, JsonRpcRequest, RequestId

BatchEntry = JsonRpcRequest | ProtocolError


class RequestValidator:
    """Decode and validate a single request or a batch.

    Usage::

        validator = RequestValidator(max_batch_size=50)
        parsed = validator.validate(b'{"jsonrpc": "2.0", "method": "ping", "id": 1}')

    A single request either validates or raises a :class:`ProtocolError`.
    A batch returns one entry per element: the validated request, or the
    :class:`InvalidRequestError` describing why that element was rejected.
    """

    def __init__(self, *, allow_batch: bool = True, max_batch_size: int | None = None) -> None:
        self._allow_batch = allow_batch
        self._max_batch_size = max_batch_size

    def validate(self, raw: bytes | str | Any) -> JsonRpcRequest | list[BatchEntry]:
        """Validate *raw* (bytes, text, or an already-decoded value)."""
        payload = self.decode(raw)
        if isinstance(payload, list):
            return self.validate_batch(payload)
        return self.validate_single(payload)

    def validate_batch(self, payload: list[Any]) -> list[BatchEntry]:
        if not self._allow_batch:
            msg = "Invalid request: batch requests are not supported"
            raise InvalidRequestError(msg)
        if not payload:
            msg = "Invalid request: batch must not be empty"
            raise InvalidRequestError(msg)
        if self._max_batch_size is not None and len(payload) > self._max_batch_size:
            msg = f"Invalid request: batch exceeds {self._max_batch_size} entries"
            raise InvalidRequestError(msg, data={"size": len(payload)})

        entries: list[BatchEntry] = []
        for item in payload:
            try:
                entries.append(self.validate_single(item))
            except InvalidRequestError as exc:
                entries.append(exc)
        return entries

    def validate_single(self, payload: Any) -> JsonRpcRequest:
        if not isinstance(payload, dict):
            msg = "Invalid request: expected a JSON object"
            raise InvalidRequestError(msg)

        request_id = self._read_id(payload)

        if payload.get("jsonrpc") != JSONRPC_VERSION:
            msg = f"Invalid request: 'jsonrpc' must be \"{JSONRPC_VERSION}\""
            raise InvalidRequestError(msg, request_id=request_id)

        method = payload.get("method")
        if not isinstance(method, str) or not method:
            msg = "Invalid request: 'method' must be a non-empty string"
            raise InvalidRequestError(msg, request_id=request_id)

        params = payload.get("params")
        if params is not None and not isinstance(params, (dict, list)):
            msg = "Invalid request: 'params' must be an object or an array"
            raise InvalidRequestError(msg, request_id=request_id)

        return JsonRpcRequest(method=method, params=params, id=request_id)

    @staticmethod
    def decode(raw: bytes | str | Any) -> Any:
        """Decode bytes or text as JSON; pass other values through."""
        if isinstance(raw, (bytes, bytearray)):
            try:
                text = bytes(raw).decode("utf-8")
            except UnicodeDecodeError as exc:
                msg = "Parse error: payload is not valid UTF-8"
                raise ParseError(msg) from exc
        elif isinstance(raw, str):
            text = raw
        else:
            return raw

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Parse error: {exc.msg}", data={"position": exc.pos}) from exc

    @staticmethod
    def _read_id(payload: dict[str, Any]) -> RequestId:
        if "id" not in payload:
            return None
        value = payload["id"]
        # bool is an int subclass; null ids are not allowed either.
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            msg = "Invalid request: 'id' must be an integer or a string"
            raise InvalidRequestError(msg)
        return value
