"""Argument validation against registered schemas.

Tool arguments are checked with :mod:`jsonschema` (Draft 2020-12); prompt
arguments against the descriptor's argument list.  Every failure becomes an
:class:`InvalidParamsError`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import best_match

from commerce_mcp.protocol.errors import InvalidParamsError

if TYPE_CHECKING:
    from commerce_mcp.protocol.models import InputSchema, PromptDescriptor


class ArgumentValidator:
    """Compiled validator for one tool's ``inputSchema``.

    The schema itself is checked at construction so that a malformed tool
    definition fails at registration time rather than on first call.
    """

    def __init__(self, schema: InputSchema) -> None:
        raw = schema.model_dump()
        Draft202012Validator.check_schema(raw)
        self._validator = Draft202012Validator(raw)

    def validate(self, arguments: dict[str, Any]) -> None:
        errors = list(self._validator.iter_errors(arguments))
        if not errors:
            return
        details = [
            {
                "path": "/".join(str(part) for part in err.absolute_path),
                "message": err.message,
            }
            for err in errors
        ]
        primary = best_match(errors)
        raise InvalidParamsError(f"Invalid params: {primary.message}", data={"errors": details})


def coerce_arguments(raw: Any, *, field: str = "arguments") -> dict[str, Any]:
    """Normalise an ``arguments`` value: absent/null means no arguments."""
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        msg = f"Invalid params: '{field}' must be an object"
        raise InvalidParamsError(msg)
    return raw


def validate_prompt_arguments(descriptor: PromptDescriptor, arguments: dict[str, Any]) -> dict[str, str]:
    """Check required prompt arguments and return them as strings."""
    missing = [arg.name for arg in descriptor.arguments if arg.required and arg.name not in arguments]
    if missing:
        msg = f"Invalid params: missing required argument(s) for prompt '{descriptor.name}': {', '.join(missing)}"
        raise InvalidParamsError(msg, data={"missing": missing})

    known = {arg.name for arg in descriptor.arguments}
    rendered: dict[str, str] = {}
    for name, value in arguments.items():
        if name not in known:
            continue
        if not isinstance(value, str):
            msg = f"Invalid params: prompt argument '{name}' must be a string"
            raise InvalidParamsError(msg)
        rendered[name] = value
    return rendered
