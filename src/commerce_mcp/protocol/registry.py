"""SchemaRegistry — declarative shapes of every tool, resource and prompt.

Each namespace is a name-keyed map populated once at start-up.  After
:meth:`SchemaRegistry.seal` the registry is read-only.

Usage::

    registry = SchemaRegistry()
    registry.register_tool(descriptor, handler)
    registry.seal()

    entry = registry.find_tool("search_products")
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from commerce_mcp.protocol.models import (
    PromptDescriptor,
    PromptMessage,
    ResourceDescriptor,
    TextContent,
    ToolDescriptor,
)
from commerce_mcp.protocol.schema import ArgumentValidator

ToolOutput = dict[str, Any] | str | list[TextContent]
ToolHandler = Callable[[dict[str, Any], Any], Awaitable[ToolOutput]]
ResourceReader = Callable[[str, Any], Awaitable[Any]]
PromptRenderer = Callable[[dict[str, str]], list[PromptMessage]]


class RegistrySealedError(RuntimeError):
    """Raised when registering into a sealed registry."""


@dataclass(frozen=True)
class RegisteredTool:
    descriptor: ToolDescriptor
    handler: ToolHandler
    validator: ArgumentValidator

    @property
    def name(self) -> str:
        return self.descriptor.name


@dataclass(frozen=True)
class RegisteredResource:
    descriptor: ResourceDescriptor
    reader: ResourceReader


@dataclass(frozen=True)
class RegisteredPrompt:
    descriptor: PromptDescriptor
    renderer: PromptRenderer


class SchemaRegistry:
    """Name-keyed registry for tools, resources and prompts."""

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}
        self._resources: dict[str, RegisteredResource] = {}
        self._resource_names: set[str] = set()
        self._prompts: dict[str, RegisteredPrompt] = {}
        self._sealed = False

    # -- registration -------------------------------------------------------

    def register_tool(self, descriptor: ToolDescriptor, handler: ToolHandler) -> None:
        self._ensure_open()
        if descriptor.name in self._tools:
            msg = f"Tool already registered: {descriptor.name}"
            raise ValueError(msg)
        validator = ArgumentValidator(descriptor.input_schema)
        self._tools[descriptor.name] = RegisteredTool(descriptor, handler, validator)

    def register_resource(self, descriptor: ResourceDescriptor, reader: ResourceReader) -> None:
        """Register a reader for every URI under ``descriptor.scheme``."""
        self._ensure_open()
        if "://" not in descriptor.uri_template:
            msg = f"Resource URI template has no scheme: {descriptor.uri_template}"
            raise ValueError(msg)
        if descriptor.name in self._resource_names:
            msg = f"Resource already registered: {descriptor.name}"
            raise ValueError(msg)
        if descriptor.scheme in self._resources:
            msg = f"Resource scheme already registered: {descriptor.scheme}"
            raise ValueError(msg)
        self._resources[descriptor.scheme] = RegisteredResource(descriptor, reader)
        self._resource_names.add(descriptor.name)

    def register_prompt(self, descriptor: PromptDescriptor, renderer: PromptRenderer) -> None:
        self._ensure_open()
        if descriptor.name in self._prompts:
            msg = f"Prompt already registered: {descriptor.name}"
            raise ValueError(msg)
        self._prompts[descriptor.name] = RegisteredPrompt(descriptor, renderer)

    def seal(self) -> None:
        """Freeze the registry; later registrations raise."""
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def _ensure_open(self) -> None:
        if self._sealed:
            msg = "Registry is sealed; register everything before serving"
            raise RegistrySealedError(msg)

    # -- lookup -------------------------------------------------------------

    def find_tool(self, name: str) -> RegisteredTool | None:
        return self._tools.get(name)

    def find_resource(self, uri: str) -> tuple[RegisteredResource, str] | None:
        """Resolve *uri* to its reader and the path after ``scheme://``."""
        scheme, sep, path = uri.partition("://")
        if not sep:
            return None
        entry = self._resources.get(scheme)
        if entry is None:
            return None
        return entry, path

    def find_prompt(self, name: str) -> RegisteredPrompt | None:
        return self._prompts.get(name)

    def list_tools(self) -> list[ToolDescriptor]:
        return [entry.descriptor for entry in self._tools.values()]

    def list_resources(self) -> list[ResourceDescriptor]:
        return [entry.descriptor for entry in self._resources.values()]

    def list_prompts(self) -> list[PromptDescriptor]:
        return [entry.descriptor for entry in self._prompts.values()]
