"""
Handler Table — tool name -> executable handler

A handler receives the validated arguments as keyword arguments and
either returns a result value or raises DomainError. Signatures are
checked against the tool schema at registration, so a handler and its
schema cannot drift apart unnoticed.

ToolSet lets a tools module declare each tool once, schema and handler
together:

    toolset = ToolSet()

    @toolset.tool("echo", "Echo text back", text=param("string", required=True))
    async def echo(store, text):
        return text

    registry, handlers = toolset.build(store)
"""

import functools
import inspect
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from allergy_mcp.server.schema import CatalogError, ParamSpec, SchemaRegistry, ToolDefinition

Handler = Callable[..., Any]


class DomainError(Exception):
    """Expected failure inside a tool (record not found, dependency down, ...)."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def _check_signature(definition: ToolDefinition, handler: Handler):
    try:
        sig = inspect.signature(handler)
    except (TypeError, ValueError) as exc:
        raise CatalogError(f"Cannot inspect handler for {definition.name}: {exc}")

    params = sig.parameters
    if any(p.kind is inspect.Parameter.VAR_KEYWORD for p in params.values()):
        return

    declared = {p.name for p in definition.params}
    for p in definition.params:
        accepted = params.get(p.name)
        if accepted is None or accepted.kind is inspect.Parameter.POSITIONAL_ONLY:
            raise CatalogError(
                f"Handler for {definition.name} does not accept parameter '{p.name}'"
            )

    for name, p in params.items():
        if p.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        if p.default is inspect.Parameter.empty and name not in definition.required:
            if name in declared:
                raise CatalogError(
                    f"Handler for {definition.name} requires optional parameter '{name}'"
                )
            raise CatalogError(
                f"Handler for {definition.name} requires undeclared parameter '{name}'"
            )


class HandlerTable:
    """Name -> handler mapping, bound to a SchemaRegistry."""

    def __init__(self, registry: SchemaRegistry):
        self._registry = registry
        self._handlers: Dict[str, Handler] = {}

    def register(self, name: str, handler: Handler):
        definition = self._registry.get(name)
        if definition is None:
            raise CatalogError(f"Cannot register handler for unknown tool: {name}")
        if name in self._handlers:
            raise CatalogError(f"Handler already registered: {name}")
        _check_signature(definition, handler)
        self._handlers[name] = handler

    def lookup(self, name: str) -> Optional[Handler]:
        return self._handlers.get(name)

    def names(self) -> Tuple[str, ...]:
        return tuple(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)


def param(
    type: str,
    *,
    required: bool = False,
    description: str = "",
    enum: Optional[Sequence[Any]] = None,
    items: Optional[str] = None,
) -> Dict[str, Any]:
    """Declare a tool parameter for ToolSet.tool()."""
    return {
        "type": type,
        "required": required,
        "description": description,
        "enum": tuple(enum) if enum is not None else None,
        "item_type": items,
    }


class ToolSet:
    """Ordered set of (definition, handler) pairs declared together."""

    def __init__(self):
        self._entries: List[Tuple[ToolDefinition, Handler]] = []

    def tool(self, name: str, description: str, **params: Dict[str, Any]):
        definition = ToolDefinition(
            name=name,
            description=description,
            params=tuple(ParamSpec(name=pname, **spec) for pname, spec in params.items()),
        )

        def decorator(func: Handler) -> Handler:
            self._entries.append((definition, func))
            return func

        return decorator

    @property
    def definitions(self) -> Tuple[ToolDefinition, ...]:
        return tuple(d for d, _ in self._entries)

    def build(self, *deps: Any) -> Tuple[SchemaRegistry, HandlerTable]:
        """Bind ``deps`` as leading arguments of every handler."""
        registry = SchemaRegistry(self.definitions)
        table = HandlerTable(registry)
        for definition, func in self._entries:
            handler = functools.partial(func, *deps) if deps else func
            table.register(definition.name, handler)
        return registry, table
