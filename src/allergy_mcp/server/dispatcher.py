"""
Dispatcher — resolve, validate, execute, respond

Every call walks the same linear path:

  received -> resolving -> validating -> executing -> responded

and ends in exactly one ToolResponse. Unknown tools, invalid arguments
and handler failures (DomainError or anything else) are all turned into
an error envelope here; no exception raised by a handler gets past
dispatch().
"""

import enum
import inspect
import json
from typing import Any, Dict, List, Mapping, Optional

from allergy_mcp.server.handlers import DomainError, HandlerTable
from allergy_mcp.server.logger import get_logger
from allergy_mcp.server.protocol import text_content, tool_result_content
from allergy_mcp.server.schema import CatalogError, SchemaRegistry
from allergy_mcp.server.validator import declared_arguments, validate

log = get_logger("dispatcher")


class ErrorKind(str, enum.Enum):
    """Internal failure category. Never serialised onto the wire."""

    UNKNOWN_TOOL = "unknown_tool"
    VALIDATION = "validation"
    DOMAIN = "domain"
    INTERNAL = "internal"


class ToolResponse:
    """The envelope returned for every tool call."""

    __slots__ = ("content", "is_error", "error_kind")

    def __init__(
        self,
        content: List[Dict[str, Any]],
        is_error: bool = False,
        error_kind: Optional[ErrorKind] = None,
    ):
        self.content = content
        self.is_error = is_error
        self.error_kind = error_kind

    @classmethod
    def success(cls, text: str) -> "ToolResponse":
        return cls([text_content(text)])

    @classmethod
    def failure(cls, text: str, kind: ErrorKind) -> "ToolResponse":
        return cls([text_content(text)], is_error=True, error_kind=kind)

    @property
    def text(self) -> str:
        return "\n".join(block.get("text", "") for block in self.content)

    def to_wire(self) -> Dict[str, Any]:
        return tool_result_content(self.content, is_error=self.is_error)

    def __repr__(self) -> str:
        return f"ToolResponse(is_error={self.is_error}, kind={self.error_kind}, text={self.text!r})"


def render_result(result: Any) -> str:
    """Serialise a handler result into envelope text."""
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, default=str)


def _error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class Dispatcher:
    """Protocol core, built from an explicit registry and handler table."""

    def __init__(self, registry: SchemaRegistry, handlers: HandlerTable):
        missing = [name for name in registry.names() if name not in handlers]
        if missing:
            raise CatalogError(f"Tools without handlers: {', '.join(missing)}")
        self._registry = registry
        self._handlers = handlers

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    async def dispatch(self, tool_name: str, arguments: Optional[Mapping[str, Any]] = None) -> ToolResponse:
        arguments = arguments or {}

        definition = self._registry.get(tool_name)
        handler = self._handlers.lookup(tool_name) if definition is not None else None
        if definition is None or handler is None:
            log.warning(f"Unknown tool: {tool_name}")
            return ToolResponse.failure(f"Unknown tool: {tool_name}", ErrorKind.UNKNOWN_TOOL)

        result = validate(definition, arguments)
        if not result.valid:
            log.info(f"Tool {tool_name} rejected: {list(result.reasons)}")
            return ToolResponse.failure(
                f"Invalid arguments for {tool_name}: " + "; ".join(result.reasons),
                ErrorKind.VALIDATION,
            )

        try:
            value = handler(**declared_arguments(definition, arguments))
            if inspect.isawaitable(value):
                value = await value
            text = render_result(value)
        except DomainError as exc:
            log.warning(f"Tool {tool_name} failed: {exc.message}")
            return ToolResponse.failure(f"Error: {_error_message(exc)}", ErrorKind.DOMAIN)
        except Exception as exc:
            log.error(f"Tool {tool_name} error: {exc}", exc_info=True)
            return ToolResponse.failure(f"Error: {_error_message(exc)}", ErrorKind.INTERNAL)

        log.debug(f"Tool {tool_name} ok ({len(text)} chars)")
        return ToolResponse.success(text)
