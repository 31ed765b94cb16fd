"""
Schema Registry — Immutable catalog of tool definitions

A ToolDefinition is built once at startup, either from the MCP wire form
({"name", "description", "inputSchema"}) or from ParamSpecs, and never
changes afterwards. The registry answers discovery queries and resolves
dispatch targets; it exposes no mutation once constructed.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

SCALAR_TYPES = ("string", "number", "integer", "boolean")
PARAM_TYPES = SCALAR_TYPES + ("array", "object")


class CatalogError(Exception):
    """Fatal tool catalog configuration error, raised at startup."""


@dataclass(frozen=True)
class ParamSpec:
    """One declared tool parameter."""

    name: str
    type: str
    required: bool = False
    description: str = ""
    enum: Optional[Tuple[Any, ...]] = None
    item_type: Optional[str] = None

    def __post_init__(self):
        if self.type not in PARAM_TYPES:
            raise CatalogError(f"Parameter '{self.name}' has unsupported type: {self.type!r}")
        if self.item_type is not None:
            if self.type != "array":
                raise CatalogError(f"Parameter '{self.name}' declares item type but is not an array")
            if self.item_type not in PARAM_TYPES:
                raise CatalogError(
                    f"Parameter '{self.name}' has unsupported item type: {self.item_type!r}"
                )
        if self.enum is not None:
            object.__setattr__(self, "enum", tuple(self.enum))

    @classmethod
    def from_dict(cls, name: str, prop: Dict[str, Any], required: bool) -> "ParamSpec":
        if not isinstance(prop, dict) or "type" not in prop:
            raise CatalogError(f"Parameter '{name}' has no declared type")
        items = prop.get("items") or {}
        if not isinstance(items, dict):
            raise CatalogError(f"Parameter '{name}' must declare items as a single schema object")
        return cls(
            name=name,
            type=prop["type"],
            required=required,
            description=prop.get("description", ""),
            enum=tuple(prop["enum"]) if "enum" in prop else None,
            item_type=items.get("type"),
        )

    def to_dict(self) -> Dict[str, Any]:
        prop: Dict[str, Any] = {"type": self.type}
        if self.item_type is not None:
            prop["items"] = {"type": self.item_type}
        if self.enum is not None:
            prop["enum"] = list(self.enum)
        if self.description:
            prop["description"] = self.description
        return prop


@dataclass(frozen=True)
class ToolDefinition:
    """A named, schema-described operation."""

    name: str
    description: str
    params: Tuple[ParamSpec, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.name:
            raise CatalogError("Tool name must be a non-empty string")
        object.__setattr__(self, "params", tuple(self.params))
        seen = set()
        for p in self.params:
            if p.name in seen:
                raise CatalogError(f"Tool {self.name} declares parameter '{p.name}' twice")
            seen.add(p.name)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolDefinition":
        """Build a definition from its MCP wire form."""
        name = data.get("name", "")
        schema = data.get("inputSchema") or {}
        properties = schema.get("properties") or {}
        required = list(schema.get("required") or [])

        for req in required:
            if req not in properties:
                raise CatalogError(f"Tool {name} requires '{req}' but does not declare its type")

        params = tuple(
            ParamSpec.from_dict(pname, prop, pname in required)
            for pname, prop in properties.items()
        )
        return cls(name=name, description=data.get("description", ""), params=params)

    def param(self, name: str) -> Optional[ParamSpec]:
        for p in self.params:
            if p.name == name:
                return p
        return None

    @property
    def required(self) -> List[str]:
        return [p.name for p in self.params if p.required]

    @property
    def input_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {
            "type": "object",
            "properties": {p.name: p.to_dict() for p in self.params},
        }
        if self.required:
            schema["required"] = self.required
        return schema

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class SchemaRegistry:
    """Read-only, declaration-ordered catalog of ToolDefinitions."""

    def __init__(self, definitions: Iterable[ToolDefinition] = ()):
        self._tools: Dict[str, ToolDefinition] = {}
        for definition in definitions:
            if definition.name in self._tools:
                raise CatalogError(f"Duplicate tool name: {definition.name}")
            self._tools[definition.name] = definition

    @classmethod
    def from_dicts(cls, tools: Iterable[Dict[str, Any]]) -> "SchemaRegistry":
        return cls(ToolDefinition.from_dict(t) for t in tools)

    def list_tools(self) -> Tuple[ToolDefinition, ...]:
        return tuple(self._tools.values())

    def get(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    def names(self) -> Tuple[str, ...]:
        return tuple(self._tools)

    def to_wire(self) -> List[Dict[str, Any]]:
        """Discovery payload: every tool in declaration order."""
        return [t.to_dict() for t in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self.list_tools())

    def __len__(self) -> int:
        return len(self._tools)
