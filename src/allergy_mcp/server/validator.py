"""
Argument Validator — check invocation arguments against a tool schema

Every violation is collected (no short-circuit) in schema declaration
order, so one failed call reports all of its problems at once.
Arguments the schema does not declare are ignored.
"""

from typing import Any, Dict, Mapping, Tuple

from allergy_mcp.server.schema import ParamSpec, ToolDefinition


class ValidationResult:
    """Outcome of validating one set of arguments."""

    __slots__ = ("reasons",)

    def __init__(self, reasons: Tuple[str, ...] = ()):
        self.reasons = tuple(reasons)

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls()

    @classmethod
    def invalid(cls, reasons) -> "ValidationResult":
        return cls(tuple(reasons))

    @property
    def valid(self) -> bool:
        return not self.reasons

    def __bool__(self) -> bool:
        return self.valid

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ValidationResult) and self.reasons == other.reasons

    def __repr__(self) -> str:
        if self.valid:
            return "ValidationResult(valid)"
        return f"ValidationResult(invalid={list(self.reasons)!r})"


def type_name(value: Any) -> str:
    """JSON type name of a decoded value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def matches_type(value: Any, expected: str) -> bool:
    actual = type_name(value)
    if expected == "number":
        return actual in ("number", "integer")
    if expected == "integer":
        return actual == "integer" or (actual == "number" and float(value).is_integer())
    return actual == expected


def _check_param(spec: ParamSpec, value: Any) -> list:
    reasons = []

    if not matches_type(value, spec.type):
        reasons.append(
            f"field '{spec.name}' must be of type {spec.type}, got {type_name(value)}"
        )
        return reasons

    if spec.enum is not None and value not in spec.enum:
        allowed = ", ".join(str(v) for v in spec.enum)
        reasons.append(f"field '{spec.name}' must be one of [{allowed}], got {value!r}")

    if spec.type == "array" and spec.item_type is not None:
        for index, item in enumerate(value):
            if not matches_type(item, spec.item_type):
                reasons.append(
                    f"field '{spec.name}' item {index} must be of type "
                    f"{spec.item_type}, got {type_name(item)}"
                )

    return reasons


def validate(definition: ToolDefinition, arguments: Mapping[str, Any]) -> ValidationResult:
    """Validate ``arguments`` against ``definition``'s input schema."""
    reasons = []
    for spec in definition.params:
        if spec.name not in arguments:
            if spec.required:
                reasons.append(f"missing required field '{spec.name}'")
            continue
        reasons.extend(_check_param(spec, arguments[spec.name]))

    if reasons:
        return ValidationResult.invalid(reasons)
    return ValidationResult.ok()


def declared_arguments(definition: ToolDefinition, arguments: Mapping[str, Any]) -> Dict[str, Any]:
    """Keep only the arguments the schema declares."""
    return {p.name: arguments[p.name] for p in definition.params if p.name in arguments}
