"""Pydantic models for the call/value graph document (calls.json).

The document is produced externally and is immutable once loaded, so every
model is frozen. Field names follow the producer's snake_case spelling; the
camelCase spelling is accepted as well.

Kinds are closed enumerations: a document carrying an unknown value or call
kind is rejected at load time instead of being passed through untyped.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from callcontract.graph import symbols


def _alias(*names: str) -> Any:
    return Field(default=None, validation_alias=AliasChoices(*names))


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


# ============================================================================
# ENUMS
# ============================================================================


class ValueKind(str, Enum):
    """What a value node represents."""

    PARAMETER = "parameter"
    LOCAL = "local"
    LITERAL = "literal"
    CONSTANT = "constant"
    RESULT = "result"
    ACCESS = "access"
    ACCESS_NULLSAFE = "access_nullsafe"

    @property
    def default_kind_type(self) -> str:
        if self in (ValueKind.ACCESS, ValueKind.ACCESS_NULLSAFE):
            return "access"
        return "value"

    @property
    def is_variable(self) -> bool:
        return self in (ValueKind.PARAMETER, ValueKind.LOCAL)


class KindType(str, Enum):
    """Coarse grouping of call kinds."""

    INVOCATION = "invocation"
    ACCESS = "access"
    OPERATOR = "operator"


class Stability(str, Enum):
    STABLE = "stable"
    EXPERIMENTAL = "experimental"
    DEPRECATED = "deprecated"


class CallKind(str, Enum):
    """What a call node represents."""

    METHOD = "method"
    METHOD_STATIC = "method_static"
    METHOD_NULLSAFE = "method_nullsafe"
    FUNCTION = "function"
    CONSTRUCTOR = "constructor"
    ACCESS = "access"
    ACCESS_STATIC = "access_static"
    ACCESS_NULLSAFE = "access_nullsafe"
    ACCESS_ARRAY = "access_array"
    COALESCE = "coalesce"
    TERNARY = "ternary"
    TERNARY_FULL = "ternary_full"
    MATCH = "match"

    @property
    def kind_type(self) -> KindType:
        return _CALL_KIND_TYPES[self]

    @property
    def stability(self) -> Stability:
        return _CALL_KIND_STABILITY.get(self, Stability.EXPERIMENTAL)


_CALL_KIND_TYPES: dict[CallKind, KindType] = {
    CallKind.METHOD: KindType.INVOCATION,
    CallKind.METHOD_STATIC: KindType.INVOCATION,
    CallKind.METHOD_NULLSAFE: KindType.INVOCATION,
    CallKind.FUNCTION: KindType.INVOCATION,
    CallKind.CONSTRUCTOR: KindType.INVOCATION,
    CallKind.ACCESS: KindType.ACCESS,
    CallKind.ACCESS_STATIC: KindType.ACCESS,
    CallKind.ACCESS_NULLSAFE: KindType.ACCESS,
    CallKind.ACCESS_ARRAY: KindType.ACCESS,
    CallKind.COALESCE: KindType.OPERATOR,
    CallKind.TERNARY: KindType.OPERATOR,
    CallKind.TERNARY_FULL: KindType.OPERATOR,
    CallKind.MATCH: KindType.OPERATOR,
}

_CALL_KIND_STABILITY: dict[CallKind, Stability] = {
    CallKind.ACCESS: Stability.STABLE,
    CallKind.METHOD: Stability.STABLE,
    CallKind.CONSTRUCTOR: Stability.STABLE,
    CallKind.ACCESS_STATIC: Stability.STABLE,
    CallKind.METHOD_STATIC: Stability.STABLE,
    CallKind.ACCESS_NULLSAFE: Stability.DEPRECATED,
    CallKind.METHOD_NULLSAFE: Stability.DEPRECATED,
}


# ============================================================================
# NODES
# ============================================================================


class Location(_Frozen):
    """Source position of a node. ``line`` is 1-indexed."""

    file: str
    line: int
    col: int = 0


def _prepare(data: Any, kind_types: dict[str, str]) -> Any:
    if not isinstance(data, dict):
        return data
    data = dict(data)
    # Accept flat file/line/col fields next to the node's own fields.
    if "location" not in data and "file" in data:
        data["location"] = {
            "file": data.pop("file"),
            "line": data.pop("line", 0),
            "col": data.pop("col", 0),
        }
    if "kind_type" not in data and "kindType" not in data and data.get("kind") in kind_types:
        data["kind_type"] = kind_types[data["kind"]]
    return data


class Value(_Frozen):
    """A single producible quantity in the analyzed program."""

    id: str
    kind: ValueKind
    kind_type: str | None = _alias("kind_type", "kindType")
    symbol: str | None = None
    type: str | None = None
    expr: str | None = None
    source_call_id: str | None = _alias("source_call_id", "sourceCallId")
    source_value_id: str | None = _alias("source_value_id", "sourceValueId")
    location: Location | None = None
    declared_name: str | None = _alias("name")

    @model_validator(mode="before")
    @classmethod
    def _fill(cls, data: Any) -> Any:
        return _prepare(data, {k.value: k.default_kind_type for k in ValueKind})

    @property
    def name(self) -> str | None:
        """Variable name (``$order``) for parameters and locals."""
        if self.declared_name:
            return symbols.normalize_variable(self.declared_name)
        return symbols.variable_name(self.symbol)

    @property
    def scope(self) -> str | None:
        """Enclosing-method part of the value's symbol."""
        return symbols.symbol_scope(self.symbol)

    @property
    def declaration_line(self) -> int | None:
        line = symbols.declaration_line(self.symbol)
        if line is None and self.location is not None:
            return self.location.line
        return line

    @property
    def file(self) -> str | None:
        return self.location.file if self.location else None

    @property
    def line(self) -> int | None:
        return self.location.line if self.location else None

    def describe(self) -> str:
        label = self.name or self.expr or self.symbol or "?"
        return f"value({self.kind.value}, id={self.id}, {label})"


class Argument(_Frozen):
    """Positional binding from a call's parameter slot to a value."""

    position: int = Field(ge=0)
    parameter: str | None = None
    value_id: str | None = _alias("value_id", "valueId")
    value_expr: str | None = _alias("value_expr", "valueExpr")

    @property
    def is_bound(self) -> bool:
        return self.value_id is not None

    @property
    def is_well_formed(self) -> bool:
        """Exactly one of ``value_id`` / non-empty ``value_expr`` is present."""
        return (self.value_id is not None) != bool(self.value_expr)


class Call(_Frozen):
    """An invocation or operator application."""

    id: str
    kind: CallKind
    kind_type: KindType | None = _alias("kind_type", "kindType")
    caller: str
    callee: str | None = None
    return_type: str | None = _alias("return_type", "returnType")
    receiver_value_id: str | None = _alias("receiver_value_id", "receiverValueId")
    result_value_id: str | None = _alias("result_value_id", "resultValueId")
    location: Location | None = None
    arguments: tuple[Argument, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _fill(cls, data: Any) -> Any:
        return _prepare(data, {k.value: k.kind_type.value for k in CallKind})

    @model_validator(mode="after")
    def _unique_positions(self) -> Call:
        seen: set[int] = set()
        for arg in self.arguments:
            if arg.position in seen:
                raise ValueError(f"duplicate argument position {arg.position}")
            seen.add(arg.position)
        return self

    @property
    def scope(self) -> str | None:
        return symbols.symbol_scope(self.caller)

    @property
    def file(self) -> str | None:
        return self.location.file if self.location else None

    @property
    def line(self) -> int | None:
        return self.location.line if self.location else None

    def argument_at(self, position: int) -> Argument | None:
        for arg in self.arguments:
            if arg.position == position:
                return arg
        return None

    @property
    def positions(self) -> list[int]:
        return [arg.position for arg in self.arguments]

    def describe(self) -> str:
        return f"call({self.kind.value}, id={self.id}, callee={self.callee or '?'})"


class CallGraphDocument(_Frozen):
    """Root of calls.json."""

    version: str = "0.0"
    values: tuple[Value, ...] = ()
    calls: tuple[Call, ...] = ()
