"""Filter AST.

Four node kinds make up a compiled filter: `Condition`, `Group`, `Not` and
`Raw`. Nodes are immutable; `Group.add` returns a new group instead of
mutating in place, so subtrees can be shared between builders safely.
`clone()` is still provided for callers that want an explicit copy.

Serialization targets the Meilisearch filter expression grammar:

- Condition: ``field SYMBOL value``
- Group: children joined by `` AND `` / `` OR ``, parenthesized only with 2+ children
- Not: ``NOT (child)``, or ``NOT child`` when the child is already parenthesized
- Raw: emitted verbatim
"""

from __future__ import annotations

import json
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

from searchdsl.constants import Connector
from searchdsl.exceptions import ValidationError
from searchdsl.types import ConditionValue

from .operators import OperatorFamily

__all__ = (
    "CONDITION_SYMBOLS",
    "FilterNode",
    "Condition",
    "Group",
    "Not",
    "Raw",
    "format_value",
    "quote_string",
    "to_json",
)

# Families that serialize as a plain `field SYMBOL value` condition
CONDITION_SYMBOLS: Dict[OperatorFamily, str] = {
    OperatorFamily.EQ: "=",
    OperatorFamily.NEQ: "!=",
    OperatorFamily.GT: ">",
    OperatorFamily.GTE: ">=",
    OperatorFamily.LT: "<",
    OperatorFamily.LTE: "<=",
    OperatorFamily.IN: "IN",
    OperatorFamily.CONTAINS: "CONTAINS",
    OperatorFamily.STARTS_WITH: "STARTS WITH",
}


def quote_string(value: str) -> str:
    """Single-quote a string, escaping backslashes and embedded quotes."""
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def format_value(v: Any) -> str:
    """Format a Python value as a filter expression literal.

    Strings are quoted, booleans and None use their JSON spelling, numbers
    render literally and sequences render as ``[a, b]``.

    Raises:
        ValidationError: If ``v`` is a NaN or infinite float
    """
    if v is None:
        return "null"
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, float) and not math.isfinite(v):
        raise ValidationError("Filter values must be finite numbers", value=v)
    if isinstance(v, (int, float)):
        return str(v)
    if isinstance(v, Enum):
        v = v.value
    if isinstance(v, (list, tuple)):
        return "[" + ", ".join(format_value(x) for x in v) + "]"
    return quote_string(str(v))


def to_json(v: Any) -> str:
    """Compact JSON rendering used for raw fallback conditions."""
    return json.dumps(v, ensure_ascii=False, separators=(",", ":"), default=str)


def _freeze(value: Any) -> Any:
    """Convert lists to tuples at every nesting level."""
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


class FilterNode(ABC):
    """Base class of all filter AST nodes."""

    @abstractmethod
    def serialize(self) -> str:
        """Render this node as a filter expression ("" when it filters nothing)."""
        raise NotImplementedError

    @abstractmethod
    def clone(self) -> "FilterNode":
        """Return a structurally independent copy of this node."""
        raise NotImplementedError

    def __str__(self) -> str:
        return self.serialize()


@dataclass(frozen=True)
class Condition(FilterNode):
    """A single comparison: ``field SYMBOL value``.

    Attributes:
        field: Target attribute name.
        operator: Canonical family; must be one of `CONDITION_SYMBOLS`.
        value: Scalar, boolean or sequence. Lists are stored as tuples, nested ones included.
    """

    field: str
    operator: OperatorFamily
    value: ConditionValue

    def __post_init__(self) -> None:
        object.__setattr__(self, "operator", OperatorFamily(self.operator))
        if self.operator not in CONDITION_SYMBOLS:
            raise ValueError(f"Operator {self.operator!r} has no condition symbol")
        object.__setattr__(self, "value", _freeze(self.value))

    @property
    def symbol(self) -> str:
        return CONDITION_SYMBOLS[self.operator]

    def serialize(self) -> str:
        return f"{self.field} {self.symbol} {format_value(self.value)}"

    def clone(self) -> "Condition":
        return Condition(self.field, self.operator, self.value)


@dataclass(frozen=True)
class Group(FilterNode):
    """Ordered children joined by one connector.

    Children order is the only source of evaluation order.
    """

    connector: Connector = Connector.AND
    children: Tuple[FilterNode, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "connector", Connector(self.connector))
        object.__setattr__(self, "children", tuple(self.children))

    @property
    def is_empty(self) -> bool:
        return not self.children

    def add(self, node: FilterNode) -> "Group":
        """Return a new group with ``node`` appended."""
        return Group(self.connector, self.children + (node,))

    def serialize(self) -> str:
        parts = [text for text in (child.serialize() for child in self.children) if text]
        if not parts:
            return ""
        joined = f" {self.connector.value} ".join(parts)
        return f"({joined})" if len(parts) > 1 else joined

    def clone(self) -> "Group":
        return Group(self.connector, tuple(child.clone() for child in self.children))


@dataclass(frozen=True)
class Not(FilterNode):
    """Negation of another node."""

    child: FilterNode

    def serialize(self) -> str:
        text = self.child.serialize()
        if not text:
            return ""
        # Groups already carry their own parentheses
        return f"NOT {text}" if text.startswith("(") else f"NOT ({text})"

    def clone(self) -> "Not":
        return Not(self.child.clone())


@dataclass(frozen=True)
class Raw(FilterNode):
    """Verbatim filter text; the caller is responsible for escaping."""

    text: str

    def serialize(self) -> str:
        return self.text

    def clone(self) -> "Raw":
        return Raw(self.text)
