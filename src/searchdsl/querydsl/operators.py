"""Operator table.

Single source of truth mapping every accepted operator spelling (alias) to
one canonical operator family, plus the value helpers the compiler applies
before dispatching a condition: complex value extraction, numeric coercion
and array/range normalization.

Aliases are case-sensitive and matched exactly. An alias missing from the
table classifies as `OperatorFamily.UNKNOWN`; normalization never raises.
"""

import math
import re
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Tuple

from searchdsl.constants import ValueType
from searchdsl.exceptions import InvalidRangeError
from searchdsl.logger import Logger

__all__ = (
    "OperatorFamily",
    "OPERATOR_ALIASES",
    "NUMERIC_COMPARISON_FAMILIES",
    "classify",
    "get_operator_aliases",
    "is_valid_operator",
    "is_equality",
    "is_inequality",
    "is_greater_than",
    "is_greater_or_equal",
    "is_less_than",
    "is_less_or_equal",
    "is_range",
    "is_array_membership",
    "is_numeric_comparison",
    "is_existence",
    "is_contains_family",
    "is_string_pattern",
    "extract_value",
    "coerce",
    "normalize_to_array",
    "normalize_range_value",
)

logger = Logger(__name__)


class OperatorFamily(str, Enum):
    """Canonical operator families every alias normalizes to."""

    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NIN = "nin"
    BETWEEN = "between"
    EXISTS = "exists"
    IS_NULL = "isNull"
    IS_EMPTY = "isEmpty"
    CONTAINS = "contains"
    NOT_CONTAINS = "notContains"
    CONTAINS_SOME = "containsSome"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    LIKE = "like"
    UNKNOWN = "unknown"


_FAMILY_ALIASES: Dict[OperatorFamily, Tuple[str, ...]] = {
    OperatorFamily.EQ: ("eq", "equal", "equalTo", "==", "==="),
    OperatorFamily.NEQ: ("neq", "ne", "notEqual", "notEqualTo", "!=", "!==", "<>"),
    OperatorFamily.GT: ("gt", "greaterThan", ">"),
    OperatorFamily.GTE: ("gte", "greaterThanOrEqualTo", ">=", ">=="),
    OperatorFamily.LT: ("lt", "lessThan", "<"),
    OperatorFamily.LTE: ("lte", "lessThanOrEqualTo", "<=", "<=="),
    OperatorFamily.IN: ("in", "inList"),
    OperatorFamily.NIN: ("nin", "notIn", "notInList"),
    OperatorFamily.BETWEEN: ("between", "bt", "bw", "><"),
    OperatorFamily.EXISTS: ("exists",),
    OperatorFamily.IS_NULL: ("isNull",),
    OperatorFamily.IS_EMPTY: ("isEmpty",),
    OperatorFamily.CONTAINS: ("contains", "includes", "has"),
    OperatorFamily.NOT_CONTAINS: ("notContains", "notIncludes", "notHas"),
    OperatorFamily.CONTAINS_SOME: ("containsSome", "includesSome", "hasSome"),
    OperatorFamily.STARTS_WITH: ("startsWith", "begins", "beginsWith"),
    OperatorFamily.ENDS_WITH: ("endsWith",),
    OperatorFamily.LIKE: ("like",),
}

# alias -> family, built once from the table above
OPERATOR_ALIASES: Dict[str, OperatorFamily] = {
    alias: family for family, aliases in _FAMILY_ALIASES.items() for alias in aliases
}

NUMERIC_COMPARISON_FAMILIES: FrozenSet[OperatorFamily] = frozenset(
    {
        OperatorFamily.GT,
        OperatorFamily.GTE,
        OperatorFamily.LT,
        OperatorFamily.LTE,
        OperatorFamily.BETWEEN,
    }
)

ARRAY_MEMBERSHIP_FAMILIES = frozenset({OperatorFamily.IN, OperatorFamily.NIN})
EXISTENCE_FAMILIES = frozenset({OperatorFamily.EXISTS, OperatorFamily.IS_NULL, OperatorFamily.IS_EMPTY})
CONTAINS_FAMILIES = frozenset(
    {OperatorFamily.CONTAINS, OperatorFamily.NOT_CONTAINS, OperatorFamily.CONTAINS_SOME}
)
STRING_PATTERN_FAMILIES = frozenset({OperatorFamily.STARTS_WITH, OperatorFamily.ENDS_WITH, OperatorFamily.LIKE})

_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_INTEGER_RE = re.compile(r"^[+-]?\d+$")


def classify(alias: str) -> OperatorFamily:
    """Return the canonical family for an operator alias.

    Examples:
        classify("equalTo") -> OperatorFamily.EQ
        classify(">==") -> OperatorFamily.GTE
        classify("matches") -> OperatorFamily.UNKNOWN
    """
    return OPERATOR_ALIASES.get(alias, OperatorFamily.UNKNOWN)


def get_operator_aliases(family: OperatorFamily) -> List[str]:
    """Return every accepted spelling of a family, canonical spelling first."""
    return list(_FAMILY_ALIASES.get(family, ()))


def is_valid_operator(alias: str) -> bool:
    return alias in OPERATOR_ALIASES


def _matcher(*families: OperatorFamily):
    targets = frozenset(families)

    def match(alias: str) -> bool:
        return classify(alias) in targets

    return match


is_equality = _matcher(OperatorFamily.EQ)
is_inequality = _matcher(OperatorFamily.NEQ)
is_greater_than = _matcher(OperatorFamily.GT)
is_greater_or_equal = _matcher(OperatorFamily.GTE)
is_less_than = _matcher(OperatorFamily.LT)
is_less_or_equal = _matcher(OperatorFamily.LTE)
is_range = _matcher(OperatorFamily.BETWEEN)
is_array_membership = _matcher(*ARRAY_MEMBERSHIP_FAMILIES)
is_numeric_comparison = _matcher(*NUMERIC_COMPARISON_FAMILIES)
is_existence = _matcher(*EXISTENCE_FAMILIES)
is_contains_family = _matcher(*CONTAINS_FAMILIES)
is_string_pattern = _matcher(*STRING_PATTERN_FAMILIES)


def extract_value(raw: Any) -> Any:
    """Unwrap a complex filter value to its ``val``; other values pass through.

    Accepts both the `ComplexFilterValue` model and its dict wire form
    (``{"val": ..., "valType": ..., "label": ...}``). Value types other than
    ``literal`` are not evaluated; their ``val`` is used as-is.
    """
    if isinstance(raw, dict) and "val" in raw:
        val_type = raw.get("valType")
        val = raw["val"]
    elif hasattr(raw, "val") and hasattr(raw, "val_type"):
        val_type = raw.val_type
        val = raw.val
    else:
        return raw

    if val_type is not None and val_type != ValueType.LITERAL:
        logger.warning(
            "Unsupported valType %r, treating value %r as literal",
            str(getattr(val_type, "value", val_type)),
            val,
        )
    return val


def _parse_number(value: str) -> Any:
    text = value.strip()
    if not _NUMBER_RE.match(text):
        return None
    if _INTEGER_RE.match(text):
        return int(text)
    number = float(text)
    # Overflowing literals stay strings rather than becoming inf
    return number if math.isfinite(number) else None


def coerce(value: Any, family: OperatorFamily) -> Any:
    """Convert numeric strings to numbers for numeric-comparison families.

    ``"18"`` becomes ``18`` and ``"95.5"`` becomes ``95.5`` for gt/gte/lt/lte/between.
    Non-numeric or overflowing strings and every other family are returned unchanged.
    """
    if family not in NUMERIC_COMPARISON_FAMILIES or not isinstance(value, str):
        return value
    number = _parse_number(value)
    return value if number is None else number


def normalize_to_array(value: Any) -> List[Any]:
    """Wrap a scalar in a one-element list; lists and tuples are copied to a list."""
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def normalize_range_value(value: Any, field: str = "", operator: str = "between") -> Tuple[Any, Any]:
    """Normalize ``[from, to]`` or ``{"from": .., "to": ..}`` to a ``(min, max)`` pair.

    Raises:
        InvalidRangeError: If the value has neither form
    """
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return value[0], value[1]
    if isinstance(value, dict) and "from" in value and "to" in value:
        return value["from"], value["to"]
    raise InvalidRangeError(
        "Range value must be [from, to] or {'from': .., 'to': ..}",
        field=field,
        operator=operator,
        value=value,
    )
