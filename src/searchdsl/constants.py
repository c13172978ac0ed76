"""
Shared constants for filter criteria, AST connectors and search options.
"""

from enum import Enum


class Connector(str, Enum):
    """Boolean joiner between sibling nodes of a filter group."""

    AND = "AND"
    OR = "OR"


class LogicalOperator(str, Enum):
    """How the operators (or attributes) of one criteria object combine."""

    AND = "and"
    OR = "or"
    NOT = "not"


class ValueType(str, Enum):
    LITERAL = "literal"
    PROPERTY_REFERENCE = "propertyReference"
    EXPRESSION = "expression"


class MatchingStrategy(str, Enum):
    ALL = "all"
    LAST = "last"
    FREQUENCY = "frequency"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


# Keys of a criteria object that describe it rather than filter on it
FILTER_ID_KEY = "filterId"
FILTER_LABEL_KEY = "filterLabel"
LOGICAL_OP_KEY = "logicalOp"
ATTRIBUTE_KEY = "attribute"

METADATA_KEYS = frozenset({FILTER_ID_KEY, FILTER_LABEL_KEY, LOGICAL_OP_KEY, ATTRIBUTE_KEY})

GROUP_KEYS = ("and", "or", "not")

# Legacy spellings accepted in complex filter values
VALUE_TYPE_ALIASES = {
    "literal": ValueType.LITERAL,
    "propertyReference": ValueType.PROPERTY_REFERENCE,
    "propRef": ValueType.PROPERTY_REFERENCE,
    "expression": ValueType.EXPRESSION,
}
