"""Query DSL module.

Exports the `QueryBuilder` fluent API and the filter AST it builds.
Criteria compilation is handled by the `compilers` subpackage.
"""

from .builder import CompiledQuery, ConditionBuilder, FacetFilterBuilder, FilterState, QueryBuilder
from .nodes import Condition, FilterNode, Group, Not, Raw
from .operators import OperatorFamily, classify

__all__ = (
    "QueryBuilder",
    "ConditionBuilder",
    "FacetFilterBuilder",
    "CompiledQuery",
    "FilterState",
    "FilterNode",
    "Condition",
    "Group",
    "Not",
    "Raw",
    "OperatorFamily",
    "classify",
)
