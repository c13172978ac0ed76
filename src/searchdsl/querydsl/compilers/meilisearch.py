"""Meilisearch-specific filter compiler.

Walks filter criteria and drives a `QueryBuilder`, producing Meilisearch
filter expressions.

Meilisearch supports:
- Comparison: =, !=, >, >=, <, <=
- Membership / range: IN [..], min TO max
- Presence: EXISTS, IS NULL, IS EMPTY
- Strings: CONTAINS, STARTS WITH
- Logical: AND, OR, NOT
- Geo: _geoRadius, _geoBoundingBox

Limitations:
- No ENDS WITH or LIKE primitive; ``endsWith`` is emitted as raw text and
  ``like`` is approximated with CONTAINS
- ``notContains`` / ``containsSome`` are expanded into NOT / OR groups
"""

from collections.abc import Mapping
from functools import partial
from typing import Any, List, Optional, Tuple

from searchdsl.constants import LogicalOperator
from searchdsl.exceptions import MalformedFilterError
from searchdsl.logger import Logger
from searchdsl.schema import AttributeFilter, FilterGroup, TypedFilter

from ..builder import QueryBuilder
from ..operators import (
    OperatorFamily,
    classify,
    coerce,
    extract_value,
    normalize_range_value,
    normalize_to_array,
)
from .base import BaseFilterCompiler
from .utils import normalize_criteria_input, raw_fallback

__all__ = (
    "MeiliFilterCompiler",
    "meili_filter",
)

logger = Logger(__name__)


class MeiliFilterCompiler(BaseFilterCompiler):
    """Compile filter criteria into Meilisearch filter expressions.

    Capabilities:
    - SUPPORTS_NESTED: True (arbitrary AND/OR/NOT nesting)
    - SUPPORTS_ENDS_WITH: False (emitted as raw ``ENDS WITH`` text)
    """

    SUPPORTS_NESTED = True
    SUPPORTS_ENDS_WITH = False

    # Families that map to a single condition-builder method
    _OP_MAP = {
        OperatorFamily.EQ: "eq",
        OperatorFamily.NEQ: "neq",
        OperatorFamily.GT: "gt",
        OperatorFamily.GTE: "gte",
        OperatorFamily.LT: "lt",
        OperatorFamily.LTE: "lte",
        OperatorFamily.STARTS_WITH: "starts_with",
        OperatorFamily.LIKE: "contains",
    }

    # Presence families: (method when true, method when value is False)
    _PRESENCE_MAP = {
        OperatorFamily.EXISTS: ("exists", "not_exists"),
        OperatorFamily.IS_NULL: ("is_null", "is_not_null"),
        OperatorFamily.IS_EMPTY: ("is_empty", "is_not_empty"),
    }

    def compile(self, criteria: Any, builder: QueryBuilder) -> QueryBuilder:
        """Add the filter described by criteria to builder.

        Args:
            criteria: FilterGroup / TypedFilter / AttributeFilter or their dict form; None and {} are no-ops
            builder: Builder receiving the filter nodes

        Returns:
            The same builder

        Raises:
            MalformedFilterError: If the criteria shape is not recognized
            InvalidRangeError: If a range operator value is malformed
        """
        if criteria is None or (isinstance(criteria, Mapping) and not criteria):
            return builder
        self._compile_node(normalize_criteria_input(criteria), builder)
        return builder

    def to_filter(self, criteria: Any) -> Optional[str]:
        """Compile criteria into a filter string with a fresh builder."""
        return self.compile(criteria, QueryBuilder()).build().filter

    def _compile_node(self, node: Any, qb: QueryBuilder) -> None:
        if isinstance(node, FilterGroup):
            self._compile_group(node, qb)
        elif isinstance(node, TypedFilter):
            self._compile_typed(node, qb)
        elif isinstance(node, AttributeFilter):
            self._compile_attribute(node, qb)
        else:
            raise MalformedFilterError("Unrecognized filter criteria node", value=node)

    def _compile_group(self, group: FilterGroup, qb: QueryBuilder) -> None:
        """Apply ``and``, ``or`` and ``not`` in that order; each is AND-ed with what precedes it."""
        if group.and_:

            def all_of(sub: QueryBuilder) -> None:
                for clause in group.and_:
                    sub.and_group(partial(self._compile_node, clause))

            qb.and_group(all_of)

        if group.or_:

            def any_of(sub: QueryBuilder) -> None:
                for clause in group.or_:
                    sub.or_group(partial(self._compile_node, clause))

            qb.and_group(lambda sub: sub.or_group(any_of))

        if group.not_:

            def none_of(sub: QueryBuilder) -> None:
                for clause in group.not_:
                    sub.and_group(partial(self._compile_node, clause))

            qb.not_group(none_of)

    def _compile_typed(self, node: TypedFilter, qb: QueryBuilder) -> None:
        self._combine(node.logical_op, [partial(self._compile_attribute, attr) for attr in node.attributes], qb)

    def _compile_attribute(self, node: AttributeFilter, qb: QueryBuilder) -> None:
        steps = [partial(self._compile_operator, node.attribute, alias, raw) for alias, raw in node.operators.items()]
        self._combine(node.logical_op, steps, qb)

    def _combine(self, logical_op: LogicalOperator, steps: List[Any], qb: QueryBuilder) -> None:
        """Run compile steps joined by a criteria-level logical operator."""
        if logical_op is LogicalOperator.OR and len(steps) > 1:

            def any_step(sub: QueryBuilder) -> None:
                for step in steps:
                    sub.or_group(step)

            qb.and_group(any_step)
        elif logical_op is LogicalOperator.NOT:

            def all_steps(sub: QueryBuilder) -> None:
                for step in steps:
                    step(sub)

            qb.not_group(all_steps)
        else:
            for step in steps:
                step(qb)

    def _compile_operator(self, field: str, alias: str, raw: Any, qb: QueryBuilder) -> None:
        family = classify(alias)
        value = coerce(extract_value(raw), family)
        logger.debug("Compiling %s %s (%s) %r", field, alias, family.value, value)

        if family in self._OP_MAP:
            getattr(qb.where(field), self._OP_MAP[family])(value)
        elif family in self._PRESENCE_MAP:
            present, absent = self._PRESENCE_MAP[family]
            getattr(qb.where(field), absent if value is False else present)()
        elif family is OperatorFamily.IN:
            qb.where(field).in_(normalize_to_array(value))
        elif family is OperatorFamily.NIN:
            qb.where(field).not_in(normalize_to_array(value))
        elif family is OperatorFamily.BETWEEN:
            low, high = self._range_bounds(field, alias, value)
            qb.where(field).range_to(low, high)
        elif family is OperatorFamily.CONTAINS:
            for item in normalize_to_array(value):
                qb.where(field).contains(item)
        elif family is OperatorFamily.NOT_CONTAINS:
            for item in normalize_to_array(value):
                qb.not_group(lambda sub, item=item: sub.where(field).contains(item))
        elif family is OperatorFamily.CONTAINS_SOME:

            def any_item(sub: QueryBuilder) -> None:
                for item in normalize_to_array(value):
                    sub.or_where(field).contains(item)

            qb.and_group(any_item)
        elif family is OperatorFamily.ENDS_WITH:
            qb.filter_raw(raw_fallback(field, "ENDS WITH", value))
        else:
            logger.warning("Unknown operator %r on field %r, emitting raw filter", alias, field)
            qb.filter_raw(raw_fallback(field, alias, value))

    @staticmethod
    def _range_bounds(field: str, alias: str, value: Any) -> Tuple[Any, Any]:
        low, high = normalize_range_value(value, field=field, operator=alias)
        return coerce(low, OperatorFamily.BETWEEN), coerce(high, OperatorFamily.BETWEEN)


meili_filter = MeiliFilterCompiler()
