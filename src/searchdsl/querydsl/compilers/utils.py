"""Compiler utility functions.

Provides helpers for normalizing criteria input and rendering raw fallback
conditions.
"""

from typing import Any

from searchdsl.exceptions import MalformedFilterError
from searchdsl.schema import FilterCriteria, parse_filter_criteria

from ..nodes import to_json

__all__ = (
    "normalize_criteria_input",
    "raw_fallback",
    "to_json",
)


def normalize_criteria_input(criteria: Any) -> FilterCriteria:
    """Normalize a criteria model, dict or object with ``to_criteria()`` to the tagged union.

    Args:
        criteria: Typed criteria, untyped dict payload or an object exposing ``to_criteria()``

    Returns:
        FilterGroup, TypedFilter or AttributeFilter

    Raises:
        MalformedFilterError: If the input matches none of the criteria shapes
    """
    if hasattr(criteria, "to_criteria") and callable(criteria.to_criteria):
        criteria = criteria.to_criteria()
    if criteria is None or isinstance(criteria, (str, bytes, int, float, list, tuple)):
        raise MalformedFilterError(
            f"Filter criteria must be a mapping or criteria model, got {type(criteria).__name__}",
            value=criteria,
        )
    return parse_filter_criteria(criteria)


def raw_fallback(field: str, operator: str, value: Any) -> str:
    """Render ``field operator <json value>`` for operators without a structured mapping."""
    return f"{field} {operator} {to_json(value)}"
