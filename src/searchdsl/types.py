"""Type aliases for the searchdsl package.

This module provides reusable type definitions shared by the criteria
model, the filter AST and the query builder.
"""

from typing import Any, Dict, List, Tuple, Union

# Values a filter condition can compare against
Scalar = Union[str, int, float, bool, None]
ConditionValue = Union[Scalar, Tuple[Scalar, ...], List[Scalar]]

# Meilisearch search parameters
SearchOptions = Dict[str, Any]

GeoPoint = Tuple[float, float]
