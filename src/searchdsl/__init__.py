"""
searchdsl compiles declarative filter criteria into Meilisearch filter
expressions and assembles the surrounding search options through a fluent
`QueryBuilder`.
"""

from .exceptions import (
    InvalidOptionError,
    InvalidRangeError,
    MalformedFilterError,
    MissingConfigError,
    SearchDSLError,
)
from .schema import (
    AttributeFilter,
    ComplexFilterValue,
    FilterCriteria,
    FilterGroup,
    TypedFilter,
    parse_filter_criteria,
)
from .querydsl import CompiledQuery, FacetFilterBuilder, FilterState, QueryBuilder
from .querydsl.compilers import MeiliFilterCompiler, meili_filter
from .search import SearchIndexConfig, SearchQuery, build_search_query

__version__ = "0.1.0"

__all__ = [
    "QueryBuilder",
    "FacetFilterBuilder",
    "CompiledQuery",
    "FilterState",
    "MeiliFilterCompiler",
    "meili_filter",
    "AttributeFilter",
    "ComplexFilterValue",
    "FilterCriteria",
    "FilterGroup",
    "TypedFilter",
    "parse_filter_criteria",
    "SearchIndexConfig",
    "SearchQuery",
    "build_search_query",
    "SearchDSLError",
    "MalformedFilterError",
    "InvalidRangeError",
    "InvalidOptionError",
    "MissingConfigError",
]
