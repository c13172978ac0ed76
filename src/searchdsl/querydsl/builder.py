"""Fluent query builder.

`QueryBuilder` owns one filter AST root (a `Group`) plus a bag of
Meilisearch search options. Filters are added through `where()`-style
condition builders, nested groups (`and_group`, `or_group`, `not_group`) and
raw text; everything else (sort, pagination, facets, highlighting, geo,
hybrid/vector search) is a setter with a matching `clear_*`.

Typical usage:

- ``QueryBuilder().where("age").gte(18).or_where("vip").eq(True).build()``
- ``qb.and_group(lambda g: g.where("a").eq(1).or_where("b").eq(2))``

Merging a node into the root follows one state machine:

- EMPTY: the incoming connector becomes the root connector
- same connector as the root: the node is appended to the root
- different connector: a new root ``Group(incoming, [old_root, node])`` is created,
  so mixed AND/OR chains stay left-associated in call order
"""

from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Union

from searchdsl.constants import Connector, MatchingStrategy, SortDirection
from searchdsl.exceptions import InvalidOptionError
from searchdsl.logger import Logger
from searchdsl.settings import settings
from searchdsl.types import GeoPoint, SearchOptions

from .nodes import Condition, FilterNode, Group, Not, Raw, format_value, to_json
from .operators import OperatorFamily

__all__ = (
    "FilterState",
    "CompiledQuery",
    "ConditionBuilder",
    "FacetFilterBuilder",
    "QueryBuilder",
)

logger = Logger(__name__)

ConnectorLike = Union[Connector, str]
GroupFn = Callable[["QueryBuilder"], Any]


class FilterState(str, Enum):
    """Observable state of a builder's filter root."""

    EMPTY = "EMPTY"
    AND = "AND"
    OR = "OR"


@dataclass(frozen=True)
class CompiledQuery:
    """Output of `QueryBuilder.build()`.

    Attributes:
        filter: Filter expression, or None when no filter was added.
        options: Search options; includes the filter under the configured key when set.
        q: Full-text query string, if any.
    """

    filter: Optional[str]
    options: SearchOptions = field(default_factory=dict)
    q: Optional[str] = None

    def to_params(self) -> SearchOptions:
        """Flatten into one search-parameter dict, including ``q`` when set."""
        params = deepcopy(self.options)
        if self.q is not None:
            params["q"] = self.q
        return params


class ConditionBuilder:
    """Builder for a single field condition.

    Every terminal method adds one node to the parent and returns the parent,
    so calls chain back into the `QueryBuilder`.
    """

    def __init__(self, parent: "QueryBuilder", connector: ConnectorLike, field: str, negated: bool = False) -> None:
        self._parent = parent
        self._connector = Connector(connector)
        self._field = field
        self._negated = negated

    def not_(self) -> "ConditionBuilder":
        """Invert the next condition."""
        self._negated = not self._negated
        return self

    def _apply(self, node: FilterNode) -> "QueryBuilder":
        if self._negated:
            node = Not(node)
        self._parent.add_filter_node(node, self._connector)
        return self._parent

    def _condition(self, family: OperatorFamily, value: Any) -> "QueryBuilder":
        return self._apply(Condition(self._field, family, value))

    # Basic comparisons
    def eq(self, value: Any) -> "QueryBuilder":
        return self._condition(OperatorFamily.EQ, value)

    def neq(self, value: Any) -> "QueryBuilder":
        return self._condition(OperatorFamily.NEQ, value)

    def gt(self, value: Any) -> "QueryBuilder":
        return self._condition(OperatorFamily.GT, value)

    def gte(self, value: Any) -> "QueryBuilder":
        return self._condition(OperatorFamily.GTE, value)

    def lt(self, value: Any) -> "QueryBuilder":
        return self._condition(OperatorFamily.LT, value)

    def lte(self, value: Any) -> "QueryBuilder":
        return self._condition(OperatorFamily.LTE, value)

    # Array membership
    def in_(self, values: Sequence[Any]) -> "QueryBuilder":
        return self._condition(OperatorFamily.IN, list(values))

    def not_in(self, values: Sequence[Any]) -> "QueryBuilder":
        return self.not_().in_(values)

    # Range, rendered as `field min TO max`
    def range_to(self, min_value: Any, max_value: Any) -> "QueryBuilder":
        return self._apply(Raw(f"{self._field} {format_value(min_value)} TO {format_value(max_value)}"))

    def not_between(self, min_value: Any, max_value: Any) -> "QueryBuilder":
        return self.not_().range_to(min_value, max_value)

    # EXISTS / IS NULL / IS EMPTY
    def exists(self) -> "QueryBuilder":
        return self._apply(Raw(f"{self._field} EXISTS"))

    def not_exists(self) -> "QueryBuilder":
        return self.not_().exists()

    def is_empty(self) -> "QueryBuilder":
        return self._apply(Raw(f"{self._field} IS EMPTY"))

    def is_not_empty(self) -> "QueryBuilder":
        return self.not_().is_empty()

    def is_null(self) -> "QueryBuilder":
        return self._apply(Raw(f"{self._field} IS NULL"))

    def is_not_null(self) -> "QueryBuilder":
        return self.not_().is_null()

    # String matching
    def contains(self, value: Any) -> "QueryBuilder":
        return self._condition(OperatorFamily.CONTAINS, value)

    def starts_with(self, value: Any) -> "QueryBuilder":
        return self._condition(OperatorFamily.STARTS_WITH, value)

    # Synonyms
    equals = eq
    not_equal = neq
    greater_than = gt
    greater_or_equal = gte
    less_than = lt
    less_or_equal = lte
    in_list = in_
    not_in_list = not_in
    between = range_to


def _facet_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class FacetFilterBuilder:
    """Collects ``field:value`` facet filter terms for a single field.

    Terms are kept in call order; `build()` returns ``None`` when nothing was added.
    """

    def __init__(self, field: str) -> None:
        self.field = field
        self._terms: List[str] = []

    def eq(self, value: Any) -> "FacetFilterBuilder":
        self._terms.append(f"{self.field}:{_facet_value(value)}")
        return self

    def in_(self, values: Sequence[Any]) -> "FacetFilterBuilder":
        for value in values:
            self.eq(value)
        return self

    def not_(self, value: Any) -> "FacetFilterBuilder":
        self._terms.append(f"NOT {self.field}:{_facet_value(value)}")
        return self

    def not_in(self, values: Sequence[Any]) -> "FacetFilterBuilder":
        for value in values:
            self.not_(value)
        return self

    def build(self) -> Optional[List[str]]:
        return list(self._terms) if self._terms else None


def _check_range(option: str, value: float, low: float, high: float) -> None:
    if not low <= value <= high:
        raise InvalidOptionError(f"{option} must be within [{low}, {high}]", option=option, value=value)


def _check_min(option: str, value: int, minimum: int) -> None:
    if value < minimum:
        raise InvalidOptionError(f"{option} must be >= {minimum}", option=option, value=value)


def _sort_direction(direction: str) -> str:
    try:
        return SortDirection(direction).value
    except ValueError:
        raise InvalidOptionError("Sort direction must be 'asc' or 'desc'", option="sort", value=direction) from None


class QueryBuilder:
    """Composable Meilisearch query: one filter AST root plus search options.

    Attributes:
        filter_key: Options key the compiled filter expression is stored under
    """

    def __init__(self, connector: Optional[ConnectorLike] = None, filter_key: Optional[str] = None) -> None:
        self._default_connector = Connector(connector or settings.SEARCH_DEFAULT_CONNECTOR)
        self._root = Group(self._default_connector)
        self._options: SearchOptions = {}
        self._q: Optional[str] = None
        self.filter_key = filter_key or settings.SEARCH_FILTER_KEY

    @classmethod
    def create(cls, connector: Optional[ConnectorLike] = None, filter_key: Optional[str] = None) -> "QueryBuilder":
        return cls(connector, filter_key)

    @staticmethod
    def raw_condition(field: str, operator: str, value: Any) -> Raw:
        """Build a raw ``field OPERATOR value`` node with the value safely formatted.

        Scalars are formatted like condition values; mappings render as JSON.
        """
        if isinstance(value, dict):
            return Raw(f"{field} {operator} {to_json(value)}")
        return Raw(f"{field} {operator} {format_value(value)}")

    def __repr__(self) -> str:
        return f"<QueryBuilder: filter={self._root.serialize()!r} options={self._options!r}>"

    # -------------------
    # Filter tree
    # -------------------
    @property
    def root(self) -> Group:
        return self._root

    @property
    def state(self) -> FilterState:
        if self._root.is_empty:
            return FilterState.EMPTY
        return FilterState(self._root.connector.value)

    def add_filter_node(self, node: FilterNode, connector: ConnectorLike = Connector.AND) -> "QueryBuilder":
        """Merge ``node`` into the root using the connector-merge rules.

        Nodes that serialize to nothing are ignored.
        """
        connector = Connector(connector)
        if not node.serialize():
            return self
        state = self.state
        if state is FilterState.EMPTY:
            if isinstance(node, Group) and (node.connector == connector or len(node.children) <= 1):
                # Adopt the subtree itself as the new root
                self._root = Group(connector, node.children)
            else:
                self._root = Group(connector, (node,))
        elif state.value == connector.value:
            self._root = self._root.add(node)
        else:
            self._root = Group(connector, (self._root, node))
        logger.debug("Merged %s with %s: %s -> %s", type(node).__name__, connector.value, state.value, self.state.value)
        return self

    def _merge_sub_builder(self, fn: GroupFn, connector: Connector) -> Optional[Group]:
        sub = self.__class__(connector, self.filter_key)
        fn(sub)
        if not sub.root.serialize():
            return None
        return sub.root

    def where(self, field: str) -> ConditionBuilder:
        """AND condition on a field."""
        return ConditionBuilder(self, Connector.AND, field)

    and_where = where

    def or_where(self, field: str) -> ConditionBuilder:
        """OR condition on a field."""
        return ConditionBuilder(self, Connector.OR, field)

    def not_where(self, field: str) -> ConditionBuilder:
        """Negated AND condition on a field."""
        return ConditionBuilder(self, Connector.AND, field, negated=True)

    def and_group(self, fn: GroupFn) -> "QueryBuilder":
        """Build a nested group with a fresh sub-builder and merge it with AND.

        A sub-builder that adds nothing leaves this builder unchanged.
        """
        sub_root = self._merge_sub_builder(fn, Connector.AND)
        if sub_root is not None:
            self.add_filter_node(sub_root, Connector.AND)
        return self

    group = and_group

    def or_group(self, fn: GroupFn) -> "QueryBuilder":
        """Build a nested group with a fresh sub-builder and merge it with OR."""
        sub_root = self._merge_sub_builder(fn, Connector.OR)
        if sub_root is not None:
            self.add_filter_node(sub_root, Connector.OR)
        return self

    def not_group(self, fn: GroupFn) -> "QueryBuilder":
        """Build a nested group, negate it and merge it with AND.

        Negation has no connector of its own, so an OR root becomes
        ``(root) AND NOT (sub)``.
        """
        sub_root = self._merge_sub_builder(fn, Connector.AND)
        if sub_root is not None:
            self.add_filter_node(Not(sub_root), Connector.AND)
        return self

    def filter_raw(self, raw: str, connector: ConnectorLike = Connector.AND) -> "QueryBuilder":
        """Insert a raw filter string; blank text is ignored."""
        if not raw.strip():
            return self
        return self.add_filter_node(Raw(raw), connector)

    def filter_condition_raw(
        self, field: str, operator: str, value: Any, connector: ConnectorLike = Connector.AND
    ) -> "QueryBuilder":
        """Insert a single raw condition, quoting and escaping the value."""
        return self.add_filter_node(self.raw_condition(field, operator, value), connector)

    # Geo filter primitives
    def geo_radius(
        self, lat: float, lng: float, distance_in_meters: float, connector: ConnectorLike = Connector.AND
    ) -> "QueryBuilder":
        return self.filter_raw(f"_geoRadius({lat}, {lng}, {distance_in_meters})", connector)

    def geo_bounding_box(
        self, top_left: GeoPoint, bottom_right: GeoPoint, connector: ConnectorLike = Connector.AND
    ) -> "QueryBuilder":
        return self.filter_raw(
            f"_geoBoundingBox([{top_left[0]}, {top_left[1]}], [{bottom_right[0]}, {bottom_right[1]}])",
            connector,
        )

    def clear_filters(self) -> "QueryBuilder":
        self._root = Group(self._default_connector)
        return self

    # -------------------
    # Full-text query
    # -------------------
    def text(self, q: str) -> "QueryBuilder":
        self._q = q
        return self

    def clear_text(self) -> "QueryBuilder":
        self._q = None
        return self

    # -------------------
    # Search options
    # -------------------
    def sort(self, field: str, direction: str = "asc") -> "QueryBuilder":
        self._options["sort"] = [*self._options.get("sort", []), f"{field}:{_sort_direction(direction)}"]
        return self

    def sort_by_geo_point(self, lat: float, lng: float, direction: str = "asc") -> "QueryBuilder":
        return self.sort(f"_geoPoint({lat}, {lng})", direction)

    def clear_sort(self) -> "QueryBuilder":
        self._options.pop("sort", None)
        return self

    # Pagination: limit/offset and page/hitsPerPage are mutually exclusive
    def limit(self, n: int) -> "QueryBuilder":
        _check_min("limit", n, 0)
        self._drop("page", "hitsPerPage")
        self._options["limit"] = n
        return self

    def offset(self, n: int) -> "QueryBuilder":
        _check_min("offset", n, 0)
        self._drop("page", "hitsPerPage")
        self._options["offset"] = n
        return self

    def page(self, number: int) -> "QueryBuilder":
        _check_min("page", number, 1)
        self._drop("limit", "offset")
        self._options["page"] = number
        return self

    def hits_per_page(self, hits: int) -> "QueryBuilder":
        _check_min("hitsPerPage", hits, 0)
        self._drop("limit", "offset")
        self._options["hitsPerPage"] = hits
        return self

    def clear_pagination(self) -> "QueryBuilder":
        self._drop("limit", "offset", "page", "hitsPerPage")
        return self

    def select(self, fields: Sequence[str]) -> "QueryBuilder":
        self._options["attributesToRetrieve"] = list(fields)
        return self

    def clear_select(self) -> "QueryBuilder":
        self._drop("attributesToRetrieve")
        return self

    def distinct(self, field: str) -> "QueryBuilder":
        self._options["distinct"] = field
        return self

    def clear_distinct(self) -> "QueryBuilder":
        self._drop("distinct")
        return self

    def facets(self, fields: Sequence[str]) -> "QueryBuilder":
        """Request facet distribution for ``fields`` (``["*"]`` for all)."""
        self._options["facets"] = list(fields)
        return self

    def facet_stats(self, enabled: bool = True) -> "QueryBuilder":
        self._options["facetStats"] = enabled
        return self

    def clear_facets(self) -> "QueryBuilder":
        self._drop("facets", "facetStats")
        return self

    def facets_distribution(self, fields: Sequence[str]) -> "QueryBuilder":
        self._options["facetsDistribution"] = list(fields)
        return self

    def clear_facets_distribution(self) -> "QueryBuilder":
        self._drop("facetsDistribution")
        return self

    # Facet filters: each entry is one term or a list of OR-ed terms
    def facet_filter(self, field: str, *values: Any) -> "QueryBuilder":
        """Append one OR-ed entry of ``field:value`` terms to ``facetFilters``."""
        if not values:
            return self
        return self._add_facet_filter([f"{field}:{_facet_value(v)}" for v in values])

    def facet_filters(self, filters: Sequence[Union[str, Sequence[str]]]) -> "QueryBuilder":
        """Replace ``facetFilters`` wholesale."""
        self._options["facetFilters"] = [entry if isinstance(entry, str) else list(entry) for entry in filters]
        return self

    def with_facet_filter(self, field: str, fn: Callable[[FacetFilterBuilder], Any]) -> "QueryBuilder":
        """Build one facet filter entry with a `FacetFilterBuilder`; nothing is added when it stays empty."""
        facet = FacetFilterBuilder(field)
        fn(facet)
        terms = facet.build()
        if terms is None:
            return self
        return self._add_facet_filter(terms)

    def _add_facet_filter(self, terms: List[str]) -> "QueryBuilder":
        self._options["facetFilters"] = [*self._options.get("facetFilters", []), terms]
        return self

    def clear_facet_filters(self) -> "QueryBuilder":
        self._drop("facetFilters")
        return self

    # Post filter: applied to hits after facet distribution is computed
    def post_filter(self, expression: str) -> "QueryBuilder":
        self._options["post_filter"] = expression
        return self

    def with_post_filter(self, fn: GroupFn) -> "QueryBuilder":
        """Build the post filter with a fresh sub-builder; an empty sub-builder sets nothing."""
        sub = self.__class__(filter_key=self.filter_key)
        fn(sub)
        expression = sub.root.serialize()
        if expression:
            self._options["post_filter"] = expression
        return self

    def clear_post_filter(self) -> "QueryBuilder":
        self._drop("post_filter")
        return self

    def highlight(self, fields: Sequence[str], pre_tag: str = "<em>", post_tag: str = "</em>") -> "QueryBuilder":
        self._options["attributesToHighlight"] = list(fields)
        self._options["highlightPreTag"] = pre_tag
        self._options["highlightPostTag"] = post_tag
        return self

    def show_matches_position(self, flag: bool = True) -> "QueryBuilder":
        self._options["showMatchesPosition"] = flag
        return self

    def clear_highlight(self) -> "QueryBuilder":
        self._drop("attributesToHighlight", "highlightPreTag", "highlightPostTag", "showMatchesPosition")
        return self

    def crop(self, fields: Sequence[str], length: int = 50, marker: str = "...") -> "QueryBuilder":
        _check_min("cropLength", length, 0)
        self._options["attributesToCrop"] = list(fields)
        self._options["cropLength"] = length
        self._options["cropMarker"] = marker
        return self

    def clear_crop(self) -> "QueryBuilder":
        self._drop("attributesToCrop", "cropLength", "cropMarker")
        return self

    def matching_strategy(self, strategy: Union[MatchingStrategy, str]) -> "QueryBuilder":
        try:
            self._options["matchingStrategy"] = MatchingStrategy(strategy).value
        except ValueError:
            raise InvalidOptionError(
                "Matching strategy must be one of: all, last, frequency",
                option="matchingStrategy",
                value=strategy,
            ) from None
        return self

    def clear_matching_strategy(self) -> "QueryBuilder":
        self._drop("matchingStrategy")
        return self

    def locales(self, locale_list: Sequence[str]) -> "QueryBuilder":
        self._options["locales"] = list(locale_list)
        return self

    def clear_locales(self) -> "QueryBuilder":
        self._drop("locales")
        return self

    def attributes_to_search_on(self, fields: Sequence[str]) -> "QueryBuilder":
        self._options["attributesToSearchOn"] = list(fields)
        return self

    def clear_attributes_to_search_on(self) -> "QueryBuilder":
        self._drop("attributesToSearchOn")
        return self

    def hybrid(self, embedder: str, semantic_ratio: float = 0.5) -> "QueryBuilder":
        """Combine keyword and semantic search through a configured embedder."""
        _check_range("semanticRatio", semantic_ratio, 0.0, 1.0)
        self._options["hybrid"] = {"embedder": embedder, "semanticRatio": semantic_ratio}
        return self

    def clear_hybrid(self) -> "QueryBuilder":
        self._drop("hybrid")
        return self

    def vector_search(self, vector: Sequence[float]) -> "QueryBuilder":
        self._options["vector"] = list(vector)
        return self

    def retrieve_vectors(self, flag: bool = True) -> "QueryBuilder":
        self._options["retrieveVectors"] = flag
        return self

    def clear_vector_search(self) -> "QueryBuilder":
        self._drop("vector", "retrieveVectors")
        return self

    def show_ranking_score(self, flag: bool = True) -> "QueryBuilder":
        self._options["showRankingScore"] = flag
        return self

    def show_ranking_score_details(self, flag: bool = True) -> "QueryBuilder":
        self._options["showRankingScoreDetails"] = flag
        return self

    def ranking_score_threshold(self, threshold: float) -> "QueryBuilder":
        _check_range("rankingScoreThreshold", threshold, 0.0, 1.0)
        self._options["rankingScoreThreshold"] = threshold
        return self

    def clear_ranking_options(self) -> "QueryBuilder":
        self._drop("showRankingScore", "showRankingScoreDetails", "rankingScoreThreshold")
        return self

    def around(
        self, lat: float, lng: float, radius: Optional[float] = None, precision: Optional[float] = None
    ) -> "QueryBuilder":
        self._options["aroundLatLng"] = f"{lat},{lng}"
        if radius is not None:
            self._options["aroundRadius"] = radius
        if precision is not None:
            self._options["aroundPrecision"] = precision
        return self

    def clear_geo(self) -> "QueryBuilder":
        self._drop("aroundLatLng", "aroundRadius", "aroundPrecision")
        return self

    def raw_option(self, key: str, value: Any) -> "QueryBuilder":
        """Set a backend-specific option not modeled by the builder."""
        self._options[key] = deepcopy(value)
        return self

    def clear_raw_option(self, key: str) -> "QueryBuilder":
        self._drop(key)
        return self

    def clear_all_options(self) -> "QueryBuilder":
        self._options = {}
        return self

    @property
    def options(self) -> SearchOptions:
        """A copy of the current options (without the filter)."""
        return deepcopy(self._options)

    def _drop(self, *keys: str) -> None:
        for key in keys:
            self._options.pop(key, None)

    # -------------------
    # Copy / output
    # -------------------
    def clone(self) -> "QueryBuilder":
        """Return an independent builder with a deep copy of the filter tree and options."""
        copy = self.__class__(self._default_connector, self.filter_key)
        copy._q = self._q
        copy._root = self._root.clone()
        copy._options = deepcopy(self._options)
        return copy

    def build(self) -> CompiledQuery:
        options = deepcopy(self._options)
        text = self._root.serialize()
        if text:
            options[self.filter_key] = text
        logger.debug("Built query: filter=%r options=%s", text, sorted(options))
        return CompiledQuery(filter=text or None, options=options, q=self._q)
