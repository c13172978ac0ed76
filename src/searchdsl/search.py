"""Search query boundary.

`SearchQuery` is the structured request an application hands over;
`build_search_query` validates the target index config and turns the
request into a `CompiledQuery` (filter text + Meilisearch search options)
ready for a search client.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .constants import MatchingStrategy, SortDirection
from .exceptions import InvalidConfigError, MissingConfigError, ValidationError
from .logger import Logger
from .querydsl.builder import CompiledQuery, QueryBuilder
from .querydsl.compilers import BaseFilterCompiler, meili_filter
from .settings import settings

__all__ = (
    "SearchIndexConfig",
    "SortSpec",
    "PaginationSpec",
    "HighlightSpec",
    "CropSpec",
    "GeoPointSpec",
    "GeoRadiusSpec",
    "GeoBoundingBoxSpec",
    "GeoSortSpec",
    "HybridSpec",
    "SearchQuery",
    "build_search_query",
)

logger = Logger(__name__)


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SearchIndexConfig(_Model):
    index_name: Optional[str] = Field(None, alias="indexName", description="Target index uid.")
    facets: Optional[List[str]] = Field(None, description="Facetable attribute names of the index.")

    @classmethod
    def from_settings(cls, **overrides: Any) -> "SearchIndexConfig":
        """Build a config from `settings`, with keyword overrides."""
        data: Dict[str, Any] = {"index_name": settings.SEARCH_INDEX_NAME}
        data.update(overrides)
        return cls(**data)

    def validate_config(self) -> None:
        """Raise MissingConfigError when no index name is set."""
        if not self.index_name:
            raise MissingConfigError("Index name is required", config_key="index_name")


class SortSpec(_Model):
    field: str
    dir: SortDirection = SortDirection.ASC


class PaginationSpec(_Model):
    limit: Optional[int] = Field(None, ge=0)
    page: Optional[int] = Field(None, ge=1)
    use_pagination: bool = Field(False, alias="usePagination")


class HighlightSpec(_Model):
    fields: List[str]
    pre_tag: str = Field("<em>", alias="preTag")
    post_tag: str = Field("</em>", alias="postTag")
    show_matches_position: bool = Field(False, alias="showMatchesPosition")


class CropSpec(_Model):
    fields: List[str]
    length: int = 50
    marker: str = "..."


class GeoPointSpec(_Model):
    lat: float
    lng: float


class GeoRadiusSpec(_Model):
    center: GeoPointSpec
    distance_in_meters: float = Field(..., alias="distanceInMeters")


class GeoBoundingBoxSpec(_Model):
    top_left: GeoPointSpec = Field(..., alias="topLeft")
    bottom_right: GeoPointSpec = Field(..., alias="bottomRight")


class GeoSortSpec(_Model):
    point: GeoPointSpec
    direction: SortDirection = SortDirection.ASC


class HybridSpec(_Model):
    embedder: str
    semantic_ratio: float = Field(0.5, alias="semanticRatio")


class SearchQuery(_Model):
    """Structured search request.

    ``filters`` holds filter criteria in typed or untyped (dict) form; it is
    compiled as-is by the filter compiler.
    """

    search: Optional[Union[str, List[str]]] = None
    filters: Optional[Any] = None
    sort: Optional[List[SortSpec]] = None
    pagination: Optional[PaginationSpec] = None
    distinct: Optional[str] = None
    select: Optional[List[str]] = None
    search_attributes: Optional[List[str]] = Field(None, alias="searchAttributes")
    highlight: Optional[HighlightSpec] = None
    crop: Optional[CropSpec] = None
    facets: Optional[List[str]] = None
    matching_strategy: Optional[MatchingStrategy] = Field(None, alias="matchingStrategy")
    geo_radius: Optional[GeoRadiusSpec] = Field(None, alias="geoRadiusFilter")
    geo_bounding_box: Optional[GeoBoundingBoxSpec] = Field(None, alias="geoBoundingBoxFilter")
    geo_sort: Optional[GeoSortSpec] = Field(None, alias="geoSort")
    show_ranking_score: bool = Field(False, alias="showRankingScore")
    show_ranking_score_details: bool = Field(False, alias="showRankingScoreDetails")
    ranking_score_threshold: Optional[float] = Field(None, alias="rankingScoreThreshold")
    hybrid: Optional[HybridSpec] = None
    vector: Optional[List[float]] = None
    retrieve_vectors: bool = Field(False, alias="retrieveVectors")
    locales: Optional[List[str]] = None
    raw_options: Dict[str, Any] = Field(default_factory=dict, alias="rawOptions")

    @property
    def phrase(self) -> str:
        if isinstance(self.search, list):
            return " ".join(self.search)
        return self.search or ""


def _validate(model_cls, value: Any, error_cls, message: str):
    if value is None or isinstance(value, model_cls):
        return value
    try:
        return model_cls.model_validate(value)
    except PydanticValidationError as e:
        raise error_cls(message, errors=e.errors(include_url=False)) from e


def build_search_query(
    query: Union[SearchQuery, Dict[str, Any]],
    config: Union[SearchIndexConfig, Dict[str, Any]],
    compiler: BaseFilterCompiler = meili_filter,
) -> CompiledQuery:
    """Compile a search request into filter text and search options.

    The index config is validated before anything is compiled.

    Args:
        query: SearchQuery or its dict form (camelCase or snake_case keys)
        config: Target index config or its dict form
        compiler: Filter compiler driving the builder

    Returns:
        CompiledQuery with ``q``, ``filter`` and the search options

    Raises:
        MissingConfigError: If the config has no index name
        InvalidConfigError: If the config cannot be parsed
        ValidationError: If the query cannot be parsed
        MalformedFilterError / InvalidRangeError: If the filters cannot be compiled
    """
    config = _validate(SearchIndexConfig, config, InvalidConfigError, "Invalid search index config")
    if config is None:
        raise MissingConfigError("Index name is required", config_key="index_name")
    config.validate_config()
    query = _validate(SearchQuery, query, ValidationError, "Invalid search query") or SearchQuery()

    builder = QueryBuilder.create()
    builder.text(query.phrase)

    compiler.compile(query.filters, builder)

    for order in query.sort or []:
        builder.sort(order.field, order.dir.value)

    pagination = query.pagination or PaginationSpec()
    page_size = settings.SEARCH_DEFAULT_LIMIT if pagination.limit is None else pagination.limit
    page_number = pagination.page or 1
    if pagination.use_pagination:
        builder.hits_per_page(page_size).page(page_number)
    else:
        builder.limit(page_size).offset((page_number - 1) * page_size)

    if query.distinct:
        builder.distinct(query.distinct)
    if query.select:
        builder.select(query.select)
    if query.search_attributes:
        builder.attributes_to_search_on(query.search_attributes)

    if query.highlight:
        builder.highlight(query.highlight.fields, query.highlight.pre_tag, query.highlight.post_tag)
        if query.highlight.show_matches_position:
            builder.show_matches_position()

    if query.crop:
        builder.crop(query.crop.fields, query.crop.length, query.crop.marker)

    facets = query.facets or config.facets
    if facets:
        builder.facets(facets)

    if query.matching_strategy:
        builder.matching_strategy(query.matching_strategy)

    if query.geo_radius:
        center = query.geo_radius.center
        builder.geo_radius(center.lat, center.lng, query.geo_radius.distance_in_meters)
    if query.geo_bounding_box:
        box = query.geo_bounding_box
        builder.geo_bounding_box((box.top_left.lat, box.top_left.lng), (box.bottom_right.lat, box.bottom_right.lng))
    if query.geo_sort:
        point = query.geo_sort.point
        builder.sort_by_geo_point(point.lat, point.lng, query.geo_sort.direction.value)

    if query.show_ranking_score:
        builder.show_ranking_score(True)
    if query.show_ranking_score_details:
        builder.show_ranking_score_details(True)
    if query.ranking_score_threshold is not None:
        builder.ranking_score_threshold(query.ranking_score_threshold)

    if query.hybrid:
        builder.hybrid(query.hybrid.embedder, query.hybrid.semantic_ratio)
    if query.vector:
        builder.vector_search(query.vector)
        if query.retrieve_vectors:
            builder.retrieve_vectors(True)

    if query.locales:
        builder.locales(query.locales)

    for key, value in query.raw_options.items():
        builder.raw_option(key, value)

    compiled = builder.build()
    logger.message("Compiled search query for index %s: filter=%r", config.index_name, compiled.filter)
    return compiled
