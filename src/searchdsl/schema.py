"""Pydantic schemas for filter criteria.

Criteria are an explicit tagged union on ``kind``:

- `AttributeFilter`: operators applied to one named attribute
- `TypedFilter`: several attribute filters in one object (``{age: {gt: 18}, name: "x"}``)
- `FilterGroup`: nested ``and`` / ``or`` / ``not`` lists of criteria

Untyped payloads (plain nested dicts as received over an API) are converted
with `parse_filter_criteria`, which discriminates them structurally in the
order group -> typed -> attribute.
"""

from collections.abc import Mapping
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .constants import (
    ATTRIBUTE_KEY,
    FILTER_ID_KEY,
    FILTER_LABEL_KEY,
    GROUP_KEYS,
    LOGICAL_OP_KEY,
    METADATA_KEYS,
    VALUE_TYPE_ALIASES,
    LogicalOperator,
    ValueType,
)
from .exceptions import MalformedFilterError
from .querydsl.operators import is_valid_operator

__all__ = (
    "ComplexFilterValue",
    "AttributeFilter",
    "TypedFilter",
    "FilterGroup",
    "FilterCriteria",
    "parse_filter_criteria",
    "is_complex_value",
    "is_filter_group",
    "is_typed_filter",
    "is_attribute_filter",
    "is_filter_criteria",
)

FilterId = Union[str, int]


class ComplexFilterValue(BaseModel):
    """Operator value with an explicit value type.

    Only ``literal`` values are evaluated; other types pass through as ``val``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    val: Any = Field(..., description="The value to compare against.")
    val_type: ValueType = Field(ValueType.LITERAL, alias="valType", description="How `val` is interpreted.")
    label: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("label", "valLabel"),
        description="Display label.",
    )

    @field_validator("val_type", mode="before")
    @classmethod
    def resolve_legacy_type(cls, v: Any) -> Any:
        if isinstance(v, str) and v in VALUE_TYPE_ALIASES:
            return VALUE_TYPE_ALIASES[v]
        return v


class _CriteriaBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    filter_id: Optional[FilterId] = Field(None, alias=FILTER_ID_KEY, description="Opaque identifier.")
    filter_label: Optional[str] = Field(None, alias=FILTER_LABEL_KEY, description="Opaque display label.")


class AttributeFilter(_CriteriaBase):
    kind: Literal["attribute"] = "attribute"
    attribute: str = Field(..., description="Target field name.")
    operators: Dict[str, Any] = Field(default_factory=dict, description="Operator alias -> value.")
    logical_op: LogicalOperator = Field(
        LogicalOperator.AND, alias=LOGICAL_OP_KEY, description="How the operators combine."
    )


class TypedFilter(_CriteriaBase):
    kind: Literal["typed"] = "typed"
    attributes: List[AttributeFilter] = Field(default_factory=list, description="Per-attribute filters.")
    logical_op: LogicalOperator = Field(
        LogicalOperator.AND, alias=LOGICAL_OP_KEY, description="How the attributes combine."
    )


class FilterGroup(_CriteriaBase):
    kind: Literal["group"] = "group"
    and_: Optional[List["FilterCriteria"]] = Field(None, alias="and")
    or_: Optional[List["FilterCriteria"]] = Field(None, alias="or")
    not_: Optional[List["FilterCriteria"]] = Field(None, alias="not")


FilterCriteria = Annotated[Union[FilterGroup, TypedFilter, AttributeFilter], Field(discriminator="kind")]

FilterGroup.model_rebuild()

_TYPED_MODELS = (FilterGroup, TypedFilter, AttributeFilter)


# -------------------
# Structural predicates
# -------------------
def is_complex_value(payload: Any) -> bool:
    """True for a `ComplexFilterValue` or a mapping carrying ``val``."""
    return isinstance(payload, ComplexFilterValue) or (isinstance(payload, Mapping) and "val" in payload)


def is_filter_group(payload: Any) -> bool:
    if isinstance(payload, FilterGroup):
        return True
    if not isinstance(payload, Mapping) or not payload:
        return False
    return any(isinstance(payload.get(key), (list, tuple, Mapping)) for key in GROUP_KEYS)


def is_typed_filter(payload: Any) -> bool:
    if isinstance(payload, TypedFilter):
        return True
    if not isinstance(payload, Mapping) or not payload:
        return False
    if ATTRIBUTE_KEY in payload or any(key in payload for key in GROUP_KEYS):
        return False
    return any(key not in METADATA_KEYS for key in payload)


def is_attribute_filter(payload: Any) -> bool:
    if isinstance(payload, AttributeFilter):
        return True
    return isinstance(payload, Mapping) and isinstance(payload.get(ATTRIBUTE_KEY), str)


def is_filter_criteria(payload: Any) -> bool:
    """True for a mapping keyed by at least one known operator alias."""
    return isinstance(payload, Mapping) and any(isinstance(k, str) and is_valid_operator(k) for k in payload)


# -------------------
# Compatibility parsing
# -------------------
def _build(model_cls, payload: Any, **fields: Any):
    try:
        return model_cls(**fields)
    except PydanticValidationError as e:
        raise MalformedFilterError(f"Invalid {model_cls.__name__}: {e.errors()[0]['msg']}", value=payload) from e


def _metadata(payload: Mapping) -> Dict[str, Any]:
    meta = {}
    if FILTER_ID_KEY in payload:
        meta["filter_id"] = payload[FILTER_ID_KEY]
    if FILTER_LABEL_KEY in payload:
        meta["filter_label"] = payload[FILTER_LABEL_KEY]
    if payload.get(LOGICAL_OP_KEY) is not None:
        meta["logical_op"] = payload[LOGICAL_OP_KEY]
    return meta


def _operator_value(value: Any) -> Any:
    if isinstance(value, Mapping) and "val" in value:
        try:
            return ComplexFilterValue.model_validate(dict(value))
        except PydanticValidationError as e:
            raise MalformedFilterError("Invalid complex filter value", value=value) from e
    return value


def _attribute_filter(name: str, criteria: Any, payload: Any) -> AttributeFilter:
    """One attribute's criteria; primitives, lists and complex values become an implicit ``eq``."""
    if isinstance(criteria, AttributeFilter):
        return criteria.model_copy(update={"attribute": name})
    if not isinstance(criteria, Mapping) or is_complex_value(criteria):
        return _build(AttributeFilter, payload, attribute=name, operators={"eq": _operator_value(criteria)})
    operators = {op: _operator_value(v) for op, v in criteria.items() if op not in METADATA_KEYS}
    return _build(AttributeFilter, payload, attribute=name, operators=operators, **_metadata(criteria))


def _parse_group(payload: Mapping) -> FilterGroup:
    extra = [k for k in payload if k not in GROUP_KEYS and k not in METADATA_KEYS]
    if extra:
        raise MalformedFilterError("Filter group cannot mix group keys with attribute keys", value=payload, keys=extra)
    clauses = {}
    for key in GROUP_KEYS:
        value = payload.get(key)
        if value is None:
            continue
        if isinstance(value, Mapping):
            value = [value]
        if not isinstance(value, (list, tuple)):
            raise MalformedFilterError(f"Group key {key!r} must hold a list of criteria", value=payload)
        clauses[f"{key}_"] = [parse_filter_criteria(clause) for clause in value]
    meta = _metadata(payload)
    meta.pop("logical_op", None)
    return _build(FilterGroup, payload, **clauses, **meta)


def _parse_typed(payload: Mapping) -> TypedFilter:
    attributes = [
        _attribute_filter(name, criteria, payload) for name, criteria in payload.items() if name not in METADATA_KEYS
    ]
    return _build(TypedFilter, payload, attributes=attributes, **_metadata(payload))


def _parse_attribute(payload: Mapping) -> AttributeFilter:
    operators = {op: _operator_value(v) for op, v in payload.items() if op not in METADATA_KEYS}
    return _build(AttributeFilter, payload, attribute=payload[ATTRIBUTE_KEY], operators=operators, **_metadata(payload))


def parse_filter_criteria(payload: Any) -> FilterCriteria:
    """Convert an untyped criteria payload into the tagged union.

    Already-typed criteria are returned unchanged.

    Examples:
        parse_filter_criteria({"and": [{"a": {"eq": 1}}]})       -> FilterGroup
        parse_filter_criteria({"age": {"gte": 18}, "name": "x"})  -> TypedFilter
        parse_filter_criteria({"attribute": "age", "gte": 18})    -> AttributeFilter

    Raises:
        MalformedFilterError: If the payload matches none of the criteria shapes
    """
    if isinstance(payload, _TYPED_MODELS):
        return payload
    if is_filter_group(payload):
        return _parse_group(payload)
    if is_typed_filter(payload):
        return _parse_typed(payload)
    if is_attribute_filter(payload):
        return _parse_attribute(payload)
    raise MalformedFilterError("Unrecognized filter criteria shape", value=payload)
