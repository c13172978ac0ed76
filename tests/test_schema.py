"""Tests for the filter criteria model and compatibility parsing."""

import pytest
from pydantic import TypeAdapter

from searchdsl.constants import LogicalOperator, ValueType
from searchdsl.exceptions import MalformedFilterError
from searchdsl.schema import (
    AttributeFilter,
    ComplexFilterValue,
    FilterCriteria,
    FilterGroup,
    TypedFilter,
    is_attribute_filter,
    is_complex_value,
    is_filter_criteria,
    is_filter_group,
    is_typed_filter,
    parse_filter_criteria,
)


class TestComplexFilterValue:
    def test_defaults_to_literal(self):
        value = ComplexFilterValue(val=5)
        assert value.val_type is ValueType.LITERAL
        assert value.label is None

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("literal", ValueType.LITERAL),
            ("propertyReference", ValueType.PROPERTY_REFERENCE),
            ("propRef", ValueType.PROPERTY_REFERENCE),
            ("expression", ValueType.EXPRESSION),
        ],
    )
    def test_value_types(self, raw, expected):
        assert ComplexFilterValue.model_validate({"val": 1, "valType": raw}).val_type is expected

    def test_legacy_label(self):
        assert ComplexFilterValue.model_validate({"val": 1, "valLabel": "One"}).label == "One"

    def test_is_complex_value(self):
        assert is_complex_value({"val": None})
        assert is_complex_value(ComplexFilterValue(val=1))
        assert not is_complex_value({"from": 1, "to": 2})
        assert not is_complex_value(5)


class TestPredicates:
    @pytest.mark.parametrize(
        "payload,expected",
        [
            ({"and": []}, True),
            ({"or": [{"a": 1}]}, True),
            ({"not": {"a": 1}}, True),
            ({"and": "x"}, False),
            ({}, False),
            ({"a": {"eq": 1}}, False),
            ([{"and": []}], False),
        ],
    )
    def test_is_filter_group(self, payload, expected):
        assert is_filter_group(payload) is expected

    @pytest.mark.parametrize(
        "payload,expected",
        [
            ({"a": {"eq": 1}}, True),
            ({"a": 1, "filterId": "x"}, True),
            ({"attribute": "a", "eq": 1}, False),
            ({"and": [], "a": 1}, False),
            ({"filterId": "x", "logicalOp": "or"}, False),
            ({}, False),
        ],
    )
    def test_is_typed_filter(self, payload, expected):
        assert is_typed_filter(payload) is expected

    @pytest.mark.parametrize(
        "payload,expected",
        [({"attribute": "age", "gt": 1}, True), ({"attribute": 5}, False), ({"age": {"gt": 1}}, False)],
    )
    def test_is_attribute_filter(self, payload, expected):
        assert is_attribute_filter(payload) is expected

    def test_is_filter_criteria(self):
        assert is_filter_criteria({"gte": 18})
        assert is_filter_criteria({">==": 18, "filterLabel": "x"})
        assert not is_filter_criteria({"age": 18})
        assert not is_filter_criteria("gte")

    def test_models_satisfy_predicates(self):
        assert is_filter_group(FilterGroup())
        assert is_typed_filter(TypedFilter())
        assert is_attribute_filter(AttributeFilter(attribute="a"))


class TestParseFilterCriteria:
    def test_group(self):
        group = parse_filter_criteria({"filterId": "g1", "and": [{"a": {"eq": 1}}], "not": {"b": 2}})
        assert isinstance(group, FilterGroup)
        assert group.kind == "group"
        assert group.filter_id == "g1"
        assert isinstance(group.and_[0], TypedFilter)
        assert len(group.not_) == 1
        assert group.or_ is None

    def test_typed(self):
        typed = parse_filter_criteria({"age": {"gte": 18, "logicalOp": "or"}, "name": "x", "filterLabel": "People"})
        assert isinstance(typed, TypedFilter)
        assert typed.filter_label == "People"
        assert [a.attribute for a in typed.attributes] == ["age", "name"]
        assert typed.attributes[0].logical_op is LogicalOperator.OR
        assert typed.attributes[1].operators == {"eq": "x"}

    def test_attribute(self):
        attr = parse_filter_criteria({"attribute": "age", "gte": 18, "logicalOp": "not", "filterId": 7})
        assert isinstance(attr, AttributeFilter)
        assert attr.operators == {"gte": 18}
        assert attr.logical_op is LogicalOperator.NOT
        assert attr.filter_id == 7

    def test_complex_values_become_models(self):
        typed = parse_filter_criteria({"owner": {"eq": {"val": "me", "valType": "propRef"}}})
        value = typed.attributes[0].operators["eq"]
        assert isinstance(value, ComplexFilterValue)
        assert value.val_type is ValueType.PROPERTY_REFERENCE

    def test_complex_value_as_attribute_value_is_implicit_eq(self):
        typed = parse_filter_criteria({"owner": {"val": "me"}})
        assert isinstance(typed.attributes[0].operators["eq"], ComplexFilterValue)

    def test_models_pass_through(self):
        attr = AttributeFilter(attribute="a", operators={"eq": 1})
        assert parse_filter_criteria(attr) is attr

    def test_invalid_logical_op(self):
        with pytest.raises(MalformedFilterError):
            parse_filter_criteria({"attribute": "age", "gte": 18, "logicalOp": "xor"})

    def test_group_mixed_with_attributes(self):
        with pytest.raises(MalformedFilterError) as exc_info:
            parse_filter_criteria({"and": [{"a": 1}], "b": {"eq": 2}})
        assert exc_info.value.details["keys"] == ["b"]

    def test_nested_malformed_clause(self):
        with pytest.raises(MalformedFilterError) as exc_info:
            parse_filter_criteria({"or": [{"a": 1}, "oops"]})
        assert exc_info.value.details["value"] == "oops"

    @pytest.mark.parametrize("payload", [None, [], {}, "x", {"attribute": None}])
    def test_unrecognized(self, payload):
        with pytest.raises(MalformedFilterError):
            parse_filter_criteria(payload)


class TestTaggedUnion:
    def test_discriminated_validation(self):
        adapter = TypeAdapter(FilterCriteria)
        node = adapter.validate_python(
            {
                "kind": "group",
                "or": [
                    {"kind": "attribute", "attribute": "a", "operators": {"eq": 1}},
                    {"kind": "typed", "attributes": [{"attribute": "b", "operators": {"gt": 2}}]},
                ],
            }
        )
        assert isinstance(node, FilterGroup)
        assert isinstance(node.or_[0], AttributeFilter)
        assert isinstance(node.or_[1], TypedFilter)

    def test_round_trip_dump(self):
        attr = AttributeFilter(attribute="a", operators={"eq": 1}, logical_op="or")
        dumped = attr.model_dump(by_alias=True, exclude_none=True)
        assert dumped == {"kind": "attribute", "attribute": "a", "operators": {"eq": 1}, "logicalOp": "or"}
        assert AttributeFilter.model_validate(dumped) == attr

    def test_models_are_frozen(self):
        attr = AttributeFilter(attribute="a")
        with pytest.raises(Exception):
            attr.attribute = "b"
