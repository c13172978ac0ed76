"""Pytest configuration and fixtures for filter compilation tests."""

import pytest

from searchdsl.querydsl.builder import QueryBuilder
from searchdsl.querydsl.compilers.meilisearch import MeiliFilterCompiler


@pytest.fixture
def qb():
    """Fresh AND-rooted builder."""
    return QueryBuilder("AND", filter_key="filter")


@pytest.fixture
def compiler():
    return MeiliFilterCompiler()


@pytest.fixture
def to_filter(compiler):
    """Compile criteria to a filter string with a fresh builder."""
    return compiler.to_filter


@pytest.fixture
def index_config():
    return {"indexName": "products", "facets": ["brand", "category"]}


@pytest.fixture
def sample_criteria():
    """A nested criteria payload exercising groups, typed and attribute filters."""
    return {
        "filterId": "root",
        "and": [
            {"category": {"in": ["shoes", "boots"]}, "price": {"between": {"from": "10", "to": "200"}}},
            {
                "or": [
                    {"attribute": "brand", "eq": "acme"},
                    {"rating": {"gte": "4.5"}},
                ]
            },
        ],
        "not": [{"status": "discontinued"}],
    }
