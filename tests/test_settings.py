"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from searchdsl.settings import SearchDSLSettings


class TestSearchDSLSettings:
    def test_defaults(self, monkeypatch):
        for key in ("SEARCH_INDEX_NAME", "SEARCH_DEFAULT_LIMIT", "SEARCH_DEFAULT_CONNECTOR", "SEARCH_FILTER_KEY"):
            monkeypatch.delenv(key, raising=False)
        cfg = SearchDSLSettings(_env_file=None)
        assert cfg.SEARCH_INDEX_NAME is None
        assert cfg.SEARCH_DEFAULT_LIMIT == 20
        assert cfg.SEARCH_DEFAULT_CONNECTOR == "AND"
        assert cfg.SEARCH_FILTER_KEY == "filter"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("SEARCH_INDEX_NAME", "products")
        monkeypatch.setenv("SEARCH_DEFAULT_LIMIT", "50")
        monkeypatch.setenv("SEARCH_DEFAULT_CONNECTOR", "OR")
        cfg = SearchDSLSettings(_env_file=None)
        assert cfg.SEARCH_INDEX_NAME == "products"
        assert cfg.SEARCH_DEFAULT_LIMIT == 50
        assert cfg.SEARCH_DEFAULT_CONNECTOR == "OR"

    def test_rejects_unknown_connector(self, monkeypatch):
        monkeypatch.setenv("SEARCH_DEFAULT_CONNECTOR", "XOR")
        with pytest.raises(ValidationError):
            SearchDSLSettings(_env_file=None)

    def test_ignores_unrelated_variables(self, monkeypatch):
        monkeypatch.setenv("SEARCH_SOMETHING_ELSE", "1")
        cfg = SearchDSLSettings(_env_file=None)
        assert not hasattr(cfg, "SEARCH_SOMETHING_ELSE")
