"""Settings for the searchdsl filter compiler."""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class SearchDSLSettings(BaseSettings):
    """searchdsl configuration settings."""

    # Target index
    SEARCH_INDEX_NAME: Optional[str] = None

    # Query defaults
    SEARCH_DEFAULT_LIMIT: int = 20
    SEARCH_DEFAULT_CONNECTOR: Literal["AND", "OR"] = "AND"

    # Options key the compiled filter expression is stored under
    SEARCH_FILTER_KEY: str = "filter"

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = SearchDSLSettings()
