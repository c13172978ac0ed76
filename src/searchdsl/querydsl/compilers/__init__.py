from .base import BaseFilterCompiler
from .meilisearch import MeiliFilterCompiler, meili_filter

__all__ = (
    "BaseFilterCompiler",
    "MeiliFilterCompiler",
    "meili_filter",
)
