"""Base compiler interface.

Defines the abstract contract every backend-specific filter compiler follows.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..builder import QueryBuilder

__all__ = ("BaseFilterCompiler",)


class BaseFilterCompiler(ABC):
    """Abstract base class for filter criteria compilers.

    Subclasses walk a criteria tree and drive a `QueryBuilder`, so the
    backend grammar lives in the builder and its AST rather than here.
    """

    @abstractmethod
    def compile(self, criteria: Any, builder: QueryBuilder) -> QueryBuilder:
        """
        Add the filter described by ``criteria`` to ``builder``.
        - None is a no-op
        - typed criteria models and their untyped dict form are both accepted
        """
        raise NotImplementedError

    @abstractmethod
    def to_filter(self, criteria: Any) -> Optional[str]:
        """Compile criteria into a standalone filter expression (None when empty)."""
        raise NotImplementedError
