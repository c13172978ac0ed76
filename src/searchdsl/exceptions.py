"""Custom exceptions for the searchdsl library.

This module defines all custom exceptions raised while parsing filter
criteria, compiling them and assembling search options.
"""

from typing import Any, Dict


# Base exception
class SearchDSLError(Exception):
    """Base exception for all searchdsl errors.

    Attributes:
        message: Error message
        details: Additional error context as key-value pairs
    """

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        """Initialize exception with message and additional details.

        Args:
            message: Human-readable error message
            **kwargs: Additional context (e.g., field, operator, value)
        """
        self.message = message
        self.details: Dict[str, Any] = kwargs
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the complete error message with details."""
        if not self.details:
            return self.message

        details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        if self.message:
            return f"{self.message} ({details_str})"
        return details_str

    def __repr__(self) -> str:
        """Return detailed representation of the exception."""
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# Validation exceptions
class ValidationError(SearchDSLError):
    """Raised when filter criteria or query options fail validation.

    Example:
        >>> raise ValidationError("Invalid filter", field="age")
    """


class MalformedFilterError(ValidationError):
    """Raised when a value matches none of the filter criteria shapes.

    The offending value is kept in ``details["value"]`` for diagnostics.

    Example:
        >>> raise MalformedFilterError("Unrecognized filter shape", value=["a", "b"])
    """


class InvalidRangeError(ValidationError):
    """Raised when a range operator value is neither ``[from, to]`` nor ``{from, to}``.

    Example:
        >>> raise InvalidRangeError("Invalid range value", field="price", operator="between", value=5)
    """


class InvalidOptionError(ValidationError):
    """Raised when a query builder option is out of its accepted domain.

    Example:
        >>> raise InvalidOptionError("semanticRatio must be within [0, 1]", option="hybrid", value=1.5)
    """


# Configuration exceptions
class ConfigurationError(SearchDSLError):
    """Raised when configuration is invalid or missing.

    Example:
        >>> raise ConfigurationError("Invalid configuration", setting="SEARCH_FILTER_KEY", value="")
    """


class MissingConfigError(ConfigurationError):
    """Raised when required configuration values are not set.

    Example:
        >>> raise MissingConfigError("Index name is required", config_key="index_name")
    """


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid.

    Example:
        >>> raise InvalidConfigError("Invalid config value", config_key="default_limit", value=-1, expected=">=0")
    """
