"""Exception hierarchy for the analytics core.

Validation errors also derive from :class:`ValueError` so callers that only
guard against bad arguments keep working.
"""

from __future__ import annotations

from typing import Any


class WebAnalyticsError(Exception):
    """Base exception for all analytics core errors."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, context={self.context!r})"


class InvalidFilterError(WebAnalyticsError, ValueError):
    """Raised when a query filter is malformed."""


class InvalidColumnError(InvalidFilterError):
    """Raised when a filter references a column outside the allow-list."""


class InvalidOperatorError(InvalidFilterError):
    """Raised when a filter uses an operator the compiler does not know."""


class EmptyValuesError(InvalidFilterError):
    """Raised when a filter carries no values to compare against."""


class InvalidFunnelError(WebAnalyticsError, ValueError):
    """Raised when a funnel definition or its visitor counts are inconsistent."""


__all__ = [
    "EmptyValuesError",
    "InvalidColumnError",
    "InvalidFilterError",
    "InvalidFunnelError",
    "InvalidOperatorError",
    "WebAnalyticsError",
]
