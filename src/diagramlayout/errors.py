"""Exception types raised by the layout engine."""
from __future__ import annotations


class LayoutError(ValueError):
    """Structured layout error with stable code."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return self.message


class LayoutConfigError(LayoutError):
    """Raised when a configuration directive has an invalid value."""


class GraphLayoutError(LayoutError):
    """Raised when the automatic graph layout cannot produce a result."""
