"""Exception types raised by the soft-delete layer.

Store errors (anything the underlying collection raises) are never wrapped;
only misuse of this layer's own surface is reported with these types.
"""

from __future__ import annotations


class SoftDeleteError(Exception):
    """Base class for errors raised by this package."""


class InvocationError(SoftDeleteError, TypeError):
    """Raised when an operation is called with arguments it cannot accept."""


class ConfigurationError(SoftDeleteError, ValueError):
    """Raised when soft-delete options have an unsupported shape."""


class DocumentValidationError(SoftDeleteError, ValueError):
    """Raised when a document fails validation before save."""

    def __init__(self, message: str, errors=None):
        super().__init__(message)
        self.errors = errors or []
