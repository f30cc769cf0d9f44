"""
Error Types

Exceptions raised by the receipt gate.

Malformed input is a caller bug, not a transient condition, so none of
these are retried. They carry a machine-readable ``code`` and optional
``details`` so the calling web layer can shape its own error response.
"""

from __future__ import annotations

from typing import Any, Optional


class ReceiptError(Exception):
    """Base class for all receipt gate errors."""

    code = 'RECEIPT_ERROR'

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'error': self.message,
            'code': self.code,
            'details': self.details,
        }


class InvalidInputError(ReceiptError, ValueError):
    """
    Signals or scores that violate the evaluator's contract.

    Raised for an ``image_quality`` outside the four known buckets,
    non-boolean flags, or a score outside [0, 1].
    """

    code = 'INVALID_INPUT'


class ConfigError(ReceiptError):
    """Gate policy could not be loaded or is out of range."""

    code = 'CONFIG_ERROR'


class ReviewStateError(ReceiptError):
    """A review action was attempted on an item that does not allow it."""

    code = 'REVIEW_STATE_ERROR'
