"""
Receipt Signals

Value object describing what the document-analysis step saw on a receipt
image. The analysis step (a vision/LLM call outside this package) answers
eight questions about the image; those answers are the only input the
confidence evaluator needs.

Validation:
- Every flag must be a real boolean ("yes", 1 and None are rejected)
- image_quality must be one of excellent/good/fair/poor
- Unknown or missing keys are rejected

Usage:
    from yachty_receipts.signals import ReceiptSignals

    signals = ReceiptSignals.from_dict(analysis_payload['signals'])
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Mapping

from pydantic import BaseModel, ConfigDict, StrictBool, ValidationError, field_validator

from ..errors import InvalidInputError


class ImageQuality(str, Enum):
    """Quality bucket of the source receipt image."""

    EXCELLENT = 'excellent'
    GOOD = 'good'
    FAIR = 'fair'
    POOR = 'poor'

    @classmethod
    def parse(cls, value: Any) -> 'ImageQuality':
        """
        Resolve a bucket from an enum member or its exact string value.

        Raises:
            InvalidInputError: If the value is not one of the four buckets
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if member.value == value:
                    return member
        allowed = ', '.join(m.value for m in cls)
        raise InvalidInputError(
            f"Invalid image_quality {value!r}: expected one of {allowed}",
            details={'field': 'image_quality', 'value': repr(value)},
        )


def _invalid_signals(error: ValidationError) -> InvalidInputError:
    """Turn a pydantic error into InvalidInputError with field/message pairs."""
    details = [
        {
            'field': '.'.join(str(part) for part in err['loc']) or '__root__',
            'message': err['msg'],
        }
        for err in error.errors()
    ]
    fields = ', '.join(d['field'] for d in details)
    return InvalidInputError(f"Invalid receipt signals: {fields}", details=details)


class ReceiptSignals(BaseModel):
    """
    Extraction-quality signals for a single receipt.

    Immutable; constructed by the expense-ingestion workflow once per
    processing attempt.
    """

    model_config = ConfigDict(frozen=True, extra='forbid')

    has_clear_date: StrictBool
    has_clear_amount: StrictBool
    has_vendor_name: StrictBool
    has_po_or_boat_name: StrictBool
    has_line_items: StrictBool
    has_handwritten_text: StrictBool
    image_quality: ImageQuality
    has_ambiguity: StrictBool

    # self is positional-only so a payload key named 'self' is just an unknown field
    def __init__(self, /, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise _invalid_signals(e) from e

    @classmethod
    def model_validate(cls, obj: Any, **kwargs: Any) -> 'ReceiptSignals':
        try:
            return super().model_validate(obj, **kwargs)
        except ValidationError as e:
            raise _invalid_signals(e) from e

    @field_validator('image_quality', mode='before')
    @classmethod
    def validate_image_quality(cls, v: Any) -> ImageQuality:
        """Only the four exact bucket names are accepted."""
        try:
            return ImageQuality.parse(v)
        except InvalidInputError as e:
            raise ValueError(e.message) from e

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ReceiptSignals':
        """
        Build signals from an analysis payload.

        Args:
            data: Mapping with the eight signal keys

        Returns:
            Validated ReceiptSignals

        Raises:
            InvalidInputError: If the payload is not a mapping or fails validation
        """
        if isinstance(data, ReceiptSignals):
            return data
        if not isinstance(data, Mapping):
            raise InvalidInputError(
                f"Receipt signals must be a mapping, got {type(data).__name__}"
            )
        return cls.model_validate({str(k): v for k, v in data.items()})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return self.model_dump(mode='json')
