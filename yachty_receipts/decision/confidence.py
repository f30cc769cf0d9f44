"""
Receipt Confidence Evaluator

Turns the signals reported by receipt analysis into a single confidence
score, and turns that score into an auto-approve / needs-review verdict.

Scoring:
- Clear purchase date           +0.25
- Clear total amount            +0.25
- Vendor name identifiable      +0.15
- PO number or boat name        +0.20
- Itemized line items           +0.15
- Handwriting present           -0.20
- Image quality poor / fair     -0.15 / -0.08 (excellent, good: 0)
- Ambiguous field values        -0.25

The raw sum is clamped to [0, 1]. Weights are summed as Decimal so the
result is exact and does not depend on the order the signals are added.

Approval:
- Auto-approve when score >= AUTO_APPROVE_THRESHOLD (0.95)
- Everything else goes to manual review

Both functions are pure: no state, no I/O, no logging. Malformed input
raises InvalidInputError.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, auto
from typing import Any, Dict, List, Mapping, Union

from ..errors import InvalidInputError
from ..signals.receipt_signals import ImageQuality, ReceiptSignals

AUTO_APPROVE_THRESHOLD = 0.95

_ZERO = Decimal('0')
_ONE = Decimal('1')


class ConfidenceSignal(Enum):
    """Weighted observations that make up a confidence score."""

    # Positive signals
    CLEAR_DATE = auto()
    CLEAR_AMOUNT = auto()
    VENDOR_NAME = auto()
    PO_OR_BOAT_NAME = auto()
    LINE_ITEMS = auto()

    # Negative signals
    HANDWRITTEN_TEXT = auto()
    POOR_IMAGE = auto()
    FAIR_IMAGE = auto()
    AMBIGUITY = auto()

    @property
    def weight(self) -> Decimal:
        """Contribution to the raw score when this signal applies."""
        return _WEIGHTS[self]

    @property
    def is_positive(self) -> bool:
        """Whether this signal increases confidence."""
        return self.weight > 0

    @property
    def display_message(self) -> str:
        """Human-readable description."""
        return _MESSAGES[self]


_WEIGHTS = {
    ConfidenceSignal.CLEAR_DATE: Decimal('0.25'),
    ConfidenceSignal.CLEAR_AMOUNT: Decimal('0.25'),
    ConfidenceSignal.VENDOR_NAME: Decimal('0.15'),
    ConfidenceSignal.PO_OR_BOAT_NAME: Decimal('0.20'),
    ConfidenceSignal.LINE_ITEMS: Decimal('0.15'),
    ConfidenceSignal.HANDWRITTEN_TEXT: Decimal('-0.20'),
    ConfidenceSignal.POOR_IMAGE: Decimal('-0.15'),
    ConfidenceSignal.FAIR_IMAGE: Decimal('-0.08'),
    ConfidenceSignal.AMBIGUITY: Decimal('-0.25'),
}

_MESSAGES = {
    ConfidenceSignal.CLEAR_DATE: "Purchase date is clearly legible",
    ConfidenceSignal.CLEAR_AMOUNT: "Total amount is clearly legible",
    ConfidenceSignal.VENDOR_NAME: "Vendor name identified",
    ConfidenceSignal.PO_OR_BOAT_NAME: "PO number or boat name links receipt to a job",
    ConfidenceSignal.LINE_ITEMS: "Itemized line items present",
    ConfidenceSignal.HANDWRITTEN_TEXT: "Handwriting present (less reliable extraction)",
    ConfidenceSignal.POOR_IMAGE: "Poor image quality",
    ConfidenceSignal.FAIR_IMAGE: "Fair image quality",
    ConfidenceSignal.AMBIGUITY: "Ambiguous values needed disambiguation",
}

# Flag name -> signal, in scoring order
_FLAG_SIGNALS = (
    ('has_clear_date', ConfidenceSignal.CLEAR_DATE),
    ('has_clear_amount', ConfidenceSignal.CLEAR_AMOUNT),
    ('has_vendor_name', ConfidenceSignal.VENDOR_NAME),
    ('has_po_or_boat_name', ConfidenceSignal.PO_OR_BOAT_NAME),
    ('has_line_items', ConfidenceSignal.LINE_ITEMS),
    ('has_handwritten_text', ConfidenceSignal.HANDWRITTEN_TEXT),
)

_QUALITY_SIGNALS = {
    ImageQuality.POOR: ConfidenceSignal.POOR_IMAGE,
    ImageQuality.FAIR: ConfidenceSignal.FAIR_IMAGE,
}


@dataclass(frozen=True)
class Contribution:
    """One weighted term of a confidence score."""
    signal: ConfidenceSignal
    weight: Decimal

    @property
    def message(self) -> str:
        return self.signal.display_message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'signal': self.signal.name,
            'weight': float(self.weight),
            'message': self.message,
            'positive': self.signal.is_positive,
        }


SignalsInput = Union[ReceiptSignals, Mapping[str, Any]]


def _coerce_signals(signals: SignalsInput) -> ReceiptSignals:
    if isinstance(signals, ReceiptSignals):
        return signals
    return ReceiptSignals.from_dict(signals)


def _flag(signals: ReceiptSignals, name: str) -> bool:
    value = getattr(signals, name, None)
    if not isinstance(value, bool):
        raise InvalidInputError(
            f"Signal {name} must be a boolean, got {value!r}",
            details={'field': name, 'value': repr(value)},
        )
    return value


def _active_signals(signals: ReceiptSignals) -> List[ConfidenceSignal]:
    """Collect the signals that apply to a receipt, in scoring order."""
    # Re-checked here: model_construct() skips validation
    quality = ImageQuality.parse(signals.image_quality)

    active = [signal for name, signal in _FLAG_SIGNALS if _flag(signals, name)]

    quality_signal = _QUALITY_SIGNALS.get(quality)
    if quality_signal is not None:
        active.append(quality_signal)

    if _flag(signals, 'has_ambiguity'):
        active.append(ConfidenceSignal.AMBIGUITY)

    return active


def explain_confidence(signals: SignalsInput) -> List[Contribution]:
    """
    List the weighted terms behind a receipt's confidence score.

    Args:
        signals: ReceiptSignals or a mapping with the eight signal keys

    Returns:
        Contributions in scoring order (positives first, then deductions)

    Raises:
        InvalidInputError: If the signals are malformed
    """
    return [
        Contribution(signal=s, weight=s.weight)
        for s in _active_signals(_coerce_signals(signals))
    ]


def compute_confidence(signals: SignalsInput) -> float:
    """
    Compute the confidence score for a receipt.

    Args:
        signals: ReceiptSignals or a mapping with the eight signal keys

    Returns:
        Score in [0.0, 1.0]

    Raises:
        InvalidInputError: If the signals are malformed
    """
    raw = sum((s.weight for s in _active_signals(_coerce_signals(signals))), _ZERO)
    return float(max(_ZERO, min(_ONE, raw)))


def _check_unit_interval(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(
            f"{name} must be a number, got {type(value).__name__}",
            details={'field': name, 'value': repr(value)},
        )
    # Range check before float(): ints past float range would overflow. NaN fails it too.
    if not 0 <= value <= 1:
        raise InvalidInputError(
            f"{name} must be within [0, 1], got {value!r}",
            details={'field': name, 'value': repr(value)},
        )
    return float(value)


def should_auto_approve(score: float, threshold: float = AUTO_APPROVE_THRESHOLD) -> bool:
    """
    Decide whether a score is high enough to skip manual review.

    Args:
        score: Confidence score in [0, 1]
        threshold: Inclusive cutoff, defaults to AUTO_APPROVE_THRESHOLD

    Returns:
        True to auto-approve, False to route to manual review

    Raises:
        InvalidInputError: If score or threshold is outside [0, 1]
    """
    score = _check_unit_interval(score, 'score')
    threshold = _check_unit_interval(threshold, 'threshold')
    return score >= threshold
