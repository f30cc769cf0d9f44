"""
Receipt Gate

Applies the expense-approval policy on top of the confidence evaluator.

The evaluator answers "how trustworthy is this extraction?". The gate
answers "what happens to this expense?":
- VERIFIED: score meets the threshold and no business rule objects
- PENDING_REVIEW: anything else, with the reason and reviewer hints

Business rules layered on the score:
- Dollar cap: confident receipts above max_auto_approve_amount still go
  to a human
- Job reference: optionally require a PO number or boat name

Usage:
    gate = ReceiptGate(GateConfig(max_auto_approve_amount=500.0))

    verdict = gate.evaluate(signals, receipt_id='rcpt-42', amount=86.40)
    if verdict.needs_review:
        for suggestion in verdict.suggestions:
            print(f"  - {suggestion}")
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterable, List, Mapping, Optional

from loguru import logger

from ..errors import ConfigError, InvalidInputError, ReceiptError
from ..signals.receipt_signals import ReceiptSignals
from .confidence import (
    AUTO_APPROVE_THRESHOLD,
    ConfidenceSignal,
    Contribution,
    SignalsInput,
    compute_confidence,
    explain_confidence,
    should_auto_approve,
)


class ExpenseStatus(Enum):
    """What the ingestion workflow should do with the expense."""

    VERIFIED = auto()        # Persist as verified
    PENDING_REVIEW = auto()  # Enqueue for a human

    @property
    def display_name(self) -> str:
        names = {
            ExpenseStatus.VERIFIED: "✓ Verified",
            ExpenseStatus.PENDING_REVIEW: "⚠ Pending Review",
        }
        return names.get(self, self.name)


class OutcomeReason(Enum):
    """Why the gate reached its verdict."""

    SCORE_MEETS_THRESHOLD = auto()
    SCORE_BELOW_THRESHOLD = auto()
    AMOUNT_OVER_CAP = auto()
    MISSING_JOB_REFERENCE = auto()

    @property
    def display_message(self) -> str:
        messages = {
            OutcomeReason.SCORE_MEETS_THRESHOLD: "Confidence meets auto-approve threshold",
            OutcomeReason.SCORE_BELOW_THRESHOLD: "Confidence below auto-approve threshold",
            OutcomeReason.AMOUNT_OVER_CAP: "Amount exceeds auto-approve cap",
            OutcomeReason.MISSING_JOB_REFERENCE: "No PO number or boat name to link the expense",
        }
        return messages.get(self, self.name)


_SUGGESTIONS = {
    ConfidenceSignal.HANDWRITTEN_TEXT: "Check handwritten values against the receipt image",
    ConfidenceSignal.POOR_IMAGE: "Ask for a new photo of the receipt",
    ConfidenceSignal.FAIR_IMAGE: "Zoom in on the image to confirm the amounts",
    ConfidenceSignal.AMBIGUITY: "Several candidate values were found - confirm the right one",
}

_MISSING_SUGGESTIONS = (
    (ConfidenceSignal.CLEAR_DATE, "Enter the purchase date manually"),
    (ConfidenceSignal.CLEAR_AMOUNT, "Enter the total amount manually"),
    (ConfidenceSignal.VENDOR_NAME, "Identify the vendor"),
    (ConfidenceSignal.PO_OR_BOAT_NAME, "Assign the expense to a boat or PO"),
)


def _as_amount(value: Any) -> Optional[float]:
    """Float value of a finite non-negative number, else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        value = float(value)
    except OverflowError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


@dataclass
class GateConfig:
    """
    Policy for turning scores into expense statuses.
    """
    auto_approve_threshold: float = AUTO_APPROVE_THRESHOLD

    # None disables the cap
    max_auto_approve_amount: Optional[float] = None

    require_po_or_boat_name: bool = False

    def __post_init__(self):
        threshold = self.auto_approve_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) \
                or not 0 <= threshold <= 1:
            raise ConfigError(
                f"auto_approve_threshold must be within [0, 1], got {threshold!r}"
            )
        self.auto_approve_threshold = float(threshold)

        cap = self.max_auto_approve_amount
        if cap is not None:
            value = _as_amount(cap)
            if value is None:
                raise ConfigError(
                    f"max_auto_approve_amount must be a non-negative number, got {cap!r}"
                )
            self.max_auto_approve_amount = value

        if not isinstance(self.require_po_or_boat_name, bool):
            raise ConfigError(
                f"require_po_or_boat_name must be a boolean, got {self.require_po_or_boat_name!r}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'auto_approve_threshold': self.auto_approve_threshold,
            'max_auto_approve_amount': self.max_auto_approve_amount,
            'require_po_or_boat_name': self.require_po_or_boat_name,
        }


@dataclass
class ReceiptVerdict:
    """
    Outcome of gating a single receipt.
    """
    receipt_id: Optional[str]
    score: float
    auto_approved: bool
    status: ExpenseStatus
    reason: OutcomeReason
    contributions: List[Contribution]
    suggestions: List[str] = field(default_factory=list)
    amount: Optional[float] = None
    signals: Optional[ReceiptSignals] = None

    @property
    def needs_review(self) -> bool:
        return self.status == ExpenseStatus.PENDING_REVIEW

    @property
    def positive_contributions(self) -> List[Contribution]:
        return [c for c in self.contributions if c.signal.is_positive]

    @property
    def negative_contributions(self) -> List[Contribution]:
        return [c for c in self.contributions if not c.signal.is_positive]

    @property
    def explanation(self) -> str:
        """Generate human-readable explanation."""
        lines = [
            f"Receipt: {self.receipt_id or 'unknown'}",
            f"Score: {self.score:.2f}",
            f"Status: {self.status.display_name}",
            f"Reason: {self.reason.display_message}",
            "",
            "Signals:",
        ]

        for c in self.positive_contributions:
            lines.append(f"  + {c.message} ({float(c.weight):+.2f})")

        for c in self.negative_contributions:
            lines.append(f"  - {c.message} ({float(c.weight):+.2f})")

        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            for suggestion in self.suggestions:
                lines.append(f"  • {suggestion}")

        return '\n'.join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'receipt_id': self.receipt_id,
            'score': self.score,
            'auto_approved': self.auto_approved,
            'status': self.status.name,
            'reason': self.reason.name,
            'amount': self.amount,
            'contributions': [c.to_dict() for c in self.contributions],
            'suggestions': self.suggestions,
            'signals': self.signals.to_dict() if self.signals is not None else None,
        }


@dataclass
class BatchError:
    """A batch record that could not be evaluated."""
    index: int
    receipt_id: Optional[str]
    error: ReceiptError

    def to_dict(self) -> Dict[str, Any]:
        data = self.error.to_dict()
        data.update({'index': self.index, 'receipt_id': self.receipt_id})
        return data


@dataclass
class BatchResult:
    """Verdicts and failures from evaluating many receipts."""
    verdicts: List[ReceiptVerdict] = field(default_factory=list)
    errors: List[BatchError] = field(default_factory=list)

    @property
    def approved_count(self) -> int:
        return sum(1 for v in self.verdicts if v.auto_approved and not v.needs_review)

    @property
    def review_count(self) -> int:
        return sum(1 for v in self.verdicts if v.needs_review)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            'statistics': {
                'evaluated': len(self.verdicts),
                'verified': self.approved_count,
                'pending_review': self.review_count,
                'failed': len(self.errors),
            },
            'verdicts': [v.to_dict() for v in self.verdicts],
            'errors': [e.to_dict() for e in self.errors],
        }


def validate_amount(amount: Any, name: str = 'amount') -> Optional[float]:
    """
    Check an expense amount.

    Returns:
        The amount as a float, or None if no amount was given

    Raises:
        InvalidInputError: If the amount is not a finite non-negative number
    """
    if amount is None:
        return None
    value = _as_amount(amount)
    if value is None:
        raise InvalidInputError(
            f"{name} must be a non-negative number, got {amount!r}",
            details={'field': name, 'value': repr(amount)},
        )
    return value


class ReceiptGate:
    """
    Routes receipts to auto-approval or manual review.

    Usage:
        gate = ReceiptGate()
        verdict = gate.evaluate({'has_clear_date': True, ...}, amount=42.0)

        result = gate.evaluate_batch([
            {'receipt_id': 'r1', 'amount': 42.0, 'signals': {...}},
        ])
    """

    def __init__(self, config: Optional[GateConfig] = None):
        """
        Initialize receipt gate.

        Args:
            config: Gate policy
        """
        self.config = config or GateConfig()

    def evaluate(
        self,
        signals: SignalsInput,
        receipt_id: Optional[str] = None,
        amount: Optional[float] = None,
    ) -> ReceiptVerdict:
        """
        Gate a single receipt.

        Args:
            signals: ReceiptSignals or mapping from the analysis step
            receipt_id: Caller's identifier, echoed in the verdict
            amount: Expense total, checked against the dollar cap

        Returns:
            ReceiptVerdict

        Raises:
            InvalidInputError: If signals or amount are malformed
        """
        if not isinstance(signals, ReceiptSignals):
            signals = ReceiptSignals.from_dict(signals)
        amount = validate_amount(amount)

        score = compute_confidence(signals)
        contributions = explain_confidence(signals)
        auto_approved = should_auto_approve(score, self.config.auto_approve_threshold)

        cap = self.config.max_auto_approve_amount
        if not auto_approved:
            reason = OutcomeReason.SCORE_BELOW_THRESHOLD
        elif self.config.require_po_or_boat_name and not signals.has_po_or_boat_name:
            reason = OutcomeReason.MISSING_JOB_REFERENCE
        elif cap is not None and amount is not None and amount > cap:
            reason = OutcomeReason.AMOUNT_OVER_CAP
        else:
            reason = OutcomeReason.SCORE_MEETS_THRESHOLD

        status = (
            ExpenseStatus.VERIFIED
            if reason == OutcomeReason.SCORE_MEETS_THRESHOLD
            else ExpenseStatus.PENDING_REVIEW
        )

        suggestions = [] if status == ExpenseStatus.VERIFIED else self._suggest(contributions, reason)

        logger.debug(
            f"Receipt {receipt_id or '-'}: score={score:.2f} "
            f"status={status.name} reason={reason.name}"
        )

        return ReceiptVerdict(
            receipt_id=receipt_id,
            score=score,
            auto_approved=auto_approved,
            status=status,
            reason=reason,
            contributions=contributions,
            suggestions=suggestions,
            amount=amount,
            signals=signals,
        )

    def _suggest(
        self,
        contributions: List[Contribution],
        reason: OutcomeReason,
    ) -> List[str]:
        """Build reviewer hints from what pulled the score down."""
        present = {c.signal for c in contributions}
        suggestions = []

        for signal, hint in _MISSING_SUGGESTIONS:
            if signal not in present:
                suggestions.append(hint)

        for c in contributions:
            hint = _SUGGESTIONS.get(c.signal)
            if hint:
                suggestions.append(hint)

        if reason == OutcomeReason.AMOUNT_OVER_CAP:
            suggestions.append(
                f"Amount is above the ${self.config.max_auto_approve_amount:,.2f} "
                "auto-approve cap - confirm with the client"
            )

        return suggestions

    def evaluate_batch(self, records: Iterable[Mapping[str, Any]]) -> BatchResult:
        """
        Gate many receipts.

        Each record is a mapping with ``signals`` and optional
        ``receipt_id`` and ``amount``. Malformed records are collected as
        errors; the rest of the batch is still evaluated.

        Args:
            records: Receipt payloads

        Returns:
            BatchResult with verdicts in input order
        """
        result = BatchResult()

        for i, record in enumerate(records):
            receipt_id = None
            try:
                if not isinstance(record, Mapping):
                    raise InvalidInputError(
                        f"Record must be a mapping, got {type(record).__name__}"
                    )
                receipt_id = record.get('receipt_id')
                if receipt_id is not None:
                    receipt_id = str(receipt_id)
                if 'signals' not in record:
                    raise InvalidInputError("Record is missing 'signals'")

                verdict = self.evaluate(
                    record['signals'],
                    receipt_id=receipt_id,
                    amount=record.get('amount'),
                )
                result.verdicts.append(verdict)
            except InvalidInputError as e:
                logger.warning(f"Record {i} ({receipt_id or '-'}) rejected: {e}")
                result.errors.append(BatchError(index=i, receipt_id=receipt_id, error=e))

        logger.info(
            f"Evaluated {len(result.verdicts)} receipts: "
            f"{result.approved_count} verified, {result.review_count} for review, "
            f"{len(result.errors)} failed"
        )
        return result
