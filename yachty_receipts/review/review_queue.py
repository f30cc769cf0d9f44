"""
Review Queue

Holds receipts the gate did not auto-approve until a person has looked
at them.

Flow:
    verdict = gate.evaluate(signals, receipt_id='rcpt-7', amount=120.0)
    item = queue.submit(verdict)     # None if the receipt was verified

    item = queue.get_next()          # lowest score first
    item.correct(118.50, notes='Total misread')
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from loguru import logger

from ..decision.gate import ReceiptVerdict, validate_amount
from ..errors import InvalidInputError, ReviewStateError


class ReviewStatus(Enum):
    """Status of a review item."""

    PENDING = auto()      # Not yet reviewed
    APPROVED = auto()     # Approved as extracted
    CORRECTED = auto()    # Amount corrected by reviewer
    REJECTED = auto()     # Not a valid expense

    @property
    def is_complete(self) -> bool:
        return self != ReviewStatus.PENDING


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.warning(f"Ignoring unparseable timestamp: {value!r}")
        return None


@dataclass
class ReviewItem:
    """
    A receipt waiting for, or finished with, manual review.
    """
    item_id: str
    receipt_id: Optional[str]
    score: float
    reason: str
    amount: Optional[float] = None
    suggestions: List[str] = field(default_factory=list)
    signals: Optional[Dict[str, Any]] = None
    status: ReviewStatus = ReviewStatus.PENDING
    corrected_amount: Optional[float] = None
    reviewer_notes: str = ''
    created_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @classmethod
    def from_verdict(cls, verdict: ReceiptVerdict) -> 'ReviewItem':
        return cls(
            item_id=str(uuid.uuid4()),
            receipt_id=verdict.receipt_id,
            score=verdict.score,
            reason=verdict.reason.name,
            amount=verdict.amount,
            suggestions=list(verdict.suggestions),
            signals=verdict.signals.to_dict() if verdict.signals is not None else None,
        )

    @property
    def is_pending(self) -> bool:
        return self.status == ReviewStatus.PENDING

    @property
    def final_amount(self) -> Optional[float]:
        """Corrected amount if available, else the extracted one."""
        if self.corrected_amount is not None:
            return self.corrected_amount
        return self.amount

    def _finish(self, status: ReviewStatus, notes: str) -> None:
        if not self.is_pending:
            raise ReviewStateError(
                f"Review item {self.item_id} is already {self.status.name}",
                details={'item_id': self.item_id, 'status': self.status.name},
            )
        self.status = status
        self.reviewer_notes = notes
        self.completed_at = datetime.now()

    def approve(self, notes: str = '') -> None:
        """Accept the receipt as extracted."""
        self._finish(ReviewStatus.APPROVED, notes)

    def correct(self, amount: float, notes: str = '') -> None:
        """Accept the receipt with a corrected total."""
        if amount is None:
            raise InvalidInputError("Corrected amount is required", details={'field': 'corrected_amount'})
        amount = validate_amount(amount, 'corrected_amount')
        self._finish(ReviewStatus.CORRECTED, notes)
        self.corrected_amount = amount

    def reject(self, reason: str = '') -> None:
        """Reject the receipt as unusable."""
        self._finish(ReviewStatus.REJECTED, reason)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'item_id': self.item_id,
            'receipt_id': self.receipt_id,
            'score': self.score,
            'reason': self.reason,
            'amount': self.amount,
            'corrected_amount': self.corrected_amount,
            'final_amount': self.final_amount,
            'suggestions': self.suggestions,
            'signals': self.signals,
            'status': self.status.name,
            'reviewer_notes': self.reviewer_notes,
            'created_at': self.created_at.isoformat(),
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReviewItem':
        """Create from dictionary."""
        return cls(
            item_id=data['item_id'],
            receipt_id=data.get('receipt_id'),
            score=data['score'],
            reason=data['reason'],
            amount=data.get('amount'),
            suggestions=data.get('suggestions', []),
            signals=data.get('signals'),
            status=ReviewStatus[data.get('status', 'PENDING')],
            corrected_amount=data.get('corrected_amount'),
            reviewer_notes=data.get('reviewer_notes', ''),
            created_at=_parse_time(data.get('created_at')) or datetime.now(),
            completed_at=_parse_time(data.get('completed_at')),
        )


class ReviewQueue:
    """
    In-memory queue of receipts awaiting manual review.

    Verified receipts are recorded on the side so totals can be reported
    for a whole batch.
    """

    def __init__(self):
        self.items: Dict[str, ReviewItem] = {}
        self.verified: List[Dict[str, Any]] = []

    def submit(self, verdict: ReceiptVerdict) -> Optional[ReviewItem]:
        """
        File a verdict.

        Args:
            verdict: Output of ReceiptGate.evaluate

        Returns:
            The new ReviewItem, or None if the receipt was verified
        """
        if not verdict.needs_review:
            self.verified.append({
                'receipt_id': verdict.receipt_id,
                'score': verdict.score,
                'amount': verdict.amount,
            })
            return None

        item = ReviewItem.from_verdict(verdict)
        self.items[item.item_id] = item
        logger.info(
            f"Queued receipt {verdict.receipt_id or '-'} for review "
            f"(score {verdict.score:.2f}, {verdict.reason.name})"
        )
        return item

    def get(self, item_id: str) -> Optional[ReviewItem]:
        return self.items.get(item_id)

    def pending(self) -> List[ReviewItem]:
        """Pending items, lowest score first."""
        return sorted(
            (i for i in self.items.values() if i.is_pending),
            key=lambda i: (i.score, i.created_at),
        )

    def get_next(self) -> Optional[ReviewItem]:
        """Next item to review."""
        pending = self.pending()
        return pending[0] if pending else None

    def __len__(self) -> int:
        return len(self.items)

    def get_statistics(self) -> Dict[str, Any]:
        """Queue statistics."""
        counts = {status.name.lower(): 0 for status in ReviewStatus}
        for item in self.items.values():
            counts[item.status.name.lower()] += 1

        return {
            'verified': len(self.verified),
            'queued': len(self.items),
            **counts,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'statistics': self.get_statistics(),
            'verified': self.verified,
            'items': [i.to_dict() for i in self.items.values()],
        }

    def save(self, path: Union[str, Path]) -> Path:
        """Write the queue to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved review queue ({len(self.items)} items) to {path}")
        return path

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'ReviewQueue':
        """
        Read a queue previously written by save().

        Raises:
            InvalidInputError: If the file is not a saved review queue
        """
        with open(path, 'r', encoding='utf-8') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise InvalidInputError(f"Invalid JSON in review queue {path}: {e}") from e

        queue = cls()
        try:
            queue.verified = list(data.get('verified', []))
            for item_data in data.get('items', []):
                item = ReviewItem.from_dict(item_data)
                queue.items[item.item_id] = item
        except (AttributeError, KeyError, TypeError) as e:
            raise InvalidInputError(
                f"Malformed review queue {path}: {e!r}",
                details={'path': str(path)},
            ) from e
        return queue
