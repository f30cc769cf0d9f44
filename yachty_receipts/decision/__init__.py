"""
Decision Package

Confidence scoring and the expense-approval gate.

Scores on their own don't say what to do with an expense. This package
pairs the deterministic score with an explicit verdict:
- VERIFIED: auto-approve, persist the expense as verified
- PENDING_REVIEW: route to a human with reasons and suggestions

Usage:
    from yachty_receipts.decision import compute_confidence, should_auto_approve

    score = compute_confidence(signals)
    if should_auto_approve(score):
        ...
"""

from .confidence import (
    AUTO_APPROVE_THRESHOLD,
    ConfidenceSignal,
    Contribution,
    compute_confidence,
    explain_confidence,
    should_auto_approve,
)
from .gate import (
    BatchError,
    BatchResult,
    ExpenseStatus,
    GateConfig,
    OutcomeReason,
    ReceiptGate,
    ReceiptVerdict,
    validate_amount,
)

__all__ = [
    'AUTO_APPROVE_THRESHOLD',
    'ConfidenceSignal',
    'Contribution',
    'compute_confidence',
    'explain_confidence',
    'should_auto_approve',
    'BatchError',
    'BatchResult',
    'ExpenseStatus',
    'GateConfig',
    'OutcomeReason',
    'ReceiptGate',
    'ReceiptVerdict',
    'validate_amount',
]
