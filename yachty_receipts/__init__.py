"""
Yachty Receipts

Confidence scoring and auto-approval for yacht-service expense receipts.

A vision/LLM analysis step looks at each receipt photo and reports eight
quality signals. This package turns those signals into a confidence score
and decides whether the expense can be verified automatically or needs a
human to look at it.

Features:
- Deterministic weighted confidence score in [0, 1]
- Inclusive auto-approve threshold (0.95 by default)
- Policy gate with dollar cap and job-reference rule
- Review queue for receipts that miss the bar
- JSON / JSONL / CSV verdict export
- YAML policy file

Quick Start:
    from yachty_receipts import compute_confidence, should_auto_approve

    score = compute_confidence({
        'has_clear_date': True,
        'has_clear_amount': True,
        'has_vendor_name': True,
        'has_po_or_boat_name': True,
        'has_line_items': True,
        'has_handwritten_text': False,
        'image_quality': 'excellent',
        'has_ambiguity': False,
    })
    should_auto_approve(score)  # True

    # With business rules
    from yachty_receipts import ReceiptGate, GateConfig

    gate = ReceiptGate(GateConfig(max_auto_approve_amount=500.0))
    verdict = gate.evaluate(signals, receipt_id='rcpt-42', amount=86.40)
    print(verdict.status)  # ExpenseStatus.VERIFIED / PENDING_REVIEW

CLI Usage:
    yachty-receipts score receipts.json --json-report verdicts.json
    yachty-receipts check 0.95
    yachty-receipts weights
"""

__version__ = '1.0.0'

from .errors import (
    ReceiptError,
    InvalidInputError,
    ConfigError,
    ReviewStateError,
)

from .signals.receipt_signals import ImageQuality, ReceiptSignals

from .decision.confidence import (
    AUTO_APPROVE_THRESHOLD,
    ConfidenceSignal,
    Contribution,
    compute_confidence,
    explain_confidence,
    should_auto_approve,
)
from .decision.gate import (
    BatchError,
    BatchResult,
    ExpenseStatus,
    GateConfig,
    OutcomeReason,
    ReceiptGate,
    ReceiptVerdict,
)

from .config import load_config, parse_config

from .review.review_queue import ReviewItem, ReviewQueue, ReviewStatus
from .review.export import ExportConfig, ExportFormat, VerdictExporter

__all__ = [
    # Version
    '__version__',

    # Errors
    'ReceiptError',
    'InvalidInputError',
    'ConfigError',
    'ReviewStateError',

    # Signals
    'ImageQuality',
    'ReceiptSignals',

    # Scoring
    'AUTO_APPROVE_THRESHOLD',
    'ConfidenceSignal',
    'Contribution',
    'compute_confidence',
    'explain_confidence',
    'should_auto_approve',

    # Gate
    'BatchError',
    'BatchResult',
    'ExpenseStatus',
    'GateConfig',
    'OutcomeReason',
    'ReceiptGate',
    'ReceiptVerdict',

    # Config
    'load_config',
    'parse_config',

    # Review
    'ReviewItem',
    'ReviewQueue',
    'ReviewStatus',
    'ExportConfig',
    'ExportFormat',
    'VerdictExporter',
]
