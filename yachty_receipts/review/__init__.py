"""
Review Package

Manual review of receipts the gate did not auto-approve, and export of
verdicts for bookkeeping.

Usage:
    from yachty_receipts.review import ReviewQueue

    queue = ReviewQueue()
    for verdict in result.verdicts:
        queue.submit(verdict)

    item = queue.get_next()
    item.approve()
"""

from .review_queue import ReviewItem, ReviewQueue, ReviewStatus
from .export import ExportConfig, ExportFormat, VerdictExporter

__all__ = [
    'ReviewItem',
    'ReviewQueue',
    'ReviewStatus',
    'ExportConfig',
    'ExportFormat',
    'VerdictExporter',
]
