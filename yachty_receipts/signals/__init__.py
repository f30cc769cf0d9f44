"""
Signals Package

Input value objects produced by the receipt-analysis step.
"""

from .receipt_signals import ImageQuality, ReceiptSignals

__all__ = [
    'ImageQuality',
    'ReceiptSignals',
]
