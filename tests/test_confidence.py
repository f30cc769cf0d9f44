"""
Tests for the receipt confidence evaluator.

Run with: pytest tests/ -v
"""

import itertools
import math
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from yachty_receipts.decision.confidence import (
    AUTO_APPROVE_THRESHOLD,
    ConfidenceSignal,
    compute_confidence,
    explain_confidence,
    should_auto_approve,
)
from yachty_receipts.errors import InvalidInputError
from yachty_receipts.signals.receipt_signals import ImageQuality, ReceiptSignals


NO_SIGNALS = {
    'has_clear_date': False,
    'has_clear_amount': False,
    'has_vendor_name': False,
    'has_po_or_boat_name': False,
    'has_line_items': False,
    'has_handwritten_text': False,
    'image_quality': 'excellent',
    'has_ambiguity': False,
}


def make_signals(**overrides):
    data = dict(NO_SIGNALS)
    data.update(overrides)
    return data


def base_signals(**overrides):
    """Clear date and amount: 0.50."""
    return make_signals(has_clear_date=True, has_clear_amount=True, **overrides)


class TestBoundaries:
    """Ceiling and floor of the score."""

    def test_all_positive_reaches_one(self):
        score = compute_confidence(make_signals(
            has_clear_date=True,
            has_clear_amount=True,
            has_vendor_name=True,
            has_po_or_boat_name=True,
            has_line_items=True,
        ))
        assert score == 1.0

    def test_all_negative_floors_at_zero(self):
        score = compute_confidence(make_signals(
            has_handwritten_text=True,
            image_quality='poor',
            has_ambiguity=True,
        ))
        assert score == 0.0

    def test_nothing_detected_is_zero(self):
        assert compute_confidence(make_signals()) == 0.0


class TestSingleSignals:
    """Each positive signal alone."""

    @pytest.mark.parametrize('flag,expected', [
        ('has_clear_date', 0.25),
        ('has_clear_amount', 0.25),
        ('has_vendor_name', 0.15),
        ('has_po_or_boat_name', 0.20),
        ('has_line_items', 0.15),
    ])
    def test_single_positive(self, flag, expected):
        assert compute_confidence(make_signals(**{flag: True})) == expected


class TestDeductions:
    """Deductions from a 0.50 base."""

    def test_base(self):
        assert compute_confidence(base_signals()) == 0.5

    def test_handwritten_text(self):
        assert compute_confidence(base_signals(has_handwritten_text=True)) == 0.30

    def test_poor_image(self):
        assert compute_confidence(base_signals(image_quality='poor')) == 0.35

    def test_fair_image(self):
        assert compute_confidence(base_signals(image_quality='fair')) == 0.42

    def test_good_image_no_deduction(self):
        assert compute_confidence(base_signals(image_quality='good')) == 0.5

    def test_ambiguity(self):
        assert compute_confidence(base_signals(has_ambiguity=True)) == 0.25

    def test_quality_deductions_do_not_stack(self):
        contributions = explain_confidence(base_signals(image_quality='poor'))
        signals = [c.signal for c in contributions]
        assert ConfidenceSignal.POOR_IMAGE in signals
        assert ConfidenceSignal.FAIR_IMAGE not in signals


class TestProperties:
    """Properties over every possible input."""

    def all_inputs(self):
        flags = [k for k in NO_SIGNALS if k != 'image_quality']
        for values in itertools.product([False, True], repeat=len(flags)):
            for quality in ImageQuality:
                data = dict(zip(flags, values))
                data['image_quality'] = quality
                yield ReceiptSignals(**data)

    def test_bounded_and_deterministic(self):
        for signals in self.all_inputs():
            score = compute_confidence(signals)
            assert 0.0 <= score <= 1.0
            assert compute_confidence(signals) == score

    def test_score_is_clamped_sum_of_contributions(self):
        for signals in self.all_inputs():
            raw = sum(float(c.weight) for c in explain_confidence(signals))
            assert math.isclose(compute_confidence(signals), max(0.0, min(1.0, raw)), abs_tol=1e-9)

    def test_model_and_mapping_agree(self):
        data = base_signals(has_vendor_name=True, image_quality='fair')
        assert compute_confidence(data) == compute_confidence(ReceiptSignals.from_dict(data))


class TestInvalidSignals:
    """Malformed input is rejected, not defaulted."""

    def test_unknown_image_quality(self):
        with pytest.raises(InvalidInputError):
            compute_confidence(make_signals(image_quality='unknown'))

    def test_unknown_image_quality_past_validation(self):
        signals = ReceiptSignals.model_construct(**make_signals(image_quality='unknown'))
        with pytest.raises(InvalidInputError) as exc_info:
            compute_confidence(signals)
        assert exc_info.value.code == 'INVALID_INPUT'

    def test_non_boolean_flag_past_validation(self):
        signals = ReceiptSignals.model_construct(**make_signals(has_clear_date='yes'))
        with pytest.raises(InvalidInputError):
            compute_confidence(signals)

    def test_not_a_mapping(self):
        with pytest.raises(InvalidInputError):
            compute_confidence(['has_clear_date'])


class TestAutoApprove:
    """Threshold policy."""

    def test_threshold_constant(self):
        assert AUTO_APPROVE_THRESHOLD == 0.95

    def test_exact_threshold_approves(self):
        assert should_auto_approve(0.95) is True

    def test_just_below_threshold(self):
        assert should_auto_approve(0.9499999) is False

    def test_one_approves(self):
        assert should_auto_approve(1.0) is True

    def test_zero_reviews(self):
        assert should_auto_approve(0.0) is False

    def test_integer_scores(self):
        assert should_auto_approve(1) is True
        assert should_auto_approve(0) is False

    def test_custom_threshold(self):
        assert should_auto_approve(0.8, threshold=0.8) is True
        assert should_auto_approve(0.79, threshold=0.8) is False

    @pytest.mark.parametrize('score', [1.5, -0.1, 10**400, float('nan'), float('inf'), True, '0.95', None])
    def test_invalid_score(self, score):
        with pytest.raises(InvalidInputError):
            should_auto_approve(score)

    def test_invalid_threshold(self):
        with pytest.raises(InvalidInputError):
            should_auto_approve(0.5, threshold=2.0)

    def test_perfect_receipt_approves(self):
        score = compute_confidence(make_signals(
            has_clear_date=True,
            has_clear_amount=True,
            has_vendor_name=True,
            has_po_or_boat_name=True,
            has_line_items=True,
        ))
        assert should_auto_approve(score)

    def test_missing_line_items_needs_review(self):
        score = compute_confidence(make_signals(
            has_clear_date=True,
            has_clear_amount=True,
            has_vendor_name=True,
            has_po_or_boat_name=True,
        ))
        assert not should_auto_approve(score)


class TestExplain:
    """Contribution listing."""

    def test_order_and_weights(self):
        contributions = explain_confidence(base_signals(has_ambiguity=True))
        assert [c.signal for c in contributions] == [
            ConfidenceSignal.CLEAR_DATE,
            ConfidenceSignal.CLEAR_AMOUNT,
            ConfidenceSignal.AMBIGUITY,
        ]
        assert contributions[-1].to_dict() == {
            'signal': 'AMBIGUITY',
            'weight': -0.25,
            'message': ConfidenceSignal.AMBIGUITY.display_message,
            'positive': False,
        }

    def test_empty_when_nothing_applies(self):
        assert explain_confidence(make_signals(image_quality='good')) == []
