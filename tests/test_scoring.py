"""Tests for the logistic function and decision helpers."""

import math

import numpy as np
import pytest

from spamfilterai.errors import DimensionMismatchError, NonFiniteScoreError
from spamfilterai.scoring import as_vector, decision_for, linear_score, predicted_label, sigmoid


class TestSigmoid:
    def test_zero_is_one_half(self):
        assert sigmoid(0.0) == 0.5

    @pytest.mark.parametrize("z", [-30.0, -5.0, -0.1, 0.1, 5.0, 30.0])
    def test_open_unit_interval(self, z):
        assert 0.0 < sigmoid(z) < 1.0

    def test_strictly_increasing(self):
        values = [sigmoid(z) for z in np.linspace(-20, 20, 81)]
        assert all(b > a for a, b in zip(values, values[1:]))

    def test_symmetry(self):
        assert sigmoid(2.5) + sigmoid(-2.5) == pytest.approx(1.0)

    def test_large_magnitudes_do_not_overflow(self):
        assert sigmoid(-1000.0) == pytest.approx(0.0)
        assert sigmoid(1000.0) == pytest.approx(1.0)

    def test_nan_is_fatal(self):
        with pytest.raises(NonFiniteScoreError):
            sigmoid(math.nan)


class TestLinearScore:
    def test_dot_product_plus_bias(self):
        weights = np.array([0.5, -1.0, 2.0])
        assert linear_score(weights, 0.25, np.array([2.0, 1.0, 0.5])) == pytest.approx(1.25)

    def test_nan_weights_are_fatal(self):
        with pytest.raises(NonFiniteScoreError):
            linear_score(np.array([math.nan]), 0.0, np.array([1.0]))


class TestAsVector:
    def test_dimension_mismatch(self):
        with pytest.raises(DimensionMismatchError) as exc_info:
            as_vector([1.0, 2.0, 3.0, 4.0], expected=3, item="mail.txt")

        assert exc_info.value.expected == 3
        assert exc_info.value.actual == 4
        assert "mail.txt" in str(exc_info.value)


class TestDecisions:
    @pytest.mark.parametrize("score, label, decision", [(0.5, 1, "forward"), (0.49, 0, "discard"), (0.99, 1, "forward")])
    def test_threshold_is_inclusive(self, score, label, decision):
        assert predicted_label(score) == label
        assert decision_for(score) == decision
