"""Tests for confidence scoring, anomaly detection and trend forecasting."""

import math

import pytest

from analytics.stats_analyzer import (
    RATING_SLOPE_THRESHOLD,
    confidence,
    detect_anomalies,
    predict_trend,
)
from insight_models import TrendDirection


# ─── confidence ──────────────────────────────────────────────


class TestConfidence:

    @pytest.mark.parametrize("n,expected", [
        (0, 0.3), (1, 0.3), (2, 0.3),
        (3, 0.6), (5, 0.6),
        (6, 0.8), (10, 0.8),
        (11, 0.9), (15, 0.9),
    ])
    def test_bucket_bases(self, n, expected):
        assert confidence(n, 0).confidence_score == pytest.approx(expected)

    def test_variance_penalty(self):
        assert confidence(15, 1.0).confidence_score == pytest.approx(0.8)

    def test_penalty_capped(self):
        assert confidence(15, 50.0).confidence_score == pytest.approx(0.7)

    def test_floor(self):
        # 0.3 - 0.2 = 0.1, never lower
        assert confidence(1, 100.0).confidence_score == pytest.approx(0.1)

    def test_negative_variance_ignored(self):
        assert confidence(4, -3.0).confidence_score == pytest.approx(0.6)

    def test_standard_error(self):
        m = confidence(4, 4.0)
        assert m.sample_size == 4
        assert m.standard_error == pytest.approx(1.0)


# ─── detect_anomalies ────────────────────────────────────────


class TestDetectAnomalies:

    def test_flags_outlier_only(self):
        flags = detect_anomalies([2, 2.1, 1.9, 2.0, 9.0])
        assert flags == [False, False, False, False, True]

    def test_too_few_values(self):
        assert detect_anomalies([1.0, 100.0]) == []
        assert detect_anomalies([]) == []

    def test_zero_variance_flags_nothing(self):
        assert detect_anomalies([3.0, 3.0, 3.0, 3.0]) == [False] * 4

    def test_departure_from_identical_values(self):
        assert detect_anomalies([0, 0, 0, 0, 10]) == [False, False, False, False, True]

    def test_threshold_is_strict(self):
        # last value vs others [0, 2]: mean 1, std 1, z exactly 2.0
        assert detect_anomalies([0, 2, 3], z_threshold=2.0)[-1] is False
        assert detect_anomalies([0, 2, 3], z_threshold=1.99)[-1] is True

    def test_lower_threshold_flags_more(self):
        values = [1, 2, 3, 4, 10]
        assert sum(detect_anomalies(values, 1.0)) >= sum(detect_anomalies(values, 2.0))


# ─── predict_trend ───────────────────────────────────────────


class TestPredictTrend:

    def test_increasing_clamped_to_domain(self):
        pred = predict_trend([1, 2, 3, 4, 5], domain=(0, 5))
        assert pred.trend_direction == TrendDirection.INCREASING
        assert pred.predicted_value == pytest.approx(5.0)

    def test_increasing_unclamped(self):
        pred = predict_trend([1, 2, 3, 4, 5], domain=(0, 10))
        assert pred.predicted_value == pytest.approx(6.0)
        assert pred.confidence_interval == (pytest.approx(5.0), pytest.approx(7.0))

    def test_decreasing(self):
        pred = predict_trend([5, 4, 3, 2, 1], domain=(0, 5))
        assert pred.trend_direction == TrendDirection.DECREASING
        assert pred.predicted_value == pytest.approx(0.0)

    def test_stable_for_flat(self):
        pred = predict_trend([3, 3, 3], domain=(0, 5))
        assert pred.trend_direction == TrendDirection.STABLE
        assert pred.predicted_value == pytest.approx(3.0)

    def test_needs_three_values(self):
        assert predict_trend([1, 2]) is None

    def test_non_finite_rejected(self):
        assert predict_trend([1, float("nan"), 3]) is None

    def test_label(self):
        assert predict_trend([1, 2, 3]).forecast_label == "next session"

    def test_rating_scale_threshold(self):
        # slope 0.05 per session on [0,1]: above 0.025, below the default 0.1
        values = [0.2, 0.25, 0.3, 0.35]
        assert predict_trend(values, (0, 1)).trend_direction == TrendDirection.STABLE
        pred = predict_trend(values, (0, 1), slope_threshold=RATING_SLOPE_THRESHOLD)
        assert pred.trend_direction == TrendDirection.INCREASING
        assert math.isclose(pred.predicted_value, 0.4, abs_tol=1e-9)
