"""Confidence scoring, z-score anomalies and OLS trend forecasts."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np
from scipy import stats as sp_stats

from insight_models import ConfidenceMetrics, PredictionResult, TrendDirection

# (upper sample-size bound, base confidence)
CONFIDENCE_BUCKETS = ((2, 0.3), (5, 0.6), (10, 0.8))
CONFIDENCE_BASE_LARGE = 0.9
CONFIDENCE_FLOOR = 0.1
MAX_VARIANCE_PENALTY = 0.2

RATING_SLOPE_THRESHOLD = 0.1 / 4.0


def confidence(sample_size: int, variance: float = 0.0) -> ConfidenceMetrics:
    """Bucketed base confidence minus a capped variance penalty."""
    n = max(0, int(sample_size))
    base = CONFIDENCE_BASE_LARGE
    for upper, value in CONFIDENCE_BUCKETS:
        if n <= upper:
            base = value
            break

    var = float(variance) if variance is not None and np.isfinite(variance) else 0.0
    penalty = min(MAX_VARIANCE_PENALTY, max(0.0, var / 10.0))
    score = max(CONFIDENCE_FLOOR, base - penalty)

    std_err = float(np.sqrt(var / n)) if n > 0 and var > 0 else 0.0
    return ConfidenceMetrics(sample_size=n, standard_error=std_err, confidence_score=score)


def detect_anomalies(values: Sequence[float], z_threshold: float = 2.0) -> List[bool]:
    """
    Leave-one-out z-scores: each value against the population mean/std of
    the others.  A whole-sample z can never exceed sqrt(n - 1), so a single
    outlier in 5 values would otherwise be invisible at z = 2.
    """
    if len(values) < 3:
        return []
    arr = np.asarray(values, dtype=np.float64)
    if arr.std() <= 0:
        return [False] * len(arr)

    flags = []
    for i in range(len(arr)):
        others = np.delete(arr, i)
        mean, std = others.mean(), others.std()
        dist = abs(arr[i] - mean)
        if std > 0:
            flags.append(bool(dist / std > z_threshold))
        else:
            # the rest are identical; any departure is off the scale
            flags.append(bool(dist > 0))
    return flags


def predict_trend(
    values: Sequence[float],
    domain: Tuple[float, float] = (0.0, 5.0),
    slope_threshold: float = 0.1,
    label: str = "next session",
) -> Optional[PredictionResult]:
    if len(values) < 3:
        return None
    y = np.asarray(values, dtype=np.float64)
    if not np.all(np.isfinite(y)):
        return None
    x = np.arange(len(y), dtype=np.float64)

    fit = sp_stats.linregress(x, y)
    slope, intercept = float(fit.slope), float(fit.intercept)
    if not np.isfinite(slope):
        # all-equal y gives slope 0; nan only for degenerate x
        return None

    if slope > slope_threshold:
        direction = TrendDirection.INCREASING
    elif slope < -slope_threshold:
        direction = TrendDirection.DECREASING
    else:
        direction = TrendDirection.STABLE

    lo, hi = domain
    predicted = min(hi, max(lo, slope * len(y) + intercept))
    return PredictionResult(
        forecast_label=label,
        predicted_value=predicted,
        trend_direction=direction,
        confidence_interval=(predicted - 1.0, predicted + 1.0),
    )
