"""Forecast and anomaly insights built on the statistical analyzer."""

from __future__ import annotations

from typing import List

from analytics.stats_analyzer import RATING_SLOPE_THRESHOLD, detect_anomalies, predict_trend
from insight_models import Insight, InsightType, TrendDirection, to_five_point
from insight_rules.base import RuleContext, make_insight, sample_confidence

HOURS_DOMAIN = (0.0, 24.0)
RATING_DOMAIN = (0.0, 1.0)

FOCUS_WORDS = {
    TrendDirection.INCREASING: "improving",
    TrendDirection.DECREASING: "declining",
    TrendDirection.STABLE: "stable",
}
STRESS_WORDS = {
    TrendDirection.INCREASING: "rising",
    TrendDirection.DECREASING: "easing",
    TrendDirection.STABLE: "steady",
}


def work_hours_forecast(ctx: RuleContext) -> List[Insight]:
    hours = ctx.agg.session_hours()
    pred = predict_trend(hours, domain=HOURS_DOMAIN,
                         slope_threshold=ctx.config.trend_slope_threshold)
    if pred is None:
        return []
    return [make_insight(
        "work_hours_forecast",
        (len(hours), pred.predicted_value, pred.trend_direction.value),
        ("Predicted work pattern: your session length is trending {direction}. "
         "Expected length for your {label}: {value:.1f} hours.",),
        InsightType.PREDICTION, 2,
        confidence=sample_confidence(hours),
        prediction=pred,
        direction=pred.trend_direction.value, label=pred.forecast_label, value=pred.predicted_value,
    )]


def work_hour_anomalies(ctx: RuleContext) -> List[Insight]:
    hours = ctx.agg.session_hours()
    flags = detect_anomalies(hours, ctx.config.anomaly_z_threshold)
    if not any(flags):
        return []
    conf = sample_confidence(hours)
    stamps = ctx.agg.check_ins["timestamp"].tolist()
    out = []
    for idx, flagged in enumerate(flags):
        if not flagged:
            continue
        out.append(make_insight(
            "work_hour_anomaly",
            (stamps[idx], float(hours[idx])),
            ("Unusual work session detected: {hours:.1f} hours on {day}, "
             "significantly different from your typical pattern.",),
            InsightType.ANOMALY, 3,
            confidence=conf, is_anomaly=True,
            hours=float(hours[idx]), day=stamps[idx].strftime("%A"),
        ))
    return out


def _rating_forecast(ctx: RuleContext, metric: str, rule_id: str, words, template: str) -> List[Insight]:
    ratings = ctx.agg.ratings(metric)
    pred = predict_trend(ratings, domain=RATING_DOMAIN, slope_threshold=RATING_SLOPE_THRESHOLD)
    if pred is None:
        return []
    return [make_insight(
        rule_id,
        (len(ratings), pred.predicted_value, pred.trend_direction.value),
        (template,),
        InsightType.PREDICTION, 2,
        confidence=sample_confidence(ratings),
        prediction=pred,
        direction=words[pred.trend_direction], label=pred.forecast_label,
        value=to_five_point(pred.predicted_value),
    )]


def focus_forecast(ctx: RuleContext) -> List[Insight]:
    return _rating_forecast(
        ctx, "focus", "focus_forecast", FOCUS_WORDS,
        "Focus forecast: your focus trend is {direction}. "
        "Predicted focus level for your {label}: {value:.1f}/5.",
    )


def stress_forecast(ctx: RuleContext) -> List[Insight]:
    return _rating_forecast(
        ctx, "stress", "stress_forecast", STRESS_WORDS,
        "Stress forecast: your stress is {direction}. "
        "Predicted stress level for your {label}: {value:.1f}/5.",
    )
