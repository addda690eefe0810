"""Group comparisons of focus and stress: session length, breathing days,
workplaces, time of day and weekday.

Every comparison contrasts the highest- and lowest-scoring group that pass
the per-group sample gate, and fires only when their means differ by at least
``difference_threshold`` on the [0, 1] scale.
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from analytics.aggregates import WEEKDAY_ORDER, GroupContrast, contrast
from insight_models import Insight, InsightType, to_five_point
from insight_rules.base import RuleContext, make_insight, notably_different

METRICS = ("focus", "stress")

GROUP_NAMES = {
    "long": "long sessions",
    "short": "short sessions",
    "breathing": "days with a breathing exercise",
    "non_breathing": "days without one",
    "morning": "mornings",
    "afternoon": "afternoons",
    "evening": "evenings",
}
GROUP_NAMES.update({day: day + "s" for day in WEEKDAY_ORDER})


def _name(label: str) -> str:
    return GROUP_NAMES.get(label, label)


def _significant(ctx: RuleContext, c: Optional[GroupContrast]) -> bool:
    return c is not None and notably_different(c.high_mean, c.low_mean, ctx.config.difference_threshold)


def _contrast_insight(rule_id: str, c: GroupContrast, type: InsightType, priority: int,
                      focus_templates, stress_templates) -> Insight:
    templates = focus_templates if c.metric == "focus" else stress_templates
    n = c.high_n + c.low_n
    return make_insight(
        rule_id,
        (c.metric, c.high_label, round(c.high_mean, 4), c.low_label, round(c.low_mean, 4)),
        templates, type, priority,
        confidence=min(0.9, n / 10.0),
        high=_name(c.high_label), high_avg=to_five_point(c.high_mean),
        low=_name(c.low_label), low_avg=to_five_point(c.low_mean),
    )


def duration_buckets(ctx: RuleContext) -> List[Insight]:
    frame = ctx.agg.reflected
    frame = frame[frame["duration_bucket"].isin(["long", "short"])]
    out = []
    for metric in METRICS:
        c = contrast(frame, "duration_bucket", metric, ctx.config.min_sessions_per_duration_bucket)
        if not _significant(ctx, c):
            continue
        out.append(_contrast_insight(
            "duration_focus_stress", c, InsightType.CORRELATION, 5,
            ("Your focus is higher in {high} ({high_avg:.1f}/5) than in {low} ({low_avg:.1f}/5). "
             "Worth planning your day around that?",),
            ("Stress runs higher in {high} ({high_avg:.1f}/5) than in {low} ({low_avg:.1f}/5). "
             "Would breaking up longer stretches help?",),
        ))
    return out


def breathing_days(ctx: RuleContext) -> List[Insight]:
    frame = ctx.agg.reflected
    if frame.empty:
        return []
    frame = frame.assign(day_kind=np.where(frame["breathing_day"], "breathing", "non_breathing"))
    out = []
    for metric in METRICS:
        c = contrast(frame, "day_kind", metric, ctx.config.min_sessions_per_breathing_group)
        if not _significant(ctx, c):
            continue
        out.append(_contrast_insight(
            "breathing_day_focus_stress", c, InsightType.CORRELATION, 6,
            ("On {high} your focus averaged {high_avg:.1f}/5, compared with {low_avg:.1f}/5 on {low}.",),
            ("Stress averaged {high_avg:.1f}/5 on {high}, versus {low_avg:.1f}/5 on {low}.",),
        ))
    return out


def workplaces(ctx: RuleContext) -> List[Insight]:
    cfg = ctx.config
    out = []
    for metric in METRICS:
        c = contrast(ctx.agg.reflected, "workplace", metric,
                     cfg.min_sessions_per_workplace, min_groups=cfg.min_workplaces)
        if not _significant(ctx, c):
            continue
        out.append(_contrast_insight(
            "workplace_focus_stress", c, InsightType.WORKPLACE_SPECIFIC, 5,
            ("You tend to focus better at {high} ({high_avg:.1f}/5) than at {low} ({low_avg:.1f}/5). "
             "What's different about working there?",),
            ("Stress is noticeably higher at {high} ({high_avg:.1f}/5) than at {low} "
             "({low_avg:.1f}/5). What makes {low} easier?",),
        ))
    return out


def time_blocks(ctx: RuleContext) -> List[Insight]:
    out = []
    for metric in METRICS:
        c = contrast(ctx.agg.reflected, "time_block", metric, ctx.config.min_sessions_per_time_block)
        if not _significant(ctx, c):
            continue
        out.append(_contrast_insight(
            "time_block_focus_stress", c, InsightType.CORRELATION, 4,
            ("Your focus peaks in the {high} ({high_avg:.1f}/5) and dips in the {low} "
             "({low_avg:.1f}/5). Could you schedule deep work accordingly?",),
            ("Stress is highest in the {high} ({high_avg:.1f}/5) and lowest in the {low} "
             "({low_avg:.1f}/5).",),
        ))
    return out


def weekdays(ctx: RuleContext) -> List[Insight]:
    out = []
    for metric in METRICS:
        c = contrast(ctx.agg.reflected, "weekday", metric, ctx.config.min_sessions_per_weekday)
        if not _significant(ctx, c):
            continue
        out.append(_contrast_insight(
            "weekday_focus_stress", c, InsightType.OBSERVATION, 3,
            ("{high} tend to be your most focused days ({high_avg:.1f}/5), "
             "while {low} lag behind ({low_avg:.1f}/5).",),
            ("{high} are your most stressful days ({high_avg:.1f}/5); "
             "{low} are the calmest ({low_avg:.1f}/5).",),
        ))
    return out
