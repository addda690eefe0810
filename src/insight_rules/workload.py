"""Workload vs recovery: weekly hours, breathing usage, session length."""

from __future__ import annotations

from typing import List

from insight_models import Insight, InsightType
from insight_rules.base import RuleContext, make_insight


def work_hours_balance(ctx: RuleContext) -> List[Insight]:
    """
    Current total hours against the historical per-period average, falling
    back to the adaptive weekly ceiling (scaled to the window) when there is
    no history.
    """
    agg, cfg = ctx.agg, ctx.config
    total = agg.total_hours
    if total <= 0:
        return []

    breaths = agg.breathing_count
    hist_avg = agg.historical_average_hours
    ceiling = ctx.thresholds["maxWeeklyHours"] * ctx.days / 7.0
    margin = cfg.relative_margin

    above = hist_avg > 0 and total > hist_avg * (1 + margin)
    below = hist_avg > 0 and total < hist_avg * (1 - margin)
    fmt = dict(hours=total, days=ctx.days, breaths=breaths,
               sessions="session" if breaths == 1 else "sessions")
    high_conf = 0.8 if agg.session_count >= 3 else 0.5

    if above or (hist_avg == 0 and total > ceiling):
        if breaths < cfg.min_breathing_sessions_for_high_workload:
            return [make_insight(
                "work_hours_balance", ("high_low_recovery", round(total, 2), breaths),
                ("You've logged {hours:.1f} hours in the last {days} days, which is more than "
                 "usual for you. We also noticed only {breaths} breathing {sessions}. "
                 "Mindful breaks are key during intense periods. Consider one?",
                 "{hours:.1f} work hours in {days} days and only {breaths} breathing {sessions} "
                 "so far. A short breathing break could help you keep this pace."),
                InsightType.SUGGESTION, 10, confidence=high_conf, **fmt,
            )]
        return [make_insight(
            "work_hours_balance", ("high_with_recovery", round(total, 2), breaths),
            ("You've worked {hours:.1f} hours in the last {days} days, a significant amount. "
             "It's good to see you've included {breaths} breathing {sessions}. "
             "How is this balance feeling?",),
            InsightType.QUESTION, 5, confidence=high_conf, **fmt,
        )]

    if below:
        return [make_insight(
            "work_hours_balance", ("below_average", round(total, 2), breaths),
            ("Your work hours this past period ({hours:.1f} hrs) were lower than your recent "
             "average. You also completed {breaths} breathing {sessions}. "
             "How did this change in pace affect you?",),
            InsightType.QUESTION, 2, confidence=0.7, **fmt,
        )]

    return [make_insight(
        "work_hours_balance", ("rhythm", round(total, 2), breaths),
        ("This past period, you logged {hours:.1f} work hours and completed {breaths} "
         "breathing {sessions}. How did this rhythm feel for you?",),
        InsightType.QUESTION, 2, confidence=0.6, **fmt,
    )]


def breathing_trend(ctx: RuleContext) -> List[Insight]:
    cur, prev = ctx.agg.breathing_count, ctx.agg.previous_breathing_count
    change = cur - prev
    if abs(change) < ctx.config.min_breathing_change:
        return []
    fmt = dict(current=cur, previous=prev, days=ctx.days)
    if change > 0:
        return [make_insight(
            "breathing_trend", ("up", cur, prev),
            ("You completed {current} breathing sessions in the last {days} days, up from "
             "{previous} the period before. That consistency is paying off.",
             "Breathing practice is growing: {current} sessions this period versus {previous} "
             "last time. Nice work building the habit."),
            InsightType.AFFIRMATION, 5, **fmt,
        )]
    return [make_insight(
        "breathing_trend", ("down", cur, prev),
        ("Breathing sessions dropped to {current} this period from {previous} the period "
         "before. Is something getting in the way of your breaks?",),
        InsightType.TREND, 4, **fmt,
    )]


def session_length(ctx: RuleContext) -> List[Insight]:
    avg = ctx.agg.average_session_hours
    if avg is None:
        return []
    limit = ctx.thresholds["sessionDuration"]
    if avg <= limit * (1 + ctx.config.relative_margin):
        return []
    return [make_insight(
        "session_length", (round(avg, 2), round(limit, 2)),
        ("Your sessions averaged {avg:.1f} hours this period, well above your usual "
         "{limit:.1f}. Longer stretches without a pause can wear down focus.",),
        InsightType.OBSERVATION, 3,
        confidence=0.8 if ctx.agg.session_count >= 3 else 0.5,
        avg=avg, limit=limit,
    )]
