"""When people work: late nights and weekends."""

from __future__ import annotations

from typing import List

from insight_models import Insight, InsightType
from insight_rules.base import RuleContext, make_insight


def late_nights(ctx: RuleContext) -> List[Insight]:
    n = ctx.agg.late_night_count
    if n < ctx.config.min_late_nights:
        return []
    return [make_insight(
        "late_nights", (n, ctx.agg.session_count),
        ("{n} of your sessions ran past {hour}:00 this period. "
         "How are these late finishes affecting your evenings and sleep?",
         "You worked late {n} times in the last {days} days. "
         "Is this a deadline crunch, or becoming a habit?"),
        InsightType.QUESTION, 6, confidence=0.8 if n >= 3 else 0.6,
        n=n, hour=ctx.config.late_night_hour, days=ctx.days,
    )]


def weekend_work(ctx: RuleContext) -> List[Insight]:
    n = ctx.agg.weekend_count
    if n < ctx.config.min_weekend_sessions:
        return []
    days = int(ctx.agg.check_ins.loc[ctx.agg.check_ins["is_weekend"], "date"].nunique())
    return [make_insight(
        "weekend_work", (n, days),
        ("You logged {n} {sessions} over the weekend. "
         "Did you get enough time to recharge?",),
        InsightType.QUESTION, 4,
        n=n, sessions="session" if n == 1 else "sessions",
    )]
