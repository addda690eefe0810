"""Focus and stress levels against the adaptive thresholds, plus the
sparse-reflection nudge."""

from __future__ import annotations

from typing import List

from insight_models import Insight, InsightType, to_five_point
from insight_rules.base import RuleContext, make_insight, ratio_confidence, sample_confidence


def focus_stress_levels(ctx: RuleContext) -> List[Insight]:
    agg, gate = ctx.agg, ctx.config.min_reflections_for_average
    out: List[Insight] = []

    focus = agg.ratings("focus")
    if len(focus) >= gate:
        avg, low = float(focus.mean()), ctx.thresholds["lowFocus"]
        if avg <= low:
            out.append(make_insight(
                "focus_stress_levels", ("low_focus", len(focus), round(avg, 4)),
                ("Your average focus this period was {avg:.1f}/5 across {n} reflections. "
                 "What has been pulling your attention away?",
                 "Focus has been running low ({avg:.1f}/5 over {n} sessions). "
                 "Is there a pattern in when it dips?"),
                InsightType.QUESTION, 6, confidence=ratio_confidence(len(focus)),
                avg=to_five_point(avg), n=len(focus),
            ))

    stress = agg.ratings("stress")
    if len(stress) >= gate:
        avg, high = float(stress.mean()), ctx.thresholds["highStress"]
        if avg >= high:
            out.append(make_insight(
                "focus_stress_levels", ("high_stress", len(stress), round(avg, 4)),
                ("Your average stress this period was {avg:.1f}/5 across {n} reflections. "
                 "What's been weighing on you most?",
                 "Stress has stayed high ({avg:.1f}/5 over {n} sessions). "
                 "What would make next week feel lighter?"),
                InsightType.QUESTION, 7, confidence=ratio_confidence(len(stress)),
                avg=to_five_point(avg), n=len(stress),
            ))
    return out


def stress_majority(ctx: RuleContext) -> List[Insight]:
    stress = ctx.agg.ratings("stress")
    if len(stress) == 0:
        return []
    high = ctx.thresholds["highStress"]
    n_high = int((stress >= high).sum())
    if n_high <= len(stress) // 2:
        return []
    return [make_insight(
        "stress_majority", (n_high, len(stress), round(high, 4)),
        ("Adaptive analysis: your stress threshold has been personalized to {threshold:.1f}/5. "
         "Recent pattern shows elevated stress in {n_high}/{n} sessions.",),
        InsightType.OBSERVATION, 2, confidence=sample_confidence(stress),
        threshold=to_five_point(high), n_high=n_high, n=len(stress),
    )]


def stress_focus_alert(ctx: RuleContext) -> List[Insight]:
    both = ctx.agg.check_ins[["stress", "focus"]].dropna()
    if len(both) < ctx.config.min_reflections_for_average:
        return []
    high, low = ctx.thresholds["highStress"], ctx.thresholds["lowFocus"]
    strained = int(((both["stress"] >= high) & (both["focus"] <= low)).sum())
    if strained <= len(both) // 2:
        return []
    return [make_insight(
        "stress_focus_alert", (strained, len(both)),
        ("{strained} of your last {n} sessions combined high stress with low focus. "
         "That combination is a strong signal to slow down and recover.",),
        InsightType.ALERT, 9, confidence=ratio_confidence(len(both)),
        strained=strained, n=len(both),
    )]


def sparse_reflection(ctx: RuleContext) -> List[Insight]:
    agg, cfg = ctx.agg, ctx.config
    if agg.session_count < cfg.min_completed_sessions_for_prompt:
        return []
    if agg.reflection_count > cfg.max_reflections_for_prompt:
        return []
    return [make_insight(
        "sparse_reflection", (agg.session_count, agg.reflection_count),
        ("You've completed {n} sessions this period without rating how they went. "
         "A quick stress and focus check-in after your next one will sharpen these insights.",
         "{n} sessions logged, but no reflections yet. Try rating focus and stress after "
         "your next session so patterns can emerge."),
        InsightType.SUGGESTION, 4, n=agg.session_count,
    )]
