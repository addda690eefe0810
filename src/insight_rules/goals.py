"""Progress against caller-supplied goals."""

from __future__ import annotations

from typing import List, Optional, Tuple

from insight_models import GoalRecord, GoalType, Insight, InsightType, to_five_point
from insight_rules.base import RuleContext, make_insight

HALFWAY = 0.5
UNITS = {
    GoalType.WEEKLY_BREATHING_MINUTES: "breathing minutes",
    GoalType.DAILY_FOCUS_SCORE: "average focus",
    GoalType.REFLECTION_FREQUENCY: "reflections",
}


def _current_value(ctx: RuleContext, goal: GoalRecord) -> Optional[float]:
    """Where the user stands for one goal, in the goal's own units."""
    agg = ctx.agg
    if goal.goal_type == GoalType.WEEKLY_BREATHING_MINUTES:
        return agg.breathing_minutes * 7.0 / ctx.days
    if goal.goal_type == GoalType.DAILY_FOCUS_SCORE:
        avg = agg.average("focus")
        # targets are stated on the familiar 1-5 scale
        return None if avg is None else to_five_point(avg)
    if goal.goal_type == GoalType.REFLECTION_FREQUENCY:
        return float(agg.reflection_count)
    return None


def progress(current: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return max(0.0, min(current / target, 1.0))


def _work_hours_ceiling(ctx: RuleContext, goal: GoalRecord) -> List[Insight]:
    daily = ctx.agg.daily_hours()
    if daily.empty:
        return []
    avg = float(daily.mean())
    if avg <= goal.target_value * (1 + ctx.config.relative_margin):
        return []
    return [make_insight(
        "goal_progress", (goal.goal_type.value, goal.title, "exceeded", round(avg, 2)),
        ("You averaged {avg:.1f} hours on working days, well over your '{title}' limit of "
         "{target:.1f}. Time to protect some recovery?",),
        InsightType.WARNING, 6, confidence=min(0.9, len(daily) / 7.0),
        avg=avg, title=goal.title, target=goal.target_value,
    )]


def goal_progress(ctx: RuleContext) -> List[Insight]:
    out: List[Insight] = []
    for goal in ctx.agg.goals:
        if goal.goal_type == GoalType.DAILY_WORK_HOURS:
            out.extend(_work_hours_ceiling(ctx, goal))
            continue

        current = _current_value(ctx, goal)
        if current is None:
            continue
        pct = progress(current, goal.target_value)
        fmt = dict(title=goal.title, current=current, target=goal.target_value,
                   unit=UNITS[goal.goal_type], pct=pct * 100)
        points: Tuple = (goal.goal_type.value, goal.title, round(current, 2))

        if pct >= 1.0:
            out.append(make_insight(
                "goal_progress", points + ("complete",),
                ("Goal reached: '{title}'. You hit {current:.1f} {unit} against a target of "
                 "{target:.1f}. Well done!",
                 "You've completed '{title}' with {current:.1f} {unit}. Celebrate that one."),
                InsightType.CELEBRATION, 6, **fmt,
            ))
        elif pct >= HALFWAY:
            out.append(make_insight(
                "goal_progress", points + ("halfway",),
                ("You're {pct:.0f}% of the way to '{title}' ({current:.1f} of {target:.1f} {unit}). "
                 "Keep going!",),
                InsightType.GOAL_PROGRESS, 4, **fmt,
            ))
        else:
            out.append(make_insight(
                "goal_progress", points + ("behind",),
                ("'{title}' is at {pct:.0f}% ({current:.1f} of {target:.1f} {unit}). "
                 "What small step could move it forward this week?",),
                InsightType.GOAL_PROGRESS, 3, **fmt,
            ))
    return out
