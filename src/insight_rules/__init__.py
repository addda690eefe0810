"""
Insight rule catalog.

CATALOG is evaluated in order and its order is the emission order the ranker
uses to break priority ties.  Statistical insights come first, then the
comparison rules.
"""

from insight_rules.base import Rule, RuleContext, make_insight
from insight_rules import comparisons, goals, journal, reflection, sentiment, statistical, timing, workload

CATALOG = (
    Rule("work_hours_forecast", statistical.work_hours_forecast),
    Rule("work_hour_anomaly", statistical.work_hour_anomalies),
    Rule("stress_majority", reflection.stress_majority),
    Rule("focus_forecast", statistical.focus_forecast),
    Rule("stress_forecast", statistical.stress_forecast),
    Rule("journal_tone", sentiment.journal_tone),
    Rule("session_note_tone", sentiment.session_note_tone),
    Rule("work_hours_balance", workload.work_hours_balance),
    Rule("breathing_trend", workload.breathing_trend),
    Rule("focus_stress_levels", reflection.focus_stress_levels),
    Rule("stress_focus_alert", reflection.stress_focus_alert),
    Rule("session_length", workload.session_length),
    Rule("late_nights", timing.late_nights),
    Rule("weekend_work", timing.weekend_work),
    Rule("duration_focus_stress", comparisons.duration_buckets),
    Rule("breathing_day_focus_stress", comparisons.breathing_days),
    Rule("sparse_reflection", reflection.sparse_reflection),
    Rule("workplace_focus_stress", comparisons.workplaces),
    Rule("time_block_focus_stress", comparisons.time_blocks),
    Rule("weekday_focus_stress", comparisons.weekdays),
    Rule("journal_stress", journal.journal_stress),
    Rule("journal_prompt", journal.journal_prompts),
    Rule("goal_progress", goals.goal_progress),
)

RULE_IDS = tuple(r.rule_id for r in CATALOG)

__all__ = ["CATALOG", "RULE_IDS", "Rule", "RuleContext", "make_insight"]
