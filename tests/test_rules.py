"""
Behavior tests for the numeric rule families: workload, reflection,
timing and group comparisons.

Rules are called directly against a hand-built context, so thresholds are
exactly what each test sets (no learning step in between).
"""

import pytest

from analytics.aggregates import PeriodAggregates
from analytics.thresholds import AdaptiveThresholdStore
from conftest import REF, breath, checkin
from insight_config import EngineConfig
from insight_models import InsightType
from insight_rules import CATALOG, RULE_IDS, comparisons, reflection, timing, workload
from insight_rules.base import RuleContext, pick_template


def make_ctx(check_ins=(), breathing=(), journal=(), goals=(), thresholds=None, sentiment=None, **cfg):
    config = EngineConfig(**cfg)
    agg = PeriodAggregates(list(check_ins), list(breathing), list(journal), REF, config, goals=goals)
    values = AdaptiveThresholdStore().values()
    values.update(thresholds or {})
    return RuleContext.build(agg, values, config, sentiment)


def history(hours_per_period=20.0, sessions=4):
    """Four prior periods with `hours_per_period` each."""
    per = hours_per_period / sessions
    return [checkin(8 + 7 * w + d, hours=per) for w in range(4) for d in range(sessions)]


# ─── Catalog ─────────────────────────────────────────────────


class TestCatalog:

    def test_ids_unique(self):
        assert len(RULE_IDS) == len(set(RULE_IDS))

    def test_every_rule_quiet_on_empty_context(self):
        ctx = make_ctx()
        for rule in CATALOG:
            assert rule.evaluate(ctx) == [], rule.rule_id

    def test_template_pick_is_deterministic(self):
        templates = ("a", "b", "c")
        picks = {pick_template(templates, "rule:00000000000000ff") for _ in range(5)}
        assert picks == {templates[0xff % 3]}


# ─── Workload ────────────────────────────────────────────────


class TestWorkHoursBalance:

    def test_high_workload_low_recovery(self):
        ctx = make_ctx([checkin(d, hours=55 / 7) for d in range(1, 8)], [breath(2)])
        out = workload.work_hours_balance(ctx)
        assert len(out) == 1
        ins = out[0]
        assert ins.type == InsightType.SUGGESTION
        assert ins.priority == 10
        assert "55.0" in ins.message
        assert "1 breathing session" in ins.message
        assert ins.confidence == pytest.approx(0.8)

    def test_high_workload_with_recovery(self):
        ctx = make_ctx([checkin(d, hours=55 / 7) for d in range(1, 8)],
                       [breath(1), breath(2), breath(3)])
        ins = workload.work_hours_balance(ctx)[0]
        assert ins.type == InsightType.QUESTION
        assert ins.priority == 5
        assert "3 breathing sessions" in ins.message

    def test_ceiling_scales_with_window(self):
        # 30h in 3 days vs 50h/week scaled to ~21.4h
        ctx = make_ctx([checkin(d, hours=10) for d in range(1, 4)], window_days=3)
        assert workload.work_hours_balance(ctx)[0].priority == 10

    def test_above_history(self):
        ctx = make_ctx(history(20) + [checkin(d, hours=6) for d in range(3, 8)],
                       [breath(3), breath(4), breath(5)])
        ins = workload.work_hours_balance(ctx)[0]
        assert ins.priority == 5  # 30h > 20h * 1.2 with enough breathing

    def test_below_history(self):
        ctx = make_ctx(history(20) + [checkin(3, hours=10)])
        ins = workload.work_hours_balance(ctx)[0]
        assert ins.type == InsightType.QUESTION
        assert ins.priority == 2
        assert ins.confidence == pytest.approx(0.7)
        assert "lower than your recent average" in ins.message

    def test_rhythm(self):
        ctx = make_ctx(history(20) + [checkin(d, hours=5) for d in range(3, 7)])
        ins = workload.work_hours_balance(ctx)[0]
        assert ins.priority == 2
        assert ins.confidence == pytest.approx(0.6)
        assert "rhythm" in ins.message

    def test_no_hours(self):
        assert workload.work_hours_balance(make_ctx([], [breath(1)])) == []


class TestBreathingTrend:

    def test_up(self):
        ctx = make_ctx(breathing=[breath(d) for d in (1, 2, 3, 4)] + [breath(9)])
        ins = workload.breathing_trend(ctx)[0]
        assert ins.type == InsightType.AFFIRMATION
        assert ins.priority == 5

    def test_down(self):
        ctx = make_ctx(breathing=[breath(d) for d in (9, 10, 11)])
        ins = workload.breathing_trend(ctx)[0]
        assert ins.type == InsightType.TREND
        assert ins.priority == 4

    def test_small_change_ignored(self):
        ctx = make_ctx(breathing=[breath(1), breath(2), breath(9)])
        assert workload.breathing_trend(ctx) == []


class TestSessionLength:

    def test_long_sessions(self):
        ctx = make_ctx([checkin(d, hours=4) for d in (3, 4, 5)])
        ins = workload.session_length(ctx)[0]
        assert ins.type == InsightType.OBSERVATION
        assert ins.priority == 3

    def test_within_margin(self):
        assert workload.session_length(make_ctx([checkin(3, hours=3.5)])) == []


# ─── Reflection ──────────────────────────────────────────────


class TestFocusStressLevels:

    def test_low_focus(self):
        ctx = make_ctx([checkin(d, focus=0.1) for d in (3, 4, 5)])
        out = reflection.focus_stress_levels(ctx)
        assert [(i.type, i.priority) for i in out] == [(InsightType.QUESTION, 6)]
        assert out[0].confidence == pytest.approx(0.3)
        assert "1.4/5" in out[0].message

    def test_high_stress(self):
        ctx = make_ctx([checkin(d, stress=0.9) for d in (3, 4, 5)])
        out = reflection.focus_stress_levels(ctx)
        assert [(i.type, i.priority) for i in out] == [(InsightType.QUESTION, 7)]

    def test_uses_adaptive_threshold(self):
        ctx = make_ctx([checkin(d, stress=0.6) for d in (3, 4, 5)], thresholds={"highStress": 0.55})
        assert reflection.focus_stress_levels(ctx)[0].priority == 7

    def test_needs_three_reflections(self):
        ctx = make_ctx([checkin(d, stress=0.9, focus=0.1) for d in (3, 4)])
        assert reflection.focus_stress_levels(ctx) == []


class TestStressMajority:

    def test_majority(self):
        ctx = make_ctx([checkin(3, stress=0.9), checkin(4, stress=0.9), checkin(5, stress=0.1)])
        ins = reflection.stress_majority(ctx)[0]
        assert ins.type == InsightType.OBSERVATION
        assert ins.priority == 2
        assert "2/3" in ins.message

    def test_half_is_not_majority(self):
        ctx = make_ctx([checkin(3, stress=0.9), checkin(4, stress=0.1)])
        assert reflection.stress_majority(ctx) == []


class TestStressFocusAlert:

    def test_alert(self):
        ctx = make_ctx([checkin(d, stress=0.9, focus=0.1) for d in (3, 4, 5)])
        ins = reflection.stress_focus_alert(ctx)[0]
        assert ins.type == InsightType.ALERT
        assert ins.priority == 9

    def test_mixed_sessions(self):
        ctx = make_ctx([checkin(3, stress=0.9, focus=0.1), checkin(4, stress=0.2, focus=0.8),
                        checkin(5, stress=0.2, focus=0.8)])
        assert reflection.stress_focus_alert(ctx) == []


class TestSparseReflection:

    def test_nudge(self):
        ctx = make_ctx([checkin(d) for d in (3, 4, 5)])
        ins = reflection.sparse_reflection(ctx)[0]
        assert ins.type == InsightType.SUGGESTION
        assert ins.priority == 4

    def test_one_reflection_silences(self):
        ctx = make_ctx([checkin(3), checkin(4), checkin(5, focus=0.5)])
        assert reflection.sparse_reflection(ctx) == []

    def test_too_few_sessions(self):
        assert reflection.sparse_reflection(make_ctx([checkin(3), checkin(4)])) == []


# ─── Timing ──────────────────────────────────────────────────


class TestTiming:

    def test_late_nights(self):
        ctx = make_ctx([checkin(3, hour=21, hours=2), checkin(4, hour=23, hours=2), checkin(5)])
        ins = timing.late_nights(ctx)[0]
        assert ins.type == InsightType.QUESTION
        assert ins.priority == 6
        assert "2" in ins.message

    def test_single_late_night(self):
        assert timing.late_nights(make_ctx([checkin(3, hour=21, hours=2)])) == []

    def test_weekend(self):
        # offset 1 is Sunday
        ins = timing.weekend_work(make_ctx([checkin(1)]))[0]
        assert ins.priority == 4
        assert "1 session" in ins.message

    def test_weekday_only(self):
        assert timing.weekend_work(make_ctx([checkin(3), checkin(7)])) == []


# ─── Comparisons ─────────────────────────────────────────────


class TestComparisons:

    def test_duration_buckets(self):
        ctx = make_ctx([checkin(d, hours=4, focus=0.2) for d in (3, 4, 5)]
                       + [checkin(d, hour=15, hours=0.5, focus=0.8) for d in (3, 4, 5)])
        out = comparisons.duration_buckets(ctx)
        assert len(out) == 1
        assert out[0].type == InsightType.CORRELATION
        assert out[0].priority == 5
        assert "higher in short sessions" in out[0].message

    def test_duration_difference_too_small(self):
        ctx = make_ctx([checkin(d, hours=4, focus=0.5) for d in (3, 4, 5)]
                       + [checkin(d, hour=15, hours=0.5, focus=0.6) for d in (3, 4, 5)])
        assert comparisons.duration_buckets(ctx) == []

    def test_breathing_days(self):
        ctx = make_ctx(
            [checkin(d, focus=0.9) for d in (3, 4, 5)] + [checkin(d, focus=0.4) for d in (6, 7, 1)],
            [breath(d) for d in (3, 4, 5)],
        )
        out = comparisons.breathing_days(ctx)
        assert len(out) == 1
        assert out[0].priority == 6
        assert "days with a breathing exercise your focus averaged 4.6/5" in out[0].message

    def test_workplaces(self):
        ctx = make_ctx([checkin(d, focus=0.8, workplace="Office") for d in (3, 4, 5)]
                       + [checkin(d, hour=14, focus=0.3, workplace="Home") for d in (3, 4, 5)])
        out = comparisons.workplaces(ctx)
        assert len(out) == 1
        assert out[0].type == InsightType.WORKPLACE_SPECIFIC
        assert out[0].priority == 5
        assert "better at Office" in out[0].message and "Home" in out[0].message

    def test_workplace_needs_enough_sessions_each(self):
        ctx = make_ctx([checkin(d, focus=0.8, workplace="Office") for d in (3, 4, 5)]
                       + [checkin(d, hour=14, focus=0.3, workplace="Home") for d in (3, 4)])
        assert comparisons.workplaces(ctx) == []

    def test_time_blocks(self):
        ctx = make_ctx([checkin(d, hour=9, focus=0.9) for d in (3, 4, 5)]
                       + [checkin(d, hour=19, focus=0.3) for d in (3, 4, 5)])
        out = comparisons.time_blocks(ctx)
        assert len(out) == 1
        assert out[0].priority == 4
        assert "peaks in the mornings" in out[0].message

    def test_weekdays(self):
        # offset 7 is Monday, offset 3 is Friday
        ctx = make_ctx([checkin(7, hour=9, focus=0.9), checkin(7, hour=13, focus=0.9),
                        checkin(3, hour=9, focus=0.2), checkin(3, hour=13, focus=0.2)])
        out = comparisons.weekdays(ctx)
        assert len(out) == 1
        assert out[0].type == InsightType.OBSERVATION
        assert out[0].priority == 3
        assert out[0].message.startswith("Mondays")
