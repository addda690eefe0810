"""
Insight Engine
==============
Turns one user's check-ins, breathing logs and journal entries into a ranked
list of short, typed insights.

Architecture (4 layers):
  Layer 0 - Normalize:  raw records → canonical immutable records on the
            [0, 1] rating scale; malformed records skipped and counted.
  Layer 1 - Aggregate + learn:  current / previous / historical period
            frames, then each adaptive threshold is updated once from the
            current-period aggregate (weekly-normalized hours, average
            stress, average focus, average session length).
  Layer 2 - Rules:  the ordered catalog runs over a frozen context,
            optionally on a thread pool; results are merged in catalog order.
            A failing rule is logged and skipped (cycle marked degraded).
  Layer 3 - Rank:  dedupe by id, drop dismissed ids, optional engagement
            personalization and complexity filter, stable priority sort.

The engine owns no state between calls: the threshold snapshot comes in as
an argument and goes back out in the result.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Collection, Iterable, List, Mapping, Optional, Sequence, Tuple

from analytics.aggregates import PeriodAggregates
from analytics.thresholds import AdaptiveThresholdStore
from insight_config import EngineConfig, default_config
from insight_models import GenerationResult, Insight
from insight_ranker import rank_insights
from insight_rules import CATALOG, Rule, RuleContext
from personalization import parse_preferences
from record_normalizer import coerce_timestamp, normalize_goals, normalize_records

log = logging.getLogger("insight_engine")


class InsightEngine:
    """Stateless insight generator; safe to share across users and threads."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        sentiment_score: Optional[Callable[[str], float]] = None,
        max_workers: Optional[int] = None,
        catalog: Sequence[Rule] = CATALOG,
    ):
        self.config = config or default_config()
        self.sentiment_score = sentiment_score
        self.max_workers = max_workers
        self.catalog = tuple(catalog)

    def generate_insights(
        self,
        check_ins: Iterable[Any] = (),
        breathing_logs: Iterable[Any] = (),
        journal_entries: Iterable[Any] = (),
        window_days: Optional[int] = None,
        reference_date: Any = None,
        dismissed_insight_ids: Collection[str] = (),
        threshold_snapshot: Any = None,
        goals: Iterable[Any] = (),
        max_count: Optional[int] = None,
        preferences: Any = None,
        complexity: Optional[str] = None,
        rating_scale: str = "unit",
    ) -> GenerationResult:
        cfg = self.config
        if window_days is not None:
            if int(window_days) < 1:
                raise ValueError(f"window_days must be >= 1, got {window_days!r}")
            cfg = replace(cfg, window_days=int(window_days))

        ref = datetime.now() if reference_date is None else coerce_timestamp(reference_date)
        if ref is None:
            raise ValueError(f"Unparseable reference_date: {reference_date!r}")

        result = GenerationResult()
        log.info("\nInsight Engine - %d-day window ending %s", cfg.window_days, ref.isoformat())

        # Layer 0
        records = normalize_records(check_ins, breathing_logs, journal_entries, rating_scale)
        goal_records = normalize_goals(goals)

        # Layer 1
        store = AdaptiveThresholdStore.from_snapshot(threshold_snapshot, cfg.threshold_bands)
        try:
            agg = PeriodAggregates(records.check_ins, records.breathing, records.journal,
                                   ref, cfg, goals=goal_records)
            self._learn_thresholds(store, agg)
        except Exception as e:
            log.exception("Aggregation layer failed: %s", e)
            result.analysis_status = "failed"
            result.degraded_reasons = ["core_layer_failure"]
            result.threshold_snapshot = store.snapshot()
            return result

        # Layer 2
        ctx = RuleContext.build(agg, store.values(), cfg, self.sentiment_score)
        candidates, failed = self._evaluate(ctx)
        if failed:
            result.analysis_status = "degraded"
            result.degraded_reasons = [f"rule_failed:{rule_id}" for rule_id in failed]

        # Layer 3
        prefs = parse_preferences(preferences.values() if isinstance(preferences, Mapping) else preferences)
        result.insights = rank_insights(
            candidates,
            dismissed_ids=dismissed_insight_ids,
            preferences=prefs or None,
            complexity=complexity,
            max_count=max_count,
        )
        result.threshold_snapshot = store.snapshot()
        result.counts = {
            "check_ins": agg.session_count,
            "breathing": agg.breathing_count,
            "journal": len(agg.journal),
            "skipped": sum(records.skipped.values()),
            "candidates": len(candidates),
            "insights": len(result.insights),
        }

        log.info(
            "\n   GENERATION DIGEST (%s -> %s)\n"
            "   Layer 0 Normalize   : %d check-ins, %d breathing, %d journal (%d skipped)\n"
            "   Layer 1 Thresholds  : %s\n"
            "   Layer 2 Rules       : %d rules, %d candidates, %d failed\n"
            "   Layer 3 Ranked      : %d insights\n"
            "   Status              : %s",
            agg.current.start.date(), agg.current.end.date(),
            agg.session_count, agg.breathing_count, len(agg.journal), result.counts["skipped"],
            ", ".join(f"{k}={v:.2f}" for k, v in store.values().items()),
            len(self.catalog), len(candidates), len(failed),
            len(result.insights),
            result.analysis_status,
        )
        if result.degraded_reasons:
            log.warning("Insight generation %s: %s", result.analysis_status,
                        ", ".join(result.degraded_reasons))
        return result

    # ─── Layer 1 ───────────────────────────────────────────

    @staticmethod
    def _learn_thresholds(store: AdaptiveThresholdStore, agg: PeriodAggregates) -> None:
        """One update per metric per cycle, only for metrics with data."""
        if agg.session_count:
            store.update("maxWeeklyHours", agg.weekly_normalized_hours)
            store.update("sessionDuration", agg.average_session_hours)
        avg_stress = agg.average("stress")
        if avg_stress is not None:
            store.update("highStress", avg_stress)
        avg_focus = agg.average("focus")
        if avg_focus is not None:
            store.update("lowFocus", avg_focus)

    # ─── Layer 2 ───────────────────────────────────────────

    @staticmethod
    def _run_rule(rule: Rule, ctx: RuleContext) -> Tuple[List[Insight], bool]:
        try:
            return list(rule.evaluate(ctx)), True
        except Exception as e:
            log.exception("Rule %s failed; skipping: %s", rule.rule_id, e)
            return [], False

    def _evaluate(self, ctx: RuleContext) -> Tuple[List[Insight], List[str]]:
        if self.max_workers and self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                futures = [pool.submit(self._run_rule, rule, ctx) for rule in self.catalog]
                outcomes = [f.result() for f in futures]
        else:
            outcomes = [self._run_rule(rule, ctx) for rule in self.catalog]

        candidates: List[Insight] = []
        failed: List[str] = []
        for rule, (insights, ok) in zip(self.catalog, outcomes):
            if not ok:
                failed.append(rule.rule_id)
            candidates.extend(insights)
        return candidates, failed


def generate_insights(*args, **kwargs) -> GenerationResult:
    """Module-level shortcut using a default-configured engine."""
    sentiment = kwargs.pop("sentiment_score", None)
    return InsightEngine(sentiment_score=sentiment).generate_insights(*args, **kwargs)
