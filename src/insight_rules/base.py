"""Shared plumbing for catalog rules: the frozen context, the insight factory
and the significance tests."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, List, Mapping, Optional, Sequence

import numpy as np

from analytics.aggregates import PeriodAggregates
from analytics.stats_analyzer import confidence
from insight_config import EngineConfig
from insight_models import Insight, InsightType, PredictionResult, fingerprint

SentimentFn = Callable[[str], float]


@dataclass(frozen=True)
class RuleContext:
    agg: PeriodAggregates
    thresholds: Mapping[str, float]
    config: EngineConfig
    sentiment_score: Optional[SentimentFn] = None

    @classmethod
    def build(cls, agg: PeriodAggregates, thresholds: Mapping[str, float],
              config: EngineConfig, sentiment_score: Optional[SentimentFn] = None) -> "RuleContext":
        return cls(agg=agg, thresholds=MappingProxyType(dict(thresholds)),
                   config=config, sentiment_score=sentiment_score)

    @property
    def days(self) -> int:
        return self.config.window_days


RuleFn = Callable[[RuleContext], List[Insight]]


@dataclass(frozen=True)
class Rule:
    rule_id: str
    evaluate: RuleFn


# ─── Insight factory ───────────────────────────────────────

def pick_template(templates: Sequence[str], insight_id: str) -> str:
    """Deterministic choice keyed on the insight fingerprint."""
    if len(templates) == 1:
        return templates[0]
    digest = insight_id.rsplit(":", 1)[-1]
    return templates[int(digest, 16) % len(templates)]


def make_insight(
    rule_id: str,
    points: Sequence[Any],
    templates: Sequence[str],
    type: InsightType,
    priority: int,
    confidence: float = 1.0,
    prediction: Optional[PredictionResult] = None,
    is_anomaly: bool = False,
    **fmt: Any,
) -> Insight:
    insight_id = fingerprint(rule_id, *points)
    message = pick_template(templates, insight_id).format(**fmt)
    return Insight(
        id=insight_id,
        message=message,
        type=type,
        priority=priority,
        confidence=max(0.0, min(1.0, confidence)),
        is_anomaly=is_anomaly,
        prediction=prediction,
        rule_id=rule_id,
    )


# ─── Significance + confidence helpers ─────────────────────

def notably_different(a: float, b: float, threshold: float) -> bool:
    return abs(a - b) >= threshold


def sample_confidence(values: Sequence[float]) -> float:
    arr = np.asarray(values, dtype=np.float64)
    var = float(arr.var(ddof=1)) if len(arr) > 1 else 0.0
    return confidence(len(arr), var).confidence_score


def ratio_confidence(n: int) -> float:
    return min(0.9, n / 10.0)


def plural(n: int, word: str, plural_word: Optional[str] = None) -> str:
    return f"{n} {word if n == 1 else (plural_word or word + 's')}"
