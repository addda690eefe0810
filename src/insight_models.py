"""
Canonical record and insight types shared by every layer of the engine.

Records are immutable once built by the normalizer; all ratings are on the
continuous [0, 1] scale.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# ─── Input records ─────────────────────────────────────────

@dataclass(frozen=True)
class CheckInRecord:
    timestamp: datetime
    session_duration_seconds: int
    stress_level: Optional[float] = None
    focus_level: Optional[float] = None
    workplace_name: Optional[str] = None
    session_note: Optional[str] = None

    @property
    def ended_at(self) -> datetime:
        return self.timestamp + timedelta(seconds=self.session_duration_seconds)

    @property
    def hours(self) -> float:
        return self.session_duration_seconds / 3600.0

    @property
    def is_reflected(self) -> bool:
        return self.stress_level is not None or self.focus_level is not None


@dataclass(frozen=True)
class BreathingRecord:
    completed_at: datetime
    duration_seconds: int
    exercise_type: str = "unknown"


@dataclass(frozen=True)
class JournalRecord:
    timestamp: datetime
    title: str
    text: str
    stress_level: Optional[float] = None
    focus_score: Optional[float] = None


class GoalType(str, Enum):
    DAILY_WORK_HOURS = "daily_work_hours"
    WEEKLY_BREATHING_MINUTES = "weekly_breathing_minutes"
    DAILY_FOCUS_SCORE = "daily_focus_score"
    REFLECTION_FREQUENCY = "reflection_frequency"


@dataclass(frozen=True)
class GoalRecord:
    goal_type: GoalType
    title: str
    target_value: float


# ─── Statistical results ───────────────────────────────────

class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


@dataclass(frozen=True)
class ConfidenceMetrics:
    sample_size: int
    standard_error: float
    confidence_score: float


@dataclass(frozen=True)
class PredictionResult:
    forecast_label: str
    predicted_value: float
    trend_direction: TrendDirection
    confidence_interval: Tuple[float, float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "forecast_label": self.forecast_label,
            "predicted_value": round(self.predicted_value, 4),
            "trend_direction": self.trend_direction.value,
            "confidence_interval": [round(v, 4) for v in self.confidence_interval],
        }


# ─── Insights ──────────────────────────────────────────────

class InsightType(str, Enum):
    OBSERVATION = "observation"
    QUESTION = "question"
    SUGGESTION = "suggestion"
    AFFIRMATION = "affirmation"
    ALERT = "alert"
    PREDICTION = "prediction"
    ANOMALY = "anomaly"
    WARNING = "warning"
    CELEBRATION = "celebration"
    TREND = "trend"
    CORRELATION = "correlation"
    GOAL_PROGRESS = "goalProgress"
    WORKPLACE_SPECIFIC = "workplaceSpecific"


def fingerprint(rule_id: str, *points: Any) -> str:
    """Stable id from the emitting rule and the data points that triggered it."""
    parts = [rule_id]
    for p in points:
        if isinstance(p, float):
            parts.append(f"{p:.4f}")
        elif isinstance(p, datetime):
            parts.append(p.isoformat())
        else:
            parts.append(str(p))
    digest = hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()
    return f"{rule_id}:{digest[:16]}"


@dataclass(frozen=True)
class Insight:
    id: str
    message: str
    type: InsightType
    priority: int
    confidence: float = 1.0
    is_anomaly: bool = False
    prediction: Optional[PredictionResult] = None
    rule_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "message": self.message,
            "type": self.type.value,
            "priority": self.priority,
            "confidence": round(self.confidence, 4),
            "is_anomaly": self.is_anomaly,
            "prediction": self.prediction.to_dict() if self.prediction else None,
            "rule_id": self.rule_id,
        }


@dataclass
class GenerationResult:
    insights: List[Insight] = field(default_factory=list)
    threshold_snapshot: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    analysis_status: str = "success"
    degraded_reasons: List[str] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "insights": [i.to_dict() for i in self.insights],
            "threshold_snapshot": self.threshold_snapshot,
            "analysis_status": self.analysis_status,
            "degraded_reasons": list(self.degraded_reasons),
            "counts": dict(self.counts),
        }


def to_five_point(value: float) -> float:
    """Display helper: [0,1] back to the familiar 1-5 rating."""
    return 1.0 + 4.0 * value
