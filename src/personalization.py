"""
Engagement-based personalization.

Tracks how a user reacts to each insight type (viewed / dismissed / acted on)
and uses it to nudge priorities and confidence, and to hide insight types
above the user's chosen complexity level.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from insight_models import Insight, InsightType

log = logging.getLogger("personalization")

DEFAULT_ENGAGEMENT = 0.5
DISMISS_PENALTY = 0.05
ACTION_BONUS = 0.1
DISMISSAL_WEIGHT = 0.3

HIGH_ENGAGEMENT = 0.7
HIGH_DISMISSAL_RATE = 0.5
MIN_PRIORITY, MAX_PRIORITY = 1, 10


class InteractionAction(str, Enum):
    VIEWED = "viewed"
    DISMISSED = "dismissed"
    ACTION_TAKEN = "actionTaken"


class Complexity(str, Enum):
    BASIC = "basic"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


COMPLEXITY_RANK = {Complexity.BASIC: 0, Complexity.INTERMEDIATE: 1, Complexity.ADVANCED: 2}

TYPE_COMPLEXITY = {
    InsightType.TREND: Complexity.BASIC,
    InsightType.ALERT: Complexity.BASIC,
    InsightType.SUGGESTION: Complexity.BASIC,
    InsightType.AFFIRMATION: Complexity.BASIC,
    InsightType.OBSERVATION: Complexity.BASIC,
    InsightType.QUESTION: Complexity.BASIC,
    InsightType.WORKPLACE_SPECIFIC: Complexity.INTERMEDIATE,
    InsightType.GOAL_PROGRESS: Complexity.INTERMEDIATE,
    InsightType.CORRELATION: Complexity.INTERMEDIATE,
    InsightType.WARNING: Complexity.INTERMEDIATE,
    InsightType.CELEBRATION: Complexity.INTERMEDIATE,
    InsightType.ANOMALY: Complexity.ADVANCED,
    InsightType.PREDICTION: Complexity.ADVANCED,
}


@dataclass
class InsightPreference:
    insight_type: InsightType
    view_count: int = 0
    action_count: int = 0
    dismissal_count: int = 0
    engagement_score: float = DEFAULT_ENGAGEMENT

    @property
    def total_interactions(self) -> int:
        return self.view_count + self.action_count + self.dismissal_count

    @property
    def action_rate(self) -> float:
        total = self.total_interactions
        return self.action_count / total if total else 0.0

    @property
    def dismissal_rate(self) -> float:
        total = self.total_interactions
        return self.dismissal_count / total if total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "insight_type": self.insight_type.value,
            "view_count": self.view_count,
            "action_count": self.action_count,
            "dismissal_count": self.dismissal_count,
            "engagement_score": self.engagement_score,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InsightPreference":
        return cls(
            insight_type=InsightType(data["insight_type"]),
            view_count=int(data.get("view_count", 0)),
            action_count=int(data.get("action_count", 0)),
            dismissal_count=int(data.get("dismissal_count", 0)),
            engagement_score=float(data.get("engagement_score", DEFAULT_ENGAGEMENT)),
        )


def record_interaction(preference: InsightPreference, action) -> InsightPreference:
    """Apply one interaction in place and return the preference."""
    action = InteractionAction(action)
    if action == InteractionAction.VIEWED:
        preference.view_count += 1
    elif action == InteractionAction.DISMISSED:
        preference.dismissal_count += 1
        preference.engagement_score = max(0.0, preference.engagement_score - DISMISS_PENALTY)
    else:
        preference.action_count += 1
        preference.engagement_score = min(1.0, preference.engagement_score + ACTION_BONUS)

    total = preference.total_interactions
    if total > 0:
        positive = preference.action_count / total
        penalty = preference.dismissal_count / total * DISMISSAL_WEIGHT
        preference.engagement_score = max(0.0, min(1.0, positive - penalty))
    return preference


def parse_preferences(raw: Optional[Iterable[Any]]) -> Dict[InsightType, InsightPreference]:
    """Preferences keyed by insight type; malformed entries are dropped."""
    out: Dict[InsightType, InsightPreference] = {}
    for item in raw or ():
        if isinstance(item, InsightPreference):
            out[item.insight_type] = item
            continue
        try:
            pref = InsightPreference.from_dict(item)
        except (KeyError, TypeError, ValueError) as e:
            log.warning("Skipping malformed preference %r: %s", item, e)
            continue
        out[pref.insight_type] = pref
    return out


# ─── Applying preferences ──────────────────────────────────

def adapt_insight(insight: Insight, preference: Optional[InsightPreference]) -> Insight:
    if preference is None:
        return insight
    priority = insight.priority
    if preference.engagement_score > HIGH_ENGAGEMENT:
        priority = min(MAX_PRIORITY, priority + 1)
    elif preference.dismissal_rate > HIGH_DISMISSAL_RATE:
        priority = max(MIN_PRIORITY, priority - 1)
    conf = min(1.0, insight.confidence * (0.8 + preference.action_rate * 0.2))
    return replace(insight, priority=priority, confidence=conf)


def complexity_for_type(insight_type: InsightType) -> Complexity:
    return TYPE_COMPLEXITY[insight_type]


def filter_by_complexity(insights: Iterable[Insight], level) -> List[Insight]:
    ceiling = COMPLEXITY_RANK[Complexity(level)]
    return [i for i in insights if COMPLEXITY_RANK[complexity_for_type(i.type)] <= ceiling]


def suggest_complexity(preferences: Mapping[InsightType, InsightPreference]) -> Complexity:
    """Unlock richer insight types as the user engages more."""
    if not preferences:
        return Complexity.BASIC
    avg = sum(p.engagement_score for p in preferences.values()) / len(preferences)
    seen = sum(p.view_count + p.action_count for p in preferences.values())
    if seen > 500 and avg > 0.7:
        return Complexity.ADVANCED
    if seen > 200 and avg > 0.5:
        return Complexity.INTERMEDIATE
    return Complexity.BASIC
