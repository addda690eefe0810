"""Helpers for building a concise insight card for UI consumption."""

from __future__ import annotations

from typing import Iterable, List, Optional

from insight_models import Insight, InsightType

QUESTION_TYPES = (InsightType.QUESTION,)
ACTION_TYPES = (InsightType.SUGGESTION, InsightType.ALERT, InsightType.WARNING)


def clip(s: str, limit: int = 260) -> str:
    s = s.replace("\r", "").replace("\n", " ").strip()
    if len(s) <= limit:
        return s
    return s[: limit - 3].rstrip() + "..."


def bullet(label: str, value: str) -> str:
    prefix = f"- {label}: "
    allowed = max(48, 280 - len(prefix))
    return prefix + clip(value, allowed)


def _first(insights: List[Insight], types, exclude: Iterable[Insight] = ()) -> Optional[Insight]:
    skip = {i.id for i in exclude}
    for ins in insights:
        if ins.type in types and ins.id not in skip:
            return ins
    return None


def build_insight_card(insights: Iterable[Insight]) -> str:
    """Strict 3-bullet card from an already-ranked insight list."""
    ranked = list(insights)
    if not ranked:
        return (
            "- What stands out: Not enough activity in this period yet.\n"
            "- Worth asking: What would a sustainable week look like for you?\n"
            "- Next step: Log a few sessions and rate how they felt."
        )

    top = ranked[0]
    question = _first(ranked, QUESTION_TYPES, exclude=[top])
    action = _first(ranked, ACTION_TYPES, exclude=[top] + ([question] if question else []))

    rest = [i for i in ranked[1:] if i not in (question, action)]
    if question is None and rest:
        question = rest.pop(0)
    if action is None and rest:
        action = rest.pop(0)

    return (
        f"{bullet('What stands out', top.message)}\n"
        f"{bullet('Worth asking', question.message if question else 'How did this period feel overall?')}\n"
        f"{bullet('Next step', action.message if action else 'Keep your current rhythm and check in again next period.')}"
    )
