"""Keyword signals over journal text: a stress estimate and targeted prompts."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

log = logging.getLogger("text_signals")

STRESS_KEYWORDS = ("overwhelmed", "deadline", "pressure", "anxious", "stressed", "behind")
STRESS_MENTIONS_FOR_MAX = 3.0

# (trigger words, topic, prompt variants)
TARGETED_PROMPTS: Tuple[Tuple[Tuple[str, ...], str, Tuple[str, ...]], ...] = (
    (("overwhelmed", "anxious"), "overwhelm", (
        "What is one part of this situation you can control right now?",
        "What's the absolute smallest first step you could take?",
    )),
    (("distracted", "procrastinating"), "distraction", (
        "Is this task clear enough? Try breaking it down into 3 smaller steps.",
        "What is one distraction you can eliminate for the next 25 minutes?",
    )),
)


def keyword_stress(text: str) -> float:
    """0..1 stress estimate from how many distinct stress words appear."""
    lowered = (text or "").lower()
    mentions = sum(1 for kw in STRESS_KEYWORDS if kw in lowered)
    return min(1.0, mentions / STRESS_MENTIONS_FOR_MAX)


def targeted_topics(text: str) -> List[Tuple[str, Tuple[str, ...]]]:
    """Topics whose trigger words appear in the text, in catalog order."""
    lowered = (text or "").lower()
    return [
        (topic, prompts)
        for words, topic, prompts in TARGETED_PROMPTS
        if any(w in lowered for w in words)
    ]


def safe_sentiment(score_fn: Optional[Callable[[str], float]], text: str) -> float:
    """Call the injected scorer; any failure or junk value counts as neutral."""
    if score_fn is None or not text:
        return 0.0
    try:
        score = float(score_fn(text))
    except Exception as e:
        log.warning("Sentiment scorer failed for one note, treating as neutral: %s", e)
        return 0.0
    if score != score:  # NaN
        return 0.0
    return max(-1.0, min(1.0, score))
