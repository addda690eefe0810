"""Journal stress level and keyword-targeted prompts."""

from __future__ import annotations

from typing import List

from analytics.text_signals import keyword_stress, targeted_topics
from insight_models import Insight, InsightType, to_five_point
from insight_rules.base import RuleContext, make_insight, ratio_confidence


def journal_stress(ctx: RuleContext) -> List[Insight]:
    entries = ctx.agg.journal
    if len(entries) < ctx.config.min_journal_entries_for_stress:
        return []
    # explicit rating wins; otherwise estimate from the text
    levels = [
        e.stress_level if e.stress_level is not None else keyword_stress(e.title + " " + e.text)
        for e in entries
    ]
    avg = sum(levels) / len(levels)
    if avg < ctx.thresholds["highStress"]:
        return []
    return [make_insight(
        "journal_stress", (len(levels), round(avg, 4)),
        ("Your journal entries this period point to high stress (about {avg:.1f}/5 across "
         "{n} entries). What is one thing you could take off your plate?",),
        InsightType.QUESTION, 5, confidence=ratio_confidence(len(levels)),
        avg=to_five_point(avg), n=len(levels),
    )]


def journal_prompts(ctx: RuleContext) -> List[Insight]:
    """One prompt per topic, keyed to the most recent entry that raised it."""
    latest = {}
    order = []
    for entry in ctx.agg.journal:
        for topic, prompts in targeted_topics(entry.title + " " + entry.text):
            if topic not in latest:
                order.append(topic)
            latest[topic] = (entry, prompts)

    out = []
    for topic in order:
        entry, prompts = latest[topic]
        out.append(make_insight(
            "journal_prompt", (topic, entry.timestamp),
            prompts, InsightType.SUGGESTION, 3,
        ))
    return out
