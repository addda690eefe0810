"""Tone of journal entries and session notes, scored by the injected
sentiment collaborator."""

from __future__ import annotations

from typing import List

from analytics.text_signals import safe_sentiment
from insight_models import Insight, InsightType
from insight_rules.base import RuleContext, make_insight


def journal_tone(ctx: RuleContext) -> List[Insight]:
    if ctx.sentiment_score is None:
        return []
    cfg = ctx.config
    out = []
    for entry in ctx.agg.journal:
        score = safe_sentiment(ctx.sentiment_score, entry.text)
        if score >= cfg.positive_sentiment:
            out.append(make_insight(
                "journal_tone", ("positive", entry.timestamp, entry.title),
                ("Your journal entry '{title}' has a positive tone. What's been going well?",),
                InsightType.QUESTION, 3, title=entry.title,
            ))
        elif score <= cfg.negative_sentiment:
            out.append(make_insight(
                "journal_tone", ("negative", entry.timestamp, entry.title),
                ("Your journal entry '{title}' reflects some challenges. "
                 "Would you like to explore what's been difficult?",),
                InsightType.QUESTION, 3, title=entry.title,
            ))
    return out


def session_note_tone(ctx: RuleContext) -> List[Insight]:
    if ctx.sentiment_score is None:
        return []
    cfg = ctx.config
    notes = [r.session_note for r in ctx.agg.current_check_in_records if r.session_note]
    positive = negative = 0
    for note in notes:
        score = safe_sentiment(ctx.sentiment_score, note)
        if score >= cfg.positive_sentiment:
            positive += 1
        elif score <= cfg.negative_sentiment:
            negative += 1

    if positive > negative and positive >= cfg.min_sentiment_notes:
        return [make_insight(
            "session_note_tone", ("positive", positive, negative),
            ("Your session reflections show a positive pattern this period. Keep up the good work!",),
            InsightType.AFFIRMATION, 2, confidence=min(0.9, len(notes) / 10.0),
        )]
    if negative > positive and negative >= cfg.min_sentiment_notes:
        return [make_insight(
            "session_note_tone", ("negative", positive, negative),
            ("Your session reflections suggest some challenges this period. "
             "Consider what support might help.",),
            InsightType.QUESTION, 2, confidence=min(0.9, len(notes) / 10.0),
        )]
    return []
