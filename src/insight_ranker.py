"""Merge, filter and order candidate insights."""

from __future__ import annotations

import logging
from typing import Collection, Iterable, List, Mapping, Optional

from insight_models import Insight, InsightType
from personalization import InsightPreference, adapt_insight, filter_by_complexity

log = logging.getLogger("insight_ranker")


def rank_insights(
    candidates: Iterable[Insight],
    dismissed_ids: Collection[str] = (),
    preferences: Optional[Mapping[InsightType, InsightPreference]] = None,
    complexity: Optional[str] = None,
    max_count: Optional[int] = None,
) -> List[Insight]:
    """
    Candidates arrive in emission order.  Duplicate ids keep the first copy,
    dismissed ids are dropped, then a stable sort by priority (descending)
    keeps emission order among equal priorities.
    """
    dismissed = set(dismissed_ids or ())
    seen = set()
    kept: List[Insight] = []
    n_dup = n_dismissed = 0
    for ins in candidates:
        if ins.id in seen:
            n_dup += 1
            continue
        seen.add(ins.id)
        if ins.id in dismissed:
            n_dismissed += 1
            continue
        kept.append(ins)

    if preferences:
        kept = [adapt_insight(i, preferences.get(i.type)) for i in kept]
    if complexity is not None:
        kept = filter_by_complexity(kept, complexity)

    ranked = sorted(kept, key=lambda i: -i.priority)
    if max_count is not None:
        ranked = ranked[:max(0, int(max_count))]

    if n_dup or n_dismissed:
        log.info("   Ranker dropped %d duplicate(s), %d dismissed", n_dup, n_dismissed)
    return ranked
