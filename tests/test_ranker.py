"""Tests for merging, filtering and ordering candidate insights."""

from insight_models import Insight, InsightType
from insight_ranker import rank_insights
from personalization import InsightPreference


def make(id, priority, type=InsightType.QUESTION, message="m"):
    return Insight(id=id, message=message, type=type, priority=priority)


class TestRankInsights:

    def test_priority_descending_stable(self):
        out = rank_insights([make("a", 2), make("b", 9), make("c", 2), make("d", 5)])
        assert [i.id for i in out] == ["b", "d", "a", "c"]

    def test_duplicates_keep_first(self):
        out = rank_insights([make("a", 2, message="first"), make("a", 8, message="second")])
        assert len(out) == 1
        assert out[0].message == "first"

    def test_dismissed_removed(self):
        out = rank_insights([make("a", 2), make("b", 3)], dismissed_ids={"b"})
        assert [i.id for i in out] == ["a"]

    def test_max_count(self):
        out = rank_insights([make(str(i), i) for i in range(1, 6)], max_count=2)
        assert [i.priority for i in out] == [5, 4]

    def test_zero_max_count(self):
        assert rank_insights([make("a", 1)], max_count=0) == []

    def test_preferences_reorder(self):
        prefs = {InsightType.ALERT: InsightPreference(InsightType.ALERT, engagement_score=0.9)}
        out = rank_insights([make("q", 5), make("al", 5, type=InsightType.ALERT)], preferences=prefs)
        assert [i.id for i in out] == ["al", "q"]
        assert out[0].priority == 6

    def test_complexity_filter(self):
        out = rank_insights([make("p", 9, type=InsightType.PREDICTION), make("q", 1)], complexity="basic")
        assert [i.id for i in out] == ["q"]

    def test_empty(self):
        assert rank_insights([]) == []
