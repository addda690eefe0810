"""Tests for the adaptive threshold store and its snapshots."""

import json
import logging

import pytest

from analytics.thresholds import AdaptiveThreshold, AdaptiveThresholdStore
from insight_config import HISTORY_LIMIT, THRESHOLD_BANDS


class TestAdaptiveThreshold:

    def test_ema_update(self):
        t = AdaptiveThreshold.from_band("maxWeeklyHours", (50.0, 35.0, 65.0))
        assert t.update(60.0) == pytest.approx(51.0)

    def test_converges_to_max_without_exceeding(self):
        t = AdaptiveThreshold.from_band("maxWeeklyHours", (50.0, 35.0, 65.0))
        for _ in range(500):
            t.update(t.max_value + 10)
            assert t.current_value <= t.max_value
        assert t.current_value == pytest.approx(65.0)

    def test_clamped_at_min(self):
        t = AdaptiveThreshold.from_band("lowFocus", (0.25, 0.0, 0.5))
        for _ in range(200):
            t.update(-5.0)
        assert t.current_value == pytest.approx(0.0)

    def test_history_bounded(self):
        t = AdaptiveThreshold.from_band("x", (1.0, 0.0, 2.0))
        for i in range(HISTORY_LIMIT + 20):
            t.update(float(i))
        assert len(t.history) == HISTORY_LIMIT
        assert t.history[0] == 20.0

    def test_std_dev_sample(self):
        t = AdaptiveThreshold.from_band("x", (1.0, 0.0, 10.0))
        assert t.std_dev() == 0.0
        t.update(2.0)
        assert t.std_dev() == 0.0
        t.update(4.0)
        # n-1 denominator: sqrt(2)
        assert t.std_dev() == pytest.approx(2 ** 0.5)


class TestStore:

    def test_defaults(self):
        store = AdaptiveThresholdStore()
        assert store.get("maxWeeklyHours") == 50.0
        assert store.get("highStress") == 0.75
        assert store.get("lowFocus") == 0.25
        assert store.get("sessionDuration") == 3.0

    def test_unknown_name_falls_back_to_registry(self):
        store = AdaptiveThresholdStore(bands={"highStress": THRESHOLD_BANDS["highStress"]})
        assert store.get("maxWeeklyHours") == 50.0
        with pytest.raises(KeyError):
            store.get("nope")

    def test_update_unknown_raises(self):
        with pytest.raises(KeyError):
            AdaptiveThresholdStore().update("nope", 1.0)

    def test_non_finite_sample_ignored(self):
        store = AdaptiveThresholdStore()
        store.update("maxWeeklyHours", float("nan"))
        assert store.get("maxWeeklyHours") == 50.0
        assert store.std_dev("maxWeeklyHours") == 0.0

    def test_snapshot_is_json_safe_and_round_trips(self):
        store = AdaptiveThresholdStore()
        store.update("maxWeeklyHours", 60.0)
        store.update("maxWeeklyHours", 62.0)
        snap = json.loads(json.dumps(store.snapshot()))

        restored = AdaptiveThresholdStore.from_snapshot(snap)
        assert restored.get("maxWeeklyHours") == pytest.approx(store.get("maxWeeklyHours"))
        assert restored.std_dev("maxWeeklyHours") == pytest.approx(store.std_dev("maxWeeklyHours"))


class TestColdStart:

    @pytest.mark.parametrize("snap", [None, "garbage", 42, ["a", "b"]])
    def test_whole_snapshot_corrupt(self, snap):
        store = AdaptiveThresholdStore.from_snapshot(snap)
        assert store.values() == {k: v[0] for k, v in THRESHOLD_BANDS.items()}

    def test_single_corrupt_entry(self, caplog):
        good = AdaptiveThresholdStore()
        good.update("highStress", 1.0)
        snap = good.snapshot()
        snap["maxWeeklyHours"] = {"current_value": "lots"}

        with caplog.at_level(logging.WARNING, logger="thresholds"):
            store = AdaptiveThresholdStore.from_snapshot(snap)

        assert store.get("maxWeeklyHours") == 50.0
        assert store.get("highStress") == pytest.approx(good.get("highStress"))
        assert "maxWeeklyHours" in caplog.text

    def test_out_of_band_value_clamped(self):
        store = AdaptiveThresholdStore.from_snapshot(
            {"maxWeeklyHours": {"current_value": 500, "history": []}}
        )
        assert store.get("maxWeeklyHours") == 65.0

    def test_band_comes_from_registry_not_snapshot(self):
        store = AdaptiveThresholdStore.from_snapshot(
            {"maxWeeklyHours": {"current_value": 40, "min_value": 0, "max_value": 1000, "history": []}}
        )
        t = store.threshold("maxWeeklyHours")
        assert (t.min_value, t.max_value) == (35.0, 65.0)

    def test_bad_history_entry(self):
        store = AdaptiveThresholdStore.from_snapshot(
            {"lowFocus": {"current_value": 0.3, "history": [0.1, "x"]}}
        )
        assert store.get("lowFocus") == 0.25

    def test_unknown_entries_dropped(self):
        store = AdaptiveThresholdStore.from_snapshot({"mystery": {"current_value": 1}})
        assert "mystery" not in store
        assert "mystery" not in store.snapshot()
