"""
Period aggregates: pandas frames for the current window, the previous window
and the historical window, plus the group breakdowns the rules compare.

Built once per cycle and read-only afterwards; rules never filter raw records
themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from insight_config import EngineConfig
from insight_models import BreathingRecord, CheckInRecord, GoalRecord, JournalRecord

CHECKIN_COLUMNS = [
    "timestamp", "ended_at", "hours", "stress", "focus", "workplace", "note",
    "reflected", "date", "weekday", "is_weekend", "start_hour", "time_block",
    "duration_bucket", "late_night", "breathing_day",
]
BREATHING_COLUMNS = ["completed_at", "duration_seconds", "exercise_type", "date"]

WEEKDAY_ORDER = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


@dataclass(frozen=True)
class PeriodWindow:
    start: datetime
    end: datetime

    def mask(self, series: pd.Series) -> pd.Series:
        return (series >= self.start) & (series < self.end)

    def contains(self, ts: datetime) -> bool:
        return self.start <= ts < self.end


def build_windows(reference_date: datetime, window_days: int,
                  historical_periods: int) -> Tuple[PeriodWindow, PeriodWindow, PeriodWindow]:
    """(current, previous, historical) half-open windows ending at reference_date."""
    span = timedelta(days=window_days)
    current = PeriodWindow(reference_date - span, reference_date)
    previous = PeriodWindow(current.start - span, current.start)
    historical = PeriodWindow(current.start - span * historical_periods, current.start)
    return current, previous, historical


# ─── Frame builders ────────────────────────────────────────

def _time_block(hour: int, cfg: EngineConfig) -> str:
    if hour < cfg.morning_end_hour:
        return "morning"
    if hour < cfg.afternoon_end_hour:
        return "afternoon"
    return "evening"


def _duration_bucket(hours: float, cfg: EngineConfig) -> str:
    if hours >= cfg.long_session_hours:
        return "long"
    if hours <= cfg.short_session_hours:
        return "short"
    return "medium"


def _is_late_night(rec: CheckInRecord, cfg: EngineConfig) -> bool:
    end = rec.ended_at
    return end.date() > rec.timestamp.date() or end.hour >= cfg.late_night_hour


def checkin_frame(records: Iterable[CheckInRecord], cfg: EngineConfig) -> pd.DataFrame:
    rows = []
    for r in records:
        rows.append({
            "timestamp": r.timestamp,
            "ended_at": r.ended_at,
            "hours": r.hours,
            "stress": r.stress_level,
            "focus": r.focus_level,
            "workplace": r.workplace_name,
            "note": r.session_note,
            "reflected": r.is_reflected,
            "date": r.timestamp.date(),
            "weekday": WEEKDAY_ORDER[r.timestamp.weekday()],
            "is_weekend": r.timestamp.weekday() >= 5,
            "start_hour": r.timestamp.hour,
            "time_block": _time_block(r.timestamp.hour, cfg),
            "duration_bucket": _duration_bucket(r.hours, cfg),
            "late_night": _is_late_night(r, cfg),
            "breathing_day": False,
        })
    df = pd.DataFrame(rows, columns=CHECKIN_COLUMNS)
    for col in ("hours", "stress", "focus"):
        df[col] = df[col].astype("float64")
    for col in ("reflected", "is_weekend", "late_night", "breathing_day"):
        df[col] = df[col].astype(bool)
    return df


def breathing_frame(records: Iterable[BreathingRecord]) -> pd.DataFrame:
    rows = [{
        "completed_at": r.completed_at,
        "duration_seconds": r.duration_seconds,
        "exercise_type": r.exercise_type,
        "date": r.completed_at.date(),
    } for r in records]
    return pd.DataFrame(rows, columns=BREATHING_COLUMNS)


def _mean(series: pd.Series) -> Optional[float]:
    vals = series.dropna()
    if vals.empty:
        return None
    return float(vals.mean())


# ─── Group contrasts ───────────────────────────────────────

@dataclass(frozen=True)
class GroupContrast:
    """Highest- and lowest-scoring groups for one metric."""
    metric: str
    high_label: str
    high_mean: float
    high_n: int
    low_label: str
    low_mean: float
    low_n: int


def group_means(frame: pd.DataFrame, by: str, metric: str, min_count: int) -> pd.DataFrame:
    """Mean and count of `metric` per group, keeping groups with ≥ min_count values."""
    sub = frame[[by, metric]].dropna()
    if sub.empty:
        return pd.DataFrame(columns=["mean", "count"])
    grouped = sub.groupby(by, sort=True)[metric].agg(["mean", "count"])
    return grouped[grouped["count"] >= min_count]


def contrast(frame: pd.DataFrame, by: str, metric: str, min_count: int,
             min_groups: int = 2) -> Optional[GroupContrast]:
    stats = group_means(frame, by, metric, min_count)
    if len(stats) < min_groups:
        return None
    # deterministic on ties: label order breaks equal means
    ordered = stats.reset_index().sort_values(["mean", by], ascending=[False, True], kind="mergesort")
    hi, lo = ordered.iloc[0], ordered.iloc[-1]
    return GroupContrast(
        metric=metric,
        high_label=str(hi[by]), high_mean=float(hi["mean"]), high_n=int(hi["count"]),
        low_label=str(lo[by]), low_mean=float(lo["mean"]), low_n=int(lo["count"]),
    )


# ─── Per-cycle aggregate snapshot ──────────────────────────

class PeriodAggregates:
    """Everything rules need about one user's current and past periods."""

    def __init__(
        self,
        check_ins: Sequence[CheckInRecord],
        breathing: Sequence[BreathingRecord],
        journal: Sequence[JournalRecord],
        reference_date: datetime,
        config: EngineConfig,
        goals: Sequence[GoalRecord] = (),
    ):
        self.config = config
        self.reference_date = reference_date
        self.window_days = config.window_days
        self.current, self.previous, self.historical = build_windows(
            reference_date, config.window_days, config.historical_periods)

        self.current_check_in_records: Tuple[CheckInRecord, ...] = tuple(
            r for r in check_ins if self.current.contains(r.timestamp))
        self.journal: Tuple[JournalRecord, ...] = tuple(
            r for r in journal if self.current.contains(r.timestamp))
        self.goals: Tuple[GoalRecord, ...] = tuple(goals)

        all_checks = checkin_frame(check_ins, config)
        all_breaths = breathing_frame(breathing)

        self.check_ins = all_checks[self.current.mask(all_checks["timestamp"])].reset_index(drop=True)
        self.hist_check_ins = all_checks[self.historical.mask(all_checks["timestamp"])].reset_index(drop=True)
        self.breathing = all_breaths[self.current.mask(all_breaths["completed_at"])].reset_index(drop=True)
        self.prev_breathing = all_breaths[self.previous.mask(all_breaths["completed_at"])].reset_index(drop=True)

        self.breathing_dates = frozenset(self.breathing["date"])
        if not self.check_ins.empty:
            self.check_ins["breathing_day"] = self.check_ins["date"].isin(self.breathing_dates)

    # ─── Totals ────────────────────────────────────────────

    @property
    def session_count(self) -> int:
        return len(self.check_ins)

    @property
    def total_hours(self) -> float:
        return float(self.check_ins["hours"].sum())

    @property
    def weekly_normalized_hours(self) -> float:
        return self.total_hours * 7.0 / self.window_days

    @property
    def historical_average_hours(self) -> float:
        """Average per-period total over the historical window (0 when empty)."""
        return float(self.hist_check_ins["hours"].sum()) / self.config.historical_periods

    @property
    def breathing_count(self) -> int:
        return len(self.breathing)

    @property
    def previous_breathing_count(self) -> int:
        return len(self.prev_breathing)

    @property
    def breathing_minutes(self) -> float:
        return float(self.breathing["duration_seconds"].sum()) / 60.0

    # ─── Ratings ───────────────────────────────────────────

    @property
    def reflected(self) -> pd.DataFrame:
        return self.check_ins[self.check_ins["reflected"]]

    @property
    def reflection_count(self) -> int:
        return int(self.check_ins["reflected"].sum())

    def ratings(self, metric: str) -> np.ndarray:
        """Non-missing ratings of one metric in session order."""
        return self.check_ins[metric].dropna().to_numpy(dtype=np.float64)

    def average(self, metric: str) -> Optional[float]:
        return _mean(self.check_ins[metric])

    @property
    def average_session_hours(self) -> Optional[float]:
        return _mean(self.check_ins["hours"]) if self.session_count else None

    def session_hours(self) -> np.ndarray:
        return self.check_ins["hours"].to_numpy(dtype=np.float64)

    # ─── Breakdowns ────────────────────────────────────────

    @property
    def late_night_count(self) -> int:
        return int(self.check_ins["late_night"].sum())

    @property
    def weekend_count(self) -> int:
        return int(self.check_ins["is_weekend"].sum())

    def daily_hours(self) -> pd.Series:
        if self.check_ins.empty:
            return pd.Series(dtype="float64")
        return self.check_ins.groupby("date", sort=True)["hours"].sum()
