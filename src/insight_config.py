"""
Engine configuration.
Single source of truth for rule gates, cutoffs and threshold bands.

Every value can be overridden from the environment (or a .env file) with an
``INSIGHT_`` prefixed variable, e.g. ``INSIGHT_LATE_NIGHT_HOUR=21``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from typing import Dict, Tuple

from dotenv import load_dotenv

load_dotenv()

log = logging.getLogger("insight_config")


# ─── Adaptive threshold bands ──────────────────────────────
# name: (baseline, min, max).  Ratings live on the normalized [0,1] scale,
# so 0.75 is a 4/5 and 0.25 a 2/5.

THRESHOLD_BANDS: Dict[str, Tuple[float, float, float]] = {
    "maxWeeklyHours":  (50.0, 35.0, 65.0),
    "highStress":      (0.75, 0.50, 1.00),
    "lowFocus":        (0.25, 0.00, 0.50),
    "sessionDuration": (3.0,  2.0,  5.0),
}

LEARNING_RATE = 0.1
HISTORY_LIMIT = 50

# Window sizes are divisors downstream; zero or negative overrides are refused
POSITIVE_FIELDS = ("window_days", "historical_periods")


@dataclass(frozen=True)
class EngineConfig:
    window_days: int = 7
    historical_periods: int = 4

    # Rule (a): workload vs recovery
    min_breathing_sessions_for_high_workload: int = 3
    relative_margin: float = 0.2

    # Rule (b): breathing trend
    min_breathing_change: int = 2

    # Rule (c): focus / stress averages
    min_reflections_for_average: int = 3

    # Rules (d), (e): timing
    late_night_hour: int = 22
    min_late_nights: int = 2
    min_weekend_sessions: int = 1

    # Rule (f): session duration buckets (hours)
    long_session_hours: float = 3.0
    short_session_hours: float = 1.0
    min_sessions_per_duration_bucket: int = 3

    # Rule (g): breathing days
    min_sessions_per_breathing_group: int = 3

    # Rule (h): sparse reflection nudge
    min_completed_sessions_for_prompt: int = 3
    max_reflections_for_prompt: int = 0

    # Rule (i): workplaces
    min_workplaces: int = 2
    min_sessions_per_workplace: int = 3

    # Rule (j): time of day / weekday
    morning_end_hour: int = 12
    afternoon_end_hour: int = 18
    min_sessions_per_time_block: int = 3
    min_sessions_per_weekday: int = 2

    # Shared significance test: one rating point on the [0,1] scale
    difference_threshold: float = 0.2

    # Statistics
    anomaly_z_threshold: float = 2.0
    trend_slope_threshold: float = 0.1

    # Sentiment
    positive_sentiment: float = 0.3
    negative_sentiment: float = -0.3
    min_sentiment_notes: int = 2
    min_journal_entries_for_stress: int = 2

    threshold_bands: Dict[str, Tuple[float, float, float]] = field(
        default_factory=lambda: dict(THRESHOLD_BANDS)
    )

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config, applying any INSIGHT_* overrides found in the env."""
        overrides = {}
        for f in fields(cls):
            if f.name == "threshold_bands":
                continue
            raw = os.getenv(f"INSIGHT_{f.name.upper()}")
            if raw is None or not raw.strip():
                continue
            caster = int if f.type in ("int", int) else float
            try:
                value = caster(raw)
            except ValueError:
                log.warning("Ignoring INSIGHT_%s=%r (not a %s)", f.name.upper(), raw, caster.__name__)
                continue
            if f.name in POSITIVE_FIELDS and value < 1:
                log.warning("Ignoring INSIGHT_%s=%r (must be >= 1)", f.name.upper(), raw)
                continue
            overrides[f.name] = value
        return cls(**overrides)


def default_config() -> EngineConfig:
    return EngineConfig.from_env()
