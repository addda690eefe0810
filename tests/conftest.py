"""
Shared test configuration.

Adds src/ to sys.path so flat modules (insight_engine, record_normalizer, ...)
and the analytics / insight_rules / pipeline / routes packages import with
plain `import module_name`, exactly as they do when run from src/.

Also holds small record factories shared by the rule and engine tests.
"""

import os
import sys
from datetime import datetime, timedelta

import pytest

_project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_src_dir = os.path.join(_project_root, "src")

if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)

from insight_models import BreathingRecord, CheckInRecord, JournalRecord  # noqa: E402

# Monday 2026-03-09 00:00; the default 7-day window is Mon 03-02 .. Sun 03-08
REF = datetime(2026, 3, 9)


def checkin(day_offset, hour=9, hours=2.0, stress=None, focus=None, workplace=None, note=None):
    """A check-in `day_offset` days before REF, starting at `hour`."""
    start = REF - timedelta(days=day_offset) + timedelta(hours=hour)
    return CheckInRecord(
        timestamp=start,
        session_duration_seconds=int(hours * 3600),
        stress_level=stress,
        focus_level=focus,
        workplace_name=workplace,
        session_note=note,
    )


def breath(day_offset, hour=12, seconds=300):
    return BreathingRecord(
        completed_at=REF - timedelta(days=day_offset) + timedelta(hours=hour),
        duration_seconds=seconds,
        exercise_type="box",
    )


def journal(day_offset, title="Entry", text="", stress=None, focus=None):
    return JournalRecord(
        timestamp=REF - timedelta(days=day_offset) + timedelta(hours=20),
        title=title,
        text=text,
        stress_level=stress,
        focus_score=focus,
    )


@pytest.fixture
def ref():
    return REF
