"""
Record Normalizer
=================
Converts whatever the caller's storage layer produces into the three
canonical record shapes.  This is the only place rating scales and
timestamp formats are interpreted:

  • Ratings  → continuous [0, 1].  Five-point callers pass
               rating_scale="five_point" and each rating maps via
               (r − 1) / 4.  A raw 0 on a five-point scale means "not rated".
  • Mood     → journal moodRating (1-5) maps to stress via (5 − mood) / 4.
  • Times    → datetime, ISO string or epoch seconds.  Aware values keep
               their local wall-clock time (tzinfo dropped) so hour-of-day
               rules see what the user saw.

Incomplete or malformed records are skipped one at a time; the counts are
returned so the engine can report them.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from insight_models import BreathingRecord, CheckInRecord, GoalRecord, GoalType, JournalRecord

log = logging.getLogger("record_normalizer")

RATING_SCALES = ("unit", "five_point")

# Accepted spellings per canonical field, first match wins
CHECKIN_KEYS = {
    "timestamp": ("timestamp", "checkInTime", "check_in_time", "startedAt", "started_at", "start"),
    "end": ("checkOutTime", "check_out_time", "endedAt", "ended_at", "end"),
    "duration": ("sessionDurationSeconds", "session_duration_seconds", "sessionDuration",
                 "session_duration", "durationSeconds", "duration_seconds", "duration"),
    "stress": ("stressLevel", "stress_level", "stress"),
    "focus": ("focusLevel", "focus_level", "focus"),
    "workplace": ("workplaceName", "workplace_name", "workplace"),
    "note": ("sessionNote", "session_note", "note"),
}
BREATHING_KEYS = {
    "timestamp": ("completedAt", "completed_at", "timestamp"),
    "duration": ("durationSeconds", "duration_seconds", "duration"),
    "type": ("exerciseType", "exercise_type", "exerciseTypes", "type"),
}
JOURNAL_KEYS = {
    "timestamp": ("timestamp", "date", "createdAt", "created_at"),
    "title": ("title",),
    "text": ("text", "content", "body"),
    "stress": ("stressLevel", "stress_level"),
    "focus": ("focusScore", "focus_score"),
    "mood": ("moodRating", "mood_rating"),
}


@dataclass
class NormalizedRecords:
    check_ins: List[CheckInRecord] = field(default_factory=list)
    breathing: List[BreathingRecord] = field(default_factory=list)
    journal: List[JournalRecord] = field(default_factory=list)
    skipped: Dict[str, int] = field(default_factory=lambda: {"check_ins": 0, "breathing": 0, "journal": 0})


# ─── Scalar coercion ───────────────────────────────────────

def _pick(raw: Mapping[str, Any], candidates: Sequence[str]) -> Any:
    for key in candidates:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def coerce_timestamp(value: Any) -> Optional[datetime]:
    """Parse a timestamp; returns None when it is missing or malformed."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            if not math.isfinite(value):
                return None
            ts = pd.to_datetime(value, unit="s", errors="coerce")
        else:
            ts = pd.to_datetime(value, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    out = ts.to_pydatetime()
    if out.tzinfo is not None:
        out = out.replace(tzinfo=None)
    return out


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    return num if math.isfinite(num) else None


def normalize_rating(value: Any, scale: str = "unit") -> Optional[float]:
    """Map a raw rating onto [0, 1]; None means the session was not rated."""
    num = _number(value)
    if num is None:
        return None
    if scale == "five_point":
        if num <= 0:
            return None
        num = (num - 1.0) / 4.0
    return max(0.0, min(1.0, num))


def mood_to_stress(mood: Any) -> Optional[float]:
    num = _number(mood)
    if num is None or num <= 0:
        return None
    return max(0.0, min(1.0, (5.0 - num) / 4.0))


def _canonical_time(value: Any) -> Optional[datetime]:
    """Timestamp of an already-built record: naive datetime, or None when unusable."""
    if isinstance(value, pd.Timestamp):
        value = None if pd.isna(value) else value.to_pydatetime()
    if not isinstance(value, datetime):
        return None
    return value.replace(tzinfo=None) if value.tzinfo is not None else value


def _seconds(value: Any) -> Optional[int]:
    num = _number(value)
    if num is None or num < 0:
        return None
    return int(round(num))


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


# ─── Per-record normalization ──────────────────────────────

def normalize_check_in(raw: Any, rating_scale: str = "unit") -> Optional[CheckInRecord]:
    if isinstance(raw, CheckInRecord):
        # built records still cross the boundary: times and ratings are re-checked
        started, duration = _canonical_time(raw.timestamp), _seconds(raw.session_duration_seconds)
        if started is None or duration is None:
            return None
        return replace(
            raw,
            timestamp=started,
            session_duration_seconds=duration,
            stress_level=normalize_rating(raw.stress_level),
            focus_level=normalize_rating(raw.focus_level),
        )
    if not isinstance(raw, Mapping):
        return None

    started = coerce_timestamp(_pick(raw, CHECKIN_KEYS["timestamp"]))
    if started is None:
        return None

    duration = _number(_pick(raw, CHECKIN_KEYS["duration"]))
    if duration is None:
        ended = coerce_timestamp(_pick(raw, CHECKIN_KEYS["end"]))
        if ended is None:
            # still-open session: nothing to aggregate
            return None
        duration = (ended - started).total_seconds()
    if duration < 0:
        return None

    return CheckInRecord(
        timestamp=started,
        session_duration_seconds=int(round(duration)),
        stress_level=normalize_rating(_pick(raw, CHECKIN_KEYS["stress"]), rating_scale),
        focus_level=normalize_rating(_pick(raw, CHECKIN_KEYS["focus"]), rating_scale),
        workplace_name=_text(_pick(raw, CHECKIN_KEYS["workplace"])),
        session_note=_text(_pick(raw, CHECKIN_KEYS["note"])),
    )


def normalize_breathing(raw: Any) -> Optional[BreathingRecord]:
    if isinstance(raw, BreathingRecord):
        completed, duration = _canonical_time(raw.completed_at), _seconds(raw.duration_seconds)
        if completed is None or duration is None:
            return None
        return replace(raw, completed_at=completed, duration_seconds=duration)
    if not isinstance(raw, Mapping):
        return None
    completed = coerce_timestamp(_pick(raw, BREATHING_KEYS["timestamp"]))
    if completed is None:
        return None
    duration = _number(_pick(raw, BREATHING_KEYS["duration"])) or 0.0
    if duration < 0:
        return None
    return BreathingRecord(
        completed_at=completed,
        duration_seconds=int(round(duration)),
        exercise_type=_text(_pick(raw, BREATHING_KEYS["type"])) or "unknown",
    )


def normalize_journal(raw: Any, rating_scale: str = "unit") -> Optional[JournalRecord]:
    if isinstance(raw, JournalRecord):
        ts = _canonical_time(raw.timestamp)
        if ts is None:
            return None
        return replace(
            raw,
            timestamp=ts,
            title=raw.title or "",
            text=raw.text or "",
            stress_level=normalize_rating(raw.stress_level),
            focus_score=normalize_rating(raw.focus_score),
        )
    if not isinstance(raw, Mapping):
        return None
    ts = coerce_timestamp(_pick(raw, JOURNAL_KEYS["timestamp"]))
    if ts is None:
        return None

    title = _text(_pick(raw, JOURNAL_KEYS["title"]))
    text = _text(_pick(raw, JOURNAL_KEYS["text"])) or ""
    if title is None:
        # stored as "title\nbody" by older clients
        head, _, body = text.partition("\n")
        title, text = head.strip(), body.strip() or head.strip()

    stress = normalize_rating(_pick(raw, JOURNAL_KEYS["stress"]), rating_scale)
    if stress is None:
        stress = mood_to_stress(_pick(raw, JOURNAL_KEYS["mood"]))

    return JournalRecord(
        timestamp=ts,
        title=title,
        text=text,
        stress_level=stress,
        focus_score=normalize_rating(_pick(raw, JOURNAL_KEYS["focus"]), rating_scale),
    )


def normalize_goal(raw: Any) -> Optional[GoalRecord]:
    if isinstance(raw, GoalRecord):
        return raw
    if not isinstance(raw, Mapping):
        return None
    try:
        goal_type = GoalType(_pick(raw, ("goalType", "goal_type", "type")))
    except ValueError:
        return None
    target = _number(_pick(raw, ("targetValue", "target_value", "target")))
    if target is None or target <= 0:
        return None
    return GoalRecord(
        goal_type=goal_type,
        title=_text(_pick(raw, ("title",))) or goal_type.value.replace("_", " ").title(),
        target_value=target,
    )


# ─── Batch entry point ─────────────────────────────────────

def _normalize_many(items: Optional[Iterable[Any]], fn, label: str,
                    skipped: Dict[str, int]) -> List[Any]:
    out = []
    for raw in items or ():
        rec = fn(raw)
        if rec is None:
            skipped[label] = skipped.get(label, 0) + 1
            continue
        out.append(rec)
    return out


def normalize_records(
    check_ins: Optional[Iterable[Any]] = None,
    breathing_logs: Optional[Iterable[Any]] = None,
    journal_entries: Optional[Iterable[Any]] = None,
    rating_scale: str = "unit",
) -> NormalizedRecords:
    """Normalize all three collections, sorted by time."""
    if rating_scale not in RATING_SCALES:
        raise ValueError(f"rating_scale must be one of {RATING_SCALES}, got {rating_scale!r}")

    result = NormalizedRecords()
    result.check_ins = sorted(
        _normalize_many(check_ins, lambda r: normalize_check_in(r, rating_scale), "check_ins", result.skipped),
        key=lambda r: r.timestamp,
    )
    result.breathing = sorted(
        _normalize_many(breathing_logs, normalize_breathing, "breathing", result.skipped),
        key=lambda r: r.completed_at,
    )
    result.journal = sorted(
        _normalize_many(journal_entries, lambda r: normalize_journal(r, rating_scale), "journal", result.skipped),
        key=lambda r: r.timestamp,
    )

    n_skipped = sum(result.skipped.values())
    if n_skipped:
        log.info("   Skipped %d incomplete/malformed records (%s)", n_skipped,
                 ", ".join(f"{k}={v}" for k, v in result.skipped.items() if v))
    return result


def normalize_goals(goals: Optional[Iterable[Any]]) -> Tuple[GoalRecord, ...]:
    return tuple(g for g in (normalize_goal(raw) for raw in goals or ()) if g is not None)
