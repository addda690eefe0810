"""
Shared helpers for API routes.
Contains: pipeline construction, request → engine kwargs mapping,
JSON coercion of run results.
"""

from __future__ import annotations

import logging
import os
from datetime import date, datetime
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, List, Optional

import numpy as np
from dotenv import load_dotenv

from insight_engine import InsightEngine
from pipeline.generation_pipeline import InsightGenerationPipeline

load_dotenv()

log = logging.getLogger("api")

ENGINE_ARGS = (
    "check_ins", "breathing_logs", "journal_entries", "goals", "window_days",
    "reference_date", "dismissed_insight_ids", "threshold_snapshot", "max_count",
    "preferences", "complexity", "rating_scale",
)


# ─── Pipeline ──────────────────────────────────────────────

def _max_workers() -> Optional[int]:
    raw = os.getenv("INSIGHT_MAX_WORKERS", "").strip()
    if not raw:
        return None
    try:
        return max(1, int(raw))
    except ValueError:
        log.warning("Ignoring INSIGHT_MAX_WORKERS=%r", raw)
        return None


@lru_cache(maxsize=1)
def _pipeline() -> InsightGenerationPipeline:
    """Process-wide pipeline so per-user locks are shared across requests."""
    return InsightGenerationPipeline(engine=InsightEngine(max_workers=_max_workers()))


# ─── Type coercion ─────────────────────────────────────────

def _to_jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, dict):
        return {str(k): _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_to_jsonable(v) for v in value]
    return value


def _text(value: Any) -> str:
    return str(value) if value is not None else ""


def _clip_text(text: str, max_len: int = 280) -> str:
    s = _text(text).replace("\n", " ").strip()
    if len(s) <= max_len:
        return s
    return s[: max_len - 3].rstrip() + "..."


# ─── Request / response shaping ────────────────────────────

def _generate_kwargs(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Engine keyword arguments from a request body; unset optionals omitted."""
    return {k: payload[k] for k in ENGINE_ARGS if payload.get(k) is not None}


def _run_response(run_status: Dict[str, Any], include_snapshot: bool = True) -> Dict[str, Any]:
    out = {
        "user_id": run_status.get("user_id"),
        "status": run_status.get("overall_status"),
        "analysis_status": run_status.get("analysis_status"),
        "degraded_reasons": list(run_status.get("degraded_reasons") or []),
        "insights": run_status.get("insights") or [],
        "summary": run_status.get("summary", ""),
        "counts": run_status.get("counts") or {},
    }
    if include_snapshot:
        out["threshold_snapshot"] = run_status.get("threshold_snapshot") or {}
    return _to_jsonable(out)


def _preview(insights: List[Dict[str, Any]], n: int = 3) -> str:
    return " | ".join(_clip_text(i.get("message", ""), 80) for i in insights[:n])
