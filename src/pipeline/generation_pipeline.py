"""Per-user insight generation runs with explicit health signaling."""

from __future__ import annotations

import json
import logging
import os
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional

from insight_engine import InsightEngine
from insight_models import Insight
from pipeline.summary_builder import build_insight_card

log = logging.getLogger("generation_pipeline")

StyleRewrite = Callable[[str, str], str]


def _utc_now() -> str:
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z"


@dataclass
class _UserLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class InsightGenerationPipeline:
    """
    One logical transaction per user: cycles for the same user id run one at
    a time so the threshold snapshot read at the start is the one written back.
    """

    def __init__(
        self,
        engine: Optional[InsightEngine] = None,
        style_rewrite: Optional[StyleRewrite] = None,
        status_path: Optional[str] = None,
    ):
        self.engine = engine or InsightEngine()
        self.style_rewrite = style_rewrite
        self.status_path = status_path
        # user_id -> (lock, number of runs holding or waiting on it)
        self._locks: Dict[str, _UserLock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _user_lock(self, user_id: str) -> Iterator[None]:
        """Serialize runs per user; the entry is dropped once nobody uses it."""
        with self._locks_guard:
            entry = self._locks.get(user_id)
            if entry is None:
                entry = self._locks[user_id] = _UserLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[user_id]

    def run(self, user_id: str, **generate_kwargs: Any) -> Dict[str, Any]:
        """Generate, rewrite and summarize; returns a machine-readable run status."""
        run_status: Dict[str, Any] = {
            "user_id": user_id,
            "run_started_at": _utc_now(),
            "generation_ok": False,
            "rewrite_failures": 0,
            "analysis_status": "unknown",
            "degraded_reasons": [],
            "insights": [],
            "threshold_snapshot": generate_kwargs.get("threshold_snapshot") or {},
            "summary": "",
            "counts": {},
        }

        log.info("=" * 60)
        log.info("  INSIGHT GENERATION STARTED (user=%s)", user_id)
        log.info("=" * 60)

        try:
            with self._user_lock(user_id):
                log.info("Step 1/3: Generating insights...")
                result = self.engine.generate_insights(**generate_kwargs)
                run_status["generation_ok"] = result.analysis_status != "failed"
                run_status["analysis_status"] = result.analysis_status
                run_status["degraded_reasons"] = list(result.degraded_reasons)
                run_status["threshold_snapshot"] = result.threshold_snapshot
                run_status["counts"] = dict(result.counts)

            log.info("Step 2/3: Applying style rewrite...")
            insights, failures = self._rewrite(result.insights)
            run_status["rewrite_failures"] = failures

            log.info("Step 3/3: Building insight card...")
            run_status["summary"] = build_insight_card(insights)
            run_status["insights"] = [i.to_dict() for i in insights]
        except ValueError:
            # bad caller input; the API turns this into a 422
            raise
        except Exception as e:
            run_status["analysis_status"] = "failed"
            run_status["degraded_reasons"] = ["pipeline_exception"]
            log.exception("Pipeline failed for user %s: %s", user_id, e)
        finally:
            run_status["run_finished_at"] = _utc_now()
            run_status["overall_status"] = self._overall_status(run_status)
            if self.status_path:
                self._write_status_file(run_status, self.status_path)
            log.info("=" * 60)
            log.info("  INSIGHT GENERATION COMPLETE (status=%s, %d insights)",
                     run_status["overall_status"], len(run_status["insights"]))
            log.info("=" * 60)

        return run_status

    def _rewrite(self, insights: List[Insight]):
        """Tone rewrite after ranking; a failure keeps the canonical message."""
        if self.style_rewrite is None:
            return list(insights), 0
        out, failures = [], 0
        for ins in insights:
            try:
                text = self.style_rewrite(ins.message, ins.type.value)
            except Exception as e:
                log.warning("Style rewrite failed for %s, keeping canonical text: %s", ins.id, e)
                failures += 1
                out.append(ins)
                continue
            if not isinstance(text, str) or not text.strip():
                failures += 1
                out.append(ins)
                continue
            out.append(replace(ins, message=text.strip()))
        return out, failures

    @staticmethod
    def _overall_status(status: Dict[str, Any]) -> str:
        if not status.get("generation_ok", False):
            return "failed"
        if status.get("analysis_status") == "failed":
            return "failed"
        if status.get("analysis_status") == "degraded":
            return "degraded"
        return "success"

    @staticmethod
    def succeeded(status: Dict[str, Any]) -> bool:
        strict_health = os.getenv("STRICT_PIPELINE_HEALTH", "0").strip() == "1"
        if strict_health:
            return status.get("overall_status") == "success"
        return status.get("overall_status") != "failed"

    @staticmethod
    def _write_status_file(status: Dict[str, Any], path: str) -> None:
        try:
            with open(path, "w", encoding="utf-8") as fh:
                json.dump(status, fh, indent=2, ensure_ascii=False)
            log.info("Run status written to %s", path)
        except (OSError, TypeError, ValueError) as e:
            log.warning("Failed to write run status file: %s", e)
