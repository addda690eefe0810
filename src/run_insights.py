"""
Insight Generation: command-line runner
=======================================
Reads a JSON file of records, runs one generation cycle and prints the
ranked insights as JSON.

The records file holds any of: check_ins, breathing_logs, journal_entries,
goals, dismissed_insight_ids, preferences.

Usage:
    python run_insights.py records.json
    python run_insights.py records.json --snapshot thresholds.json   # read + write back
    python run_insights.py records.json --days 14 --reference-date 2026-03-01
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from insight_engine import InsightEngine
from pipeline.generation_pipeline import InsightGenerationPipeline

load_dotenv()

log = logging.getLogger("run_insights")

RECORD_KEYS = ("check_ins", "breathing_logs", "journal_entries", "goals",
               "dismissed_insight_ids", "preferences")


def _load_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)


def _load_snapshot(path: Optional[str]) -> Optional[Dict[str, Any]]:
    if not path:
        return None
    try:
        return _load_json(path)
    except FileNotFoundError:
        log.info("No snapshot at %s yet; starting from baseline thresholds", path)
    except (OSError, json.JSONDecodeError) as e:
        log.warning("Unreadable snapshot %s (%s); starting from baseline thresholds", path, e)
    return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate personalized insights from a records file")
    parser.add_argument("records", help="JSON file with check_ins / breathing_logs / journal_entries")
    parser.add_argument("--snapshot", help="Threshold snapshot JSON (read, then overwritten with the update)")
    parser.add_argument("--user", default="default", help="User id (default: default)")
    parser.add_argument("--days", type=int, default=7, help="Window length in days (default: 7)")
    parser.add_argument("--reference-date", help="End of the window (ISO date/time, default: now)")
    parser.add_argument("--max-count", type=int, help="Return at most this many insights")
    parser.add_argument("--complexity", choices=["basic", "intermediate", "advanced"],
                        help="Hide insight types above this level")
    parser.add_argument("--rating-scale", choices=["unit", "five_point"], default="unit",
                        help="Scale of stress/focus ratings in the records (default: unit)")
    parser.add_argument("--workers", type=int, help="Evaluate rules on this many threads")
    parser.add_argument("--status-path", help="Write the machine-readable run status here")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    try:
        records = _load_json(args.records)
    except (OSError, json.JSONDecodeError) as e:
        log.error("Could not read records file %s: %s", args.records, e)
        return 2
    if not isinstance(records, dict):
        log.error("Records file must hold a JSON object, got %s", type(records).__name__)
        return 2

    kwargs: Dict[str, Any] = {k: records[k] for k in RECORD_KEYS if records.get(k) is not None}
    kwargs.update(
        window_days=args.days,
        threshold_snapshot=_load_snapshot(args.snapshot),
        max_count=args.max_count,
        complexity=args.complexity,
        rating_scale=args.rating_scale,
    )
    if args.reference_date:
        kwargs["reference_date"] = args.reference_date

    pipeline = InsightGenerationPipeline(
        engine=InsightEngine(max_workers=args.workers),
        status_path=args.status_path,
    )
    try:
        status = pipeline.run(args.user, **kwargs)
    except ValueError as e:
        log.error("Invalid input: %s", e)
        return 2

    if args.snapshot and status.get("threshold_snapshot"):
        with open(args.snapshot, "w", encoding="utf-8") as fh:
            json.dump(status["threshold_snapshot"], fh, indent=2)
        log.info("Threshold snapshot written to %s", args.snapshot)

    json.dump({
        "status": status["overall_status"],
        "degraded_reasons": status["degraded_reasons"],
        "summary": status["summary"],
        "insights": status["insights"],
    }, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0 if InsightGenerationPipeline.succeeded(status) else 1


if __name__ == "__main__":
    sys.exit(main())
