"""
FastAPI surface for the insight engine.

Route handlers are defined here; shared utilities live in routes/helpers.py.
The engine itself performs no I/O: callers post their records and the
threshold snapshot, and get the ranked insights plus the updated snapshot.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from insight_rules import CATALOG
from routes.helpers import _generate_kwargs, _pipeline, _preview, _run_response

log = logging.getLogger("api")


# ─── App setup ─────────────────────────────────────────────

app = FastAPI(title="Insight Engine API", version="1.0.0")

_origin_env = os.getenv("FRONTEND_ORIGINS", "")
_origins = [o.strip() for o in _origin_env.split(",") if o.strip()] or [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


class GenerateRequest(BaseModel):
    user_id: str = "default"
    check_ins: List[Dict[str, Any]] = Field(default_factory=list)
    breathing_logs: List[Dict[str, Any]] = Field(default_factory=list)
    journal_entries: List[Dict[str, Any]] = Field(default_factory=list)
    goals: List[Dict[str, Any]] = Field(default_factory=list)
    window_days: int = Field(7, ge=1, le=366)
    reference_date: Optional[datetime] = None
    dismissed_insight_ids: List[str] = Field(default_factory=list)
    threshold_snapshot: Optional[Dict[str, Any]] = None
    max_count: Optional[int] = Field(None, ge=0)
    preferences: List[Dict[str, Any]] = Field(default_factory=list)
    complexity: Optional[Literal["basic", "intermediate", "advanced"]] = None
    rating_scale: Literal["unit", "five_point"] = "unit"
    include_snapshot: bool = True


# ─── Routes ────────────────────────────────────────────────

@app.get("/")
def root() -> Dict[str, Any]:
    return {"service": "insight-engine-api", "status": "ok"}


@app.get("/health-check")
def health_check() -> JSONResponse:
    return JSONResponse({"status": "Online", "message": "Online", "rules": len(CATALOG)})


@app.post("/api/v1/insights/generate")
def generate(req: GenerateRequest) -> Dict[str, Any]:
    payload = req.model_dump()
    try:
        run_status = _pipeline().run(req.user_id, **_generate_kwargs(payload))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        log.exception("Insight generation crashed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))

    if run_status.get("overall_status") == "failed":
        raise HTTPException(
            status_code=500,
            detail=", ".join(run_status.get("degraded_reasons") or []) or "generation failed",
        )

    log.info("Generated %d insights for %s: %s", len(run_status["insights"]), req.user_id,
             _preview(run_status["insights"]))
    return _run_response(run_status, include_snapshot=req.include_snapshot)
