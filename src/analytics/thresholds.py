"""Adaptive per-user thresholds with bounded EMA learning."""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Mapping, Optional, Tuple

import numpy as np

from insight_config import HISTORY_LIMIT, LEARNING_RATE, THRESHOLD_BANDS

log = logging.getLogger("thresholds")


@dataclass
class AdaptiveThreshold:
    name: str
    current_value: float
    baseline_value: float
    min_value: float
    max_value: float
    learning_rate: float = LEARNING_RATE
    history: Deque[float] = field(default_factory=lambda: deque(maxlen=HISTORY_LIMIT))

    @classmethod
    def from_band(cls, name: str, band: Tuple[float, float, float]) -> "AdaptiveThreshold":
        baseline, lo, hi = band
        return cls(name=name, current_value=baseline, baseline_value=baseline,
                   min_value=lo, max_value=hi)

    def update(self, sample: float) -> float:
        blended = (1.0 - self.learning_rate) * self.current_value + self.learning_rate * sample
        self.current_value = min(self.max_value, max(self.min_value, blended))
        self.history.append(float(sample))
        return self.current_value

    def std_dev(self) -> float:
        # sample std (n-1) over the learning history
        if len(self.history) <= 1:
            return 0.0
        return float(np.std(np.asarray(self.history, dtype=np.float64), ddof=1))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_value": self.current_value,
            "baseline_value": self.baseline_value,
            "min_value": self.min_value,
            "max_value": self.max_value,
            "history": list(self.history),
        }


def _finite(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    return num if math.isfinite(num) else None


class AdaptiveThresholdStore:
    """
    Named thresholds for one user.  The band (baseline, min, max) always
    comes from the registry; a snapshot only restores the learned state.
    """

    def __init__(self, bands: Optional[Mapping[str, Tuple[float, float, float]]] = None):
        self.bands: Dict[str, Tuple[float, float, float]] = dict(bands or THRESHOLD_BANDS)
        self._thresholds: Dict[str, AdaptiveThreshold] = {
            name: AdaptiveThreshold.from_band(name, band) for name, band in self.bands.items()
        }

    def __contains__(self, name: str) -> bool:
        return name in self._thresholds

    def threshold(self, name: str) -> AdaptiveThreshold:
        return self._thresholds[name]

    def get(self, name: str) -> float:
        t = self._thresholds.get(name)
        if t is not None:
            return t.current_value
        band = self.bands.get(name) or THRESHOLD_BANDS.get(name)
        if band is None:
            raise KeyError(f"No threshold registered under {name!r}")
        return band[0]

    def update(self, name: str, sample: float) -> float:
        if name not in self._thresholds:
            raise KeyError(f"No threshold registered under {name!r}")
        if _finite(sample) is None:
            log.warning("Ignoring non-finite sample for threshold %s: %r", name, sample)
            return self._thresholds[name].current_value
        return self._thresholds[name].update(float(sample))

    def std_dev(self, name: str) -> float:
        t = self._thresholds.get(name)
        return t.std_dev() if t is not None else 0.0

    def values(self) -> Dict[str, float]:
        return {name: t.current_value for name, t in self._thresholds.items()}

    # ─── Snapshot in / out ─────────────────────────────────

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        """JSON-safe state for the caller to persist."""
        return {name: t.to_dict() for name, t in self._thresholds.items()}

    @classmethod
    def from_snapshot(
        cls,
        snapshot: Any,
        bands: Optional[Mapping[str, Tuple[float, float, float]]] = None,
    ) -> "AdaptiveThresholdStore":
        store = cls(bands)
        if snapshot is None:
            return store
        if not isinstance(snapshot, Mapping):
            log.warning("Threshold snapshot is %s, not a mapping; cold start", type(snapshot).__name__)
            return store

        for name, state in snapshot.items():
            if name not in store._thresholds:
                log.info("   Dropping unknown threshold %r from snapshot", name)
                continue
            restored = store._restore(name, state)
            if restored is None:
                log.warning("Corrupt snapshot entry for %s; cold start at baseline", name)
                continue
            store._thresholds[name] = restored
        return store

    def _restore(self, name: str, state: Any) -> Optional[AdaptiveThreshold]:
        if not isinstance(state, Mapping):
            return None
        current = _finite(state.get("current_value"))
        if current is None:
            return None
        raw_history = state.get("history", [])
        if not isinstance(raw_history, (list, tuple)):
            return None
        history = [_finite(v) for v in raw_history]
        if any(v is None for v in history):
            return None

        t = AdaptiveThreshold.from_band(name, self.bands[name])
        t.current_value = min(t.max_value, max(t.min_value, current))
        t.history.extend(history[-HISTORY_LIMIT:])
        return t
