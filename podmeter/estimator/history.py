# podmeter/estimator/history.py
from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from ..model.entities import MetricDataPoint
from ..model.report import MetricSeries
from ..types import CPU, MEMORY, DISK, HISTORY_POINTS
from .calculator import clamp, percent

log = logging.getLogger(__name__)

STEP = timedelta(hours=1)

# Synthetic trend: relative swing around the current value and sine period in hours
SYNTHETIC_AMPLITUDE = 0.2
SYNTHETIC_PERIODS: Dict[str, float] = {
    CPU: 3.0,
    MEMORY: 4.0,
    DISK: 6.0,
}


def format_timestamp(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_timestamp(value: str) -> Optional[datetime]:
    try:
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def normalize_samples(samples: List[MetricDataPoint], denominator: int) -> List[MetricDataPoint]:
    """Raw samples -> percentages of `denominator`, oldest first, at most one day."""
    dated = []
    for s in samples:
        ts = parse_timestamp(s.timestamp)
        if ts is None:
            log.debug(f"Skipping sample with bad timestamp {s.timestamp!r}")
            continue
        dated.append((ts, percent(s.value, denominator)))
    dated.sort(key=lambda x: x[0])
    dated = dated[-HISTORY_POINTS:]
    if not dated:
        return []

    # left-pad with the earliest value
    first_ts, first_value = dated[0]
    missing = HISTORY_POINTS - len(dated)
    padding = [(first_ts - STEP * (missing - i), first_value) for i in range(missing)]

    return [MetricDataPoint(timestamp=format_timestamp(ts), value=v) for ts, v in padding + dated]


def synthesize(dimension: str, current_pct: float, now: datetime) -> List[MetricDataPoint]:
    """
    Deterministic curve ending exactly at the current value.
    A current value of 0 gives a flat line of zeros.
    """
    period = SYNTHETIC_PERIODS.get(dimension, 4.0)
    anchor = clamp(current_pct)
    end = now.replace(microsecond=0)
    points = []
    for i in range(HISTORY_POINTS):
        age = HISTORY_POINTS - 1 - i
        value = anchor + anchor * SYNTHETIC_AMPLITUDE * math.sin(age / period)
        points.append(MetricDataPoint(timestamp=format_timestamp(end - STEP * age), value=clamp(value)))
    return points


def build_series(
    dimension: str,
    samples: Optional[List[MetricDataPoint]],
    denominator: int,
    current_pct: float,
    now: datetime,
) -> MetricSeries:
    if samples:
        points = normalize_samples(samples, denominator)
        if points:
            return MetricSeries(points=points, is_synthetic=False)
    return MetricSeries(points=synthesize(dimension, current_pct, now), is_synthetic=True)
