# podmeter/sources/prometheus.py
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone, timedelta
from typing import Dict, List, Optional, Sequence

import requests

from ..errors import ProbeUnavailableError
from ..model.entities import MetricDataPoint
from ..types import CPU, MEMORY, DISK, HISTORY_POINTS

log = logging.getLogger(__name__)

# PromQL per dimension; {sel} is the label selector of the pod / container,
# or of the claims for disk.
QUERIES: Dict[str, str] = {
    # cores -> millicores
    CPU: 'sum(rate(container_cpu_usage_seconds_total{{{sel}}}[5m])) * 1000',
    MEMORY: 'sum(container_memory_working_set_bytes{{{sel}}})',
    DISK: 'sum(kubelet_volume_stats_used_bytes{{{sel}}})',
}

STEP = timedelta(hours=1)


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def build_selector(
    namespace: str,
    pod: str,
    container: Optional[str] = None,
    cluster_label: Optional[str] = None,
    cluster: Optional[str] = None,
) -> str:
    parts = [f'namespace="{_escape(namespace)}"', f'pod="{_escape(pod)}"']
    if container:
        parts.append(f'container="{_escape(container)}"')
    else:
        parts.extend(['container!=""', 'container!="POD"'])
    if cluster_label and cluster:
        parts.append(f'{cluster_label}="{_escape(cluster)}"')
    return ", ".join(parts)


def build_claim_selector(
    namespace: str,
    claims: Sequence[str],
    cluster_label: Optional[str] = None,
    cluster: Optional[str] = None,
) -> str:
    """Selector of the volume stats of `claims`; dots are literal in the regex."""
    pattern = "|".join(_escape(c).replace(".", "\\\\.") for c in claims)
    parts = [f'namespace="{_escape(namespace)}"', f'persistentvolumeclaim=~"{pattern}"']
    if cluster_label and cluster:
        parts.append(f'{cluster_label}="{_escape(cluster)}"')
    return ", ".join(parts)


def _rfc3339(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class PrometheusHistory:
    """Trailing-day samples from a Prometheus-compatible query_range API."""

    def __init__(
        self,
        base_url: str,
        cluster_label: Optional[str] = None,
        timeout_s: float = 20.0,
        session: Optional[requests.Session] = None,
    ):
        self.url = base_url.rstrip("/") + "/api/v1/query_range"
        self.cluster_label = cluster_label
        self.timeout_s = timeout_s
        self.session = session or requests.Session()

    def fetch(
        self,
        cluster: str,
        namespace: str,
        pod: str,
        dimension: str,
        container: Optional[str] = None,
        claims: Sequence[str] = (),
        now: Optional[datetime] = None,
    ) -> List[MetricDataPoint]:
        template = QUERIES.get(dimension)
        if template is None:
            raise ValueError(f"Unknown dimension: {dimension}")

        if dimension == DISK:
            if not claims:
                raise ProbeUnavailableError(f"No claims to read disk history of {namespace}/{pod}")
            sel = build_claim_selector(namespace, claims, self.cluster_label, cluster)
        else:
            sel = build_selector(namespace, pod, container, self.cluster_label, cluster)
        query = template.format(sel=sel)
        end = (now or datetime.now(timezone.utc)).replace(minute=0, second=0, microsecond=0)
        start = end - STEP * (HISTORY_POINTS - 1)
        params = {
            "query": query,
            "start": int(start.timestamp()),
            "end": int(end.timestamp()),
            "step": int(STEP.total_seconds()),
        }

        log.info(f"Querying {dimension} history for {namespace}/{pod}" + (f"/{container}" if container else ""))
        try:
            resp = self.session.get(self.url, params=params, timeout=self.timeout_s)
            resp.raise_for_status()
            body = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise ProbeUnavailableError(f"Prometheus query failed: {e}") from e

        if body.get("status") != "success":
            raise ProbeUnavailableError(f"Prometheus returned status {body.get('status')}: {body.get('error')}")

        points: List[MetricDataPoint] = []
        for series in body.get("data", {}).get("result", []):
            for ts, raw in series.get("values", []):
                try:
                    value = float(raw)
                    stamp = _rfc3339(float(ts))
                except (TypeError, ValueError):
                    continue
                if math.isnan(value): continue
                points.append(MetricDataPoint(timestamp=stamp, value=value))
            # sum() yields a single series
            break
        return points
