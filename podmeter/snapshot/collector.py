# podmeter/snapshot/collector.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from ..model.entities import MetricDataPoint
from ..sources.base import UsageSource
from ..types import DIMENSIONS, DISK, POD_SCOPE
from .source import PodSnapshot

log = logging.getLogger(__name__)


def _try(what: str, fn: Callable[[], Any]) -> Optional[Any]:
    try:
        return fn()
    except Exception as e:
        log.warning(f"Capture of {what} failed: {e}")
        return None


def capture_pod_snapshot(
    source: UsageSource,
    cluster: str,
    namespace: str,
    pod: str,
    now: Optional[datetime] = None,
) -> PodSnapshot:
    """
    Records one pod as seen through `source`.

    The pod spec must be readable; every other read is stored as None when it fails.
    """
    spec = source.get_pod_spec(cluster, namespace, pod)
    log.info(f"Capturing {cluster}/{namespace}/{pod} ({len(spec.containers)} containers)")

    node = None
    if spec.node_name:
        node = _try(f"node {spec.node_name}", lambda: source.get_node(cluster, spec.node_name))

    claim_sizes: Dict[str, Optional[int]] = {}
    for claim in spec.claims():
        claim_sizes[claim] = _try(f"claim {claim}", lambda: source.get_pvc_size(cluster, namespace, claim))

    history: Dict[str, Dict[str, List[MetricDataPoint]]] = {}
    scopes = [(POD_SCOPE, spec.claims())] + [(c.name, spec.mounted_claims(c)) for c in spec.containers]
    for scope, claims in scopes:
        for dim in DIMENSIONS:
            if dim == DISK and not claims: continue
            samples = _try(
                f"{dim} history of {scope or pod}",
                lambda: source.get_historical_samples(
                    cluster, namespace, pod, dim, container=scope or None, claims=claims
                ),
            )
            if samples is None: continue
            history.setdefault(scope, {})[dim] = samples

    return PodSnapshot(
        cluster=cluster,
        pod=spec,
        captured_at=(now or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H:%M:%SZ"),
        node=node,
        usage=_try("live usage", lambda: source.get_live_usage(cluster, namespace, pod)),
        disk=_try("disk usage", lambda: source.probe_disk_usage(cluster, namespace, spec)),
        claim_sizes=claim_sizes,
        history=history,
    )
