# podmeter/estimator/pipeline.py
"""
One utilization report per request.

The pod spec is read first and is the only fatal read. Everything else is
fetched concurrently under one shared deadline; a read that fails or is late
only switches its consumer to the fallback.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ..config import Settings
from ..errors import PodmeterError, PodSpecUnavailableError
from ..model.entities import MetricDataPoint, NodeCapacity, UsageSample, ResourceBaseline
from ..model.report import UtilizationHistory, UtilizationReport
from ..sources.base import UsageSource
from ..types import CPU, MEMORY, DISK, DIMENSIONS, POD_SCOPE, CpuMillis, Bytes
from .assemble import assemble_container, assemble_report
from .baseline import resolve_baselines
from .calculator import ScopeUtilization, compute_utilization
from .capacity import lookup_node_capacity
from .history import build_series
from .tiers import TierTable, DEFAULT_TIERS
from .usage import (
    probe_live_usage, probe_disk_usage, distinct_volume_usage, attribute_disk_usage, zero_usage
)

log = logging.getLogger(__name__)


def _degradable(future: Future, what: str, fallback: Any, deadline: float) -> Any:
    remaining = max(0.0, deadline - time.monotonic())
    try:
        return future.result(timeout=remaining)
    except FutureTimeout:
        log.warning(f"{what} did not answer in time, using fallback")
    except Exception as e:
        log.warning(f"{what} unavailable: {e}")
    future.cancel()
    return fallback


def _history(
    scope_history: Dict[str, Optional[List[MetricDataPoint]]],
    utilization: ScopeUtilization,
    now: datetime,
) -> UtilizationHistory:
    series = {
        dim: build_series(
            dim,
            scope_history.get(dim),
            utilization.denominator(dim).value,
            utilization.pct(dim),
            now,
        )
        for dim in DIMENSIONS
    }
    return UtilizationHistory(cpu=series[CPU], memory=series[MEMORY], disk=series[DISK])


def estimate_pod_utilization(
    source: UsageSource,
    cluster: str,
    namespace: str,
    pod: str,
    settings: Optional[Settings] = None,
    now: Optional[datetime] = None,
    tiers: TierTable = DEFAULT_TIERS,
) -> UtilizationReport:
    settings = settings or Settings()
    now = now or datetime.now(timezone.utc)

    try:
        spec = source.get_pod_spec(cluster, namespace, pod)
    except PodmeterError:
        raise
    except Exception as e:
        log.error(f"Pod spec of {cluster}/{namespace}/{pod} unavailable: {e}")
        raise PodSpecUnavailableError(f"Pod spec of {namespace}/{pod} unavailable: {e}") from e

    claims = spec.claims()
    scope_claims = {POD_SCOPE: claims}
    for c in spec.containers:
        scope_claims[c.name] = spec.mounted_claims(c)
    # disk history of a scope without claims is always synthetic
    history_keys = [
        (scope, dim)
        for scope in scope_claims
        for dim in DIMENSIONS
        if dim != DISK or scope_claims[scope]
    ]

    # one worker per submitted read
    executor = ThreadPoolExecutor(max_workers=3 + len(claims) + len(history_keys))
    try:
        deadline = time.monotonic() + settings.probe_timeout_s
        node_f = executor.submit(lookup_node_capacity, source, cluster, spec.node_name)
        usage_f = executor.submit(probe_live_usage, source, cluster, spec)
        disk_f = executor.submit(probe_disk_usage, source, cluster, spec)
        claim_fs = {
            claim: executor.submit(source.get_pvc_size, cluster, namespace, claim)
            for claim in claims
        }
        history_fs: Dict[Tuple[str, str], Future] = {
            (scope, dim): executor.submit(
                source.get_historical_samples,
                cluster, namespace, pod, dim,
                container=scope or None,
                claims=scope_claims[scope],
            )
            for scope, dim in history_keys
        }

        node: Optional[NodeCapacity] = _degradable(node_f, f"Node {spec.node_name}", None, deadline)
        usage: Dict[str, UsageSample] = _degradable(usage_f, "Live usage", zero_usage(spec), deadline)
        disk: Optional[Dict[str, int]] = _degradable(disk_f, "Disk probe", None, deadline)
        claim_sizes = {
            claim: _degradable(f, f"Claim {claim}", None, deadline) for claim, f in claim_fs.items()
        }
        history: Dict[str, Dict[str, Optional[List[MetricDataPoint]]]] = {}
        for (scope, dim), f in history_fs.items():
            label = f"{dim} history of {scope or pod}"
            history.setdefault(scope, {})[dim] = _degradable(f, label, None, deadline)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    baseline = resolve_baselines(spec, claim_sizes, settings.disk_limit_ratio)
    assumed = settings.assumed_disk_bytes
    if disk is not None:
        disk = distinct_volume_usage(spec, disk)
    attributed = attribute_disk_usage(spec, disk, usage) if disk is not None else None

    containers = []
    for c in spec.containers:
        c_baseline = baseline.containers.get(c.name, ResourceBaseline())
        c_util = compute_utilization(
            usage.get(c.name, UsageSample()),
            attributed.get(c.name, 0.0) if attributed is not None else None,
            c_baseline,
            node,
            assumed,
            tiers,
        )
        containers.append(assemble_container(
            c.name, c_baseline, c_util, _history(history.get(c.name, {}), c_util, now)
        ))

    total_usage = UsageSample(
        cpu_m=CpuMillis(sum(u.cpu_m for u in usage.values())),
        mem_b=Bytes(sum(u.mem_b for u in usage.values())),
    )
    pod_util = compute_utilization(
        total_usage,
        float(sum(disk.values())) if disk is not None else None,
        baseline.total,
        node,
        assumed,
        tiers,
    )
    log.info(
        f"{cluster}/{namespace}/{pod}: cpu={pod_util.cpu.pct:.1f}% mem={pod_util.memory.pct:.1f}% "
        f"disk={pod_util.disk.pct:.1f}%" + (" (estimated)" if pod_util.disk.estimated else "")
    )
    return assemble_report(
        cluster, namespace, pod,
        baseline.total,
        pod_util,
        _history(history.get(POD_SCOPE, {}), pod_util, now),
        containers,
    )
