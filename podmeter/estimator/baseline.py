# podmeter/estimator/baseline.py
from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

from ..config import DEFAULT_DISK_LIMIT_RATIO
from ..model.entities import PodSpec, ResourceBaseline, StorageBaseline, PodBaseline
from ..types import ContainerName, ClaimName, MountPath, CpuMillis, Bytes

log = logging.getLogger(__name__)


def _disk_limit(request_b: int, ratio: float) -> Bytes:
    if ratio <= 0 or request_b <= 0:
        return Bytes(0)
    return Bytes(int(round(request_b * ratio)))


def resolve_baselines(
    pod: PodSpec,
    claim_sizes: Mapping[str, Optional[int]],
    disk_limit_ratio: float = DEFAULT_DISK_LIMIT_RATIO,
) -> PodBaseline:
    """
    Declared requests/limits per container and for the whole pod.

    A claim mounted by several containers counts once at pod level. Claims
    without a known size contribute 0.
    """
    claims: Dict[ClaimName, StorageBaseline] = {}
    mounts: Dict[ContainerName, Dict[MountPath, ClaimName]] = {}
    containers: Dict[ContainerName, ResourceBaseline] = {}

    for c in pod.containers:
        by_path: Dict[MountPath, ClaimName] = {}
        for m in c.volume_mounts:
            vol = pod.volume(m.name)
            if vol is None:
                log.debug(f"{pod.namespace}/{pod.name}/{c.name}: mount {m.name} has no volume, skipped")
                continue
            if not vol.claim_name: continue

            claim = vol.claim_name
            by_path[m.mount_path] = claim
            if claim in claims: continue

            size = claim_sizes.get(claim)
            if size is None:
                log.info(f"{pod.namespace}/{pod.name}: size of claim {claim} unknown, counted as 0")
                size = 0
            claims[claim] = StorageBaseline(claim_name=claim, requested_b=Bytes(int(size)))

        mounts[c.name] = by_path
        disk_request = sum(claims[claim].requested_b for claim in set(by_path.values()))
        containers[c.name] = ResourceBaseline(
            cpu_request_m=c.cpu_request_m,
            cpu_limit_m=c.cpu_limit_m,
            mem_request_b=c.mem_request_b,
            mem_limit_b=c.mem_limit_b,
            disk_request_b=Bytes(disk_request),
            disk_limit_b=_disk_limit(disk_request, disk_limit_ratio),
        )

    disk_total = sum(s.requested_b for s in claims.values())
    total = ResourceBaseline(
        cpu_request_m=CpuMillis(sum(b.cpu_request_m for b in containers.values())),
        cpu_limit_m=CpuMillis(sum(b.cpu_limit_m for b in containers.values())),
        mem_request_b=Bytes(sum(b.mem_request_b for b in containers.values())),
        mem_limit_b=Bytes(sum(b.mem_limit_b for b in containers.values())),
        disk_request_b=Bytes(disk_total),
        disk_limit_b=_disk_limit(disk_total, disk_limit_ratio),
    )
    return PodBaseline(total=total, containers=containers, claims=claims, mounts=mounts)
