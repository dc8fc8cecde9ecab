# podmeter/estimator/usage.py
from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional

from ..model.entities import PodSpec, UsageSample
from ..sources.base import UsageSource

log = logging.getLogger(__name__)


def zero_usage(pod: PodSpec) -> Dict[str, UsageSample]:
    return {c.name: UsageSample() for c in pod.containers}


def probe_live_usage(source: UsageSource, cluster: str, pod: PodSpec) -> Dict[str, UsageSample]:
    """Usage of every declared container; missing or failed samples read as zero."""
    result = zero_usage(pod)
    try:
        measured = source.get_live_usage(cluster, pod.namespace, pod.name)
    except Exception as e:
        log.warning(f"Live usage of {pod.namespace}/{pod.name} unavailable: {e}")
        return result
    for name, sample in measured.items():
        if name in result:
            result[name] = sample
    return result


def probe_disk_usage(source: UsageSource, cluster: str, pod: PodSpec) -> Optional[Dict[str, int]]:
    """Mount path -> bytes used; None when nothing could be measured."""
    if not any(pod.storage_mount_paths(c) for c in pod.containers):
        return None
    try:
        usage = source.probe_disk_usage(cluster, pod.namespace, pod)
    except Exception as e:
        log.warning(f"Disk probe of {pod.namespace}/{pod.name} unavailable: {e}")
        return None
    if not usage:
        return None
    return dict(usage)


def distinct_volume_usage(pod: PodSpec, disk: Mapping[str, int]) -> Dict[str, int]:
    """
    Keeps one reading per backing volume.

    A claim mounted at several paths reports the same bytes at each of them;
    only the first measured mount in container declaration order is kept.
    Paths that are no storage mount pass through.
    """
    volume_at: Dict[str, str] = {}
    for c in pod.containers:
        for m, vol in pod.storage_mounts(c):
            volume_at.setdefault(m.mount_path, vol.storage_key)

    result: Dict[str, int] = {}
    seen = set()
    for c in pod.containers:
        for m, _ in pod.storage_mounts(c):
            path = m.mount_path
            if path not in disk or path in result: continue
            key = volume_at[path]
            if key in seen:
                log.info(f"{pod.namespace}/{pod.name}: {path} repeats {key}, counted once")
                continue
            seen.add(key)
            result[path] = disk[path]

    for path, used in disk.items():
        if path not in volume_at:
            result[path] = used
    return result


def _covers(mount_path: str, path: str) -> bool:
    mount = mount_path.rstrip("/")
    if not mount:
        return True
    return path == mount or path.startswith(mount + "/")


def owner_of_path(pod: PodSpec, path: str) -> Optional[str]:
    """
    Container whose mount path is the longest path prefix of `path`.
    Ties go to the first container in declaration order.
    """
    best: Optional[str] = None
    best_len = -1
    for c in pod.containers:
        for m in c.volume_mounts:
            if not _covers(m.mount_path, path): continue
            length = len(m.mount_path.rstrip("/"))
            if length > best_len:
                best, best_len = c.name, length
    return best


def _memory_shares(names: List[str], usage: Mapping[str, UsageSample]) -> Dict[str, float]:
    total = sum(usage[n].mem_b for n in names if n in usage)
    if total <= 0:
        return {n: 1.0 / len(names) for n in names}
    return {n: (usage[n].mem_b if n in usage else 0) / total for n in names}


def attribute_disk_usage(
    pod: PodSpec,
    disk: Mapping[str, int],
    usage: Mapping[str, UsageSample],
) -> Dict[str, float]:
    """
    Splits probed bytes between containers; every probed path counts once.

    Bytes under no container's mount are an estimate: they are spread by each
    container's share of the pod's memory usage.
    """
    names = [c.name for c in pod.containers]
    result: Dict[str, float] = {n: 0.0 for n in names}
    if not names:
        return result

    unmatched = 0
    for path, used in disk.items():
        owner = owner_of_path(pod, path)
        if owner is None:
            unmatched += used
        else:
            result[owner] += used

    if unmatched:
        log.info(f"{pod.namespace}/{pod.name}: {unmatched} bytes outside container mounts, split by memory share")
        for name, share in _memory_shares(names, usage).items():
            result[name] += unmatched * share
    return result
