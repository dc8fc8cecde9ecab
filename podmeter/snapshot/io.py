# podmeter/snapshot/io.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..model.entities import (
    PodSpec, ContainerSpec, VolumeMount, PodVolume, NodeCapacity, UsageSample, MetricDataPoint
)
from ..types import (
    PodName, Namespace, NodeName, ContainerName, ClaimName, MountPath, CpuMillis, Bytes
)
from .source import PodSnapshot


def _points_to_list(points: List[MetricDataPoint]) -> List[Dict[str, Any]]:
    return [{"timestamp": p.timestamp, "value": float(p.value)} for p in points]


def snapshot_to_dict(snap: PodSnapshot) -> Dict[str, Any]:
    pod = snap.pod
    containers = []
    for c in pod.containers:
        containers.append({
            "name": c.name,
            "cpu_request_m": int(c.cpu_request_m),
            "cpu_limit_m": int(c.cpu_limit_m),
            "mem_request_b": int(c.mem_request_b),
            "mem_limit_b": int(c.mem_limit_b),
            "ready": c.ready,
            "volume_mounts": [
                {"name": m.name, "mount_path": m.mount_path, "read_only": m.read_only}
                for m in c.volume_mounts
            ],
        })

    node = None
    if snap.node is not None:
        node = {
            "cpu_m": int(snap.node.cpu_m),
            "mem_b": int(snap.node.mem_b),
            "disk_b_assumed": int(snap.node.disk_b_assumed),
        }

    usage = None
    if snap.usage is not None:
        usage = {k: {"cpu_m": int(v.cpu_m), "mem_b": int(v.mem_b)} for k, v in snap.usage.items()}

    return {
        "cluster": snap.cluster,
        "captured_at": snap.captured_at,
        "pod": {
            "name": pod.name,
            "namespace": pod.namespace,
            "node_name": pod.node_name,
            "phase": pod.phase,
            "containers": containers,
            "volumes": [
                {"name": v.name, "claim_name": v.claim_name, "is_empty_dir": v.is_empty_dir}
                for v in pod.volumes
            ],
        },
        "node": node,
        "usage": usage,
        "disk": dict(snap.disk) if snap.disk is not None else None,
        "claim_sizes": dict(snap.claim_sizes),
        "history": {
            scope: {dim: _points_to_list(points) for dim, points in dims.items()}
            for scope, dims in snap.history.items()
        },
    }


def _pod_from_dict(v: Dict[str, Any]) -> PodSpec:
    containers = []
    for c in v.get("containers", []):
        containers.append(ContainerSpec(
            name=ContainerName(c["name"]),
            cpu_request_m=CpuMillis(c.get("cpu_request_m", 0)),
            cpu_limit_m=CpuMillis(c.get("cpu_limit_m", 0)),
            mem_request_b=Bytes(c.get("mem_request_b", 0)),
            mem_limit_b=Bytes(c.get("mem_limit_b", 0)),
            ready=c.get("ready", False),
            volume_mounts=[
                VolumeMount(name=m["name"], mount_path=MountPath(m["mount_path"]), read_only=m.get("read_only", False))
                for m in c.get("volume_mounts", [])
            ],
        ))

    volumes = []
    for vol in v.get("volumes", []):
        claim = vol.get("claim_name")
        volumes.append(PodVolume(
            name=vol["name"],
            claim_name=ClaimName(claim) if claim else None,
            is_empty_dir=vol.get("is_empty_dir", False),
        ))

    node_name = v.get("node_name")
    return PodSpec(
        name=PodName(v["name"]),
        namespace=Namespace(v["namespace"]),
        node_name=NodeName(node_name) if node_name else None,
        phase=v.get("phase", "Unknown"),
        containers=containers,
        volumes=volumes,
    )


def snapshot_from_dict(data: Dict[str, Any]) -> PodSnapshot:
    raw_node = data.get("node")
    node: Optional[NodeCapacity] = None
    if raw_node is not None:
        node = NodeCapacity(
            cpu_m=CpuMillis(raw_node.get("cpu_m", 0)),
            mem_b=Bytes(raw_node.get("mem_b", 0)),
            disk_b_assumed=Bytes(raw_node.get("disk_b_assumed", 0)),
        )

    raw_usage = data.get("usage")
    usage = None
    if raw_usage is not None:
        usage = {
            k: UsageSample(cpu_m=CpuMillis(v.get("cpu_m", 0)), mem_b=Bytes(v.get("mem_b", 0)))
            for k, v in raw_usage.items()
        }

    raw_disk = data.get("disk")
    history = {}
    for scope, dims in (data.get("history") or {}).items():
        history[scope] = {
            dim: [MetricDataPoint(timestamp=p["timestamp"], value=float(p["value"])) for p in points]
            for dim, points in dims.items()
        }

    return PodSnapshot(
        cluster=data.get("cluster", ""),
        captured_at=data.get("captured_at", ""),
        pod=_pod_from_dict(data["pod"]),
        node=node,
        usage=usage,
        disk={k: int(b) for k, b in raw_disk.items()} if raw_disk is not None else None,
        claim_sizes={k: (int(b) if b is not None else None) for k, b in (data.get("claim_sizes") or {}).items()},
        history=history,
    )


def save_snapshot_to_file(snap: PodSnapshot, path: Path) -> None:
    data = snapshot_to_dict(snap)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True)


def load_snapshot_from_file(path: Path) -> PodSnapshot:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return snapshot_from_dict(data)
