# podmeter/model/entities.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..types import (
    ContainerName, NodeName, ClaimName, MountPath, PodName, Namespace, CpuMillis, Bytes
)


@dataclass
class VolumeMount:
    name: str
    mount_path: MountPath
    read_only: bool = False


@dataclass
class PodVolume:
    name: str
    # Set only for claim-backed volumes
    claim_name: Optional[ClaimName] = None
    is_empty_dir: bool = False

    @property
    def storage_key(self) -> str:
        """Identity of the backing storage: the claim if any, else the volume."""
        return f"claim/{self.claim_name}" if self.claim_name else f"volume/{self.name}"


@dataclass
class ContainerSpec:
    name: ContainerName
    cpu_request_m: CpuMillis = CpuMillis(0)
    cpu_limit_m: CpuMillis = CpuMillis(0)
    mem_request_b: Bytes = Bytes(0)
    mem_limit_b: Bytes = Bytes(0)
    volume_mounts: List[VolumeMount] = field(default_factory=list)
    ready: bool = False


@dataclass
class PodSpec:
    name: PodName
    namespace: Namespace
    node_name: Optional[NodeName] = None
    phase: str = "Unknown"
    containers: List[ContainerSpec] = field(default_factory=list)
    volumes: List[PodVolume] = field(default_factory=list)

    def volume(self, name: str) -> Optional[PodVolume]:
        for v in self.volumes:
            if v.name == name:
                return v
        return None

    def container(self, name: str) -> Optional[ContainerSpec]:
        for c in self.containers:
            if c.name == name:
                return c
        return None

    def storage_mounts(self, container: ContainerSpec) -> List[Tuple[VolumeMount, PodVolume]]:
        """Claim-backed and emptyDir mounts of the container, with their volumes."""
        mounts = []
        for m in container.volume_mounts:
            vol = self.volume(m.name)
            if vol is None: continue
            if vol.claim_name or vol.is_empty_dir:
                mounts.append((m, vol))
        return mounts

    def storage_mount_paths(self, container: ContainerSpec) -> List[MountPath]:
        return [m.mount_path for m, _ in self.storage_mounts(container)]

    def mounted_claims(self, container: ContainerSpec) -> List[ClaimName]:
        claims = []
        for _, vol in self.storage_mounts(container):
            if vol.claim_name and vol.claim_name not in claims:
                claims.append(vol.claim_name)
        return claims

    def claims(self) -> List[ClaimName]:
        """Distinct claims of the pod in volume order."""
        claims = []
        for vol in self.volumes:
            if vol.claim_name and vol.claim_name not in claims:
                claims.append(vol.claim_name)
        return claims

    def exec_order(self) -> List[ContainerSpec]:
        """Ready containers first, the rest after them, each group in declaration order."""
        return [c for c in self.containers if c.ready] + [c for c in self.containers if not c.ready]


@dataclass
class NodeCapacity:
    """
    Capacity of the node a pod is bound to.

    disk_b_assumed is a placeholder ceiling, not a measurement: the node API
    exposes no authoritative disk size for pod storage.
    """
    cpu_m: CpuMillis
    mem_b: Bytes
    disk_b_assumed: Bytes = Bytes(0)


@dataclass
class UsageSample:
    cpu_m: CpuMillis = CpuMillis(0)
    mem_b: Bytes = Bytes(0)


@dataclass
class MetricDataPoint:
    timestamp: str  # RFC3339
    value: float


@dataclass
class StorageBaseline:
    claim_name: ClaimName
    requested_b: Bytes


@dataclass
class ResourceBaseline:
    """Declared (not measured) boundaries. Zero means "not declared"."""
    cpu_request_m: CpuMillis = CpuMillis(0)
    cpu_limit_m: CpuMillis = CpuMillis(0)
    mem_request_b: Bytes = Bytes(0)
    mem_limit_b: Bytes = Bytes(0)
    disk_request_b: Bytes = Bytes(0)
    disk_limit_b: Bytes = Bytes(0)


@dataclass
class PodBaseline:
    total: ResourceBaseline
    containers: Dict[ContainerName, ResourceBaseline] = field(default_factory=dict)
    claims: Dict[ClaimName, StorageBaseline] = field(default_factory=dict)
    # mount path -> claim, per container
    mounts: Dict[ContainerName, Dict[MountPath, ClaimName]] = field(default_factory=dict)
