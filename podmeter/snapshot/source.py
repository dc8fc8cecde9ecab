# podmeter/snapshot/source.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..errors import PodNotFoundError, ProbeUnavailableError
from ..model.entities import PodSpec, NodeCapacity, UsageSample, MetricDataPoint
from ..sources.base import UsageSource
from ..types import POD_SCOPE


@dataclass
class PodSnapshot:
    """
    Every collaborator answer recorded for one pod.

    None means the read failed at capture time and will fail again on replay.
    """
    cluster: str
    pod: PodSpec
    captured_at: str = ""
    node: Optional[NodeCapacity] = None
    usage: Optional[Dict[str, UsageSample]] = None
    disk: Optional[Dict[str, int]] = None
    claim_sizes: Dict[str, Optional[int]] = field(default_factory=dict)
    # scope ("" or container name) -> dimension -> samples
    history: Dict[str, Dict[str, List[MetricDataPoint]]] = field(default_factory=dict)


class SnapshotSource(UsageSource):
    """Replays recorded snapshots through the collaborator contract."""

    def __init__(self, snapshots: List[PodSnapshot]):
        self.snapshots: Dict[tuple, PodSnapshot] = {
            (s.cluster, s.pod.namespace, s.pod.name): s for s in snapshots
        }

    def _find(self, cluster: str, namespace: str, pod: str) -> PodSnapshot:
        snap = self.snapshots.get((cluster, namespace, pod))
        if snap is None:
            raise PodNotFoundError(cluster, namespace, pod)
        return snap

    def get_pod_spec(self, cluster: str, namespace: str, pod: str) -> PodSpec:
        return self._find(cluster, namespace, pod).pod

    def get_node(self, cluster: str, node_name: str) -> Optional[NodeCapacity]:
        for (c, _, _), snap in self.snapshots.items():
            if c == cluster and snap.pod.node_name == node_name and snap.node is not None:
                return snap.node
        return None

    def get_live_usage(self, cluster: str, namespace: str, pod: str) -> Dict[str, UsageSample]:
        snap = self._find(cluster, namespace, pod)
        if snap.usage is None:
            raise ProbeUnavailableError(f"No usage recorded for {namespace}/{pod}")
        return snap.usage

    def probe_disk_usage(self, cluster: str, namespace: str, pod: PodSpec) -> Dict[str, int]:
        snap = self._find(cluster, namespace, pod.name)
        if snap.disk is None:
            raise ProbeUnavailableError(f"No disk usage recorded for {namespace}/{pod.name}")
        return snap.disk

    def get_historical_samples(
        self,
        cluster: str,
        namespace: str,
        pod: str,
        dimension: str,
        container: Optional[str] = None,
        claims: Sequence[str] = (),
    ) -> List[MetricDataPoint]:
        snap = self._find(cluster, namespace, pod)
        scope = snap.history.get(container or POD_SCOPE)
        if scope is None or dimension not in scope:
            raise ProbeUnavailableError(f"No {dimension} history recorded for {namespace}/{pod}")
        return scope[dimension]

    def get_pvc_size(self, cluster: str, namespace: str, claim: str) -> Optional[int]:
        for (c, ns, _), snap in self.snapshots.items():
            if c == cluster and ns == namespace and claim in snap.claim_sizes:
                return snap.claim_sizes[claim]
        return None
