# podmeter/sources/base.py
"""Narrow read contract the estimator has with the orchestration APIs."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from ..model.entities import PodSpec, NodeCapacity, UsageSample, MetricDataPoint


class UsageSource(ABC):
    """
    Every method is a single read, attempted once per request.

    get_pod_spec is foundational and raises PodNotFoundError /
    PodSpecUnavailableError. The other reads may raise anything; the
    estimator treats their failures as "signal unavailable".
    """

    @abstractmethod
    def get_pod_spec(self, cluster: str, namespace: str, pod: str) -> PodSpec:
        ...

    @abstractmethod
    def get_node(self, cluster: str, node_name: str) -> Optional[NodeCapacity]:
        """Capacity of the node; None if the node is unknown."""
        ...

    @abstractmethod
    def get_live_usage(self, cluster: str, namespace: str, pod: str) -> Dict[str, UsageSample]:
        """Container name -> point-in-time usage."""
        ...

    @abstractmethod
    def probe_disk_usage(self, cluster: str, namespace: str, pod: PodSpec) -> Dict[str, int]:
        """Mount path -> bytes used inside the pod's volumes."""
        ...

    @abstractmethod
    def get_historical_samples(
        self,
        cluster: str,
        namespace: str,
        pod: str,
        dimension: str,
        container: Optional[str] = None,
        claims: Sequence[str] = (),
    ) -> List[MetricDataPoint]:
        """
        Raw samples over the trailing day: CPU in millicores, memory and disk
        in bytes. container=None means the whole pod. Disk is the used bytes
        of `claims`, the volumes mounted by that scope.
        """
        ...

    @abstractmethod
    def get_pvc_size(self, cluster: str, namespace: str, claim: str) -> Optional[int]:
        """Requested storage of the claim in bytes; None if the claim is missing."""
        ...
