# podmeter/model/report.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .entities import MetricDataPoint
from ..types import CPU, MEMORY, DISK


@dataclass
class MetricSeries:
    """
    Trend line of one dimension.

    is_synthetic marks series generated around the current value when no
    genuine samples were available; such points carry no measurement authority.
    """
    points: List[MetricDataPoint] = field(default_factory=list)
    is_synthetic: bool = False


@dataclass
class UtilizationHistory:
    cpu: MetricSeries
    memory: MetricSeries
    disk: MetricSeries

    def by_dimension(self) -> Dict[str, MetricSeries]:
        return {CPU: self.cpu, MEMORY: self.memory, DISK: self.disk}


@dataclass
class UtilizationSummary:
    """
    Shared shape of the pod-level and container-level rows shown in the
    workload views.
    """
    cpu_pct: float
    mem_pct: float
    disk_pct: float

    cpu_requests: str
    cpu_limits: str
    memory_requests: str
    memory_limits: str
    disk_requests: str
    disk_limits: str

    history: UtilizationHistory


@dataclass
class ContainerUtilization(UtilizationSummary):
    name: str = ""


@dataclass
class UtilizationReport(UtilizationSummary):
    cluster: str = ""
    namespace: str = ""
    pod: str = ""
    containers: List[ContainerUtilization] = field(default_factory=list)
