# podmeter/estimator/calculator.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..model.entities import ResourceBaseline, NodeCapacity, UsageSample
from ..types import CPU, MEMORY, DISK
from .tiers import Denominator, TierTable, DEFAULT_TIERS, resolve_denominator


def clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def percent(used: Optional[float], denominator: int) -> float:
    """used / denominator as a percentage in [0, 100]; 0 without a denominator."""
    if used is None:
        return 0.0
    if denominator <= 0:
        return 0.0
    return clamp(float(used) / float(denominator) * 100.0)


@dataclass
class DimensionUtilization:
    pct: float
    denominator: Denominator
    # disk only: percentage derived from memory, not measured
    estimated: bool = False


@dataclass
class ScopeUtilization:
    cpu: DimensionUtilization
    memory: DimensionUtilization
    disk: DimensionUtilization

    def denominator(self, dimension: str) -> Denominator:
        return {CPU: self.cpu, MEMORY: self.memory, DISK: self.disk}[dimension].denominator

    def pct(self, dimension: str) -> float:
        return {CPU: self.cpu, MEMORY: self.memory, DISK: self.disk}[dimension].pct


def compute_utilization(
    usage: UsageSample,
    disk_used_b: Optional[float],
    baseline: ResourceBaseline,
    node: Optional[NodeCapacity],
    assumed_disk_b: int = 0,
    tiers: TierTable = DEFAULT_TIERS,
) -> ScopeUtilization:
    """
    Utilization of one scope (a container or the whole pod).

    disk_used_b=None means disk was not measured; disk is then estimated from
    the memory percentage scaled by the weight of the resolved disk tier.
    """
    cpu_den = resolve_denominator(CPU, baseline, node, assumed_disk_b, tiers)
    mem_den = resolve_denominator(MEMORY, baseline, node, assumed_disk_b, tiers)
    disk_den = resolve_denominator(DISK, baseline, node, assumed_disk_b, tiers)

    cpu = DimensionUtilization(percent(usage.cpu_m, cpu_den.value), cpu_den)
    memory = DimensionUtilization(percent(usage.mem_b, mem_den.value), mem_den)

    if disk_used_b is not None:
        disk = DimensionUtilization(percent(disk_used_b, disk_den.value), disk_den)
    elif disk_den.resolved:
        disk = DimensionUtilization(clamp(memory.pct * disk_den.weight), disk_den, estimated=True)
    else:
        disk = DimensionUtilization(0.0, disk_den, estimated=True)

    return ScopeUtilization(cpu=cpu, memory=memory, disk=disk)
