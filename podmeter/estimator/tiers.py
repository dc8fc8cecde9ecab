# podmeter/estimator/tiers.py
"""
Fallback order of utilization denominators.

For each dimension the first tier with a positive value wins. The same table
normalizes current values and historical samples, so both always agree on
what 100% means.

`weight` only matters for disk when no disk measurement exists: the disk
percentage is then estimated as memory percentage * weight of the disk tier
that resolved.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..model.entities import ResourceBaseline, NodeCapacity
from ..types import CPU, MEMORY, DISK

LIMIT = "limit"
REQUEST = "request"
NODE = "node"
ASSUMED = "assumed"


@dataclass(frozen=True)
class Tier:
    source: str
    weight: float = 1.0


@dataclass(frozen=True)
class Denominator:
    source: Optional[str]  # None: no tier resolved
    value: int = 0
    weight: float = 0.0

    @property
    def resolved(self) -> bool:
        return self.source is not None


UNRESOLVED = Denominator(source=None)

TierTable = Dict[str, Tuple[Tier, ...]]

DEFAULT_TIERS: TierTable = {
    CPU: (Tier(LIMIT), Tier(REQUEST), Tier(NODE)),
    MEMORY: (Tier(LIMIT), Tier(REQUEST), Tier(NODE)),
    DISK: (Tier(LIMIT, 0.8), Tier(REQUEST, 0.9), Tier(NODE, 0.5), Tier(ASSUMED, 0.5)),
}


def tier_values(
    dimension: str,
    baseline: ResourceBaseline,
    node: Optional[NodeCapacity],
    assumed_disk_b: int = 0,
) -> Dict[str, int]:
    if dimension == CPU:
        return {
            LIMIT: int(baseline.cpu_limit_m),
            REQUEST: int(baseline.cpu_request_m),
            NODE: int(node.cpu_m) if node else 0,
        }
    if dimension == MEMORY:
        return {
            LIMIT: int(baseline.mem_limit_b),
            REQUEST: int(baseline.mem_request_b),
            NODE: int(node.mem_b) if node else 0,
        }
    if dimension == DISK:
        return {
            LIMIT: int(baseline.disk_limit_b),
            REQUEST: int(baseline.disk_request_b),
            NODE: int(node.disk_b_assumed) if node else 0,
            ASSUMED: int(assumed_disk_b),
        }
    raise ValueError(f"Unknown dimension: {dimension}")


def resolve_denominator(
    dimension: str,
    baseline: ResourceBaseline,
    node: Optional[NodeCapacity],
    assumed_disk_b: int = 0,
    tiers: TierTable = DEFAULT_TIERS,
) -> Denominator:
    values = tier_values(dimension, baseline, node, assumed_disk_b)
    for tier in tiers[dimension]:
        value = values.get(tier.source, 0)
        if value > 0:
            return Denominator(source=tier.source, value=value, weight=tier.weight)
    return UNRESOLVED
