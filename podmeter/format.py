# podmeter/format.py
"""
Human-readable rendering of declared baselines ("250m", "2", "512Mi", "1.50Gi").

Unit thresholds are explicit tables so every call site renders the same way.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

KIB = 1024
MIB = 1024 * KIB
GIB = 1024 * MIB


@dataclass(frozen=True)
class Unit:
    threshold: int  # smallest value rendered in this unit
    suffix: str
    decimals: int


@dataclass(frozen=True)
class UnitScale:
    # Largest unit first; the last unit also renders values below its threshold
    units: Tuple[Unit, ...]
    zero: str

    def render(self, value: int) -> str:
        if value == 0:
            return self.zero
        for unit in self.units:
            if value >= unit.threshold:
                break
        return f"{value / unit.threshold:.{unit.decimals}f}{unit.suffix}"


MEMORY_SCALE = UnitScale(
    units=(
        Unit(GIB, "Gi", 2),
        Unit(MIB, "Mi", 0),
        Unit(KIB, "Ki", 0),
    ),
    zero="0Mi",
)

# Same thresholds as memory, claims are usually sized in Gi
DISK_SCALE = UnitScale(units=MEMORY_SCALE.units, zero="0Gi")

CPU_CORE_THRESHOLD_M = 1000


def format_cpu(milli: int) -> str:
    """Millicores below one core, whole cores (truncated) from one core up."""
    if milli == 0:
        return "0m"
    if milli >= CPU_CORE_THRESHOLD_M:
        return f"{milli // CPU_CORE_THRESHOLD_M}"
    return f"{milli}m"


def format_memory(value_b: int) -> str:
    return MEMORY_SCALE.render(value_b)


def format_disk(value_b: int) -> str:
    return DISK_SCALE.render(value_b)
