# podmeter/types.py
from __future__ import annotations

from typing import NewType, Tuple


# Identifiers / names
Namespace = NewType("Namespace", str)
PodName = NewType("PodName", str)
ContainerName = NewType("ContainerName", str)
NodeName = NewType("NodeName", str)
ClaimName = NewType("ClaimName", str)
MountPath = NewType("MountPath", str)

# Resources
CpuMillis = NewType("CpuMillis", int)  # milliCPU
Bytes = NewType("Bytes", int)          # bytes


# Resource dimensions, also the metric names of historical sample series
CPU = "cpu"
MEMORY = "memory"
DISK = "disk"

DIMENSIONS: Tuple[str, ...] = (CPU, MEMORY, DISK)

# Trailing window of the trend line: one point per hour
HISTORY_POINTS = 24

# Scope key of whole-pod series; containers use their own name
POD_SCOPE = ""
