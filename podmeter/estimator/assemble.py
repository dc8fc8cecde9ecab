# podmeter/estimator/assemble.py
from __future__ import annotations

from typing import Dict, List

from ..format import format_cpu, format_memory, format_disk
from ..model.entities import ResourceBaseline
from ..model.report import UtilizationHistory, ContainerUtilization, UtilizationReport
from .calculator import ScopeUtilization


def format_baseline(baseline: ResourceBaseline) -> Dict[str, str]:
    return {
        "cpu_requests": format_cpu(baseline.cpu_request_m),
        "cpu_limits": format_cpu(baseline.cpu_limit_m),
        "memory_requests": format_memory(baseline.mem_request_b),
        "memory_limits": format_memory(baseline.mem_limit_b),
        "disk_requests": format_disk(baseline.disk_request_b),
        "disk_limits": format_disk(baseline.disk_limit_b),
    }


def assemble_container(
    name: str,
    baseline: ResourceBaseline,
    utilization: ScopeUtilization,
    history: UtilizationHistory,
) -> ContainerUtilization:
    return ContainerUtilization(
        name=name,
        cpu_pct=utilization.cpu.pct,
        mem_pct=utilization.memory.pct,
        disk_pct=utilization.disk.pct,
        history=history,
        **format_baseline(baseline),
    )


def assemble_report(
    cluster: str,
    namespace: str,
    pod: str,
    baseline: ResourceBaseline,
    utilization: ScopeUtilization,
    history: UtilizationHistory,
    containers: List[ContainerUtilization],
) -> UtilizationReport:
    return UtilizationReport(
        cluster=cluster,
        namespace=namespace,
        pod=pod,
        cpu_pct=utilization.cpu.pct,
        mem_pct=utilization.memory.pct,
        disk_pct=utilization.disk.pct,
        history=history,
        containers=containers,
        **format_baseline(baseline),
    )
