# podmeter/api/schema.py
from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..model.report import MetricSeries, UtilizationHistory, UtilizationSummary, UtilizationReport


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DataPointModel(CamelModel):
    timestamp: str
    value: float


class SyntheticFlagsModel(CamelModel):
    cpu_usage: bool
    memory_usage: bool
    disk_usage: bool


class HistoricalDataModel(CamelModel):
    cpu_usage: List[DataPointModel]
    memory_usage: List[DataPointModel]
    disk_usage: List[DataPointModel]
    synthetic: SyntheticFlagsModel


class UtilizationModel(CamelModel):
    cpu_usage: float
    memory_usage: float
    disk_usage: float
    cpu_requests: str
    cpu_limits: str
    memory_requests: str
    memory_limits: str
    disk_requests: str
    disk_limits: str
    historical_data: HistoricalDataModel


class ContainerMetricsModel(UtilizationModel):
    name: str


class PodMetricsModel(UtilizationModel):
    containers: List[ContainerMetricsModel]


class MetricsData(CamelModel):
    metrics: PodMetricsModel


class MetricsResponse(CamelModel):
    code: int = 0
    message: str = "success"
    data: MetricsData


# --- converters ---

def _points(series: MetricSeries) -> List[DataPointModel]:
    return [DataPointModel(timestamp=p.timestamp, value=p.value) for p in series.points]


def history_to_model(h: UtilizationHistory) -> HistoricalDataModel:
    return HistoricalDataModel(
        cpu_usage=_points(h.cpu),
        memory_usage=_points(h.memory),
        disk_usage=_points(h.disk),
        synthetic=SyntheticFlagsModel(
            cpu_usage=h.cpu.is_synthetic,
            memory_usage=h.memory.is_synthetic,
            disk_usage=h.disk.is_synthetic,
        ),
    )


def _summary_fields(s: UtilizationSummary) -> dict:
    return dict(
        cpu_usage=s.cpu_pct,
        memory_usage=s.mem_pct,
        disk_usage=s.disk_pct,
        cpu_requests=s.cpu_requests,
        cpu_limits=s.cpu_limits,
        memory_requests=s.memory_requests,
        memory_limits=s.memory_limits,
        disk_requests=s.disk_requests,
        disk_limits=s.disk_limits,
        historical_data=history_to_model(s.history),
    )


def report_to_model(report: UtilizationReport) -> PodMetricsModel:
    return PodMetricsModel(
        containers=[ContainerMetricsModel(name=c.name, **_summary_fields(c)) for c in report.containers],
        **_summary_fields(report),
    )
