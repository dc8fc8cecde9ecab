# podmeter/api/server.py
from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException, Path
from fastapi.middleware.cors import CORSMiddleware

from ..config import Settings
from ..errors import PodNotFoundError, PodSpecUnavailableError, UnknownClusterError
from ..estimator.pipeline import estimate_pod_utilization
from ..sources.base import UsageSource
from ..sources.kube import KubeSource
from .schema import MetricsResponse, MetricsData, report_to_model

app = FastAPI(title="podmeter")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

log = logging.getLogger("uvicorn")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=1)
def _kube_source() -> KubeSource:
    return KubeSource(get_settings())


def get_source() -> UsageSource:
    return _kube_source()


@app.get("/healthz")
def healthz():
    return {"status": "ok"}


@app.get(
    "/clusters/{cluster}/namespaces/{namespace}/pods/{pod}/metrics",
    response_model=MetricsResponse,
    response_model_by_alias=True,
)
def get_pod_metrics(
    cluster: str = Path(..., min_length=1),
    namespace: str = Path(..., min_length=1),
    pod: str = Path(..., min_length=1),
    source: UsageSource = Depends(get_source),
    settings: Settings = Depends(get_settings),
):
    try:
        report = estimate_pod_utilization(source, cluster, namespace, pod, settings=settings)
    except (PodNotFoundError, UnknownClusterError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PodSpecUnavailableError as e:
        log.error(f"Metrics for {cluster}/{namespace}/{pod} failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return MetricsResponse(data=MetricsData(metrics=report_to_model(report)))
