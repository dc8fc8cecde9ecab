# podmeter/errors.py
from __future__ import annotations


class PodmeterError(Exception):
    pass


class PodSpecUnavailableError(PodmeterError):
    """The pod specification could not be read. No partial report is possible."""


class PodNotFoundError(PodSpecUnavailableError, LookupError):
    def __init__(self, cluster: str, namespace: str, pod: str):
        super().__init__(f"Pod {namespace}/{pod} not found in cluster {cluster}")
        self.cluster = cluster
        self.namespace = namespace
        self.pod = pod


class ProbeUnavailableError(PodmeterError):
    """A best-effort source (metrics API, exec, Prometheus) gave no answer."""


class UnknownClusterError(PodmeterError, ValueError):
    pass
