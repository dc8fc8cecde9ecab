# podmeter/sources/kube.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.stream import stream
from urllib3.exceptions import HTTPError as TransportError

from ..config import Settings
from ..errors import PodNotFoundError, PodSpecUnavailableError, ProbeUnavailableError, UnknownClusterError
from ..model.entities import (
    PodSpec, ContainerSpec, VolumeMount, PodVolume, NodeCapacity, UsageSample, MetricDataPoint
)
from ..quantity import parse_cpu, parse_memory
from ..types import (
    PodName, Namespace, NodeName, ContainerName, ClaimName, MountPath, Bytes
)
from .base import UsageSource
from .disk import df_command, du_command, parse_df_output, parse_du_output
from .prometheus import PrometheusHistory

log = logging.getLogger(__name__)

METRICS_GROUP = "metrics.k8s.io"
METRICS_VERSION = "v1beta1"


def _resource(resources: Any, kind: str, name: str) -> Optional[str]:
    if resources is None: return None
    values = getattr(resources, kind, None) or {}
    return values.get(name)


def pod_spec_from_api(pod: client.V1Pod) -> PodSpec:
    meta = pod.metadata
    spec = pod.spec
    status = pod.status

    ready = {s.name: bool(s.ready) for s in (getattr(status, "container_statuses", None) or [])}

    containers: List[ContainerSpec] = []
    for c in spec.containers or []:
        res = c.resources
        containers.append(ContainerSpec(
            name=ContainerName(c.name),
            cpu_request_m=parse_cpu(_resource(res, "requests", "cpu")),
            cpu_limit_m=parse_cpu(_resource(res, "limits", "cpu")),
            mem_request_b=parse_memory(_resource(res, "requests", "memory")),
            mem_limit_b=parse_memory(_resource(res, "limits", "memory")),
            volume_mounts=[
                VolumeMount(name=m.name, mount_path=MountPath(m.mount_path), read_only=bool(m.read_only))
                for m in (c.volume_mounts or [])
            ],
            ready=ready.get(c.name, False),
        ))

    volumes: List[PodVolume] = []
    for v in spec.volumes or []:
        pvc = v.persistent_volume_claim
        volumes.append(PodVolume(
            name=v.name,
            claim_name=ClaimName(pvc.claim_name) if pvc is not None else None,
            is_empty_dir=v.empty_dir is not None,
        ))

    return PodSpec(
        name=PodName(meta.name),
        namespace=Namespace(meta.namespace),
        node_name=NodeName(spec.node_name) if spec.node_name else None,
        phase=(status.phase if status is not None and status.phase else "Unknown"),
        containers=containers,
        volumes=volumes,
    )


def usage_from_metrics(item: Dict[str, Any]) -> Dict[str, UsageSample]:
    """metrics.k8s.io PodMetrics object -> per-container usage."""
    result: Dict[str, UsageSample] = {}
    for c in item.get("containers", []) or []:
        name = c.get("name")
        if not name: continue
        usage = c.get("usage", {}) or {}
        result[name] = UsageSample(
            cpu_m=parse_cpu(usage.get("cpu")),
            mem_b=parse_memory(usage.get("memory")),
        )
    return result


class KubeSource(UsageSource):
    """Reads pods, nodes, claims and usage through the Kubernetes API."""

    def __init__(self, settings: Settings, history: Optional[PrometheusHistory] = None):
        self.settings = settings
        self.history = history
        if self.history is None and settings.prometheus_url:
            self.history = PrometheusHistory(
                settings.prometheus_url,
                cluster_label=settings.prometheus_cluster_label,
                timeout_s=settings.http_timeout_s,
            )
        self._clients: Dict[str, client.ApiClient] = {}

    # --- clients ---

    def _new_client(self, cluster: str) -> client.ApiClient:
        context = self.settings.cluster_contexts.get(cluster)
        if self.settings.cluster_contexts and context is None:
            raise UnknownClusterError(f"Cluster {cluster!r} is not configured")

        if context is None and not self.settings.kubeconfig:
            try:
                config.load_incluster_config()
                return client.ApiClient()
            except config.ConfigException:
                return config.new_client_from_config()
        return config.new_client_from_config(config_file=self.settings.kubeconfig, context=context)

    def _api_client(self, cluster: str) -> client.ApiClient:
        if cluster in self._clients:
            return self._clients[cluster]
        api = self._new_client(cluster)
        log.info(f"Kubernetes client for cluster {cluster} ready")
        self._clients[cluster] = api
        return api

    def _core(self, cluster: str) -> client.CoreV1Api:
        return client.CoreV1Api(self._api_client(cluster))

    # --- UsageSource ---

    def get_pod_spec(self, cluster: str, namespace: str, pod: str) -> PodSpec:
        try:
            obj = self._core(cluster).read_namespaced_pod(name=pod, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                raise PodNotFoundError(cluster, namespace, pod) from e
            raise PodSpecUnavailableError(f"Failed to read pod {namespace}/{pod}: {e.reason}") from e
        except (TransportError, OSError) as e:
            raise PodSpecUnavailableError(f"Failed to read pod {namespace}/{pod}: {e}") from e
        return pod_spec_from_api(obj)

    def get_node(self, cluster: str, node_name: str) -> Optional[NodeCapacity]:
        try:
            node = self._core(cluster).read_node(name=node_name)
        except ApiException as e:
            if e.status == 404:
                return None
            raise

        capacity = (node.status.capacity or {}) if node.status else {}
        conditions = {c.type: c.status for c in ((node.status.conditions if node.status else None) or [])}
        disk = self.settings.assumed_disk_bytes if conditions.get("DiskPressure") != "True" else 0
        return NodeCapacity(
            cpu_m=parse_cpu(capacity.get("cpu")),
            mem_b=parse_memory(capacity.get("memory")),
            disk_b_assumed=Bytes(disk),
        )

    def get_live_usage(self, cluster: str, namespace: str, pod: str) -> Dict[str, UsageSample]:
        api = client.CustomObjectsApi(self._api_client(cluster))
        try:
            item = api.get_namespaced_custom_object(
                METRICS_GROUP, METRICS_VERSION, namespace, "pods", pod
            )
        except ApiException as e:
            raise ProbeUnavailableError(f"metrics API has no sample for {namespace}/{pod}: {e.reason}") from e
        return usage_from_metrics(item)

    def _exec(self, cluster: str, namespace: str, pod: str, container: str, command: List[str]) -> str:
        # stream() patches the client it is given, so exec never shares the cached one
        api = self._new_client(cluster)
        try:
            resp = stream(
                client.CoreV1Api(api).connect_get_namespaced_pod_exec,
                pod,
                namespace,
                container=container,
                command=command,
                stderr=True,
                stdin=False,
                stdout=True,
                tty=False,
                _preload_content=False,
            )
            try:
                resp.run_forever(timeout=self.settings.probe_timeout_s)
                out = resp.read_stdout() or ""
                err = resp.read_stderr() or ""
                code = resp.returncode
            finally:
                resp.close()
        finally:
            api.close()
        if code not in (0, None):
            raise ProbeUnavailableError(f"{command[0]} exited with {code} in {pod}/{container}: {err.strip()}")
        return out

    def _du(self, cluster: str, pod: PodSpec, container: ContainerSpec, path: str) -> Optional[int]:
        try:
            return parse_du_output(self._exec(cluster, pod.namespace, pod.name, container.name, du_command(path)))
        except (ApiException, ProbeUnavailableError) as e:
            log.info(f"du {path} failed in {pod.name}/{container.name}: {e}")
            return None

    def _measure_container(
        self,
        cluster: str,
        pod: PodSpec,
        container: ContainerSpec,
        claim_paths: List[str],
        dir_paths: List[str],
    ) -> Dict[str, int]:
        """df for claim mounts, du for emptyDirs and for claims df could not answer."""
        usage: Dict[str, int] = {}
        if claim_paths:
            try:
                out = self._exec(cluster, pod.namespace, pod.name, container.name, df_command(claim_paths))
                usage.update(parse_df_output(out))
            except (ApiException, ProbeUnavailableError) as e:
                log.info(f"df unavailable in {pod.name}/{container.name}: {e}")

        for path in [p for p in claim_paths if p not in usage] + dir_paths:
            size = self._du(cluster, pod, container, path)
            if size:
                usage[path] = size
        return usage

    def probe_disk_usage(self, cluster: str, namespace: str, pod: PodSpec) -> Dict[str, int]:
        if pod.phase != "Running":
            raise ProbeUnavailableError(f"Pod {namespace}/{pod.name} is {pod.phase}, cannot exec")

        usage: Dict[str, int] = {}
        measured = set()
        for container in pod.exec_order():
            pending = [(m, vol) for m, vol in pod.storage_mounts(container) if vol.storage_key not in measured]
            if not pending: continue
            claim_paths = [m.mount_path for m, vol in pending if vol.claim_name]
            dir_paths = [m.mount_path for m, vol in pending if not vol.claim_name]
            result = self._measure_container(cluster, pod, container, claim_paths, dir_paths)
            for m, vol in pending:
                if m.mount_path in result:
                    measured.add(vol.storage_key)
            for path, used in result.items():
                usage.setdefault(path, used)

        if not usage:
            raise ProbeUnavailableError(f"No disk usage could be measured in {namespace}/{pod.name}")
        return usage

    def get_historical_samples(
        self,
        cluster: str,
        namespace: str,
        pod: str,
        dimension: str,
        container: Optional[str] = None,
        claims: Sequence[str] = (),
    ) -> List[MetricDataPoint]:
        if self.history is None:
            raise ProbeUnavailableError("No Prometheus endpoint configured")
        return self.history.fetch(cluster, namespace, pod, dimension, container=container, claims=claims)

    def get_pvc_size(self, cluster: str, namespace: str, claim: str) -> Optional[int]:
        try:
            pvc = self._core(cluster).read_namespaced_persistent_volume_claim(name=claim, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            raise
        requests = (pvc.spec.resources.requests or {}) if pvc.spec and pvc.spec.resources else {}
        storage = requests.get("storage")
        if storage is None:
            return None
        return int(parse_memory(storage))
