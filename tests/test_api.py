from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from podmeter.api.server import app, get_source, get_settings
from podmeter.config import Settings
from podmeter.errors import PodSpecUnavailableError
from podmeter.model.entities import UsageSample

from builders import MI, FakeSource, container, pod

URL = "/clusters/prod/namespaces/default/pods/web-0/metrics"


@pytest.fixture
def source():
    spec = pod(name="web-0", containers=[container("web", cpu_req=250, mem_lim=200 * MI)])
    return FakeSource(spec, usage={"web": UsageSample(cpu_m=100, mem_b=150 * MI)})


@pytest.fixture
def client(source):
    app.dependency_overrides[get_source] = lambda: source
    app.dependency_overrides[get_settings] = lambda: Settings(probe_timeout_s=5.0)
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestPodMetricsEndpoint:
    def test_envelope_and_camel_case_fields(self, client) -> None:
        resp = client.get(URL)
        assert resp.status_code == 200
        body = resp.json()
        assert body["code"] == 0
        assert body["message"] == "success"

        metrics = body["data"]["metrics"]
        assert metrics["memoryUsage"] == 75.0
        assert metrics["cpuUsage"] == pytest.approx(40.0)
        assert metrics["cpuRequests"] == "250m"
        assert metrics["memoryLimits"] == "200Mi"
        assert metrics["diskRequests"] == "0Gi"
        assert len(metrics["historicalData"]["cpuUsage"]) == 24
        assert metrics["historicalData"]["synthetic"] == {
            "cpuUsage": True, "memoryUsage": True, "diskUsage": True,
        }
        assert [c["name"] for c in metrics["containers"]] == ["web"]
        assert metrics["containers"][0]["memoryUsage"] == 75.0

    def test_unknown_pod_is_404(self, client) -> None:
        resp = client.get("/clusters/prod/namespaces/default/pods/nope/metrics")
        assert resp.status_code == 404

    def test_unreadable_spec_is_502(self, client, source) -> None:
        def broken(cluster, namespace, pod):
            raise PodSpecUnavailableError("apiserver timeout")
        source.get_pod_spec = broken

        resp = client.get(URL)
        assert resp.status_code == 502
        assert "apiserver timeout" in resp.json()["detail"]

    def test_healthz(self, client) -> None:
        assert client.get("/healthz").json() == {"status": "ok"}
