from __future__ import annotations

import pytest

from podmeter.estimator.usage import (
    attribute_disk_usage, distinct_volume_usage, owner_of_path, probe_live_usage, probe_disk_usage
)
from podmeter.model.entities import UsageSample

from builders import MI, FakeSource, container, pod, claim_volume, empty_dir


@pytest.fixture
def two_container_pod():
    return pod(
        containers=[
            container("app", mounts=[("data", "/data")]),
            container("sidecar", mounts=[("cache", "/data/cache")]),
        ],
        volumes=[claim_volume("data", "data-pvc"), empty_dir("cache")],
    )


class TestOwnerOfPath:
    def test_longest_prefix_wins(self, two_container_pod) -> None:
        assert owner_of_path(two_container_pod, "/data") == "app"
        assert owner_of_path(two_container_pod, "/data/cache") == "sidecar"
        assert owner_of_path(two_container_pod, "/data/cache/blobs") == "sidecar"
        assert owner_of_path(two_container_pod, "/data/other") == "app"

    def test_prefix_must_end_on_a_path_component(self, two_container_pod) -> None:
        assert owner_of_path(two_container_pod, "/database") is None

    def test_tie_goes_to_first_container(self) -> None:
        p = pod(
            containers=[
                container("first", mounts=[("data", "/data")]),
                container("second", mounts=[("data", "/data")]),
            ],
            volumes=[claim_volume("data", "data-pvc")],
        )
        assert owner_of_path(p, "/data") == "first"


class TestDistinctVolumeUsage:
    @pytest.fixture
    def shared(self):
        return pod(
            containers=[
                container("app", mounts=[("data", "/data"), ("cache", "/cache")]),
                container("backup", mounts=[("data", "/backup"), ("cache", "/tmp/cache")]),
            ],
            volumes=[claim_volume("data", "data-pvc"), empty_dir("cache")],
        )

    def test_each_volume_counts_once(self, shared) -> None:
        disk = {"/data": 3 * MI, "/backup": 3 * MI, "/cache": MI, "/tmp/cache": MI}
        assert distinct_volume_usage(shared, disk) == {"/data": 3 * MI, "/cache": MI}

    def test_later_mount_kept_when_first_is_unmeasured(self, shared) -> None:
        assert distinct_volume_usage(shared, {"/backup": 3 * MI}) == {"/backup": 3 * MI}

    def test_foreign_paths_pass_through(self, shared) -> None:
        assert distinct_volume_usage(shared, {"/": 7}) == {"/": 7}


class TestAttributeDiskUsage:
    def test_each_path_is_attributed_once(self, two_container_pod) -> None:
        disk = {"/data": 100, "/data/cache": 50}
        result = attribute_disk_usage(two_container_pod, disk, {})
        assert result == {"app": 100.0, "sidecar": 50.0}

    def test_unmatched_bytes_follow_memory_share(self, two_container_pod) -> None:
        disk = {"/data": 100, "/data/cache": 50, "/var/log": 40}
        usage = {"app": UsageSample(mem_b=300 * MI), "sidecar": UsageSample(mem_b=100 * MI)}
        result = attribute_disk_usage(two_container_pod, disk, usage)
        assert result["app"] == pytest.approx(130.0)
        assert result["sidecar"] == pytest.approx(60.0)
        assert sum(result.values()) == pytest.approx(sum(disk.values()))

    def test_unmatched_bytes_split_evenly_without_memory(self, two_container_pod) -> None:
        result = attribute_disk_usage(two_container_pod, {"/elsewhere": 10}, {})
        assert result == {"app": 5.0, "sidecar": 5.0}

    def test_pod_without_containers(self) -> None:
        assert attribute_disk_usage(pod(), {"/data": 10}, {}) == {}


class TestProbes:
    def test_live_usage_covers_every_declared_container(self, two_container_pod) -> None:
        source = FakeSource(two_container_pod, usage={
            "app": UsageSample(cpu_m=100, mem_b=MI),
            "ghost": UsageSample(cpu_m=1),
        })
        result = probe_live_usage(source, "prod", two_container_pod)
        assert result == {"app": UsageSample(cpu_m=100, mem_b=MI), "sidecar": UsageSample()}

    def test_live_usage_failure_reads_as_zero(self, two_container_pod) -> None:
        source = FakeSource(two_container_pod, failing=("get_live_usage",))
        result = probe_live_usage(source, "prod", two_container_pod)
        assert result == {"app": UsageSample(), "sidecar": UsageSample()}

    def test_disk_probe_skipped_without_storage_mounts(self) -> None:
        p = pod(containers=[container("app")])
        source = FakeSource(p, disk={"/data": 1})
        assert probe_disk_usage(source, "prod", p) is None
        assert "probe_disk_usage" not in source.calls

    def test_empty_or_failed_disk_probe_is_unavailable(self, two_container_pod) -> None:
        assert probe_disk_usage(FakeSource(two_container_pod, disk={}), "prod", two_container_pod) is None
        assert probe_disk_usage(FakeSource(two_container_pod), "prod", two_container_pod) is None

    def test_disk_probe(self, two_container_pod) -> None:
        source = FakeSource(two_container_pod, disk={"/data": 7})
        assert probe_disk_usage(source, "prod", two_container_pod) == {"/data": 7}
