from __future__ import annotations

from datetime import datetime, timezone

import pytest

from podmeter.errors import PodNotFoundError, ProbeUnavailableError
from podmeter.model.entities import NodeCapacity, UsageSample, MetricDataPoint
from podmeter.snapshot.collector import capture_pod_snapshot
from podmeter.snapshot.io import (
    snapshot_to_dict, snapshot_from_dict, save_snapshot_to_file, load_snapshot_from_file
)
from podmeter.snapshot.source import PodSnapshot, SnapshotSource
from podmeter.types import CPU, MEMORY

from builders import MI, GI, FakeSource, container, pod, claim_volume, empty_dir

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
SAMPLE = MetricDataPoint(timestamp="2026-03-01T11:00:00Z", value=42.0)


@pytest.fixture
def spec():
    return pod(
        name="db-0",
        containers=[container("db", cpu_req=500, mem_lim=GI, mounts=[("data", "/data"), ("tmp", "/tmp")])],
        volumes=[claim_volume("data", "data-db-0"), empty_dir("tmp")],
    )


@pytest.fixture
def snapshot(spec):
    return PodSnapshot(
        cluster="prod",
        pod=spec,
        captured_at="2026-03-01T12:00:00Z",
        node=NodeCapacity(cpu_m=4000, mem_b=16 * GI, disk_b_assumed=1024 * GI),
        usage={"db": UsageSample(cpu_m=120, mem_b=300 * MI)},
        disk=None,
        claim_sizes={"data-db-0": 20 * GI, "gone": None},
        history={"": {MEMORY: [SAMPLE]}},
    )


class TestSnapshotIo:
    def test_dict_round_trip(self, snapshot) -> None:
        assert snapshot_from_dict(snapshot_to_dict(snapshot)) == snapshot

    def test_file_round_trip(self, snapshot, tmp_path) -> None:
        path = tmp_path / "db-0.json"
        save_snapshot_to_file(snapshot, path)
        assert load_snapshot_from_file(path) == snapshot


class TestSnapshotSource:
    def test_replays_recorded_answers(self, snapshot) -> None:
        source = SnapshotSource([snapshot])
        assert source.get_pod_spec("prod", "default", "db-0") is snapshot.pod
        assert source.get_node("prod", "node-1") == snapshot.node
        assert source.get_live_usage("prod", "default", "db-0")["db"].cpu_m == 120
        assert source.get_pvc_size("prod", "default", "data-db-0") == 20 * GI
        assert source.get_pvc_size("prod", "default", "gone") is None
        assert source.get_historical_samples("prod", "default", "db-0", MEMORY) == [SAMPLE]

    def test_missing_answers_stay_unavailable(self, snapshot) -> None:
        source = SnapshotSource([snapshot])
        with pytest.raises(ProbeUnavailableError):
            source.probe_disk_usage("prod", "default", snapshot.pod)
        with pytest.raises(ProbeUnavailableError):
            source.get_historical_samples("prod", "default", "db-0", CPU)
        with pytest.raises(ProbeUnavailableError):
            source.get_historical_samples("prod", "default", "db-0", MEMORY, container="db")

    def test_unknown_pod(self, snapshot) -> None:
        with pytest.raises(PodNotFoundError):
            SnapshotSource([snapshot]).get_pod_spec("dev", "default", "db-0")


class TestCapture:
    def test_records_answers_and_failures(self, spec) -> None:
        source = FakeSource(
            spec,
            node=NodeCapacity(cpu_m=4000, mem_b=16 * GI),
            usage={"db": UsageSample(cpu_m=10)},
            pvc={"data-db-0": 20 * GI},
            history={("db", CPU): [SAMPLE]},
            failing=("probe_disk_usage",),
        )
        snap = capture_pod_snapshot(source, "prod", "default", "db-0", now=NOW)

        assert snap.captured_at == "2026-03-01T12:00:00Z"
        assert snap.pod is spec
        assert snap.node.cpu_m == 4000
        assert snap.usage == {"db": UsageSample(cpu_m=10)}
        assert snap.disk is None
        assert snap.claim_sizes == {"data-db-0": 20 * GI}
        assert snap.history == {"db": {CPU: [SAMPLE]}}

    def test_pod_spec_is_required(self, spec) -> None:
        with pytest.raises(PodNotFoundError):
            capture_pod_snapshot(FakeSource(spec), "prod", "default", "other")
