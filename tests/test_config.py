from __future__ import annotations

from podmeter.config import Settings, DEFAULT_ASSUMED_DISK_BYTES, DEFAULT_DISK_LIMIT_RATIO


class TestSettingsFromEnv:
    def test_defaults(self) -> None:
        s = Settings.from_env({})
        assert s.kubeconfig is None
        assert s.cluster_contexts == {}
        assert s.prometheus_url is None
        assert s.probe_timeout_s == 10.0
        assert s.http_timeout_s == 20.0
        assert s.assumed_disk_bytes == DEFAULT_ASSUMED_DISK_BYTES
        assert s.disk_limit_ratio == DEFAULT_DISK_LIMIT_RATIO
        assert s.log_level == "INFO"

    def test_values_are_read_with_prefix(self) -> None:
        s = Settings.from_env({
            "PODMETER_KUBECONFIG": "/etc/kube/config",
            "PODMETER_CLUSTER_CONTEXTS": "prod=prod-admin, dev=kind-dev",
            "PODMETER_PROMETHEUS_URL": "http://prom:9090",
            "PODMETER_PROMETHEUS_CLUSTER_LABEL": "cluster",
            "PODMETER_PROBE_TIMEOUT": "2.5",
            "PODMETER_ASSUMED_DISK_BYTES": "1000",
            "PODMETER_DISK_LIMIT_RATIO": "0",
            "PODMETER_LOG_LEVEL": "debug",
        })
        assert s.kubeconfig == "/etc/kube/config"
        assert s.cluster_contexts == {"prod": "prod-admin", "dev": "kind-dev"}
        assert s.prometheus_url == "http://prom:9090"
        assert s.prometheus_cluster_label == "cluster"
        assert s.probe_timeout_s == 2.5
        assert s.assumed_disk_bytes == 1000
        assert s.disk_limit_ratio == 0.0
        assert s.log_level == "DEBUG"

    def test_malformed_context_entries_are_ignored(self) -> None:
        s = Settings.from_env({"PODMETER_CLUSTER_CONTEXTS": "prod=prod-admin,broken,=x,y="})
        assert s.cluster_contexts == {"prod": "prod-admin"}

    def test_bad_number_falls_back_to_default(self) -> None:
        s = Settings.from_env({"PODMETER_PROBE_TIMEOUT": "soon"})
        assert s.probe_timeout_s == 10.0
