# podmeter/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

log = logging.getLogger(__name__)

ENV_PREFIX = "PODMETER_"

# Placeholder node disk ceiling (1 TiB). Not a measurement.
DEFAULT_ASSUMED_DISK_BYTES = 1024 ** 4
# Claims carry no limit; the limit tier is derived from the request
DEFAULT_DISK_LIMIT_RATIO = 1.2


def _parse_contexts(raw: str) -> Dict[str, str]:
    """"prod=prod-admin,dev=kind-dev" -> {"prod": "prod-admin", "dev": "kind-dev"}"""
    result: Dict[str, str] = {}
    for item in raw.split(","):
        item = item.strip()
        if not item: continue
        name, sep, context = item.partition("=")
        if not sep or not name.strip() or not context.strip():
            log.warning(f"Ignoring malformed cluster context entry: {item!r}")
            continue
        result[name.strip()] = context.strip()
    return result


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(ENV_PREFIX + key)
    if raw is None or raw == "": return default
    try:
        return float(raw)
    except ValueError:
        log.warning(f"{ENV_PREFIX + key}={raw!r} is not a number, using {default}")
        return default


@dataclass(frozen=True)
class Settings:
    kubeconfig: Optional[str] = None
    # dashboard cluster name -> kubeconfig context; unknown names use the current context
    cluster_contexts: Dict[str, str] = field(default_factory=dict)

    prometheus_url: Optional[str] = None
    prometheus_cluster_label: Optional[str] = None
    http_timeout_s: float = 20.0

    probe_timeout_s: float = 10.0
    assumed_disk_bytes: int = DEFAULT_ASSUMED_DISK_BYTES
    disk_limit_ratio: float = DEFAULT_DISK_LIMIT_RATIO

    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            kubeconfig=env.get(ENV_PREFIX + "KUBECONFIG") or None,
            cluster_contexts=_parse_contexts(env.get(ENV_PREFIX + "CLUSTER_CONTEXTS", "")),
            prometheus_url=env.get(ENV_PREFIX + "PROMETHEUS_URL") or None,
            prometheus_cluster_label=env.get(ENV_PREFIX + "PROMETHEUS_CLUSTER_LABEL") or None,
            http_timeout_s=_float(env, "HTTP_TIMEOUT", 20.0),
            probe_timeout_s=_float(env, "PROBE_TIMEOUT", 10.0),
            assumed_disk_bytes=int(_float(env, "ASSUMED_DISK_BYTES", DEFAULT_ASSUMED_DISK_BYTES)),
            disk_limit_ratio=_float(env, "DISK_LIMIT_RATIO", DEFAULT_DISK_LIMIT_RATIO),
            log_level=(env.get(ENV_PREFIX + "LOG_LEVEL") or "INFO").upper(),
        )
