# podmeter/estimator/capacity.py
from __future__ import annotations

import logging
from typing import Optional

from ..model.entities import NodeCapacity
from ..sources.base import UsageSource

log = logging.getLogger(__name__)


def lookup_node_capacity(source: UsageSource, cluster: str, node_name: Optional[str]) -> Optional[NodeCapacity]:
    if not node_name:
        log.info("Pod is not bound to a node, no node capacity tier")
        return None
    try:
        node = source.get_node(cluster, node_name)
    except Exception as e:
        log.warning(f"Node {node_name} unavailable: {e}")
        return None
    if node is None:
        log.info(f"Node {node_name} not found in cluster {cluster}")
    return node
