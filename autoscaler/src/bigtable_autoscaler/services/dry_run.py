#!/usr/bin/env python3
"""
Dry-run wrapper: real reads, logged but suppressed writes
"""

import logging

from .cluster_service import ClusterService

logger = logging.getLogger(__name__)


class DryRunClusterService(ClusterService):
    """Delegates reads to a real service and never resizes"""

    def __init__(self, delegate: ClusterService):
        self.delegate = delegate

    def get_cluster_size(self) -> int:
        return self.delegate.get_cluster_size()

    def set_cluster_size(self, size: int) -> None:
        logger.info(f"[DRY RUN] Would resize cluster to {size} nodes")

    def get_cpu_usage(self, project_id: str, instance_id: str) -> float:
        return self.delegate.get_cpu_usage(project_id, instance_id)

    def close(self) -> None:
        self.delegate.close()
