#!/usr/bin/env python3
"""
Port between the scaler and the cluster / monitoring backends
"""

from abc import ABC, abstractmethod


class ClusterService(ABC):
    """Reads and resizes one cluster, and reads its CPU load"""

    @abstractmethod
    def get_cluster_size(self) -> int:
        """
        Return the current node count

        Raises:
            ClusterServiceError: If the cluster could not be read
        """

    @abstractmethod
    def set_cluster_size(self, size: int) -> None:
        """
        Resize the cluster, blocking until the resize is acknowledged

        Raises:
            ResizeError: If the resize fails or is interrupted
        """

    @abstractmethod
    def get_cpu_usage(self, project_id: str, instance_id: str) -> float:
        """
        Return the most recent CPU load sample for the cluster

        Raises:
            MetricsUnavailableError: If no usable sample could be read
        """

    def close(self) -> None:
        """Release client resources; calling it more than once is harmless"""
