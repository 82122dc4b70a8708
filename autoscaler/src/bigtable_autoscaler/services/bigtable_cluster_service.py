#!/usr/bin/env python3
"""
ClusterService backed by the Bigtable admin API and Cloud Monitoring
"""

import concurrent.futures
import logging
import threading
import time
from typing import Any, Callable, Optional

from google.api_core import exceptions as google_exceptions
from google.cloud import bigtable, monitoring_v3

from bigtable_autoscaler.exceptions import (
    ClusterServiceError,
    ConfigurationError,
    MetricsUnavailableError,
    ResizeError,
)
from .cluster_service import ClusterService

logger = logging.getLogger(__name__)

CPU_LOAD_METRIC = "bigtable.googleapis.com/cluster/cpu_load"


class BigtableClusterService(ClusterService):
    """Resizes one Bigtable cluster and reads its cpu_load metric"""

    def __init__(
        self,
        bigtable_client: Any,
        metric_client: Any,
        instance_id: str,
        cluster_id: Optional[str] = None,
        cpu_lookback_seconds: int = 300,
        resize_timeout_seconds: float = 600,
        time_source: Callable[[], float] = time.time,
    ):
        """
        Initialize the service

        Args:
            bigtable_client: google.cloud.bigtable.Client created with admin=True
            metric_client: google.cloud.monitoring_v3.MetricServiceClient
            instance_id: Bigtable instance id
            cluster_id: Cluster to manage; when omitted the instance must have exactly one
            cpu_lookback_seconds: Width of the monitoring query window
            resize_timeout_seconds: How long to wait for a resize operation
            time_source: Returns the current unix time in seconds
        """
        self.bigtable_client = bigtable_client
        self.metric_client = metric_client
        self.instance_id = instance_id
        self.cpu_lookback_seconds = cpu_lookback_seconds
        self.resize_timeout_seconds = resize_timeout_seconds
        self.time_source = time_source

        self._close_lock = threading.Lock()
        self._closed = False

        self.instance = bigtable_client.instance(instance_id)
        self.cluster_id = cluster_id or self._discover_cluster_id()
        self.cluster = self.instance.cluster(self.cluster_id)
        logger.info(f"Managing Bigtable cluster {instance_id}/{self.cluster_id}")

    @classmethod
    def create(
        cls,
        project_id: str,
        instance_id: str,
        cluster_id: Optional[str] = None,
        cpu_lookback_seconds: int = 300,
        resize_timeout_seconds: float = 600,
    ) -> "BigtableClusterService":
        """Build the service with clients using application default credentials"""
        bigtable_client = bigtable.Client(project=project_id, admin=True)
        metric_client = monitoring_v3.MetricServiceClient()
        return cls(
            bigtable_client,
            metric_client,
            instance_id,
            cluster_id=cluster_id,
            cpu_lookback_seconds=cpu_lookback_seconds,
            resize_timeout_seconds=resize_timeout_seconds,
        )

    def _discover_cluster_id(self) -> str:
        clusters, failed_locations = self.instance.list_clusters()
        if failed_locations:
            logger.warning(f"Could not list clusters in locations: {failed_locations}")
        if len(clusters) != 1:
            raise ConfigurationError(
                f"Instance {self.instance_id} has {len(clusters)} clusters; "
                f"set a cluster id to choose one"
            )
        return clusters[0].cluster_id

    def get_cluster_size(self) -> int:
        try:
            self.cluster.reload()
        except google_exceptions.GoogleAPIError as e:
            raise ClusterServiceError(f"Failed to read size of {self.cluster_id}: {e}") from e
        return self.cluster.serve_nodes

    def set_cluster_size(self, size: int) -> None:
        logger.info(f"Requesting resize of {self.instance_id}/{self.cluster_id} to {size} nodes")
        try:
            self.cluster.serve_nodes = size
            operation = self.cluster.update()
            operation.result(timeout=self.resize_timeout_seconds)
        except (google_exceptions.GoogleAPIError, concurrent.futures.TimeoutError) as e:
            raise ResizeError(f"Failed to resize {self.cluster_id} to {size} nodes: {e}") from e
        logger.info(f"Cluster {self.cluster_id} resized to {size} nodes")

    def _build_filter(self, instance_id: str) -> str:
        return (
            f'metric.type="{CPU_LOAD_METRIC}"'
            f' AND resource.labels.instance="{instance_id}"'
            f' AND resource.labels.cluster="{self.cluster_id}"'
        )

    def get_cpu_usage(self, project_id: str, instance_id: str) -> float:
        now = int(self.time_source())
        interval = monitoring_v3.TimeInterval(
            {
                "end_time": {"seconds": now, "nanos": 0},
                "start_time": {"seconds": now - self.cpu_lookback_seconds, "nanos": 0},
            }
        )
        try:
            results = self.metric_client.list_time_series(
                request={
                    "name": f"projects/{project_id}",
                    "filter": self._build_filter(instance_id),
                    "interval": interval,
                    "view": monitoring_v3.ListTimeSeriesRequest.TimeSeriesView.FULL,
                }
            )
            series = next(iter(results), None)
        except google_exceptions.GoogleAPIError as e:
            raise MetricsUnavailableError(f"CPU load query failed: {e}") from e

        if series is None or not series.points:
            raise MetricsUnavailableError(
                f"No {CPU_LOAD_METRIC} samples for {instance_id} in the last {self.cpu_lookback_seconds}s"
            )
        return series.points[0].value.double_value

    def close(self) -> None:
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        logger.info("Closing Bigtable and Monitoring clients")
        try:
            self.metric_client.transport.close()
        finally:
            self.bigtable_client.instance_admin_client.transport.close()
