#!/usr/bin/env python3
"""
Prometheus instruments exported by the autoscaler
"""

import logging

from prometheus_client import Counter, Gauge, Histogram, start_http_server

logger = logging.getLogger(__name__)

SCALING_DECISIONS = Counter(
    'bigtable_autoscaler_scaling_decisions_total', 'Total scaling decisions', ['action']
)
CLUSTER_NODES = Gauge('bigtable_autoscaler_cluster_nodes', 'Last observed Bigtable node count')
CPU_USAGE = Gauge('bigtable_autoscaler_cpu_usage', 'Last observed cluster CPU load (0-1)')
TICK_ERRORS = Counter('bigtable_autoscaler_tick_errors_total', 'Total failed ticks', ['type'])
TICK_DURATION = Histogram('bigtable_autoscaler_tick_duration_seconds', 'Time spent in one tick')
LAST_ADJUSTMENT = Gauge(
    'bigtable_autoscaler_last_adjustment_timestamp_seconds', 'Unix time of the last successful resize'
)


def start_metrics_server(port: int) -> None:
    """Expose the default registry over HTTP"""
    start_http_server(port)
    logger.info(f"Prometheus metrics server started on :{port}")
