#!/usr/bin/env python3
"""
Exception types raised by the autoscaler
"""


class ConfigurationError(ValueError):
    """Scaling parameters violate a structural invariant"""


class ClusterServiceError(Exception):
    """Base class for transient failures talking to the cluster or monitoring APIs"""


class MetricsUnavailableError(ClusterServiceError):
    """CPU usage could not be read, or the returned sample is unusable"""


class ResizeError(ClusterServiceError):
    """Cluster resize request failed or was interrupted"""


class ScalerFatalError(Exception):
    """Raised by a tick when the driver must stop and the process must exit"""
