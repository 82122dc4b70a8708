"""
Services package for autoscaler
"""

from .cluster_service import ClusterService
from .dry_run import DryRunClusterService

__all__ = ["ClusterService", "DryRunClusterService"]
