"""
Configuration module for autoscaler settings
"""

from .settings import AutoscalerSettings, LoggingSettings, MetricsSettings, Settings

__all__ = [
    "Settings",
    "AutoscalerSettings",
    "LoggingSettings",
    "MetricsSettings",
]
