"""
Models package for autoscaler data structures
"""

from .scaling import (
    ScalingAction,
    ScalerConfig,
    ScalingDecision,
    TickObservation,
    default_scaler_config,
    scaler_defaults,
)

__all__ = [
    "ScalingAction",
    "ScalerConfig",
    "ScalingDecision",
    "TickObservation",
    "default_scaler_config",
    "scaler_defaults",
]
