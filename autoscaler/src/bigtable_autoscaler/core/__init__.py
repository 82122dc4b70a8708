"""
Core autoscaler modules
"""

from .clock import Clock, FixedClock, SystemClock
from .driver import ScalerDriver
from .scaler import Scaler
from .scaling import evaluate_scaling

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "ScalerDriver",
    "Scaler",
    "evaluate_scaling",
]
