#!/usr/bin/env python3
"""
Pydantic models for scaler configuration and scaling decisions
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from bigtable_autoscaler.exceptions import ConfigurationError

MAX_DURATION = timedelta(days=365)


class ScalingAction(str, Enum):
    """Outcome of one tick"""
    SCALE_UP = "scale_up"
    SCALE_DOWN = "scale_down"
    AT_MAX = "at_max"            # wanted to grow, already at max_nodes
    AT_MIN = "at_min"            # wanted to shrink, already at min_nodes
    IN_BAND = "in_band"
    COOLING_DOWN = "cooling_down"


class ScalerConfig(BaseModel):
    """Immutable scaling parameters for one cluster"""
    model_config = ConfigDict(frozen=True, extra="forbid")

    project_id: str = Field(..., min_length=1, description="GCP project holding the instance")
    instance_id: str = Field(..., min_length=1, description="Bigtable instance id")

    min_nodes: int = Field(..., gt=0, description="Lower bound for the node count")
    max_nodes: int = Field(..., gt=0, description="Upper bound for the node count")
    increase_step: int = Field(..., description="Nodes added per scale-up, before clamping")
    decrease_step: int = Field(..., description="Nodes removed per scale-down, before clamping")

    max_cpu: float = Field(..., ge=0, le=1, description="Scale up above this CPU load")
    min_cpu: float = Field(..., ge=0, le=1, description="Scale down below this CPU load")

    cooldown: timedelta = Field(..., description="Minimum gap between two adjustments")
    tick_interval: timedelta = Field(..., description="Delay between the end of a tick and the next one")
    failure_threshold: int = Field(..., ge=1, description="Consecutive transient failures tolerated per tick")

    @field_validator("increase_step", "decrease_step")
    @classmethod
    def coerce_step(cls, v: int) -> int:
        return abs(v)

    @field_validator("cooldown", "tick_interval")
    @classmethod
    def bounded_duration(cls, v: timedelta) -> timedelta:
        if v < timedelta(0):
            raise ValueError("duration must not be negative")
        if v > MAX_DURATION:
            raise ValueError(f"duration must not exceed {MAX_DURATION.days} days")
        return v

    @model_validator(mode="after")
    def check_bounds(self) -> "ScalerConfig":
        if self.min_nodes > self.max_nodes:
            raise ValueError(f"min_nodes ({self.min_nodes}) must be <= max_nodes ({self.max_nodes})")
        if self.min_cpu >= self.max_cpu:
            raise ValueError(f"min_cpu ({self.min_cpu}) must be < max_cpu ({self.max_cpu})")
        return self


def scaler_defaults() -> Dict[str, Any]:
    """Default scaling parameters, overridable field by field"""
    return {
        "min_nodes": 3,
        "max_nodes": 30,
        "increase_step": 3,
        "decrease_step": 3,
        "max_cpu": 0.7,
        "min_cpu": 0.15,
        "cooldown": timedelta(minutes=20),
        "tick_interval": timedelta(seconds=10),
        "failure_threshold": 3,
    }


def default_scaler_config(project_id: str, instance_id: str, **overrides: Any) -> ScalerConfig:
    """
    Build a ScalerConfig from the defaults layered with caller-supplied values

    Args:
        project_id: GCP project id
        instance_id: Bigtable instance id
        **overrides: Any ScalerConfig field

    Returns:
        Validated ScalerConfig

    Raises:
        ConfigurationError: If the resulting configuration is invalid
    """
    values = scaler_defaults()
    values.update(overrides)
    try:
        return ScalerConfig(project_id=project_id, instance_id=instance_id, **values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid scaler configuration: {e}") from e


class TickObservation(BaseModel):
    """What a tick saw before deciding"""
    now: datetime
    cpu_usage: float
    cluster_size: int


class ScalingDecision(BaseModel):
    """Result of evaluating one observation against the configuration"""
    action: ScalingAction = Field(..., description="What the scaler decided to do")
    current_size: int = Field(..., description="Observed node count")
    target_size: int = Field(..., description="Node count to write; equals current_size when not scaling")
    cpu_usage: float = Field(..., description="CPU load that drove the decision")
    reason: str = Field(..., description="Human readable explanation")

    @property
    def should_scale(self) -> bool:
        return self.action in (ScalingAction.SCALE_UP, ScalingAction.SCALE_DOWN)
