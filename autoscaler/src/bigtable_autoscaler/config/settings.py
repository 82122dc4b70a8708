#!/usr/bin/env python3
"""
Configuration settings using Pydantic for environment variable loading
"""

import os
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple, Type

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from bigtable_autoscaler.exceptions import ConfigurationError
from bigtable_autoscaler.models import ScalerConfig, default_scaler_config


class EnvFirstSettings(BaseSettings):
    """Settings section where environment variables win over values passed in (e.g. from YAML)"""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, dotenv_settings, init_settings, file_secret_settings


class AutoscalerSettings(EnvFirstSettings):
    """Scaling parameters; unset values fall back to the scaler defaults"""
    model_config = SettingsConfigDict(
        env_prefix="AUTOSCALER_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    project_id: Optional[str] = None
    instance_id: Optional[str] = None
    cluster_id: Optional[str] = None

    check_interval: Optional[float] = Field(None, description="Seconds between the end of a tick and the next")
    min_nodes: Optional[int] = None
    max_nodes: Optional[int] = None
    increase_step: Optional[int] = None
    decrease_step: Optional[int] = None
    max_cpu: Optional[float] = None
    min_cpu: Optional[float] = None
    cooldown: Optional[float] = Field(None, description="Cooldown in seconds")
    failure_threshold: Optional[int] = None

    cpu_lookback: int = Field(300, gt=0, description="Monitoring query window in seconds")
    resize_timeout: float = Field(600, gt=0, description="Seconds to wait for a resize to complete")
    dry_run: bool = False


class LoggingSettings(EnvFirstSettings):
    """Logging configuration settings"""
    model_config = SettingsConfigDict(
        env_prefix="LOG_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    level: str = "INFO"
    file: Optional[str] = None
    colors: bool = True


class MetricsSettings(EnvFirstSettings):
    """Prometheus exporter settings"""
    model_config = SettingsConfigDict(
        env_prefix="METRICS_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    enabled: bool = True
    port: int = Field(9091, gt=0, lt=65536)


class Settings(BaseModel):
    """Main settings class that includes all sub-settings"""
    autoscaler: AutoscalerSettings = Field(default_factory=AutoscalerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    metrics: MetricsSettings = Field(default_factory=MetricsSettings)

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Settings":
        """
        Load settings from an optional YAML file, overridden by environment variables

        ${VAR} and $VAR references inside the YAML are expanded from the environment.

        Args:
            config_path: Path to a YAML file with autoscaler/logging/metrics sections

        Returns:
            Settings instance

        Raises:
            ConfigurationError: If the file or any value is invalid
        """
        yaml_config: Dict[str, Any] = {}
        if config_path and os.path.exists(config_path):
            with open(config_path, 'r') as f:
                try:
                    yaml_config = yaml.safe_load(os.path.expandvars(f.read())) or {}
                except yaml.YAMLError as e:
                    raise ConfigurationError(f"Cannot parse {config_path}: {e}") from e
            if not isinstance(yaml_config, dict):
                raise ConfigurationError(f"{config_path} must contain a mapping")

        try:
            return cls(
                autoscaler=AutoscalerSettings(**(yaml_config.get("autoscaler") or {})),
                logging=LoggingSettings(**(yaml_config.get("logging") or {})),
                metrics=MetricsSettings(**(yaml_config.get("metrics") or {})),
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings: {e}") from e

    def to_scaler_config(self) -> ScalerConfig:
        """
        Build the immutable scaler configuration

        Raises:
            ConfigurationError: If ids are missing or the parameters are inconsistent
        """
        a = self.autoscaler
        if not a.project_id or not a.instance_id:
            raise ConfigurationError("AUTOSCALER_PROJECT_ID and AUTOSCALER_INSTANCE_ID must be set")

        overrides: Dict[str, Any] = {
            "min_nodes": a.min_nodes,
            "max_nodes": a.max_nodes,
            "increase_step": a.increase_step,
            "decrease_step": a.decrease_step,
            "max_cpu": a.max_cpu,
            "min_cpu": a.min_cpu,
            "failure_threshold": a.failure_threshold,
        }
        try:
            if a.cooldown is not None:
                overrides["cooldown"] = timedelta(seconds=a.cooldown)
            if a.check_interval is not None:
                overrides["tick_interval"] = timedelta(seconds=a.check_interval)
        except OverflowError as e:
            raise ConfigurationError(f"Duration out of range: {e}") from e

        return default_scaler_config(
            a.project_id,
            a.instance_id,
            **{k: v for k, v in overrides.items() if v is not None},
        )
