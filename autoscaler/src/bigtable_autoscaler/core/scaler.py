#!/usr/bin/env python3
"""
Core scaler: one tick samples CPU load, decides, and resizes the cluster
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from bigtable_autoscaler.exceptions import ClusterServiceError, MetricsUnavailableError, ScalerFatalError
from bigtable_autoscaler.models import ScalerConfig, ScalingAction, ScalingDecision, TickObservation
from bigtable_autoscaler.services import ClusterService
from .clock import Clock
from .metrics import CLUSTER_NODES, CPU_USAGE, LAST_ADJUSTMENT, SCALING_DECISIONS, TICK_DURATION, TICK_ERRORS
from .scaling import evaluate_scaling

logger = logging.getLogger(__name__)

# Earliest representable instant, so the first tick is never in cooldown
NEVER = datetime.min.replace(tzinfo=timezone.utc)


class Scaler:
    """Keeps one Bigtable cluster's CPU load inside the configured band"""

    def __init__(self, config: ScalerConfig, clock: Clock, cluster_service: ClusterService):
        """
        Initialize the scaler

        Args:
            config: Validated scaling parameters
            clock: Time source; frozen clocks make ticks deterministic
            cluster_service: Port used to read load and size and to resize
        """
        self.config = config
        self.clock = clock
        self.cluster_service = cluster_service

        self.last_adjustment_time = NEVER
        self.consecutive_failures = 0
        self.last_observation: Optional[TickObservation] = None
        self.last_decision: Optional[ScalingDecision] = None

        logger.info(
            f"Scaler initialized for {config.project_id}/{config.instance_id}: "
            f"nodes [{config.min_nodes}, {config.max_nodes}], "
            f"cpu [{config.min_cpu}, {config.max_cpu}], "
            f"steps +{config.increase_step}/-{config.decrease_step}, "
            f"cooldown {config.cooldown}"
        )

    def in_cooldown(self, now: datetime) -> bool:
        if self.last_adjustment_time == NEVER:
            return False
        return now - self.last_adjustment_time < self.config.cooldown

    def tick(self) -> bool:
        """
        Run one scaling cycle

        The cooldown gate is checked before any call to the cluster service.

        Returns:
            False if the tick was skipped because of a ClusterServiceError,
            True otherwise (including ticks skipped by the cooldown)

        Raises:
            ScalerFatalError: On an unexpected error, or once failure_threshold
                consecutive ClusterServiceErrors have been seen
        """
        now = self.clock.now()
        if self.in_cooldown(now):
            resume_at = self.last_adjustment_time + self.config.cooldown
            logger.info(f"Cooling down, cooldown will complete at {resume_at.isoformat()}")
            SCALING_DECISIONS.labels(action=ScalingAction.COOLING_DOWN.value).inc()
            return True

        with TICK_DURATION.time():
            try:
                observation = self._observe(now)
                decision = evaluate_scaling(self.config, observation.cpu_usage, observation.cluster_size)
                self.last_decision = decision
                SCALING_DECISIONS.labels(action=decision.action.value).inc()
                self._apply(decision)
            except ClusterServiceError as e:
                self._on_transient_failure(e)
                return False
            except Exception as e:
                logger.error("Failure to auto-scale Bigtable", exc_info=True)
                TICK_ERRORS.labels(type="unexpected").inc()
                raise ScalerFatalError(f"Unexpected error during tick: {e}") from e

        self.consecutive_failures = 0
        return True

    def _observe(self, now: datetime) -> TickObservation:
        cpu_usage = self.cluster_service.get_cpu_usage(self.config.project_id, self.config.instance_id)
        if not 0.0 <= cpu_usage <= 1.0:
            raise MetricsUnavailableError(f"CPU load {cpu_usage} is outside [0, 1]")
        cluster_size = self.cluster_service.get_cluster_size()

        CPU_USAGE.set(cpu_usage)
        CLUSTER_NODES.set(cluster_size)
        observation = TickObservation(now=now, cpu_usage=cpu_usage, cluster_size=cluster_size)
        self.last_observation = observation
        logger.debug(f"Observed cpu={cpu_usage:.3f} size={cluster_size}")
        return observation

    def _apply(self, decision: ScalingDecision) -> None:
        if decision.action == ScalingAction.SCALE_UP:
            logger.info(
                f"Increasing cluster size from {decision.current_size} to {decision.target_size}, "
                f"usage at {decision.cpu_usage:.3f}"
            )
        elif decision.action == ScalingAction.SCALE_DOWN:
            logger.info(
                f"Decreasing cluster size from {decision.current_size} to {decision.target_size}, "
                f"usage at {decision.cpu_usage:.3f}"
            )
        elif decision.action == ScalingAction.AT_MAX:
            logger.info(f"Wanted to increase cluster size, but max count is reached ({decision.reason})")
            return
        elif decision.action == ScalingAction.AT_MIN:
            logger.info(f"Wanted to decrease cluster size, but min count is reached ({decision.reason})")
            return
        else:
            logger.info(f"Cluster is running at good scale ({decision.reason})")
            return

        # Written even when target == current (zero step)
        self.cluster_service.set_cluster_size(decision.target_size)

        # Cooldown starts when the resize returns
        self.last_adjustment_time = max(self.last_adjustment_time, self.clock.now())
        CLUSTER_NODES.set(decision.target_size)
        LAST_ADJUSTMENT.set(self.last_adjustment_time.timestamp())

    def _on_transient_failure(self, error: ClusterServiceError) -> None:
        self.consecutive_failures += 1
        TICK_ERRORS.labels(type=type(error).__name__).inc()
        logger.error(
            f"Tick failed ({self.consecutive_failures}/{self.config.failure_threshold}): {error}",
            exc_info=True,
        )
        if self.consecutive_failures >= self.config.failure_threshold:
            raise ScalerFatalError(
                f"Giving up after {self.consecutive_failures} consecutive failures"
            ) from error
