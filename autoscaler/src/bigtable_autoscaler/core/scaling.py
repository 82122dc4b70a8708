#!/usr/bin/env python3
"""
Scaling engine module for making scaling decisions
"""

from bigtable_autoscaler.models import ScalerConfig, ScalingAction, ScalingDecision


def _clamp(size: int, config: ScalerConfig) -> int:
    return max(config.min_nodes, min(size, config.max_nodes))


def evaluate_scaling(config: ScalerConfig, cpu_usage: float, cluster_size: int) -> ScalingDecision:
    """
    Evaluate a CPU sample against the configured band and bounds

    Thresholds are strict: a load exactly at max_cpu or min_cpu is in band.

    Args:
        config: Scaler configuration
        cpu_usage: CPU load in [0, 1]
        cluster_size: Observed node count

    Returns:
        ScalingDecision; target_size is always within [min_nodes, max_nodes]
        when the action is SCALE_UP or SCALE_DOWN
    """
    if cpu_usage > config.max_cpu:
        if cluster_size < config.max_nodes:
            target = _clamp(min(cluster_size + config.increase_step, config.max_nodes), config)
            return ScalingDecision(
                action=ScalingAction.SCALE_UP,
                current_size=cluster_size,
                target_size=target,
                cpu_usage=cpu_usage,
                reason=f"CPU {cpu_usage:.3f} > {config.max_cpu}",
            )
        return ScalingDecision(
            action=ScalingAction.AT_MAX,
            current_size=cluster_size,
            target_size=cluster_size,
            cpu_usage=cpu_usage,
            reason=f"CPU {cpu_usage:.3f} > {config.max_cpu} but max node count {config.max_nodes} is reached",
        )

    if cpu_usage < config.min_cpu:
        if cluster_size > config.min_nodes:
            target = _clamp(max(cluster_size - config.decrease_step, config.min_nodes), config)
            return ScalingDecision(
                action=ScalingAction.SCALE_DOWN,
                current_size=cluster_size,
                target_size=target,
                cpu_usage=cpu_usage,
                reason=f"CPU {cpu_usage:.3f} < {config.min_cpu}",
            )
        return ScalingDecision(
            action=ScalingAction.AT_MIN,
            current_size=cluster_size,
            target_size=cluster_size,
            cpu_usage=cpu_usage,
            reason=f"CPU {cpu_usage:.3f} < {config.min_cpu} but min node count {config.min_nodes} is reached",
        )

    return ScalingDecision(
        action=ScalingAction.IN_BAND,
        current_size=cluster_size,
        target_size=cluster_size,
        cpu_usage=cpu_usage,
        reason=f"CPU {cpu_usage:.3f} within [{config.min_cpu}, {config.max_cpu}]",
    )
