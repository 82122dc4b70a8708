#!/usr/bin/env python3
"""
Shared fixtures and fakes for autoscaler tests
"""

from datetime import timedelta
from typing import List, Optional

import pytest

from bigtable_autoscaler.core import FixedClock
from bigtable_autoscaler.models import default_scaler_config
from bigtable_autoscaler.services import ClusterService

PROJECT = "project"
INSTANCE_ID = "instance"
FIXED_EPOCH_MILLIS = 1519563099032


class FakeClusterService(ClusterService):
    """In-memory cluster that records every call"""

    def __init__(self, initial_size: int, cpu_usage: float):
        self.size = initial_size
        self.cpu_usage = cpu_usage
        self.calls: List[str] = []
        self.resizes: List[int] = []
        self.cpu_error: Optional[Exception] = None
        self.resize_error: Optional[Exception] = None
        self.closed = 0

    def get_cluster_size(self) -> int:
        self.calls.append("get_cluster_size")
        return self.size

    def set_cluster_size(self, size: int) -> None:
        self.calls.append("set_cluster_size")
        if self.resize_error is not None:
            raise self.resize_error
        self.resizes.append(size)
        self.size = size

    def get_cpu_usage(self, project_id: str, instance_id: str) -> float:
        self.calls.append("get_cpu_usage")
        if self.cpu_error is not None:
            raise self.cpu_error
        return self.cpu_usage

    def close(self) -> None:
        self.closed += 1


@pytest.fixture
def clock():
    return FixedClock.from_epoch_millis(FIXED_EPOCH_MILLIS)


def make_config(**overrides):
    """Config used across the scaler tests; overrides win"""
    values = dict(
        max_cpu=0.5,
        min_cpu=0.2,
        max_nodes=20,
        min_nodes=5,
        increase_step=5,
        decrease_step=3,
        cooldown=timedelta(seconds=10),
    )
    values.update(overrides)
    return default_scaler_config(PROJECT, INSTANCE_ID, **values)


def pytest_configure(config):
    """Configure pytest"""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
