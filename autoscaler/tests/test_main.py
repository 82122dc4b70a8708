#!/usr/bin/env python3
"""
Tests for the command line entry point and service wiring
"""

from unittest.mock import patch

import pytest

from bigtable_autoscaler.config import Settings
from bigtable_autoscaler.core.driver import EXIT_FATAL, EXIT_OK
from bigtable_autoscaler.exceptions import ConfigurationError, MetricsUnavailableError
from bigtable_autoscaler.main import EXIT_BOOTSTRAP_FAILURE, AutoscalerService, main
from bigtable_autoscaler.services import DryRunClusterService

from conftest import FakeClusterService


@pytest.fixture(autouse=True)
def env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CONFIG_PATH", raising=False)
    monkeypatch.delenv("AUTOSCALER_DRY_RUN", raising=False)
    monkeypatch.setenv("AUTOSCALER_PROJECT_ID", "proj")
    monkeypatch.setenv("AUTOSCALER_INSTANCE_ID", "inst")
    monkeypatch.delenv("AUTOSCALER_FAILURE_THRESHOLD", raising=False)
    monkeypatch.setenv("METRICS_ENABLED", "false")
    with patch("bigtable_autoscaler.main.setup_logging"):
        yield


@pytest.fixture
def fake_service():
    service = FakeClusterService(10, 0.9)
    with patch.object(AutoscalerService, "_create_cluster_service", return_value=service):
        yield service


class TestMain:
    """Test cases for main()"""

    def test_once_runs_single_tick_and_cleans_up(self, fake_service):
        assert main(["--once"]) == EXIT_OK

        assert fake_service.resizes == [13]
        assert fake_service.closed == 1

    def test_dry_run_flag_suppresses_resize(self, fake_service):
        assert main(["--once", "--dry-run"]) == EXIT_OK

        assert fake_service.resizes == []
        assert fake_service.calls == ["get_cpu_usage", "get_cluster_size"]

    def test_skipped_once_tick_returns_exit_fatal(self, fake_service):
        fake_service.cpu_error = MetricsUnavailableError("no samples")

        assert main(["--once"]) == EXIT_FATAL
        assert fake_service.resizes == []
        assert fake_service.closed == 1

    def test_unexpected_once_error_returns_exit_fatal(self, fake_service):
        fake_service.cpu_error = RuntimeError("boom")

        assert main(["--once"]) == EXIT_FATAL
        assert fake_service.closed == 1

    def test_missing_ids_is_bootstrap_failure(self, monkeypatch, fake_service):
        monkeypatch.delenv("AUTOSCALER_PROJECT_ID")

        assert main(["--once"]) == EXIT_BOOTSTRAP_FAILURE
        assert fake_service.calls == []

    def test_invalid_yaml_is_bootstrap_failure(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- not\n- a mapping\n")

        assert main(["--config", str(config_file), "--once"]) == EXIT_BOOTSTRAP_FAILURE

    def test_cluster_service_failure_is_bootstrap_failure(self):
        with patch.object(
            AutoscalerService,
            "_create_cluster_service",
            side_effect=ConfigurationError("instance has 2 clusters"),
        ):
            assert main(["--once"]) == EXIT_BOOTSTRAP_FAILURE


class TestAutoscalerService:
    """Test cases for AutoscalerService wiring"""

    def test_dry_run_wraps_cluster_service(self, monkeypatch):
        monkeypatch.setenv("AUTOSCALER_DRY_RUN", "true")

        service = AutoscalerService(Settings.load(), cluster_service=FakeClusterService(10, 0.5))

        assert isinstance(service.cluster_service, DryRunClusterService)

    def test_signal_handler_stops_driver(self):
        service = AutoscalerService(Settings.load(), cluster_service=FakeClusterService(10, 0.5))
        service._signal_handler(15, None)

        assert service.driver.wait() == EXIT_OK
        assert service.driver._stop_event.is_set()

    def test_cleanup_logs_close_errors(self):
        class BrokenClose(FakeClusterService):
            def close(self):
                raise RuntimeError("transport already closed")

        service = AutoscalerService(Settings.load(), cluster_service=BrokenClose(10, 0.5))

        service.cleanup()
