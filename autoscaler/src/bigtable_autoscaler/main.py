#!/usr/bin/env python3
"""
Bigtable Autoscaler - Main Entry Point
Keeps a Bigtable cluster's CPU load inside a band by resizing its node count
"""

import argparse
import logging
import os
import signal
import sys
from typing import List, Optional

from bigtable_autoscaler.config import Settings
from bigtable_autoscaler.core import Scaler, ScalerDriver, SystemClock
from bigtable_autoscaler.core.logging_config import get_logger, setup_logging
from bigtable_autoscaler.core.metrics import start_metrics_server
from bigtable_autoscaler.exceptions import ConfigurationError
from bigtable_autoscaler.services import ClusterService, DryRunClusterService

EXIT_BOOTSTRAP_FAILURE = 2


class AutoscalerService:
    """Wires settings, cluster service, scaler and driver together"""

    def __init__(self, settings: Settings, cluster_service: Optional[ClusterService] = None):
        """
        Initialize the autoscaler service

        Args:
            settings: Loaded settings
            cluster_service: Port to use instead of the Bigtable-backed one
        """
        self.settings = settings
        self.logger = get_logger(__name__)

        self.scaler_config = settings.to_scaler_config()

        if cluster_service is None:
            cluster_service = self._create_cluster_service()
        if settings.autoscaler.dry_run:
            self.logger.info("Dry-run mode enabled: resizes will be logged, not applied")
            cluster_service = DryRunClusterService(cluster_service)
        self.cluster_service = cluster_service

        self.scaler = Scaler(self.scaler_config, SystemClock(), self.cluster_service)
        self.driver = ScalerDriver(self.scaler, self.scaler_config.tick_interval)

        self.logger.info("Bigtable Autoscaler Service initialized")

    def _create_cluster_service(self) -> ClusterService:
        from bigtable_autoscaler.services.bigtable_cluster_service import BigtableClusterService

        a = self.settings.autoscaler
        return BigtableClusterService.create(
            project_id=self.scaler_config.project_id,
            instance_id=self.scaler_config.instance_id,
            cluster_id=a.cluster_id,
            cpu_lookback_seconds=a.cpu_lookback,
            resize_timeout_seconds=a.resize_timeout,
        )

    def install_signal_handlers(self) -> None:
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals"""
        self.logger.info(f"Received signal {signum}, shutting down...")
        self.driver.stop()

    def run(self) -> int:
        """
        Run the scaling loop until stopped or a tick fails fatally

        Returns:
            Process exit code
        """
        self.logger.info("Starting Bigtable Autoscaler Service...")
        if self.settings.metrics.enabled:
            start_metrics_server(self.settings.metrics.port)

        self.driver.start()
        exit_code = self.driver.wait()
        self.logger.info("Autoscaler service stopped")
        return exit_code

    def run_once(self) -> int:
        return self.driver.run_once()

    def cleanup(self):
        """Release cloud client resources"""
        try:
            self.cluster_service.close()
            self.logger.info("Cleanup completed")
        except Exception as e:
            self.logger.error(f"Error during cleanup: {e}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Bigtable cluster autoscaler')
    parser.add_argument(
        '--config',
        default=os.getenv('CONFIG_PATH'),
        help='Path to a YAML configuration file'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Decide and log, but never resize the cluster'
    )
    parser.add_argument(
        '--once',
        action='store_true',
        help='Run a single tick and exit'
    )
    parser.add_argument(
        '--log-level',
        help='Override LOG_LEVEL'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point"""
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.load(args.config)
    except ConfigurationError as e:
        logging.basicConfig()
        logging.getLogger(__name__).error(f"Configuration error: {e}")
        return EXIT_BOOTSTRAP_FAILURE

    if args.dry_run:
        settings.autoscaler.dry_run = True
    if args.log_level:
        settings.logging.level = args.log_level

    setup_logging(
        level=settings.logging.level,
        log_file=settings.logging.file,
        enable_colors=settings.logging.colors
    )
    logger = get_logger(__name__)

    try:
        service = AutoscalerService(settings)
    except Exception as e:
        logger.error(f"Failed to start autoscaler: {e}", exc_info=not isinstance(e, ConfigurationError))
        return EXIT_BOOTSTRAP_FAILURE

    try:
        if args.once:
            return service.run_once()
        service.install_signal_handlers()
        return service.run()
    finally:
        service.cleanup()


if __name__ == "__main__":
    sys.exit(main())
