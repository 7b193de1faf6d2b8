"""Main entry point for the market signal pipeline service."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import os
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Optional, Tuple

from market_signals.config.environment import EnvironmentConfig
from market_signals.config.exceptions import ConfigurationError
from market_signals.config.loader import load_config
from market_signals.config.models import AppConfig
from market_signals.lifecycle.health_check import UrlHealthChecker
from market_signals.lifecycle.probe import UrlProbe
from market_signals.logging import get_logger
from market_signals.logging.config import configure_logging
from market_signals.notifications.service import SpendAlertService
from market_signals.persistence.database import close_database, init_database
from market_signals.pipeline import MarketSyncPipeline
from market_signals.qa.sampler import QaTruthSampler
from market_signals.scheduler import (
    QA_JOB_ID,
    SYNC_JOB_ID,
    URL_HEALTH_JOB_ID,
    SchedulerService,
)

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Log level priority: CLI > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Market Signal Pipeline - contract job market ingestion, dedup and scoring"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml, then config/config.yaml)",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--manual-run",
        action="store_true",
        help="Run a single market sync immediately and exit",
    )
    mode.add_argument(
        "--check-urls",
        action="store_true",
        help="Run one URL health check batch and exit",
    )
    mode.add_argument(
        "--qa-sample",
        action="store_true",
        help="Run one QA truth sample and exit",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    return parser


def main(argv=None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    start_time = time.time()
    args = build_parser().parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        environment = os.environ.get("ENVIRONMENT", "local")
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=environment,
        )

        logger.info(
            "Market signal pipeline starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
            },
        )

        init_database(env_config.database_url)

        logger.info(
            "Configuration loaded",
            extra={
                "event": "config.loaded",
                "provider_count": len(app_config.providers),
                "enabled_providers": [p.name for p in app_config.get_enabled_providers()],
                "sync_interval_seconds": app_config.sync_interval_seconds,
                "smtp_enabled": env_config.smtp_enabled,
            },
        )

        probe = UrlProbe(
            timeout=app_config.advanced.http_request_timeout,
            user_agent=app_config.advanced.user_agent,
        )
        pipeline = MarketSyncPipeline(
            app_config=app_config,
            env_config=env_config,
            alert_service=SpendAlertService(env_config),
        )
        health_checker = UrlHealthChecker(
            probe,
            batch_size=app_config.url_health.batch_size,
            recheck_after_hours=app_config.url_health.recheck_after_hours,
        )
        sampler = QaTruthSampler(probe, sample_size=app_config.qa.sample_size)

        if args.manual_run:
            result = pipeline.run_once()
            logger.info(
                f"Manual sync completed: {result.total_fetched} fetched, "
                f"{result.total_inserted} inserted, {result.total_updated} updated, "
                f"{result.total_deduped} deduped, {result.total_skipped} skipped",
                extra={
                    "event": "service.manual_sync.completed",
                    "duration_seconds": result.total_duration_seconds,
                    "had_errors": result.had_errors,
                },
            )
            close_database()
            return 1 if result.had_errors else 0

        if args.check_urls:
            health = health_checker.run()
            logger.info(
                f"URL check completed: {health.checked} checked, {health.dead} dead",
                extra={"event": "service.url_check.completed", "checked": health.checked},
            )
            close_database()
            return 0

        if args.qa_sample:
            qa_result = sampler.run()
            logger.info(
                f"QA sample completed: {qa_result.summary()}",
                extra={"event": "service.qa_sample.completed", "sampled": qa_result.sampled},
            )
            close_database()
            return 0

        # Daemon mode
        shutdown_event = threading.Event()
        scheduler_service = SchedulerService(shutdown_event=shutdown_event)
        scheduler_service.add_job(
            SYNC_JOB_ID, pipeline.run_once, app_config.sync_interval_seconds, name="Market Sync"
        )
        if app_config.url_health.enabled:
            scheduler_service.add_job(
                URL_HEALTH_JOB_ID,
                health_checker.run,
                app_config.url_check_interval_seconds,
                name="URL Health Check",
                run_immediately=False,
            )
        if app_config.qa.enabled:
            scheduler_service.add_job(
                QA_JOB_ID,
                sampler.run,
                app_config.qa_interval_seconds,
                name="QA Truth Sampler",
                run_immediately=False,
            )

        def signal_handler(signum, frame):
            logger.info(
                f"Received signal {signum}, shutting down",
                extra={"event": "service.signal_received", "signal": signum},
            )
            scheduler_service.shutdown(wait=False)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        scheduler_service.start()
        logger.info(
            "Scheduler started. Press Ctrl+C to stop",
            extra={"event": "service.daemon_mode.started"},
        )

        try:
            shutdown_event.wait()
        except KeyboardInterrupt:
            scheduler_service.shutdown(wait=False)

        close_database()
        logger.info(
            "Market signal pipeline stopped",
            extra={
                "event": "service.stopping",
                "uptime_seconds": round(time.time() - start_time, 2),
            },
        )
        return 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during startup",
            extra={"event": "service.startup.failed", "error_type": type(e).__name__},
            exc_info=True,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
