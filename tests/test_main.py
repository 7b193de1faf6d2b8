"""Unit tests for the main entry point.

Tests the main() function including:
- CLI argument parsing
- Configuration loading with priority (CLI > env > config)
- Manual sync, URL check and QA sample modes
- Daemon mode job registration
- Exit code handling
"""

from unittest.mock import Mock, patch

import pytest

from market_signals.config.environment import EnvironmentConfig
from market_signals.config.exceptions import ConfigurationError
from market_signals.config.models import AppConfig, ProviderConfig
from market_signals.main import build_parser, load_runtime_config, main
from market_signals.scheduler import QA_JOB_ID, SYNC_JOB_ID, URL_HEALTH_JOB_ID


def make_configs(log_level=None, **app_overrides):
    app_config = AppConfig(providers=[ProviderConfig(type="ARBEITNOW")], **app_overrides)
    env_config = EnvironmentConfig(database_url="sqlite:///:memory:", log_level=log_level)
    return app_config, env_config


@pytest.fixture
def services():
    """Patch every collaborator main() builds, keyed by name."""
    names = [
        "load_runtime_config",
        "configure_logging",
        "init_database",
        "close_database",
        "UrlProbe",
        "MarketSyncPipeline",
        "UrlHealthChecker",
        "QaTruthSampler",
        "SpendAlertService",
        "SchedulerService",
    ]
    patchers = [patch(f"market_signals.main.{name}") for name in names]
    mocks = {name: patcher.start() for name, patcher in zip(names, patchers)}
    mocks["load_runtime_config"].return_value = make_configs(log_level="INFO")
    yield mocks
    for patcher in patchers:
        patcher.stop()


class TestBuildParser:
    """Test suite for CLI parsing."""

    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.config is None
        assert args.manual_run is False
        assert args.check_urls is False
        assert args.qa_sample is False
        assert args.log_level is None

    def test_modes_are_mutually_exclusive(self, capsys):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--manual-run", "--qa-sample"])

        assert "not allowed with argument" in capsys.readouterr().err

    def test_invalid_log_level_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--log-level", "LOUD"])


class TestLoadRuntimeConfig:
    """Test suite for load_runtime_config helper."""

    def test_cli_override_wins(self):
        with patch("market_signals.main.load_config") as mock_load:
            mock_load.return_value = make_configs(log_level="WARNING")

            _, env_config = load_runtime_config(None, "DEBUG")

        assert env_config.log_level == "DEBUG"

    def test_environment_beats_config_file(self):
        with patch("market_signals.main.load_config") as mock_load:
            mock_load.return_value = make_configs(log_level="WARNING")

            _, env_config = load_runtime_config(None, None)

        assert env_config.log_level == "WARNING"

    def test_config_file_level_used_last(self):
        with patch("market_signals.main.load_config") as mock_load:
            mock_load.return_value = make_configs(logging={"level": "ERROR"})

            _, env_config = load_runtime_config(None, None)

        assert env_config.log_level == "ERROR"

    def test_passes_config_path_through(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        with patch("market_signals.main.load_config") as mock_load:
            mock_load.return_value = make_configs()

            load_runtime_config(config_path, None)

        mock_load.assert_called_once_with(config_path)


class TestMain:
    """Test suite for main()."""

    def test_manual_run_success(self, services):
        services["MarketSyncPipeline"].return_value.run_once.return_value = Mock(
            had_errors=False, total_duration_seconds=1.0
        )

        exit_code = main(["--manual-run", "--config", "config.yaml"])

        assert exit_code == 0
        services["init_database"].assert_called_once_with("sqlite:///:memory:")
        services["MarketSyncPipeline"].return_value.run_once.assert_called_once()
        services["close_database"].assert_called_once()
        services["SchedulerService"].assert_not_called()

    def test_manual_run_with_errors(self, services):
        services["MarketSyncPipeline"].return_value.run_once.return_value = Mock(
            had_errors=True, total_duration_seconds=1.0
        )

        assert main(["--manual-run"]) == 1

    def test_check_urls(self, services):
        services["UrlHealthChecker"].return_value.run.return_value = Mock(checked=3, dead=1)

        assert main(["--check-urls"]) == 0
        services["UrlHealthChecker"].return_value.run.assert_called_once()
        services["MarketSyncPipeline"].return_value.run_once.assert_not_called()

    def test_qa_sample(self, services):
        sampler = services["QaTruthSampler"].return_value
        sampler.run.return_value = Mock(sampled=2, summary=Mock(return_value="2 PASS"))

        assert main(["--qa-sample"]) == 0
        sampler.run.assert_called_once()

    def test_logging_configured_from_runtime_config(self, services):
        services["MarketSyncPipeline"].return_value.run_once.return_value = Mock(
            had_errors=False, total_duration_seconds=0.5
        )

        main(["--manual-run", "--log-level", "DEBUG"])

        services["load_runtime_config"].assert_called_once_with(None, "DEBUG")
        kwargs = services["configure_logging"].call_args.kwargs
        assert kwargs["level"] == "INFO"
        assert kwargs["format_type"] == "key-value"

    @patch("signal.signal")
    def test_daemon_mode_registers_jobs(self, mock_signal, services):
        scheduler = services["SchedulerService"].return_value
        # Simulate immediate shutdown so the test doesn't hang
        scheduler.start.side_effect = KeyboardInterrupt()

        exit_code = main([])

        assert exit_code == 0
        job_ids = [c.args[0] for c in scheduler.add_job.call_args_list]
        assert job_ids == [SYNC_JOB_ID, URL_HEALTH_JOB_ID, QA_JOB_ID]
        scheduler.start.assert_called_once()

    @patch("signal.signal")
    def test_daemon_mode_skips_disabled_jobs(self, mock_signal, services):
        services["load_runtime_config"].return_value = make_configs(
            log_level="INFO", qa={"enabled": False}, url_health={"enabled": False}
        )
        scheduler = services["SchedulerService"].return_value
        scheduler.start.side_effect = KeyboardInterrupt()

        main([])

        job_ids = [c.args[0] for c in scheduler.add_job.call_args_list]
        assert job_ids == [SYNC_JOB_ID]

    def test_configuration_error(self, services, capsys):
        services["load_runtime_config"].side_effect = ConfigurationError(
            "Config file not found", suggestions=["Create config.yaml"]
        )

        assert main(["--config", "nonexistent.yaml"]) == 1
        assert "Configuration Error" in capsys.readouterr().err

    def test_keyboard_interrupt(self, services):
        services["load_runtime_config"].side_effect = KeyboardInterrupt()

        assert main([]) == 0

    def test_unexpected_error(self, services, capsys):
        services["init_database"].side_effect = RuntimeError("disk full")

        assert main(["--manual-run"]) == 1
        assert "Fatal error: disk full" in capsys.readouterr().err
