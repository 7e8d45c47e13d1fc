"""Tests for structured logging."""

import json
import logging
from pathlib import Path

import pytest
import structlog

from appupgen.config.models import LoggingConfig, LogOutputConfig
from appupgen.core.logging import (
    clear_run_id,
    configure_logging,
    get_log_file_path,
    get_logger,
    get_run_id,
    set_run_id,
)
from appupgen.core.progress import suppress_console_logs


class TestRunIdCorrelation:
    """Run ID context variable tests."""

    def setup_method(self) -> None:
        clear_run_id()

    def test_given_run_id_when_set_then_can_retrieve(self) -> None:
        """Run ID can be set and retrieved."""
        result = set_run_id("run-123")

        assert result == "run-123"
        assert get_run_id() == "run-123"

    def test_given_no_id_when_set_then_generates_uuid(self) -> None:
        """Set generates UUID-based ID when none provided."""
        rid = set_run_id()
        assert len(rid) == 12

    def test_given_set_id_when_clear_then_removes_id(self) -> None:
        set_run_id("to-clear")
        clear_run_id()
        assert get_run_id() is None


class TestLoggingConfiguration:
    """Logging configuration tests."""

    def setup_method(self) -> None:
        """Reset structlog and stdlib logging before each test."""
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()
        clear_run_id()

    def test_given_json_file_output_when_log_then_valid_json_lines(self, tmp_path: Path) -> None:
        """JSON output carries event, fields, level, timestamp and run id."""
        # Given
        log_file = tmp_path / "appupgen.log"
        configure_logging(
            config=LoggingConfig(
                level="INFO",
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )
        set_run_id("abc123")

        # When
        get_logger("test").info("appup_written", app="myapp")

        # Then
        data = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert data["event"] == "appup_written"
        assert data["app"] == "myapp"
        assert data["level"] == "info"
        assert data["run_id"] == "abc123"
        assert data["logger"] == "test"
        assert "timestamp" in data

    def test_given_file_output_when_configured_then_path_tracked(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "appupgen.log"
        configure_logging(
            config=LoggingConfig(outputs=[LogOutputConfig(destination=str(log_file))])
        )
        assert get_log_file_path() == log_file
        assert log_file.parent.is_dir()

    def test_given_config_object_when_configure_then_takes_precedence(
        self, tmp_path: Path
    ) -> None:
        """LoggingConfig object takes precedence over simple params."""
        log_file = tmp_path / "test.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[LogOutputConfig(format="json", destination=str(log_file))],
        )

        configure_logging(config=config, json_format=False, level="ERROR")
        get_logger().debug("debug msg")

        assert "debug msg" in log_file.read_text()

    def test_given_multi_output_config_when_configure_then_levels_respected(
        self, tmp_path: Path
    ) -> None:
        """Each output filters at its own level."""
        debug_file = tmp_path / "debug.log"
        info_file = tmp_path / "info.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[
                LogOutputConfig(format="json", destination=str(info_file), level="INFO"),
                LogOutputConfig(format="json", destination=str(debug_file)),
            ],
        )

        configure_logging(config=config)
        logger = get_logger()
        logger.debug("debug only")
        logger.info("info msg")

        info_content = info_file.read_text()
        assert "info msg" in info_content
        assert "debug only" not in info_content
        debug_content = debug_file.read_text()
        assert "debug only" in debug_content
        assert "info msg" in debug_content

    def test_given_console_output_when_suppressed_then_nothing_printed(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Console lines are dropped while a live display is active."""
        configure_logging(level="INFO")
        logger = get_logger()

        with suppress_console_logs():
            logger.info("hidden line")

        assert "hidden line" not in capsys.readouterr().err

    def test_given_logger_made_before_configure_when_log_then_config_applies(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Module-level loggers pick up configuration applied after they were created."""
        # Given
        logger = get_logger("appupgen.early")
        log_file = tmp_path / "appupgen.log"
        configure_logging(
            config=LoggingConfig(
                level="INFO",
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )

        # When
        logger.debug("filtered_out")
        logger.info("kept", app="myapp")

        # Then
        lines = log_file.read_text().strip().splitlines()
        assert [json.loads(line)["event"] for line in lines] == ["kept"]
        assert json.loads(lines[0])["logger"] == "appupgen.early"
        assert capsys.readouterr().out == ""
