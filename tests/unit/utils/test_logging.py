"""Unit tests for logging utilities."""

from pathlib import Path

import pytest
from pyfakefs.fake_filesystem import FakeFilesystem

from specvault.config import LogFormat, LoggingConfig, LogLevel
from specvault.utils import create_logger, logger_from_config, null_logger


class TestCreateLogger:
    def test_creates_log_directory_if_missing(self, fs: FakeFilesystem) -> None:
        log_path = Path("/logs/specvault.log")
        assert not log_path.parent.exists()

        _ = create_logger(log_file=str(log_path))

        assert log_path.parent.exists()

    def test_default_format_is_json(self, fs: FakeFilesystem) -> None:
        logger = create_logger(log_file="/logs/specvault.log")

        logger.info("spec_saved", api_id="billing-api")

        content = Path("/logs/specvault.log").read_text()
        assert '"event": "spec_saved"' in content
        assert '"api_id": "billing-api"' in content
        assert '"level": "info"' in content

    def test_text_format(self, fs: FakeFilesystem) -> None:
        logger = create_logger(log_file="/logs/specvault.log", log_format="text")

        logger.info("spec_saved", api_id="billing-api")

        content = Path("/logs/specvault.log").read_text()
        assert "spec_saved" in content
        assert "api_id=billing-api" in content

    def test_level_filters_entries(self, fs: FakeFilesystem) -> None:
        logger = create_logger(level="warning", log_file="/logs/specvault.log")

        logger.info("dropped")
        logger.warning("kept")

        content = Path("/logs/specvault.log").read_text()
        assert "dropped" not in content
        assert "kept" in content

    def test_debug_env_overrides_level(
        self, fs: FakeFilesystem, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPECVAULT_DEBUG", "1")
        logger = create_logger(level="error", log_file="/logs/specvault.log")

        logger.debug("lock_acquired")

        assert "lock_acquired" in Path("/logs/specvault.log").read_text()

    def test_component_is_bound(self, fs: FakeFilesystem) -> None:
        logger = create_logger(log_file="/logs/specvault.log", component="locks")

        logger.info("lock_acquired")

        assert '"component": "locks"' in Path("/logs/specvault.log").read_text()

    def test_stderr_when_no_file(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = create_logger()

        logger.info("spec_loaded")

        assert "spec_loaded" in capsys.readouterr().err


def test_logger_from_config(fs: FakeFilesystem) -> None:
    config = LoggingConfig(
        level=LogLevel.DEBUG, format=LogFormat.TEXT, file="/logs/specvault.log"
    )
    logger = logger_from_config(config, component="store")

    logger.debug("spec_loaded")

    content = Path("/logs/specvault.log").read_text()
    assert "spec_loaded" in content
    assert "component=store" in content


def test_null_logger_discards_everything(capsys: pytest.CaptureFixture[str]) -> None:
    logger = null_logger()

    logger.critical("ignored")
    logger.error("ignored")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == ""
